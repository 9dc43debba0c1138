"""Upload-and-analyze endpoint."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from raf_intel.core.config import settings
from raf_intel.core.snapshot import get_snapshot_store
from raf_intel.schemas.dashboard import DashboardResponse
from raf_intel.schemas.upload import UploadAnalysisResponse, UploadRequest
from raf_intel.services.analytics import build_dashboard
from raf_intel.services.upload_validator import build_upload_snapshot, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Upload"])


@router.post(
    "/analyze",
    response_model=UploadAnalysisResponse,
    summary="Validate and analyze an uploaded dataset",
    description=(
        "Runs the dashboard analysis over uploaded members and claims. With activate=true the "
        "upload replaces the dataset served by every other endpoint."
    ),
)
def analyze_upload(
    request: UploadRequest,
    activate: bool = Query(False, description="Swap the upload in as the served dataset"),
) -> UploadAnalysisResponse:
    """Validate, parse and analyze an upload.

    Raises:
        HTTPException: 400 with field-level details if validation fails.
    """
    validation = validate_upload(request.members, request.claims)
    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid upload", "details": validation.errors},
        )

    snapshot = build_upload_snapshot(request.members, request.claims)
    bundle = build_dashboard(snapshot, agent_batch_limit=settings.upload_agent_batch_limit)

    if activate:
        get_snapshot_store().swap(snapshot)

    return UploadAnalysisResponse(
        warnings=validation.warnings,
        activated=activate,
        stats=snapshot.get_stats(),
        dashboard=DashboardResponse.model_validate(bundle),
    )
