"""Upload-and-analyze schemas."""

from typing import Any

from pydantic import BaseModel, Field

from raf_intel.schemas.base import Schema
from raf_intel.schemas.dashboard import DashboardResponse


class UploadRequest(BaseModel):
    """Raw member and claim arrays. Shape is checked by the upload validator."""

    members: Any = None
    claims: Any = None


class UploadErrorResponse(Schema):
    error: str = "Invalid upload"
    details: list[str] = Field(default_factory=list)


class UploadAnalysisResponse(Schema):
    """Dashboard bundle computed over the uploaded dataset."""

    warnings: list[str] = Field(default_factory=list)
    activated: bool = Field(False, description="Whether the upload replaced the served dataset")
    stats: dict[str, Any]
    dashboard: DashboardResponse
