"""Member explorer and per-member pipeline endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from raf_intel.api.dependencies import Snapshot
from raf_intel.schemas.base import PlanType
from raf_intel.schemas.member import (
    MemberListResponse,
    MemberProfileResponse,
    MemberSchema,
    OrchestratedOutputSchema,
)
from raf_intel.services.analytics import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MemberFilters,
    build_member_profile,
    filter_members,
    paginate,
)
from raf_intel.services.orchestrator import run_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Members"])


def _not_found(member_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Member {member_id} not found",
    )


@router.get(
    "/members",
    response_model=MemberListResponse,
    summary="List members",
)
def list_members(
    snapshot: Snapshot,
    state: str | None = Query(None),
    plan_type: PlanType | None = Query(None),
    risk_min: float | None = Query(None, ge=0, le=1),
    risk_max: float | None = Query(None, ge=0, le=1),
    chronic: bool | None = Query(None, description="Only members with the chronic flag"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> MemberListResponse:
    filters = MemberFilters(
        state=state,
        plan_type=plan_type,
        risk_min=risk_min,
        risk_max=risk_max,
        chronic=chronic,
    )
    paged = paginate(filter_members(snapshot, filters), page, limit)
    return MemberListResponse(
        members=[MemberSchema.model_validate(m) for m in paged.items],
        total=paged.total,
        page=paged.page,
        limit=paged.limit,
    )


@router.get(
    "/members/{member_id}",
    response_model=MemberProfileResponse,
    summary="Get member profile",
    description="RAF breakdown, coded and suspect conditions, agent and orchestrated output.",
)
def get_member(member_id: str, snapshot: Snapshot) -> MemberProfileResponse:
    """Get the detail view for one member.

    Raises:
        HTTPException: 404 if the member is unknown.
    """
    logger.info(f"Getting profile for member_id={member_id}")
    profile = build_member_profile(snapshot, member_id)
    if profile is None:
        raise _not_found(member_id)
    return MemberProfileResponse.model_validate(profile)


@router.get(
    "/orchestrator/member/{member_id}",
    response_model=OrchestratedOutputSchema,
    summary="Run the pipeline for one member",
)
def get_orchestrated_member(member_id: str, snapshot: Snapshot) -> OrchestratedOutputSchema:
    member = snapshot.get_member(member_id)
    if member is None:
        raise _not_found(member_id)
    return OrchestratedOutputSchema.model_validate(run_orchestrator(member, snapshot.claims_index))
