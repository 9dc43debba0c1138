"""Risk Agent endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from raf_intel.api.dependencies import Snapshot
from raf_intel.core.config import settings
from raf_intel.schemas.dashboard import AgentBatchResponse, AgentSummaryResponse
from raf_intel.schemas.member import RiskAgentOutputSchema
from raf_intel.services.analytics import AgentSort, build_agent_batch, build_agent_summary
from raf_intel.services.risk_agent import run_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["Agent"])


@router.get(
    "/member/{member_id}",
    response_model=RiskAgentOutputSchema,
    summary="Run the Risk Agent for one member",
)
def get_agent_member(member_id: str, snapshot: Snapshot) -> RiskAgentOutputSchema:
    member = snapshot.get_member(member_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Member {member_id} not found",
        )
    return RiskAgentOutputSchema.model_validate(run_agent(member, snapshot.claims_index))


@router.get(
    "/batch",
    response_model=AgentBatchResponse,
    summary="Run the Risk Agent over the highest-risk members",
)
def get_agent_batch(
    snapshot: Snapshot,
    limit: int = Query(settings.agent_batch_limit, ge=1, le=settings.agent_batch_limit),
    sort: AgentSort = Query(AgentSort.RISK, description="risk (score order) or leakage (revenue order)"),
) -> AgentBatchResponse:
    return AgentBatchResponse.model_validate(build_agent_batch(snapshot, limit, sort))


@router.get(
    "/summary",
    response_model=AgentSummaryResponse,
    summary="Summarize Risk Agent findings",
)
def get_agent_summary(snapshot: Snapshot) -> AgentSummaryResponse:
    return AgentSummaryResponse.model_validate(build_agent_summary(snapshot))
