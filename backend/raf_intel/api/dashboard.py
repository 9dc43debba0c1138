"""Population analytics endpoints: dashboard, executive summary, risk explorer, claims."""

from datetime import date
import logging

from fastapi import APIRouter, Query

from raf_intel.api.dependencies import Snapshot
from raf_intel.schemas.base import ClaimType, PlanType
from raf_intel.schemas.dashboard import (
    ClaimsAnalysisResponse,
    DashboardResponse,
    ExecutiveSummaryResponse,
    RiskExplorerResponse,
)
from raf_intel.services.analytics import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ClaimsFilters,
    RiskExplorerFilters,
    build_claims_analysis,
    build_dashboard,
    build_executive_summary,
    build_risk_explorer,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analytics"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Get population dashboard",
    description="KPIs, chart series and the executive summary for the loaded dataset.",
)
def get_dashboard(
    snapshot: Snapshot,
    as_of: date | None = Query(None, description="Reference date for the 90-day active-claims window"),
) -> DashboardResponse:
    bundle = build_dashboard(snapshot, as_of=as_of)
    return DashboardResponse.model_validate(bundle)


@router.get(
    "/orchestrator/summary",
    response_model=ExecutiveSummaryResponse,
    summary="Get executive summary",
    description="Runs the full pipeline for every member and rolls up leakage and revenue at risk.",
)
def get_executive_summary(snapshot: Snapshot) -> ExecutiveSummaryResponse:
    return ExecutiveSummaryResponse.model_validate(build_executive_summary(snapshot))


@router.get(
    "/risk-explorer",
    response_model=RiskExplorerResponse,
    summary="Explore members by RAF",
)
def get_risk_explorer(
    snapshot: Snapshot,
    state: str | None = Query(None),
    plan_type: PlanType | None = Query(None),
    raf_min: float | None = Query(None, ge=0),
    raf_max: float | None = Query(None, ge=0),
    hcc: str | None = Query(None, description="Only members with this coded condition"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> RiskExplorerResponse:
    """RAF histogram, coded prevalence and revenue concentration for a filtered set."""
    filters = RiskExplorerFilters(
        state=state, plan_type=plan_type, raf_min=raf_min, raf_max=raf_max, hcc=hcc
    )
    bundle = build_risk_explorer(snapshot, filters, page=page, limit=limit)
    return RiskExplorerResponse.model_validate(bundle)


@router.get(
    "/claims",
    response_model=ClaimsAnalysisResponse,
    summary="Analyze claims",
)
def get_claims(
    snapshot: Snapshot,
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    claim_type: ClaimType | None = Query(None),
    cost_min: float | None = Query(None, ge=0),
    state: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> ClaimsAnalysisResponse:
    """Filtered claims with total allowed, PMPM and 95th-percentile outliers."""
    filters = ClaimsFilters(
        date_from=date_from,
        date_to=date_to,
        claim_type=claim_type,
        cost_min=cost_min,
        state=state,
    )
    bundle = build_claims_analysis(snapshot, filters, page=page, limit=limit)
    return ClaimsAnalysisResponse.model_validate(bundle)
