"""Population analytics response schemas."""

from pydantic import Field

from raf_intel.schemas.base import Schema
from raf_intel.schemas.member import ClaimSchema, SuspectFindingSchema


# ==============================================================================
# Chart Rows
# ==============================================================================


class RangeCount(Schema):
    range: str
    count: int


class MonthCount(Schema):
    month: str = Field(..., description="Service month (YYYY-MM)")
    count: int


class PlanTotal(Schema):
    plan_type: str
    total: float


class PlanRAF(Schema):
    plan_type: str
    avg_raf: float
    count: int


class StateRAF(Schema):
    state: str
    avg_raf: float
    count: int


class StateRevenue(Schema):
    state: str
    revenue_at_risk: float


# ==============================================================================
# Dashboard
# ==============================================================================


class ExecutiveSummaryResponse(Schema):
    """Population-wide orchestrator roll-up."""

    total_suspect_raf_leakage: float
    revenue_at_risk: float
    compliance_cleared_pct: float
    top10_risk_leakage_states: list[StateRevenue]
    members_with_suspects: int


class DashboardKPIs(Schema):
    total_members: int
    active_claims: int = Field(..., description="Claims with service date in the last 90 days")
    mlr: float
    high_risk_pct: float
    avg_cost_per_member: float
    avg_raf: float
    high_raf_pct: float
    risk_adj_revenue: float
    suspect_raf_uplift: float
    suspect_hcc_count: int
    agent_suspect_hcc_count: int
    agent_potential_raf_uplift: float
    agent_potential_revenue_uplift: float
    risk_adjusted_mlr: float
    mlr_improvement_bps: int


class DashboardResponse(Schema):
    """KPIs, chart series and executive summary."""

    kpis: DashboardKPIs
    claims_over_time: list[MonthCount]
    cost_by_plan_type: list[PlanTotal]
    risk_distribution: list[RangeCount]
    raf_by_plan_type: list[PlanRAF]
    raf_by_state: list[StateRAF]
    risk_revenue_by_plan: list[PlanTotal]
    executive: ExecutiveSummaryResponse


# ==============================================================================
# Risk Explorer
# ==============================================================================


class RiskExplorerRow(Schema):
    member_id: str
    age: int
    gender: str
    state: str
    plan_type: str
    risk_score: float
    chronic_condition_flag: bool
    hcc_codes: list[str]
    member_months: int
    raf: float
    suspect_count: int
    risk_adj_revenue: float


class HCCPrevalence(Schema):
    hcc_code: str
    count: int


class ConcentrationPoint(Schema):
    percentile: str
    pct: int
    cumulative_revenue: float


class RiskExplorerResponse(Schema):
    members: list[RiskExplorerRow]
    total: int
    page: int
    limit: int
    raf_distribution: list[RangeCount]
    hcc_prevalence: list[HCCPrevalence]
    top10_pct_revenue: float
    total_risk_revenue: float
    top10_pct_share: float
    revenue_concentration_curve: list[ConcentrationPoint]


# ==============================================================================
# Claims
# ==============================================================================


class ClaimsMetrics(Schema):
    total_allowed: float
    pmpm: float
    outlier_count: int
    p95_threshold: float


class ClaimsAnalysisResponse(Schema):
    claims: list[ClaimSchema]
    total: int
    page: int
    limit: int
    metrics: ClaimsMetrics


# ==============================================================================
# Agent
# ==============================================================================


class AgentBatchEntry(Schema):
    member_id: str
    suspect_hccs: list[SuspectFindingSchema]
    overall_commentary: str | None = None
    leakage_risk: float


class AgentBatchResponse(Schema):
    results: list[AgentBatchEntry]
    count: int


class LeakageRank(Schema):
    member_id: str
    leakage_risk: float
    suspect_count: int


class AgentSummaryResponse(Schema):
    total_suspect_hccs: int
    potential_raf_uplift: float
    potential_revenue_uplift: float
    members_with_suspects: int
    top_leakage_risk: list[LeakageRank]
