"""Member, claim and per-member pipeline schemas."""

from datetime import date

from pydantic import Field

from raf_intel.schemas.base import (
    ClaimType,
    ComplianceRiskLevel,
    ComplianceStatus,
    Gender,
    ImpactTier,
    PipelineStage,
    PlanType,
    Schema,
)


class MemberSchema(Schema):
    """A covered member."""

    member_id: str
    age: int
    gender: Gender
    state: str
    plan_type: PlanType
    risk_score: float
    chronic_condition_flag: bool = False
    hcc_codes: list[str] = Field(default_factory=list)
    member_months: int = 12


class ClaimSchema(Schema):
    """A single claim line."""

    claim_id: str
    member_id: str
    service_date: date
    claim_type: ClaimType
    allowed_amount: float


class MemberListResponse(Schema):
    """Filtered, paginated members."""

    members: list[MemberSchema]
    total: int
    page: int
    limit: int


# ==============================================================================
# RAF
# ==============================================================================


class CodedConditionSchema(Schema):
    code: str
    weight: float


class RAFBreakdownSchema(Schema):
    """Demographic and condition components of a member's RAF."""

    demographic: float
    hcc: float
    total: float
    hcc_list: list[CodedConditionSchema] = Field(default_factory=list)


class LightweightSuspectSchema(Schema):
    """Single-signal suspect used for population KPIs."""

    code: str
    weight: float
    reason: str


# ==============================================================================
# Agents
# ==============================================================================


class SuspectFindingSchema(Schema):
    """Risk Agent finding (internal key ``hcc_code``)."""

    hcc_code: str
    condition: str
    confidence: float = Field(..., ge=0, lt=1)
    evidence: list[str]
    raf_uplift: float
    revenue_uplift_estimate: float


class RiskAgentOutputSchema(Schema):
    member_id: str
    suspect_hccs: list[SuspectFindingSchema] = Field(default_factory=list)
    overall_commentary: str | None = None


class SuspectHCCSchema(Schema):
    """Public suspect finding (key ``hcc``)."""

    hcc: str
    condition: str
    confidence: float = Field(..., ge=0, lt=1)
    evidence: list[str]
    raf_uplift: float
    revenue_uplift_estimate: float


class FinancialImpactSchema(Schema):
    estimated_revenue_uplift: float
    total_raf_uplift: float
    mlr_improvement_bps: int
    adjusted_mlr: float
    raw_mlr: float
    plan_level_impact: ImpactTier


class ComplianceResultSchema(Schema):
    member_id: str
    compliance_status: ComplianceStatus
    risk_level: ComplianceRiskLevel
    notes: list[str] = Field(default_factory=list)


class OrchestratedOutputSchema(Schema):
    """Unified risk -> finance -> compliance output for one member."""

    member_id: str
    suspect_hccs: list[SuspectHCCSchema] = Field(default_factory=list)
    financial_impact: FinancialImpactSchema | None = None
    compliance: ComplianceResultSchema
    executive_summary: str | None = None
    stages: list[PipelineStage] = Field(default_factory=list)


class MemberProfileResponse(Schema):
    """Member detail view."""

    member: MemberSchema
    recent_claims: list[ClaimSchema]
    total_claim_cost: float
    raf: float
    raf_breakdown: RAFBreakdownSchema
    suspected_hccs: list[LightweightSuspectSchema]
    agent_output: RiskAgentOutputSchema
    orchestrated_output: OrchestratedOutputSchema
    risk_adj_revenue: float
