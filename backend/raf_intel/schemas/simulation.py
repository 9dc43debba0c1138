"""What-if simulation schemas."""

from pydantic import BaseModel, Field

from raf_intel.schemas.base import Schema


class SimulationRequestSchema(BaseModel):
    """Simulation levers. Plan shares need not sum to 1."""

    risk_threshold: float = Field(0.7, ge=0, le=1, description="Risk score at or above which a member is high risk")
    bronze_pct: float = Field(0.40, ge=0)
    silver_pct: float = Field(0.35, ge=0)
    gold_pct: float = Field(0.25, ge=0)
    close_suspect_pct: float = Field(0, ge=0, le=100, description="Share of suspect weight closed")
    coding_improvement_pct: float = Field(0, ge=0, le=50, description="Coding improvement rate")


class PlanMixSchema(Schema):
    bronze: float
    silver: float
    gold: float


class SimulationResponse(Schema):
    """Projected population outcome."""

    risk_threshold: float
    high_risk_count: int
    high_risk_pct: float
    expected_mlr: float
    total_projected_cost: float
    plan_mix: PlanMixSchema
    avg_raf: float
    baseline_risk_revenue: float
    total_risk_revenue: float
    risk_adjusted_mlr: float
    mlr_improvement_bps: int
    close_suspect_pct: float
    coding_improvement_pct: float
    notes: list[str] = Field(default_factory=list)
