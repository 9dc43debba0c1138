"""What-if simulation over the loaded population.

Projects population cost, MLR and risk-adjustment revenue under four levers:
- risk threshold (who counts as high risk; high-risk members cost double)
- plan mix (hypothetical composition, normalized and reported for display)
- suspect closure rate (share of lightweight suspect weight that gets coded)
- coding improvement rate (flat RAF bonus for members with coded conditions)

Plan mix is not applied to the member set. Per-member cost uses the member's
own plan cost multiplier.

The returned MLRs are capped at 0.95 for display. The bps delta is computed
from the uncapped, unrounded MLRs before that cap is applied.
"""

from dataclasses import dataclass, field
import logging

from raf_intel.connectors.base import PlanType
from raf_intel.core.snapshot import DataSnapshot
from raf_intel.services.raf_calculator import BASE_RATE_PMPM, PREMIUM_PER_MEMBER

logger = logging.getLogger(__name__)

BASE_MEMBER_COST = 1200.0
HIGH_RISK_COST_MULTIPLIER = 2.0
PLAN_COST_MULTIPLIERS: dict[PlanType, float] = {
    PlanType.BRONZE: 1.0,
    PlanType.SILVER: 1.4,
    PlanType.GOLD: 2.0,
}
DEFAULT_PLAN_MIX = (0.40, 0.35, 0.25)

# RAF bonus per member with >= 1 coded condition at 100% coding improvement
CODING_FLAT_BONUS = 0.05

MLR_DISPLAY_CAP = 0.95
# Expected MLR reported when the population carries no premium
FALLBACK_EXPECTED_MLR = 0.82


@dataclass(frozen=True)
class SimulationRequest:
    """Policy levers for one simulation run."""

    risk_threshold: float = 0.7
    bronze_pct: float = DEFAULT_PLAN_MIX[0]
    silver_pct: float = DEFAULT_PLAN_MIX[1]
    gold_pct: float = DEFAULT_PLAN_MIX[2]
    close_suspect_pct: float = 0.0
    coding_improvement_pct: float = 0.0


@dataclass
class PlanMix:
    """Normalized plan proportions."""

    bronze: float
    silver: float
    gold: float


@dataclass
class SimulationResult:
    """Projected population outcome under a SimulationRequest."""

    risk_threshold: float
    high_risk_count: int
    high_risk_pct: float
    expected_mlr: float
    total_projected_cost: float
    plan_mix: PlanMix
    avg_raf: float
    baseline_risk_revenue: float
    total_risk_revenue: float
    risk_adjusted_mlr: float
    mlr_improvement_bps: int
    close_suspect_pct: float
    coding_improvement_pct: float
    notes: list[str] = field(default_factory=list)


def normalize_plan_mix(bronze: float, silver: float, gold: float) -> PlanMix:
    """Scale three plan shares to proportions summing to 1.

    All-zero input falls back to the canonical 40/35/25 split.
    """
    total = bronze + silver + gold
    if total <= 0:
        bronze, silver, gold = DEFAULT_PLAN_MIX
        total = 1.0
    return PlanMix(bronze=bronze / total, silver=silver / total, gold=gold / total)


def run_simulation(snapshot: DataSnapshot, request: SimulationRequest) -> SimulationResult:
    """Project cost, revenue and MLR for the snapshot under the given levers.

    Args:
        snapshot: Loaded population and caches.
        request: Simulation levers.

    Returns:
        SimulationResult with rounded, display-capped MLRs.
    """
    members = snapshot.members
    member_count = len(members)
    plan_mix = normalize_plan_mix(request.bronze_pct, request.silver_pct, request.gold_pct)

    projected_cost = 0.0
    high_risk_count = 0
    for member in members:
        is_high_risk = member.risk_score >= request.risk_threshold
        high_risk_count += int(is_high_risk)
        plan_multiplier = PLAN_COST_MULTIPLIERS.get(member.plan_type, 1.0)
        risk_multiplier = HIGH_RISK_COST_MULTIPLIER if is_high_risk else 1.0
        projected_cost += (
            BASE_MEMBER_COST * plan_multiplier * risk_multiplier * (0.9 + member.risk_score * 0.2)
        )

    avg_raf = (
        sum(snapshot.raf_for(m.member_id) for m in members) / member_count if member_count else 0.0
    )
    baseline_revenue = sum(snapshot.risk_revenue_for(m) for m in members)

    simulated_revenue = baseline_revenue
    if request.close_suspect_pct > 0 or request.coding_improvement_pct > 0:
        uplift = 0.0
        for member in members:
            closed = snapshot.suspect_weight(member.member_id) * (request.close_suspect_pct / 100)
            coding = (
                CODING_FLAT_BONUS * (request.coding_improvement_pct / 100)
                if member.hcc_codes
                else 0.0
            )
            uplift += (closed + coding) * BASE_RATE_PMPM * member.member_months
        simulated_revenue += uplift

    total_premium = member_count * PREMIUM_PER_MEMBER
    expected_mlr = projected_cost / total_premium if total_premium > 0 else FALLBACK_EXPECTED_MLR
    adjusted_denominator = total_premium + simulated_revenue
    adjusted_mlr = projected_cost / adjusted_denominator if adjusted_denominator > 0 else expected_mlr

    # Uncapped values feed the bps delta
    mlr_improvement_bps = round((adjusted_mlr - expected_mlr) * 10000)

    logger.debug(
        f"Simulation: members={member_count} threshold={request.risk_threshold} "
        f"close={request.close_suspect_pct}% coding={request.coding_improvement_pct}% "
        f"revenue={simulated_revenue:.2f}"
    )

    return SimulationResult(
        risk_threshold=request.risk_threshold,
        high_risk_count=high_risk_count,
        high_risk_pct=round(high_risk_count / member_count * 100, 1) if member_count else 0.0,
        expected_mlr=min(MLR_DISPLAY_CAP, round(expected_mlr, 3)),
        total_projected_cost=round(projected_cost, 2),
        plan_mix=plan_mix,
        avg_raf=round(avg_raf, 3),
        baseline_risk_revenue=round(baseline_revenue, 2),
        total_risk_revenue=round(simulated_revenue, 2),
        risk_adjusted_mlr=round(min(MLR_DISPLAY_CAP, adjusted_mlr), 3),
        mlr_improvement_bps=mlr_improvement_bps,
        close_suspect_pct=request.close_suspect_pct,
        coding_improvement_pct=request.coding_improvement_pct,
    )
