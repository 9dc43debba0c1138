"""Finance Impact Agent.

Translates Risk Agent findings into financial impact for payer leadership:

    Revenue uplift = sum(finding revenue estimates)
    Raw MLR        = claims / premium
    Adjusted MLR   = claims / (premium + revenue uplift)

The orchestrator only calls this agent when the Risk Agent produced findings.
Called with no findings it returns a zero-impact "Low" result.
"""

from dataclasses import dataclass
from enum import Enum
import logging

from raf_intel.connectors.base import PlanType
from raf_intel.services.raf_calculator import BASE_RATE_PMPM, PREMIUM_PER_MEMBER
from raf_intel.services.risk_agent import RiskAgentOutput

logger = logging.getLogger(__name__)


class ImpactTier(str, Enum):
    """Plan-level impact of a member's revenue uplift."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Minimum revenue uplift for each tier
HIGH_IMPACT_THRESHOLD = 5000.0
MEDIUM_IMPACT_THRESHOLD = 2000.0


@dataclass(frozen=True)
class FinanceContext:
    """Plan and member context for the finance calculation."""

    plan_type: PlanType = PlanType.SILVER
    member_months: int = 12
    claims_cost: float = 0.0
    premium: float = PREMIUM_PER_MEMBER
    current_raf: float = 1.0
    base_rate: float = BASE_RATE_PMPM


@dataclass
class FinancialImpact:
    """Financial translation of a member's suspect findings."""

    estimated_revenue_uplift: float
    total_raf_uplift: float
    mlr_improvement_bps: int
    adjusted_mlr: float
    raw_mlr: float
    plan_level_impact: ImpactTier


def impact_tier(revenue_uplift: float) -> ImpactTier:
    """Classify revenue uplift into a plan-level impact tier."""
    if revenue_uplift >= HIGH_IMPACT_THRESHOLD:
        return ImpactTier.HIGH
    if revenue_uplift >= MEDIUM_IMPACT_THRESHOLD:
        return ImpactTier.MEDIUM
    return ImpactTier.LOW


def run_finance_agent(
    risk_output: RiskAgentOutput,
    context: FinanceContext | None = None,
) -> FinancialImpact:
    """Compute financial impact from Risk Agent output.

    Args:
        risk_output: Findings for one member.
        context: Plan, premium and claims context. Defaults to a Silver,
            12-month member with the standard premium and no claims.

    Returns:
        FinancialImpact with rounded currency and ratio fields.
    """
    context = context or FinanceContext()
    findings = risk_output.suspect_hccs

    total_raf_uplift = sum(f.raf_uplift for f in findings)
    revenue_uplift = sum(
        f.revenue_uplift_estimate or f.raf_uplift * context.base_rate * context.member_months
        for f in findings
    )

    raw_mlr = context.claims_cost / context.premium if context.premium > 0 else 0.0
    adjusted_premium = context.premium + revenue_uplift
    adjusted_mlr = context.claims_cost / adjusted_premium if adjusted_premium > 0 else raw_mlr
    # bps from unrounded ratios
    mlr_improvement_bps = round((adjusted_mlr - raw_mlr) * 10000)

    logger.debug(
        f"Finance agent member_id={risk_output.member_id}: "
        f"uplift={revenue_uplift:.2f} bps={mlr_improvement_bps}"
    )

    return FinancialImpact(
        estimated_revenue_uplift=round(revenue_uplift, 2),
        total_raf_uplift=round(total_raf_uplift, 3),
        mlr_improvement_bps=mlr_improvement_bps,
        adjusted_mlr=round(adjusted_mlr, 3),
        raw_mlr=round(raw_mlr, 3),
        plan_level_impact=impact_tier(revenue_uplift),
    )
