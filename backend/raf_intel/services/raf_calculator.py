"""Risk Adjustment Factor (RAF) calculator.

Simplified, explainable risk-adjustment math:
1. Demographic factor from an age band x gender table
2. RAF = demographic factor + sum of coded condition weights, clamped
3. Risk-adjustment revenue = RAF x base rate PMPM x member months
4. A lightweight single-signal "suspect" heuristic used for population KPIs

Illustrative constants only; this is not the CMS-HCC model.

Two suspect computations exist in this package and they are kept apart on
purpose. The lightweight heuristic here fires on one claims pattern per
condition and feeds dashboard totals and the simulation. The Risk Agent
(``risk_agent.py``) requires two corroborating signals and feeds member-level
evidence review. Their totals are expected to disagree.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging
from typing import Protocol

from raf_intel.connectors.base import Claim, ClaimsIndex, ClaimType, Gender, Member

logger = logging.getLogger(__name__)

# Base rate for risk adjustment revenue ($ PMPM)
BASE_RATE_PMPM = 900.0

# Annual premium assumed per member for MLR math
PREMIUM_PER_MEMBER = 15000.0

RAF_FLOOR = 0.3
RAF_CEILING = 3.0

UNKNOWN_GENDER_FACTOR = 0.5


@dataclass(frozen=True)
class HCCCondition:
    """An illustrative condition category with its RAF weight."""

    hcc_code: str
    label: str
    weight: float


HCC_CONDITIONS: tuple[HCCCondition, ...] = (
    HCCCondition("HCC_18", "Diabetes", 0.32),
    HCCCondition("HCC_85", "CHF", 0.45),
    HCCCondition("HCC_96", "COPD", 0.29),
    HCCCondition("HCC_108", "CKD", 0.38),
    HCCCondition("HCC_19", "Hypertension", 0.14),
)

HCC_WEIGHTS: dict[str, float] = {c.hcc_code: c.weight for c in HCC_CONDITIONS}
HCC_LABELS: dict[str, str] = {c.hcc_code: c.label for c in HCC_CONDITIONS}

# Age band -> {gender: factor}
DEMOGRAPHIC_FACTORS: dict[str, dict[Gender, float]] = {
    "18-34": {Gender.M: 0.35, Gender.F: 0.42},
    "35-44": {Gender.M: 0.45, Gender.F: 0.52},
    "45-54": {Gender.M: 0.62, Gender.F: 0.68},
    "55-64": {Gender.M: 0.88, Gender.F: 0.92},
    "65+": {Gender.M: 1.15, Gender.F: 1.22},
}


# ============================================================================
# Demographics and RAF
# ============================================================================


def age_band(age: int) -> str:
    """Bucket an age into one of the five demographic bands."""
    if age < 35:
        return "18-34"
    if age < 45:
        return "35-44"
    if age < 55:
        return "45-54"
    if age < 65:
        return "55-64"
    return "65+"


def demographic_factor(age: int, gender: Gender | str | None) -> float:
    """Look up the demographic RAF component.

    Unknown or missing gender falls back to 0.5.
    """
    row = DEMOGRAPHIC_FACTORS[age_band(age)]
    try:
        return row[Gender(gender)]
    except ValueError:
        return UNKNOWN_GENDER_FACTOR


def condition_weight(hcc_codes: Iterable[str]) -> float:
    """Sum the weights of coded conditions. Unknown codes weigh nothing."""
    return sum(HCC_WEIGHTS.get(code, 0.0) for code in hcc_codes)


def compute_raf(member: Member) -> float:
    """RAF = demographic factor + sum(condition weights), clamped to [0.3, 3.0]."""
    raf = demographic_factor(member.age, member.gender) + condition_weight(member.hcc_codes)
    raf = max(RAF_FLOOR, min(RAF_CEILING, raf))
    return round(raf, 3)


def compute_risk_adj_revenue(raf: float, member_months: int = 12) -> float:
    """Risk adjustment revenue = RAF x base rate x member months."""
    return raf * BASE_RATE_PMPM * member_months


@dataclass
class CodedCondition:
    """A coded condition and the weight it contributes."""

    code: str
    weight: float


@dataclass
class RAFBreakdown:
    """Demographic and condition components of a member's RAF."""

    demographic: float
    hcc: float
    total: float
    hcc_list: list[CodedCondition] = field(default_factory=list)


def compute_raf_breakdown(member: Member) -> RAFBreakdown:
    """Explain a member's RAF by component."""
    return RAFBreakdown(
        demographic=demographic_factor(member.age, member.gender),
        hcc=round(condition_weight(member.hcc_codes), 3),
        total=compute_raf(member),
        hcc_list=[CodedCondition(code, HCC_WEIGHTS.get(code, 0.0)) for code in member.hcc_codes],
    )


# ============================================================================
# Claims aggregation
# ============================================================================


@dataclass(frozen=True)
class ClaimsSummary:
    """Utilization aggregates over one member's claims."""

    rx_spend: float = 0.0
    rx_count: int = 0
    ip_admissions: int = 0
    ip_spend: float = 0.0
    op_visits: int = 0
    claim_count: int = 0
    max_claim_amount: float = 0.0

    @property
    def chronic_meds(self) -> bool:
        return self.rx_count >= 6

    @property
    def multiple_rx(self) -> bool:
        return self.rx_count >= 8

    @property
    def high_cost_procedure(self) -> bool:
        return self.ip_spend > 15000 or self.max_claim_amount > 10000


def summarize_claims(claims: Iterable[Claim]) -> ClaimsSummary:
    """Aggregate a member's claims by setting."""
    rx_spend = ip_spend = max_amount = 0.0
    rx_count = ip_count = op_count = total = 0
    for claim in claims:
        total += 1
        max_amount = max(max_amount, claim.allowed_amount)
        if claim.claim_type == ClaimType.RX:
            rx_count += 1
            rx_spend += claim.allowed_amount
        elif claim.claim_type == ClaimType.IP:
            ip_count += 1
            ip_spend += claim.allowed_amount
        elif claim.claim_type == ClaimType.OP:
            op_count += 1
    return ClaimsSummary(
        rx_spend=rx_spend,
        rx_count=rx_count,
        ip_admissions=ip_count,
        ip_spend=ip_spend,
        op_visits=op_count,
        claim_count=total,
        max_claim_amount=max_amount,
    )


# ============================================================================
# Suspect strategies
# ============================================================================


class SuspectStrategy(Protocol):
    """Common interface over the two suspect-condition computations."""

    name: str

    def suspect_weights(self, member: Member, claims_index: ClaimsIndex) -> dict[str, float]:
        """Return suspected (uncoded) condition code -> RAF weight."""
        ...


@dataclass(frozen=True)
class LightweightSuspect:
    """A single-signal suspect condition used for population KPIs."""

    code: str
    weight: float
    reason: str


def compute_suspect_hccs(member: Member, claims_index: ClaimsIndex) -> list[LightweightSuspect]:
    """Single-signal suspect heuristic.

    Each rule fires on one claims pattern and is skipped when the condition is
    already coded.
    """
    summary = summarize_claims(claims_index.get(member.member_id, ()))

    rules = (
        ("HCC_18", summary.rx_spend > 2000, "High RX spend"),
        ("HCC_85", summary.ip_spend > 15000, "High IP utilization"),
        ("HCC_19", summary.rx_count >= 8, "Multiple RX scripts"),
        ("HCC_108", member.risk_score > 0.75, "Elevated risk score"),
        ("HCC_96", member.chronic_condition_flag, "Chronic flag, no COPD"),
    )
    return [
        LightweightSuspect(code=code, weight=HCC_WEIGHTS[code], reason=reason)
        for code, fired, reason in rules
        if fired and not member.has_hcc(code)
    ]


class LightweightSuspectStrategy:
    """Dashboard-level strategy backed by :func:`compute_suspect_hccs`."""

    name = "lightweight"

    def suspect_weights(self, member: Member, claims_index: ClaimsIndex) -> dict[str, float]:
        return {s.code: s.weight for s in compute_suspect_hccs(member, claims_index)}


LIGHTWEIGHT_SUSPECT_STRATEGY = LightweightSuspectStrategy()
