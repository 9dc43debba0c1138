"""Risk Adjustment Agent.

Surfaces evidence-backed suspect conditions for human review. The agent never
assigns diagnoses; every finding is a candidate for a coder to confirm.

Hard constraints, enforced when a SuspectFinding is constructed:
- At least two distinct corroborating signals
- Confidence in [0.0, 1.0), never 1.0

Each of the five condition evaluators is independent: it reads the member and
a freshly computed ClaimsSummary, collects up to three signals, and emits
nothing when fewer than two fire. Absence of evidence is a valid outcome.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import logging

from raf_intel.connectors.base import ClaimsIndex, Member
from raf_intel.services.raf_calculator import (
    BASE_RATE_PMPM,
    HCC_LABELS,
    HCC_WEIGHTS,
    ClaimsSummary,
    summarize_claims,
)

logger = logging.getLogger(__name__)

MIN_SIGNALS = 2
MAX_CONFIDENCE = 0.99

FINDINGS_COMMENTARY = (
    "Member shows utilization patterns consistent with unmanaged chronic disease. "
    "Recommend coding review."
)
INSUFFICIENT_EVIDENCE_COMMENTARY = (
    "Elevated risk score with moderate utilization. "
    "No sufficient evidence for suspect conditions at this time."
)


@dataclass(frozen=True)
class SuspectFinding:
    """An evidence-backed suspect condition for one member."""

    hcc_code: str
    condition: str
    confidence: float
    evidence: tuple[str, ...]
    raf_uplift: float
    revenue_uplift_estimate: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence < 1.0:
            raise ValueError(
                f"Confidence for {self.hcc_code} must be in [0, 1), got {self.confidence}"
            )
        if len(set(self.evidence)) < MIN_SIGNALS or len(set(self.evidence)) != len(self.evidence):
            raise ValueError(
                f"{self.hcc_code} needs at least {MIN_SIGNALS} distinct evidence signals, "
                f"got {list(self.evidence)}"
            )


@dataclass
class RiskAgentOutput:
    """Risk Agent result for one member."""

    member_id: str
    suspect_hccs: list[SuspectFinding] = field(default_factory=list)
    overall_commentary: str | None = None

    @property
    def has_findings(self) -> bool:
        return bool(self.suspect_hccs)


# ============================================================================
# Evaluators
# ============================================================================


@dataclass(frozen=True)
class SignalRule:
    """One boolean signal and the evidence text it contributes."""

    description: str
    test: Callable[[Member, ClaimsSummary], bool]


@dataclass(frozen=True)
class ConditionEvaluator:
    """Rule set for one suspect condition."""

    hcc_code: str
    signals: tuple[SignalRule, ...]
    strength: Callable[[int], float]
    completeness: Callable[[ClaimsSummary], float]

    def evaluate(self, member: Member, summary: ClaimsSummary) -> SuspectFinding | None:
        if member.has_hcc(self.hcc_code):
            return None

        evidence = [rule.description for rule in self.signals if rule.test(member, summary)]
        if len(evidence) < MIN_SIGNALS:
            return None

        confidence = min(MAX_CONFIDENCE, self.strength(len(evidence)) * self.completeness(summary))
        weight = HCC_WEIGHTS[self.hcc_code]

        return SuspectFinding(
            hcc_code=self.hcc_code,
            condition=HCC_LABELS[self.hcc_code],
            confidence=round(confidence, 2),
            evidence=tuple(evidence),
            raf_uplift=weight,
            revenue_uplift_estimate=float(round(weight * BASE_RATE_PMPM * member.member_months)),
        )


CONDITION_EVALUATORS: tuple[ConditionEvaluator, ...] = (
    # Diabetes: high RX spend + chronic meds or elevated risk score
    ConditionEvaluator(
        hcc_code="HCC_18",
        signals=(
            SignalRule("High chronic RX spend (12m)", lambda m, s: s.rx_spend > 2000),
            SignalRule("Multiple chronic medication fills", lambda m, s: s.chronic_meds),
            SignalRule("Elevated risk score", lambda m, s: m.risk_score >= 0.65),
        ),
        strength=lambda n: 0.65 if n == 2 else 0.78,
        completeness=lambda s: 0.95 if s.rx_count > 3 else 0.85,
    ),
    # CHF: inpatient admission + high-cost procedure (proxy for cardiology)
    ConditionEvaluator(
        hcc_code="HCC_85",
        signals=(
            SignalRule("Inpatient admission(s) in 12m", lambda m, s: s.ip_admissions >= 1),
            SignalRule("High-cost procedure flag", lambda m, s: s.high_cost_procedure),
            SignalRule("Significant inpatient utilization", lambda m, s: s.ip_spend > 10000),
        ),
        strength=lambda n: 0.72 if n >= 3 else 0.62,
        completeness=lambda s: 0.92,
    ),
    # COPD: chronic flag + high RX count or frequent OP visits
    ConditionEvaluator(
        hcc_code="HCC_96",
        signals=(
            SignalRule("Chronic condition flag on file", lambda m, s: m.chronic_condition_flag),
            SignalRule(
                "High prescription count (suggests ongoing management)",
                lambda m, s: s.rx_count >= 8,
            ),
            SignalRule("Frequent outpatient visits", lambda m, s: s.op_visits >= 6),
        ),
        strength=lambda n: 0.58 + (n - 2) * 0.08,
        completeness=lambda s: 0.9,
    ),
    # CKD: high risk score + chronic meds or high RX spend
    ConditionEvaluator(
        hcc_code="HCC_108",
        signals=(
            SignalRule("Elevated risk score", lambda m, s: m.risk_score >= 0.75),
            SignalRule("Chronic medication utilization pattern", lambda m, s: s.chronic_meds),
            SignalRule("Above-average RX spend", lambda m, s: s.rx_spend > 1500),
        ),
        strength=lambda n: 0.6 + (n - 2) * 0.07,
        completeness=lambda s: 0.88,
    ),
    # Hypertension: chronic meds + repeated OP visits
    ConditionEvaluator(
        hcc_code="HCC_19",
        signals=(
            SignalRule("Multiple prescription fills", lambda m, s: s.multiple_rx),
            SignalRule("Repeated outpatient visits", lambda m, s: s.op_visits >= 4),
            SignalRule("Chronic medication pattern", lambda m, s: s.chronic_meds),
        ),
        strength=lambda n: 0.55 + (n - 2) * 0.1,
        completeness=lambda s: 0.9,
    ),
)


# ============================================================================
# Agent entry points
# ============================================================================


def run_agent(member: Member, claims_index: ClaimsIndex) -> RiskAgentOutput:
    """Evaluate every condition for one member.

    Args:
        member: Member to evaluate.
        claims_index: Claims grouped by member.

    Returns:
        RiskAgentOutput with zero or more findings and optional commentary.
    """
    claims = claims_index.get(member.member_id, ())
    summary = summarize_claims(claims)

    findings = []
    for evaluator in CONDITION_EVALUATORS:
        finding = evaluator.evaluate(member, summary)
        if finding is not None:
            findings.append(finding)

    commentary = None
    if findings:
        commentary = FINDINGS_COMMENTARY
    elif member.risk_score > 0.7 and summary.claim_count > 5:
        commentary = INSUFFICIENT_EVIDENCE_COMMENTARY

    logger.debug(f"Risk agent member_id={member.member_id}: {len(findings)} suspect finding(s)")

    return RiskAgentOutput(
        member_id=member.member_id,
        suspect_hccs=findings,
        overall_commentary=commentary,
    )


def run_agent_batch(
    members: Iterable[Member],
    claims_index: ClaimsIndex,
    limit: int = 1000,
) -> list[RiskAgentOutput]:
    """Run the agent on the ``limit`` highest-risk members."""
    ranked = sorted(members, key=lambda m: m.risk_score, reverse=True)[:limit]
    return [run_agent(member, claims_index) for member in ranked]


class EvidenceSuspectStrategy:
    """Member-review strategy backed by the two-signal Risk Agent."""

    name = "evidence"

    def suspect_weights(self, member: Member, claims_index: ClaimsIndex) -> dict[str, float]:
        return {f.hcc_code: f.raf_uplift for f in run_agent(member, claims_index).suspect_hccs}


EVIDENCE_SUSPECT_STRATEGY = EvidenceSuspectStrategy()
