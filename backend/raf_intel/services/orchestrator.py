"""Orchestrator for the risk -> finance -> compliance pipeline.

Stages run strictly forward, one member at a time:

    INIT -> RISK_EVALUATED -> [FINANCE_EVALUATED] -> COMPLIANCE_EVALUATED -> SYNTHESIZED

- The Risk Agent always runs.
- The Finance Agent runs only when the Risk Agent produced findings.
- The Compliance Agent always runs, with the finance result or None.
- After compliance, a REVIEW_REQUIRED verdict caps every finding's confidence
  at 0.85.
- Synthesis writes the executive summary and re-keys findings from the
  agent's internal ``hcc_code`` to the public ``hcc``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging

from raf_intel.connectors.base import ClaimsIndex, Member
from raf_intel.services.compliance_agent import (
    ComplianceResult,
    ComplianceStatus,
    run_compliance_agent,
)
from raf_intel.services.finance_agent import FinanceContext, FinancialImpact, run_finance_agent
from raf_intel.services.raf_calculator import PREMIUM_PER_MEMBER, compute_raf
from raf_intel.services.risk_agent import RiskAgentOutput, SuspectFinding, run_agent

logger = logging.getLogger(__name__)

REVIEW_CONFIDENCE_CAP = 0.85


class PipelineStage(str, Enum):
    """Stages of the per-member pipeline."""

    INIT = "init"
    RISK_EVALUATED = "risk_evaluated"
    FINANCE_EVALUATED = "finance_evaluated"
    COMPLIANCE_EVALUATED = "compliance_evaluated"
    SYNTHESIZED = "synthesized"


STAGE_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.INIT: frozenset({PipelineStage.RISK_EVALUATED}),
    PipelineStage.RISK_EVALUATED: frozenset(
        {PipelineStage.FINANCE_EVALUATED, PipelineStage.COMPLIANCE_EVALUATED}
    ),
    PipelineStage.FINANCE_EVALUATED: frozenset({PipelineStage.COMPLIANCE_EVALUATED}),
    PipelineStage.COMPLIANCE_EVALUATED: frozenset({PipelineStage.SYNTHESIZED}),
    PipelineStage.SYNTHESIZED: frozenset(),
}


@dataclass
class SuspectHCC:
    """Public form of a suspect finding."""

    hcc: str
    condition: str
    confidence: float
    evidence: list[str]
    raf_uplift: float
    revenue_uplift_estimate: float

    @classmethod
    def from_finding(cls, finding: SuspectFinding) -> "SuspectHCC":
        return cls(
            hcc=finding.hcc_code,
            condition=finding.condition,
            confidence=finding.confidence,
            evidence=list(finding.evidence),
            raf_uplift=finding.raf_uplift,
            revenue_uplift_estimate=finding.revenue_uplift_estimate,
        )


@dataclass
class OrchestratedOutput:
    """Unified pipeline output for one member."""

    member_id: str
    suspect_hccs: list[SuspectHCC]
    financial_impact: FinancialImpact | None
    compliance: ComplianceResult
    executive_summary: str | None
    stages: list[PipelineStage] = field(default_factory=list)


@dataclass
class PipelineRun:
    """Mutable state of one pipeline execution."""

    member: Member
    stage: PipelineStage = PipelineStage.INIT
    stages: list[PipelineStage] = field(default_factory=lambda: [PipelineStage.INIT])
    risk_output: RiskAgentOutput | None = None
    financial_impact: FinancialImpact | None = None
    compliance: ComplianceResult | None = None

    def advance(self, new_stage: PipelineStage) -> None:
        """Move forward, refusing any transition not in the stage table."""
        if new_stage not in STAGE_TRANSITIONS[self.stage]:
            raise RuntimeError(f"Illegal pipeline transition {self.stage.value} -> {new_stage.value}")
        self.stage = new_stage
        self.stages.append(new_stage)


def _finance_context(member: Member, claims_index: ClaimsIndex) -> FinanceContext:
    claims_cost = sum(c.allowed_amount for c in claims_index.get(member.member_id, ()))
    return FinanceContext(
        plan_type=member.plan_type,
        member_months=member.member_months,
        claims_cost=claims_cost,
        premium=PREMIUM_PER_MEMBER,
        current_raf=compute_raf(member),
    )


def _executive_summary(run: PipelineRun) -> str | None:
    if run.risk_output.suspect_hccs and run.financial_impact is not None:
        revenue = run.financial_impact.estimated_revenue_uplift
        return (
            "Member shows high likelihood of undocumented chronic condition with material "
            f"revenue impact (est. ${revenue:,.0f} uplift). Recommend coding review."
        )
    return run.risk_output.overall_commentary


def run_orchestrator(member: Member, claims_index: ClaimsIndex) -> OrchestratedOutput:
    """Run the full pipeline for one member.

    Args:
        member: Member to evaluate.
        claims_index: Claims grouped by member.

    Returns:
        OrchestratedOutput. ``financial_impact`` is None exactly when there
        are no suspect findings.
    """
    run = PipelineRun(member=member)

    # Step 1: Risk inference
    run.risk_output = run_agent(member, claims_index)
    run.advance(PipelineStage.RISK_EVALUATED)

    # Step 2: Finance translation, only with findings
    if run.risk_output.has_findings:
        run.financial_impact = run_finance_agent(
            run.risk_output, _finance_context(member, claims_index)
        )
        run.advance(PipelineStage.FINANCE_EVALUATED)

    # Step 3: Compliance review
    run.compliance = run_compliance_agent(run.risk_output, run.financial_impact)
    run.advance(PipelineStage.COMPLIANCE_EVALUATED)

    # Step 4: Compliance-driven confidence dampening
    if (
        run.compliance.compliance_status == ComplianceStatus.REVIEW_REQUIRED
        and run.risk_output.has_findings
    ):
        run.risk_output.suspect_hccs = [
            replace(f, confidence=min(f.confidence, REVIEW_CONFIDENCE_CAP))
            for f in run.risk_output.suspect_hccs
        ]

    # Step 5: Synthesis
    summary = _executive_summary(run)
    run.advance(PipelineStage.SYNTHESIZED)

    return OrchestratedOutput(
        member_id=member.member_id,
        suspect_hccs=[SuspectHCC.from_finding(f) for f in run.risk_output.suspect_hccs],
        financial_impact=run.financial_impact,
        compliance=run.compliance,
        executive_summary=summary,
        stages=list(run.stages),
    )
