"""Chat orchestrator for executive questions.

Turns a free-text question into a deterministic, evidence-backed answer:

1. Interpret the question (filters + analysis category).
2. Run the member pipeline over the filtered slice of the snapshot.
3. Aggregate suspect prevalence, condition mix, revenue at risk and MLR.
4. Fill the category template and attach chart payloads.

An optional narrative generator may reword the narrative fields afterwards.
Charts, compliance notes and the intent are never touched by it.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field, replace
import logging
from typing import Any

from raf_intel.connectors.base import Member, PlanType
from raf_intel.core.snapshot import DataSnapshot
from raf_intel.services.narrative_generator import (
    Narrative,
    NarrativeGenerator,
    build_data_context_summary,
    generate_narrative_safely,
)
from raf_intel.services.orchestrator import OrchestratedOutput, run_orchestrator
from raf_intel.services.query_interpreter import AnalysisType, ChatIntent, interpret_query
from raf_intel.services.raf_calculator import HCC_LABELS, PREMIUM_PER_MEMBER

logger = logging.getLogger(__name__)

DEFAULT_CLOSE_PCT = 30.0
TOP_STATES = 10

CONFIDENCE_NOTE = (
    "All insights are based on multi-signal evidence. No diagnostic claims or coding assertions made."
)
COMPLIANCE_NOTE = "Language compliant. Evidence thresholds met. Suitable for executive review."

NARRATIVE_DETERMINISTIC = "deterministic"
NARRATIVE_LLM = "llm"


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class ConditionCount:
    """Suspect findings for one condition within a slice."""

    hcc: str
    condition: str
    count: int
    revenue: float


@dataclass
class ChatAnalysis:
    """Aggregates over one filtered slice of members."""

    total_members: int
    members_with_suspects: int
    suspect_pct: float
    hcc_distribution: list[ConditionCount]
    top_hcc_pct: float
    avg_raf_suspect: float
    avg_raf_slice: float
    revenue_at_risk: float
    raw_mlr: float
    adjusted_mlr: float
    mlr_improvement_bps: int


@dataclass
class ChatResponse:
    """Answer to one executive question."""

    intent: ChatIntent
    short_answer: str
    evidence: list[str] = field(default_factory=list)
    why_it_matters: list[str] = field(default_factory=list)
    recommended_action: str = ""
    follow_up_suggestions: list[str] = field(default_factory=list)
    charts: dict[str, Any] | None = None
    confidence_note: str = CONFIDENCE_NOTE
    compliance_note: str = COMPLIANCE_NOTE
    narrative_source: str = NARRATIVE_DETERMINISTIC

    def narrative(self) -> Narrative:
        return Narrative(
            short_answer=self.short_answer,
            evidence=list(self.evidence),
            why_it_matters=list(self.why_it_matters),
            recommended_action=self.recommended_action,
            follow_up_suggestions=list(self.follow_up_suggestions),
        )


def _millions(amount: float) -> str:
    return f"${amount / 1e6:.2f}M"


def _slice_label(intent: ChatIntent) -> str:
    parts = [p for p in (intent.state, intent.plan_type.value if intent.plan_type else None) if p]
    return " ".join(parts)


# ============================================================================
# Chat Orchestrator
# ============================================================================


class ChatOrchestrator:
    """Answers executive questions against one data snapshot."""

    def __init__(self, snapshot: DataSnapshot):
        self.snapshot = snapshot

    def _filter_members(
        self,
        state: str | None = None,
        plan_type: PlanType | None = None,
    ) -> list[Member]:
        members = self.snapshot.members
        if state:
            members = [m for m in members if m.state == state]
        if plan_type:
            members = [m for m in members if m.plan_type == plan_type]
        return list(members)

    def _evaluate(self, members: list[Member]) -> list[OrchestratedOutput]:
        return [run_orchestrator(m, self.snapshot.claims_index) for m in members]

    def analyze(self, members: list[Member], results: list[OrchestratedOutput]) -> ChatAnalysis:
        """Aggregate pipeline results for a slice of members."""
        total_members = len(members)
        with_suspects = [r for r in results if r.suspect_hccs]

        counts: dict[str, int] = defaultdict(int)
        revenue: dict[str, float] = defaultdict(float)
        for result in with_suspects:
            for suspect in result.suspect_hccs:
                counts[suspect.hcc] += 1
                revenue[suspect.hcc] += suspect.revenue_uplift_estimate

        distribution = sorted(
            (
                ConditionCount(
                    hcc=code,
                    condition=HCC_LABELS.get(code, code),
                    count=count,
                    revenue=round(revenue[code], 2),
                )
                for code, count in counts.items()
            ),
            key=lambda c: c.count,
            reverse=True,
        )
        total_findings = sum(counts.values())
        top_two = sum(c.count for c in distribution[:2])

        suspect_rafs = [self.snapshot.raf_for(r.member_id) for r in with_suspects]
        slice_rafs = [self.snapshot.raf_for(m.member_id) for m in members]

        revenue_at_risk = sum(
            r.financial_impact.estimated_revenue_uplift for r in with_suspects if r.financial_impact
        )
        total_premium = total_members * PREMIUM_PER_MEMBER
        total_allowed = sum(
            c.allowed_amount for m in members for c in self.snapshot.member_claims(m.member_id)
        )
        raw_mlr = total_allowed / total_premium if total_premium > 0 else 0.0
        adjusted_premium = total_premium + revenue_at_risk
        adjusted_mlr = total_allowed / adjusted_premium if adjusted_premium > 0 else raw_mlr

        return ChatAnalysis(
            total_members=total_members,
            members_with_suspects=len(with_suspects),
            suspect_pct=round(len(with_suspects) / total_members * 100, 1) if total_members else 0.0,
            hcc_distribution=distribution,
            top_hcc_pct=round(top_two / total_findings * 100, 1) if total_findings else 0.0,
            avg_raf_suspect=round(sum(suspect_rafs) / len(suspect_rafs), 3) if suspect_rafs else 0.0,
            avg_raf_slice=round(sum(slice_rafs) / len(slice_rafs), 3) if slice_rafs else 0.0,
            revenue_at_risk=round(revenue_at_risk, 2),
            raw_mlr=raw_mlr,
            adjusted_mlr=adjusted_mlr,
            mlr_improvement_bps=round((adjusted_mlr - raw_mlr) * 10000),
        )

    def answer(self, question: str) -> ChatResponse:
        """Answer a question deterministically.

        Raises:
            ValueError: If the question is blank.
        """
        if not question or not question.strip():
            raise ValueError("question is required")

        intent = interpret_query(question)
        logger.info(
            f"Chat query: type={intent.analysis_type.value} state={intent.state} "
            f"plan={intent.plan_type.value if intent.plan_type else None}"
        )

        if intent.analysis_type == AnalysisType.GENERAL:
            return self._general(intent)
        if intent.analysis_type == AnalysisType.PLAN_MLR:
            return self._plan_mlr(intent)
        if intent.analysis_type == AnalysisType.STATE_COMPARISON:
            return self._state_comparison(intent)

        members = self._filter_members(intent.state, intent.plan_type)
        analysis = self.analyze(members, self._evaluate(members))

        if intent.analysis_type == AnalysisType.WHAT_IF_CLOSURE:
            return self._what_if(intent, analysis)
        if intent.analysis_type == AnalysisType.HCC_DRIVERS:
            return self._hcc_drivers(intent, analysis)
        return self._leakage(intent, analysis)

    async def answer_with_narrative(
        self,
        question: str,
        generator: NarrativeGenerator | None = None,
    ) -> ChatResponse:
        """Answer a question, letting an optional generator reword the narrative.

        Any generator failure returns the deterministic answer unchanged. Population
        scans run in a worker thread.
        """
        response = await asyncio.to_thread(self.answer, question)
        if generator is None:
            return response

        summary = await asyncio.to_thread(build_data_context_summary, self.snapshot)
        narrative = await generate_narrative_safely(generator, question, summary, response.narrative())
        if narrative is None:
            return response

        return replace(
            response,
            short_answer=narrative.short_answer,
            evidence=narrative.evidence,
            why_it_matters=narrative.why_it_matters,
            recommended_action=narrative.recommended_action,
            follow_up_suggestions=narrative.follow_up_suggestions or response.follow_up_suggestions,
            narrative_source=NARRATIVE_LLM,
        )

    # ------------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------------

    def _condition_charts(self, analysis: ChatAnalysis) -> dict[str, Any]:
        by_revenue = sorted(analysis.hcc_distribution, key=lambda c: c.revenue, reverse=True)
        return {
            "raf_distribution": [
                {"name": c.condition, "count": c.count} for c in analysis.hcc_distribution
            ],
            "revenue_by_hcc": [{"name": c.condition, "value": round(c.revenue)} for c in by_revenue[:5]],
        }

    def _leakage(self, intent: ChatIntent, analysis: ChatAnalysis) -> ChatResponse:
        label = _slice_label(intent)
        subject = label or "Population"
        leaking = (
            "is leaking RAF"
            if intent.analysis_type == AnalysisType.RAF_LEAKAGE
            else "has revenue at risk"
        )
        top_conditions = " and ".join(c.condition for c in analysis.hcc_distribution[:2]) or "none"
        members_phrase = f"{label} members" if label else "members"

        return ChatResponse(
            intent=intent,
            short_answer=(
                f"{subject} {leaking} primarily due to undocumented chronic conditions in "
                "high-utilization members, creating measurable revenue loss."
            ),
            evidence=[
                f"{analysis.suspect_pct}% of {members_phrase} show multi-signal suspect HCC patterns",
                f"Top conditions ({analysis.top_hcc_pct}% of findings): {top_conditions}",
                f"Average RAF for suspect members: {analysis.avg_raf_suspect} vs "
                f"{analysis.avg_raf_slice} across the slice",
            ],
            why_it_matters=[
                f"Estimated {_millions(analysis.revenue_at_risk)} in annual risk adjustment revenue at risk",
                f"Risk-adjusted MLR moves by ~{analysis.mlr_improvement_bps} bps if gaps are closed",
            ],
            recommended_action=(
                f"Prioritize coding review for top 10% high-utilization {members_phrase}"
            ),
            follow_up_suggestions=[
                "Which HCCs are driving this?",
                "What if we close 25% of these gaps?",
                "Is this unique to this state?" if intent.state else "Which states have the worst leakage?",
            ],
            charts=self._condition_charts(analysis),
        )

    def _what_if(self, intent: ChatIntent, analysis: ChatAnalysis) -> ChatResponse:
        close_pct = intent.close_suspect_pct if intent.close_suspect_pct is not None else DEFAULT_CLOSE_PCT
        uplift = analysis.revenue_at_risk * close_pct / 100
        bps = round(analysis.mlr_improvement_bps * close_pct / 100)
        pct_label = f"{close_pct:g}%"

        return ChatResponse(
            intent=intent,
            short_answer=(
                f"Closing {pct_label} of suspect HCC gaps would capture an estimated "
                f"{_millions(uplift)} in additional risk adjustment revenue and move MLR by ~{bps} bps."
            ),
            evidence=[
                f"{analysis.members_with_suspects} members currently have suspect HCCs",
                "Revenue uplift scales roughly linearly with closure rate",
                "Assumes coding review confirms conditions meet documentation requirements",
            ],
            why_it_matters=[
                f"Estimated {_millions(uplift)} revenue capture at {pct_label} closure",
                f"MLR improvement: ~{bps} bps",
            ],
            recommended_action=(
                "Run a pilot coding review on 50-100 high-utilization members to validate "
                "uplift assumptions"
            ),
            follow_up_suggestions=[
                "What if we close 50%?",
                "Which plans should we prioritize?",
                "What are the top suspect HCCs?",
            ],
            charts={"what_if_closure": {"close_pct": close_pct, "estimated_uplift": round(uplift)}},
        )

    def _plan_mlr(self, intent: ChatIntent) -> ChatResponse:
        members = self._filter_members(state=intent.state)
        totals: dict[PlanType, dict[str, float]] = {}
        for member in members:
            plan = totals.setdefault(member.plan_type, {"premium": 0.0, "claims": 0.0, "risk_revenue": 0.0})
            plan["premium"] += PREMIUM_PER_MEMBER
            plan["claims"] += sum(c.allowed_amount for c in self.snapshot.member_claims(member.member_id))
            plan["risk_revenue"] += self.snapshot.risk_revenue_for(member)

        # Unrounded ratios; display percentages are rounded after scaling
        ratios = sorted(
            (
                (
                    plan.value,
                    t["claims"] / t["premium"] if t["premium"] > 0 else 0.0,
                    t["claims"] / (t["premium"] + t["risk_revenue"])
                    if t["premium"] + t["risk_revenue"] > 0
                    else 0.0,
                )
                for plan, t in totals.items()
            ),
            key=lambda r: r[2],
            reverse=True,
        )
        plan_mlr = [
            {"plan": plan, "raw_mlr": round(raw, 3), "adjusted_mlr": round(adjusted, 3)}
            for plan, raw, adjusted in ratios
        ]

        if ratios:
            worst_plan, _, worst_adjusted = ratios[0]
            short_answer = (
                f"{worst_plan} has the highest risk-adjusted MLR at "
                f"{worst_adjusted * 100:.1f}%, driven by higher claims cost relative to "
                "premium and risk revenue."
            )
        else:
            short_answer = "No members match this slice, so plan MLR cannot be compared."

        return ChatResponse(
            intent=intent,
            short_answer=short_answer,
            evidence=[
                f"{plan}: Raw MLR {raw * 100:.1f}%, Adj. MLR {adjusted * 100:.1f}%"
                for plan, raw, adjusted in ratios[:3]
            ],
            why_it_matters=[
                "Plan mix and risk capture directly affect margin visibility",
                "Closing suspect HCCs improves adjusted MLR across all plans",
            ],
            recommended_action="Focus coding improvement efforts on the highest-MLR plan first",
            follow_up_suggestions=[
                "Why is this plan worse?",
                "Compare to other states",
                "What-if: close 30% of gaps",
            ],
            charts={"plan_mlr": plan_mlr},
        )

    def _hcc_drivers(self, intent: ChatIntent, analysis: ChatAnalysis) -> ChatResponse:
        label = _slice_label(intent) or "the population"
        leader = analysis.hcc_distribution[0] if analysis.hcc_distribution else None
        if leader is None:
            short_answer = f"No multi-signal suspect conditions were found for {label}."
        else:
            short_answer = (
                f"{leader.condition} is the leading suspect condition for {label}, with "
                f"{leader.count} members flagged and {_millions(leader.revenue)} in estimated uplift."
            )

        return ChatResponse(
            intent=intent,
            short_answer=short_answer,
            evidence=[
                f"{c.condition}: {c.count} suspect members, ${c.revenue:,.0f} estimated uplift"
                for c in analysis.hcc_distribution[:5]
            ],
            why_it_matters=[
                f"Top two conditions account for {analysis.top_hcc_pct}% of suspect findings",
                f"Estimated {_millions(analysis.revenue_at_risk)} in revenue at risk across all conditions",
            ],
            recommended_action="Target documentation outreach at the leading condition first",
            follow_up_suggestions=[
                "What if we close 30% of these gaps?",
                "Which plans have the worst adjusted MLR?",
                "Where are we missing risk adjustment revenue?",
            ],
            charts=self._condition_charts(analysis),
        )

    def _state_comparison(self, intent: ChatIntent) -> ChatResponse:
        members = self._filter_members(plan_type=intent.plan_type)
        results = self._evaluate(members)

        per_state: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for member, result in zip(members, results):
            per_state[member.state][0] += 1
            per_state[member.state][1] += int(bool(result.suspect_hccs))

        ranked = sorted(
            (
                {
                    "state": state,
                    "members": total,
                    "suspect_pct": round(suspects / total * 100, 1),
                }
                for state, (total, suspects) in per_state.items()
            ),
            key=lambda s: s["suspect_pct"],
            reverse=True,
        )[:TOP_STATES]

        population_pct = (
            round(sum(s for _, s in per_state.values()) / len(members) * 100, 1) if members else 0.0
        )
        if intent.state in per_state:
            total, suspects = per_state[intent.state]
            short_answer = (
                f"{intent.state} shows suspect HCC patterns in {round(suspects / total * 100, 1)}% "
                f"of members versus {population_pct}% across all states."
            )
        elif ranked:
            short_answer = (
                f"{ranked[0]['state']} has the highest suspect HCC prevalence at "
                f"{ranked[0]['suspect_pct']}% versus {population_pct}% overall."
            )
        else:
            short_answer = "No members match this slice, so states cannot be compared."

        return ChatResponse(
            intent=intent,
            short_answer=short_answer,
            evidence=[
                f"{s['state']}: {s['suspect_pct']}% of {s['members']} members show suspect patterns"
                for s in ranked[:3]
            ],
            why_it_matters=[
                "State-level gaps point to provider documentation patterns rather than member mix",
                f"Population-wide suspect prevalence is {population_pct}%",
            ],
            recommended_action="Compare provider coding practices in the highest-prevalence states",
            follow_up_suggestions=[
                "Why is Texas Bronze leaking RAF?",
                "Which HCCs are driving this?",
                "What happens if we close 30% of suspect HCCs?",
            ],
            charts={"state_comparison": ranked},
        )

    def _general(self, intent: ChatIntent) -> ChatResponse:
        return ChatResponse(
            intent=intent,
            short_answer=(
                'Ask a focused question such as: "Why is Texas Bronze leaking RAF?" or '
                '"What happens if we close 30% of suspect HCCs?"'
            ),
            evidence=[
                "Supported: RAF leakage by state/plan",
                "Revenue at risk",
                "What-if closure scenarios",
                "Plan MLR comparison",
                "HCC drivers",
                "State comparison",
            ],
            recommended_action="Try one of the suggested questions below",
            follow_up_suggestions=[
                "Why is Texas Bronze leaking RAF?",
                "Where are we missing risk adjustment revenue?",
                "What happens if we close 30% of suspect HCCs?",
                "Which plans have the worst adjusted MLR?",
            ],
        )
