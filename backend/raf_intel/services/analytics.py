"""Population analytics over a data snapshot.

Builds the read-only bundles behind the dashboard, member explorer, risk
explorer, claims analyzer and agent views. Every bundle is recomputed from
the snapshot on each call; nothing is cached between calls.

Rounding conventions: currency 2dp, ratios and factors 3dp, percentages 1dp.
"""

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
import logging
import math
from typing import Generic, TypeVar

import numpy as np

from raf_intel.connectors.base import Claim, ClaimType, Member, PlanType
from raf_intel.core.snapshot import DataSnapshot
from raf_intel.services.compliance_agent import ComplianceStatus
from raf_intel.services.orchestrator import OrchestratedOutput, run_orchestrator
from raf_intel.services.raf_calculator import (
    BASE_RATE_PMPM,
    HCC_CONDITIONS,
    PREMIUM_PER_MEMBER,
    LightweightSuspect,
    RAFBreakdown,
    compute_raf_breakdown,
)
from raf_intel.services.risk_agent import RiskAgentOutput, SuspectFinding, run_agent, run_agent_batch

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

ACTIVE_CLAIM_WINDOW_DAYS = 90
HIGH_RISK_THRESHOLD = 0.7
HIGH_RAF_THRESHOLD = 1.2
TOP_STATES = 10
TOP_LEAKAGE_MEMBERS = 20
RECENT_CLAIMS = 20
OUTLIER_PERCENTILE = 0.95

# Right-open bucket edges; the last bucket absorbs everything above
RISK_SCORE_EDGES = (0.2, 0.4, 0.6, 0.8)
RISK_SCORE_LABELS = ("0-0.2", "0.2-0.4", "0.4-0.6", "0.6-0.8", "0.8-1")
RAF_EDGES = (0.6, 0.9, 1.2, 1.5)
RAF_LABELS = ("0.3-0.6", "0.6-0.9", "0.9-1.2", "1.2-1.5", "1.5-3.0")
CONCENTRATION_STEPS = tuple(range(10, 101, 10))


# ============================================================================
# Shared shapes
# ============================================================================


@dataclass
class Page(Generic[T]):
    """One page of a filtered result set."""

    items: list[T]
    total: int
    page: int
    limit: int


def paginate(items: Sequence[T], page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice a result set. Page is 1-based; limit is capped at 100."""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    start = (page - 1) * limit
    return Page(items=list(items[start : start + limit]), total=len(items), page=page, limit=limit)


@dataclass
class RangeCount:
    range: str
    count: int


@dataclass
class MonthCount:
    month: str
    count: int


@dataclass
class PlanTotal:
    plan_type: str
    total: float


@dataclass
class PlanRAF:
    plan_type: str
    avg_raf: float
    count: int


@dataclass
class StateRAF:
    state: str
    avg_raf: float
    count: int


@dataclass
class StateRevenue:
    state: str
    revenue_at_risk: float


def _histogram(values: Sequence[float], edges: Sequence[float], labels: Sequence[str]) -> list[RangeCount]:
    """Count values into right-open buckets defined by inner edges."""
    if not values:
        return [RangeCount(label, 0) for label in labels]
    bucket_index = np.digitize(np.asarray(values, dtype=float), np.asarray(edges, dtype=float))
    counts = np.bincount(bucket_index, minlength=len(labels))
    return [RangeCount(label, int(count)) for label, count in zip(labels, counts)]


def _pct(part: int | float, whole: int | float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


# ============================================================================
# Executive summary
# ============================================================================


@dataclass
class ExecutiveSummary:
    """Population-wide orchestrator roll-up."""

    total_suspect_raf_leakage: float
    revenue_at_risk: float
    compliance_cleared_pct: float
    top10_risk_leakage_states: list[StateRevenue]
    members_with_suspects: int


def orchestrate_population(snapshot: DataSnapshot) -> list[OrchestratedOutput]:
    return [run_orchestrator(m, snapshot.claims_index) for m in snapshot.members]


def build_executive_summary(
    snapshot: DataSnapshot,
    results: list[OrchestratedOutput] | None = None,
) -> ExecutiveSummary:
    """Roll up orchestrator output for every member.

    Args:
        snapshot: Loaded population.
        results: Precomputed orchestrator output for ``snapshot.members``.
    """
    if results is None:
        results = orchestrate_population(snapshot)

    with_suspects = [r for r in results if r.suspect_hccs]
    leakage = sum(h.raf_uplift for r in with_suspects for h in r.suspect_hccs)
    approved = sum(1 for r in results if r.compliance.compliance_status == ComplianceStatus.APPROVED)

    by_state: dict[str, float] = defaultdict(float)
    for result in with_suspects:
        member = snapshot.get_member(result.member_id)
        state = member.state if member else "Unknown"
        by_state[state] += result.financial_impact.estimated_revenue_uplift if result.financial_impact else 0.0

    top_states = sorted(
        (StateRevenue(state, round(revenue, 2)) for state, revenue in by_state.items()),
        key=lambda s: s.revenue_at_risk,
        reverse=True,
    )[:TOP_STATES]

    return ExecutiveSummary(
        total_suspect_raf_leakage=round(leakage, 3),
        revenue_at_risk=round(
            sum(r.financial_impact.estimated_revenue_uplift for r in with_suspects if r.financial_impact),
            2,
        ),
        compliance_cleared_pct=_pct(approved, snapshot.member_count),
        top10_risk_leakage_states=top_states,
        members_with_suspects=len(with_suspects),
    )


# ============================================================================
# Dashboard
# ============================================================================


@dataclass
class DashboardKPIs:
    """Headline population metrics."""

    total_members: int
    active_claims: int
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


@dataclass
class DashboardBundle:
    """KPIs, chart series and executive summary for the dashboard."""

    kpis: DashboardKPIs
    claims_over_time: list[MonthCount]
    cost_by_plan_type: list[PlanTotal]
    risk_distribution: list[RangeCount]
    raf_by_plan_type: list[PlanRAF]
    raf_by_state: list[StateRAF]
    risk_revenue_by_plan: list[PlanTotal]
    executive: ExecutiveSummary


def claims_over_time(claims: Sequence[Claim]) -> list[MonthCount]:
    by_month = Counter(c.service_date.strftime("%Y-%m") for c in claims)
    return [MonthCount(month, count) for month, count in sorted(by_month.items())]


def cost_by_plan_type(snapshot: DataSnapshot) -> list[PlanTotal]:
    totals: dict[str, float] = defaultdict(float)
    for claim in snapshot.claims:
        member = snapshot.get_member(claim.member_id)
        totals[member.plan_type.value if member else "Unknown"] += claim.allowed_amount
    return [PlanTotal(plan, round(total, 2)) for plan, total in totals.items()]


def raf_by_plan_type(snapshot: DataSnapshot) -> list[PlanRAF]:
    groups: dict[str, list[float]] = defaultdict(list)
    for member in snapshot.members:
        groups[member.plan_type.value].append(snapshot.raf_for(member.member_id))
    return [PlanRAF(plan, round(float(np.mean(values)), 3), len(values)) for plan, values in groups.items()]


def raf_by_state(snapshot: DataSnapshot) -> list[StateRAF]:
    groups: dict[str, list[float]] = defaultdict(list)
    for member in snapshot.members:
        groups[member.state or "Unknown"].append(snapshot.raf_for(member.member_id))
    rows = [StateRAF(state, round(float(np.mean(values)), 3), len(values)) for state, values in groups.items()]
    return sorted(rows, key=lambda r: r.count, reverse=True)[:TOP_STATES]


def risk_revenue_by_plan(snapshot: DataSnapshot) -> list[PlanTotal]:
    totals: dict[str, float] = defaultdict(float)
    for member in snapshot.members:
        totals[member.plan_type.value] += snapshot.risk_revenue_for(member)
    return [PlanTotal(plan, round(total, 2)) for plan, total in totals.items()]


def build_dashboard(
    snapshot: DataSnapshot,
    as_of: date | None = None,
    agent_batch_limit: int | None = None,
) -> DashboardBundle:
    """Build the dashboard bundle.

    Args:
        snapshot: Loaded population.
        as_of: Reference date for the active-claims window. Defaults to today.
        agent_batch_limit: Highest-risk members the Risk Agent evaluates for
            the agent KPIs. None evaluates every member.

    Returns:
        DashboardBundle. An empty snapshot yields zeros throughout.
    """
    as_of = as_of or date.today()
    members = snapshot.members
    total_members = len(members)

    active_since = as_of - timedelta(days=ACTIVE_CLAIM_WINDOW_DAYS)
    active_claims = sum(1 for c in snapshot.claims if c.service_date >= active_since)

    total_allowed = sum(c.allowed_amount for c in snapshot.claims)
    total_premium = total_members * PREMIUM_PER_MEMBER
    raw_mlr = total_allowed / total_premium if total_premium > 0 else 0.0

    raf_values = np.asarray([snapshot.raf_for(m.member_id) for m in members], dtype=float)
    avg_raf = float(raf_values.mean()) if total_members else 0.0
    high_raf_count = int((raf_values > HIGH_RAF_THRESHOLD).sum())
    high_risk_count = sum(1 for m in members if m.risk_score >= HIGH_RISK_THRESHOLD)

    risk_adj_revenue = sum(snapshot.risk_revenue_for(m) for m in members)
    suspect_uplift = sum(
        snapshot.suspect_weight(m.member_id) * BASE_RATE_PMPM * m.member_months for m in members
    )
    suspect_count = sum(len(snapshot.suspects_for(m.member_id)) for m in members)

    limit = total_members if agent_batch_limit is None else min(agent_batch_limit, total_members)
    agent_findings = [
        h for r in run_agent_batch(members, snapshot.claims_index, limit) for h in r.suspect_hccs
    ]

    adjusted_premium = total_premium + risk_adj_revenue
    risk_adjusted_mlr = total_allowed / adjusted_premium if adjusted_premium > 0 else raw_mlr

    kpis = DashboardKPIs(
        total_members=total_members,
        active_claims=active_claims,
        mlr=round(raw_mlr, 3),
        high_risk_pct=_pct(high_risk_count, total_members),
        avg_cost_per_member=round(total_allowed / total_members, 2) if total_members else 0.0,
        avg_raf=round(avg_raf, 3),
        high_raf_pct=_pct(high_raf_count, total_members),
        risk_adj_revenue=round(risk_adj_revenue, 2),
        suspect_raf_uplift=round(suspect_uplift, 2),
        suspect_hcc_count=suspect_count,
        agent_suspect_hcc_count=len(agent_findings),
        agent_potential_raf_uplift=round(sum(h.raf_uplift for h in agent_findings), 3),
        agent_potential_revenue_uplift=round(sum(h.revenue_uplift_estimate for h in agent_findings), 2),
        risk_adjusted_mlr=round(risk_adjusted_mlr, 3),
        mlr_improvement_bps=round((risk_adjusted_mlr - raw_mlr) * 10000),
    )

    return DashboardBundle(
        kpis=kpis,
        claims_over_time=claims_over_time(snapshot.claims),
        cost_by_plan_type=cost_by_plan_type(snapshot),
        risk_distribution=_histogram(
            [m.risk_score for m in members], RISK_SCORE_EDGES, RISK_SCORE_LABELS
        ),
        raf_by_plan_type=raf_by_plan_type(snapshot),
        raf_by_state=raf_by_state(snapshot),
        risk_revenue_by_plan=risk_revenue_by_plan(snapshot),
        executive=build_executive_summary(snapshot),
    )


# ============================================================================
# Member explorer
# ============================================================================


@dataclass(frozen=True)
class MemberFilters:
    state: str | None = None
    plan_type: PlanType | None = None
    risk_min: float | None = None
    risk_max: float | None = None
    chronic: bool | None = None


def filter_members(snapshot: DataSnapshot, filters: MemberFilters) -> list[Member]:
    result = list(snapshot.members)
    if filters.state:
        result = [m for m in result if m.state == filters.state]
    if filters.plan_type:
        result = [m for m in result if m.plan_type == filters.plan_type]
    if filters.risk_min is not None:
        result = [m for m in result if m.risk_score >= filters.risk_min]
    if filters.risk_max is not None:
        result = [m for m in result if m.risk_score <= filters.risk_max]
    if filters.chronic:
        result = [m for m in result if m.chronic_condition_flag]
    return result


@dataclass
class MemberProfile:
    """Everything the member detail view shows for one member."""

    member: Member
    recent_claims: list[Claim]
    total_claim_cost: float
    raf: float
    raf_breakdown: RAFBreakdown
    suspected_hccs: list[LightweightSuspect]
    agent_output: RiskAgentOutput
    orchestrated_output: OrchestratedOutput
    risk_adj_revenue: float


def build_member_profile(snapshot: DataSnapshot, member_id: str) -> MemberProfile | None:
    """Build the detail view for one member, or None if the id is unknown."""
    member = snapshot.get_member(member_id)
    if member is None:
        return None

    recent = sorted(snapshot.member_claims(member_id), key=lambda c: c.service_date, reverse=True)
    recent = recent[:RECENT_CLAIMS]

    return MemberProfile(
        member=member,
        recent_claims=recent,
        total_claim_cost=round(sum(c.allowed_amount for c in recent), 2),
        raf=snapshot.raf_for(member_id),
        raf_breakdown=compute_raf_breakdown(member),
        suspected_hccs=list(snapshot.suspects_for(member_id)),
        agent_output=run_agent(member, snapshot.claims_index),
        orchestrated_output=run_orchestrator(member, snapshot.claims_index),
        risk_adj_revenue=round(snapshot.risk_revenue_for(member), 2),
    )


# ============================================================================
# Risk explorer
# ============================================================================


@dataclass(frozen=True)
class RiskExplorerFilters:
    state: str | None = None
    plan_type: PlanType | None = None
    raf_min: float | None = None
    raf_max: float | None = None
    hcc: str | None = None


@dataclass
class RiskExplorerRow:
    """A member with its RAF, lightweight suspect count and risk revenue."""

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


@dataclass
class HCCPrevalence:
    hcc_code: str
    count: int


@dataclass
class ConcentrationPoint:
    percentile: str
    pct: int
    cumulative_revenue: float


@dataclass
class RiskExplorerBundle:
    """Paginated rows plus population-level RAF views of the filtered set."""

    members: list[RiskExplorerRow]
    total: int
    page: int
    limit: int
    raf_distribution: list[RangeCount]
    hcc_prevalence: list[HCCPrevalence]
    top10_pct_revenue: float
    total_risk_revenue: float
    top10_pct_share: float
    revenue_concentration_curve: list[ConcentrationPoint] = field(default_factory=list)


def _explorer_row(snapshot: DataSnapshot, member: Member) -> RiskExplorerRow:
    return RiskExplorerRow(
        member_id=member.member_id,
        age=member.age,
        gender=member.gender.value,
        state=member.state,
        plan_type=member.plan_type.value,
        risk_score=member.risk_score,
        chronic_condition_flag=member.chronic_condition_flag,
        hcc_codes=list(member.hcc_codes),
        member_months=member.member_months,
        raf=snapshot.raf_for(member.member_id),
        suspect_count=len(snapshot.suspects_for(member.member_id)),
        risk_adj_revenue=snapshot.risk_revenue_for(member),
    )


def build_risk_explorer(
    snapshot: DataSnapshot,
    filters: RiskExplorerFilters | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> RiskExplorerBundle:
    """Filter members by RAF attributes and summarize revenue concentration."""
    filters = filters or RiskExplorerFilters()
    rows = [_explorer_row(snapshot, m) for m in snapshot.members]
    if filters.state:
        rows = [r for r in rows if r.state == filters.state]
    if filters.plan_type:
        rows = [r for r in rows if r.plan_type == filters.plan_type.value]
    if filters.raf_min is not None:
        rows = [r for r in rows if r.raf >= filters.raf_min]
    if filters.raf_max is not None:
        rows = [r for r in rows if r.raf <= filters.raf_max]
    if filters.hcc:
        rows = [r for r in rows if filters.hcc in r.hcc_codes]

    prevalence = [
        HCCPrevalence(c.hcc_code, sum(1 for r in rows if c.hcc_code in r.hcc_codes))
        for c in HCC_CONDITIONS
    ]

    # Highest RAF first; cumulative revenue at each decile of members
    by_raf = sorted(rows, key=lambda r: r.raf, reverse=True)
    cumulative = np.cumsum([r.risk_adj_revenue for r in by_raf], dtype=float)
    total_revenue = float(cumulative[-1]) if len(cumulative) else 0.0

    def revenue_for_top(pct: int) -> float:
        n = math.ceil(len(rows) * pct / 100)
        return float(cumulative[n - 1]) if n else 0.0

    top10_revenue = revenue_for_top(10)
    curve = [
        ConcentrationPoint(f"Top {pct}%", pct, round(revenue_for_top(pct), 2))
        for pct in CONCENTRATION_STEPS
    ]

    paged = paginate(rows, page, limit)
    return RiskExplorerBundle(
        members=paged.items,
        total=paged.total,
        page=paged.page,
        limit=paged.limit,
        raf_distribution=_histogram([r.raf for r in rows], RAF_EDGES, RAF_LABELS),
        hcc_prevalence=prevalence,
        top10_pct_revenue=round(top10_revenue, 2),
        total_risk_revenue=round(total_revenue, 2),
        top10_pct_share=_pct(top10_revenue, total_revenue),
        revenue_concentration_curve=curve,
    )


# ============================================================================
# Claims analysis
# ============================================================================


@dataclass(frozen=True)
class ClaimsFilters:
    date_from: date | None = None
    date_to: date | None = None
    claim_type: ClaimType | None = None
    cost_min: float | None = None
    state: str | None = None


@dataclass
class ClaimsMetrics:
    total_allowed: float
    pmpm: float
    outlier_count: int
    p95_threshold: float


@dataclass
class ClaimsBundle:
    claims: list[Claim]
    total: int
    page: int
    limit: int
    metrics: ClaimsMetrics


def build_claims_analysis(
    snapshot: DataSnapshot,
    filters: ClaimsFilters | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ClaimsBundle:
    """Filter claims and compute spend, PMPM and outlier metrics.

    PMPM divides total allowed by the member-months of the distinct members
    behind the filtered claims. The 95th-percentile threshold is the value at
    index ``floor(n * 0.95)`` of the ascending amounts; claims at or above it
    count as outliers.
    """
    filters = filters or ClaimsFilters()
    result = list(snapshot.claims)
    if filters.date_from:
        result = [c for c in result if c.service_date >= filters.date_from]
    if filters.date_to:
        result = [c for c in result if c.service_date <= filters.date_to]
    if filters.claim_type:
        result = [c for c in result if c.claim_type == filters.claim_type]
    if filters.cost_min is not None:
        result = [c for c in result if c.allowed_amount >= filters.cost_min]
    if filters.state:
        state_ids = {m.member_id for m in snapshot.members if m.state == filters.state}
        result = [c for c in result if c.member_id in state_ids]

    amounts = np.sort(np.asarray([c.allowed_amount for c in result], dtype=float))
    total_allowed = float(amounts.sum()) if len(amounts) else 0.0

    member_months = sum(
        snapshot.get_member(member_id).member_months
        for member_id in {c.member_id for c in result}
        if snapshot.get_member(member_id) is not None
    )
    p95 = float(amounts[math.floor(len(amounts) * OUTLIER_PERCENTILE)]) if len(amounts) else 0.0
    outliers = int((amounts >= p95).sum()) if len(amounts) else 0

    paged = paginate(result, page, limit)
    return ClaimsBundle(
        claims=paged.items,
        total=paged.total,
        page=paged.page,
        limit=paged.limit,
        metrics=ClaimsMetrics(
            total_allowed=round(total_allowed, 2),
            pmpm=round(total_allowed / member_months, 2) if member_months else 0.0,
            outlier_count=outliers,
            p95_threshold=round(p95, 2),
        ),
    )


# ============================================================================
# Agent views
# ============================================================================


class AgentSort(str, Enum):
    """Ordering of agent batch results."""

    RISK = "risk"
    LEAKAGE = "leakage"


@dataclass
class AgentBatchEntry:
    """Risk Agent output with its summed revenue estimate."""

    member_id: str
    suspect_hccs: list[SuspectFinding]
    overall_commentary: str | None
    leakage_risk: float


@dataclass
class AgentBatch:
    results: list[AgentBatchEntry]
    count: int


@dataclass
class LeakageRank:
    member_id: str
    leakage_risk: float
    suspect_count: int


@dataclass
class AgentSummary:
    total_suspect_hccs: int
    potential_raf_uplift: float
    potential_revenue_uplift: float
    members_with_suspects: int
    top_leakage_risk: list[LeakageRank]


def _leakage(output: RiskAgentOutput) -> float:
    return sum(h.revenue_uplift_estimate for h in output.suspect_hccs)


def build_agent_batch(
    snapshot: DataSnapshot,
    limit: int,
    sort: AgentSort = AgentSort.RISK,
) -> AgentBatch:
    """Run the Risk Agent over the highest-risk members.

    ``sort="leakage"`` reorders the evaluated members by summed revenue
    estimate; otherwise they stay in risk-score order.
    """
    outputs = run_agent_batch(snapshot.members, snapshot.claims_index, limit)
    entries = [
        AgentBatchEntry(
            member_id=o.member_id,
            suspect_hccs=o.suspect_hccs,
            overall_commentary=o.overall_commentary,
            leakage_risk=_leakage(o),
        )
        for o in outputs
    ]
    if sort == AgentSort.LEAKAGE:
        entries.sort(key=lambda e: e.leakage_risk, reverse=True)
    return AgentBatch(results=entries, count=len(entries))


def build_agent_summary(snapshot: DataSnapshot, limit: int | None = None) -> AgentSummary:
    """Totals over the Risk Agent batch plus the top members by leakage."""
    limit = snapshot.member_count if limit is None else limit
    outputs = run_agent_batch(snapshot.members, snapshot.claims_index, limit)
    findings = [h for o in outputs for h in o.suspect_hccs]

    ranked = sorted(
        (
            LeakageRank(o.member_id, _leakage(o), len(o.suspect_hccs))
            for o in outputs
            if _leakage(o) > 0
        ),
        key=lambda r: r.leakage_risk,
        reverse=True,
    )[:TOP_LEAKAGE_MEMBERS]

    return AgentSummary(
        total_suspect_hccs=len(findings),
        potential_raf_uplift=round(sum(h.raf_uplift for h in findings), 3),
        potential_revenue_uplift=round(sum(h.revenue_uplift_estimate for h in findings), 2),
        members_with_suspects=sum(1 for o in outputs if o.suspect_hccs),
        top_leakage_risk=ranked,
    )
