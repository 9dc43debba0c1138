"""Natural-language query interpretation for the executive chat.

Maps a free-text question to a ChatIntent: region filter, plan filter,
closure percentage and one analysis category. Categories come from an
ordered rule table; the first matching rule wins, so a question such as
"Which plans have the worst leakage?" lands on RAF Leakage.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import re

from raf_intel.connectors.base import PlanType


class AnalysisType(str, Enum):
    """Analysis categories the chat layer can answer."""

    RAF_LEAKAGE = "RAF Leakage"
    REVENUE_AT_RISK = "Revenue at Risk"
    WHAT_IF_CLOSURE = "What-If Closure"
    PLAN_MLR = "Plan MLR"
    HCC_DRIVERS = "HCC Drivers"
    STATE_COMPARISON = "State Comparison"
    GENERAL = "General"


DEFAULT_TIME_WINDOW = "Last 12 months"

STATE_NAMES: dict[str, str] = {
    "texas": "TX",
    "california": "CA",
    "florida": "FL",
    "new york": "NY",
    "newyork": "NY",
}

STATE_CODE_PATTERN = re.compile(r"\b([A-Z]{2})\b")
PERCENT_PATTERN = re.compile(r"(\d+)\s*%")
MAX_PERCENT = 100.0


@dataclass
class ChatIntent:
    """Structured reading of one question."""

    analysis_type: AnalysisType
    state: str | None = None
    plan_type: PlanType | None = None
    close_suspect_pct: float | None = None
    time_window: str = DEFAULT_TIME_WINDOW


def _contains_any(*terms: str) -> Callable[[str], bool]:
    return lambda q: any(term in q for term in terms)


def _hcc_driver_question(q: str) -> bool:
    return "hcc" in q and ("driv" in q or "domin" in q)


# Evaluated in order against the lower-cased question
INTENT_RULES: tuple[tuple[Callable[[str], bool], AnalysisType], ...] = (
    (_contains_any("leak"), AnalysisType.RAF_LEAKAGE),
    (_contains_any("missing", "revenue at risk", "where are we"), AnalysisType.REVENUE_AT_RISK),
    (
        _contains_any("close", "what happens if", "what if", "what-if", "suspect"),
        AnalysisType.WHAT_IF_CLOSURE,
    ),
    (_contains_any("worst", "adjusted mlr", "plans"), AnalysisType.PLAN_MLR),
    (_hcc_driver_question, AnalysisType.HCC_DRIVERS),
    (_contains_any("unique", "texas"), AnalysisType.STATE_COMPARISON),
)


def extract_state(question: str) -> str | None:
    """Find a region code by full name first, then by two-letter code."""
    lowered = question.lower()
    for name, code in STATE_NAMES.items():
        if name in lowered:
            return code
    # Case-sensitive so ordinary words ("if", "we") never read as codes
    match = STATE_CODE_PATTERN.search(question)
    return match.group(1) if match else None


def extract_plan_type(question: str) -> PlanType | None:
    lowered = question.lower()
    for plan in PlanType:
        if plan.value.lower() in lowered:
            return plan
    return None


def extract_percentage(question: str) -> float | None:
    """Return the first "N%" in the question, clamped to [0, 100]."""
    match = PERCENT_PATTERN.search(question)
    if not match:
        return None
    return min(MAX_PERCENT, max(0.0, float(match.group(1))))


def classify_question(question: str) -> AnalysisType:
    """Return the category of the first rule the question matches."""
    lowered = question.lower()
    for predicate, analysis_type in INTENT_RULES:
        if predicate(lowered):
            return analysis_type
    return AnalysisType.GENERAL


def interpret_query(question: str) -> ChatIntent:
    """Interpret a free-text question.

    Args:
        question: Executive question in plain English.

    Returns:
        ChatIntent with any filters found and the analysis category.
    """
    return ChatIntent(
        analysis_type=classify_question(question),
        state=extract_state(question),
        plan_type=extract_plan_type(question),
        close_suspect_pct=extract_percentage(question),
    )
