"""Compliance & Governance Agent.

Keeps pipeline output regulator-safe, audit-ready and non-diagnostic.

Validation rules:
- Every finding carries at least two evidence signals
- No diagnostic or definitive language in evidence, labels or commentary
- No clinical-code references (ICD-10 mentions, code-shaped tokens)
- Large revenue uplift raises the review risk level even when language is clean
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
import re

from raf_intel.services.finance_agent import FinancialImpact
from raf_intel.services.risk_agent import MIN_SIGNALS, RiskAgentOutput

logger = logging.getLogger(__name__)


class ComplianceStatus(str, Enum):
    """Outcome of the compliance review."""

    APPROVED = "APPROVED"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"


class ComplianceRiskLevel(str, Enum):
    """Regulatory exposure of a member's output."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


_RISK_ORDER = {
    ComplianceRiskLevel.LOW: 0,
    ComplianceRiskLevel.MEDIUM: 1,
    ComplianceRiskLevel.HIGH: 2,
}

# (pattern, what it catches)
DIAGNOSTIC_LANGUAGE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bdiagnos(ed|is|ing)\b", re.I), "diagnostic wording"),
    (re.compile(r"\bhas\s+(diabetes|chf|copd|ckd|hypertension)\b", re.I), "condition assertion"),
    (re.compile(r"\bconfirmed\b", re.I), "definitive claim"),
    (re.compile(r"\bdefinitively\b", re.I), "definitive claim"),
    (re.compile(r"\bICD-?10\b", re.I), "clinical code reference"),
    (re.compile(r"\b[A-Z][0-9]{2}\.[0-9X]+"), "clinical code reference"),
)

CLEAN_NOTES = (
    "Language compliant",
    "Evidence thresholds met",
    "No diagnostic claims detected",
)

MEDIUM_RISK_REVENUE = 10000.0
HIGH_RISK_REVENUE = 25000.0


@dataclass
class ComplianceResult:
    """Compliance verdict for one member."""

    member_id: str
    compliance_status: ComplianceStatus
    risk_level: ComplianceRiskLevel
    notes: list[str] = field(default_factory=list)


def find_diagnostic_language(text: str | None) -> list[str]:
    """Return the labels of every diagnostic-language rule the text trips."""
    if not text:
        return []
    return [label for pattern, label in DIAGNOSTIC_LANGUAGE_RULES if pattern.search(text)]


def check_evidence(risk_output: RiskAgentOutput) -> list[str]:
    """Collect evidence and language issues across findings and commentary."""
    issues = []
    for finding in risk_output.suspect_hccs:
        name = finding.condition or finding.hcc_code
        evidence = list(finding.evidence or ())
        if len(evidence) < MIN_SIGNALS:
            issues.append(f"Insufficient evidence for {name}")
        combined = " ".join(evidence + [finding.condition or ""])
        if find_diagnostic_language(combined):
            issues.append(f"Diagnostic language detected for {name}")

    if find_diagnostic_language(risk_output.overall_commentary):
        issues.append("Diagnostic language in commentary")
    return issues


def _escalate(current: ComplianceRiskLevel, floor: ComplianceRiskLevel) -> ComplianceRiskLevel:
    return floor if _RISK_ORDER[floor] > _RISK_ORDER[current] else current


def run_compliance_agent(
    risk_output: RiskAgentOutput,
    financial_impact: FinancialImpact | None = None,
) -> ComplianceResult:
    """Validate language and evidence sufficiency for one member.

    Args:
        risk_output: Risk Agent output, possibly without findings.
        financial_impact: Finance Agent output, or None when it did not run.

    Returns:
        ComplianceResult with status, risk level and notes.
    """
    issues = check_evidence(risk_output)

    if issues:
        status = ComplianceStatus.REVIEW_REQUIRED
        risk_level = ComplianceRiskLevel.MEDIUM
        notes = issues
        logger.info(
            f"Compliance review required for member_id={risk_output.member_id}: {len(issues)} issue(s)"
        )
    else:
        status = ComplianceStatus.APPROVED
        risk_level = ComplianceRiskLevel.LOW
        notes = list(CLEAN_NOTES)

    revenue_uplift = financial_impact.estimated_revenue_uplift if financial_impact else 0.0
    if risk_output.suspect_hccs:
        if revenue_uplift > HIGH_RISK_REVENUE:
            risk_level = _escalate(risk_level, ComplianceRiskLevel.HIGH)
        elif revenue_uplift > MEDIUM_RISK_REVENUE:
            risk_level = _escalate(risk_level, ComplianceRiskLevel.MEDIUM)

    return ComplianceResult(
        member_id=risk_output.member_id,
        compliance_status=status,
        risk_level=risk_level,
        notes=notes,
    )
