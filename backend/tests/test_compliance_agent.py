"""Tests for the Compliance & Governance Agent."""

from types import SimpleNamespace

import pytest

from raf_intel.services.compliance_agent import (
    CLEAN_NOTES,
    ComplianceRiskLevel,
    ComplianceStatus,
    find_diagnostic_language,
    run_compliance_agent,
)
from raf_intel.services.finance_agent import FinancialImpact, ImpactTier
from raf_intel.services.risk_agent import FINDINGS_COMMENTARY, RiskAgentOutput, SuspectFinding


def finding(evidence: tuple[str, ...] = ("High chronic RX spend (12m)", "Elevated risk score")) -> SuspectFinding:
    return SuspectFinding(
        hcc_code="HCC_18",
        condition="Diabetes",
        confidence=0.7,
        evidence=evidence,
        raf_uplift=0.32,
        revenue_uplift_estimate=3456.0,
    )


def impact(revenue: float) -> FinancialImpact:
    return FinancialImpact(
        estimated_revenue_uplift=revenue,
        total_raf_uplift=0.32,
        mlr_improvement_bps=-100,
        adjusted_mlr=0.3,
        raw_mlr=0.31,
        plan_level_impact=ImpactTier.HIGH,
    )


class TestDiagnosticLanguage:
    """Tests for the language scanner."""

    @pytest.mark.parametrize(
        "text",
        [
            "Member was diagnosed last year",
            "member has diabetes",
            "Condition confirmed by lab",
            "definitively present",
            "ICD-10 code on file",
            "Code E11.9 billed",
        ],
    )
    def test_flags_diagnostic_text(self, text: str) -> None:
        assert find_diagnostic_language(text)

    @pytest.mark.parametrize("text", [None, "", FINDINGS_COMMENTARY, "Elevated risk score"])
    def test_clean_text(self, text: str | None) -> None:
        assert find_diagnostic_language(text) == []


class TestRunComplianceAgent:
    """Tests for compliance verdicts."""

    def test_clean_findings_approved(self) -> None:
        output = RiskAgentOutput("M1", [finding()], FINDINGS_COMMENTARY)
        result = run_compliance_agent(output, impact(3456.0))

        assert result.compliance_status == ComplianceStatus.APPROVED
        assert result.risk_level == ComplianceRiskLevel.LOW
        assert result.notes == list(CLEAN_NOTES)

    def test_confirmed_language_requires_review(self) -> None:
        """Evidence reading "confirmed diabetes" is flagged."""
        output = RiskAgentOutput(
            "M1",
            [finding(("Lab result confirmed diabetes", "High chronic RX spend (12m)"))],
        )
        result = run_compliance_agent(output, impact(3456.0))

        assert result.compliance_status == ComplianceStatus.REVIEW_REQUIRED
        assert result.risk_level == ComplianceRiskLevel.MEDIUM
        assert "Diagnostic language detected for Diabetes" in result.notes

    def test_insufficient_evidence_flagged(self) -> None:
        """Malformed findings from other producers are still caught."""
        weak = SimpleNamespace(hcc_code="HCC_96", condition="COPD", evidence=["Chronic flag"])
        output = SimpleNamespace(member_id="M1", suspect_hccs=[weak], overall_commentary=None)

        result = run_compliance_agent(output)

        assert result.compliance_status == ComplianceStatus.REVIEW_REQUIRED
        assert "Insufficient evidence for COPD" in result.notes

    def test_diagnostic_commentary_flagged(self) -> None:
        output = RiskAgentOutput("M1", [], "Member has CHF per chart")
        result = run_compliance_agent(output)

        assert result.compliance_status == ComplianceStatus.REVIEW_REQUIRED
        assert result.notes == ["Diagnostic language in commentary"]

    @pytest.mark.parametrize(
        "revenue,level",
        [
            (10000.0, ComplianceRiskLevel.LOW),
            (10000.01, ComplianceRiskLevel.MEDIUM),
            (25000.0, ComplianceRiskLevel.MEDIUM),
            (25000.01, ComplianceRiskLevel.HIGH),
        ],
    )
    def test_revenue_escalation(self, revenue: float, level: ComplianceRiskLevel) -> None:
        output = RiskAgentOutput("M1", [finding()])
        result = run_compliance_agent(output, impact(revenue))

        assert result.compliance_status == ComplianceStatus.APPROVED
        assert result.risk_level == level

    def test_escalation_never_lowers_level(self) -> None:
        output = RiskAgentOutput("M1", [finding(("confirmed", "Elevated risk score"))])
        result = run_compliance_agent(output, impact(12000.0))
        assert result.risk_level == ComplianceRiskLevel.MEDIUM

    def test_no_findings_no_escalation(self) -> None:
        result = run_compliance_agent(RiskAgentOutput("M1"), impact(50000.0))
        assert result.risk_level == ComplianceRiskLevel.LOW
