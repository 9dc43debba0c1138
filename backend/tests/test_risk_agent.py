"""Tests for the Risk Adjustment Agent."""

import pytest

from raf_intel.connectors.base import ClaimType, Gender, build_claims_index
from raf_intel.services.risk_agent import (
    EVIDENCE_SUSPECT_STRATEGY,
    FINDINGS_COMMENTARY,
    INSUFFICIENT_EVIDENCE_COMMENTARY,
    MAX_CONFIDENCE,
    SuspectFinding,
    run_agent,
    run_agent_batch,
)
from factories import make_claims, make_member


class TestSuspectFindingInvariants:
    """A finding can only exist with two distinct signals and confidence below 1."""

    def test_valid_finding(self) -> None:
        finding = SuspectFinding(
            hcc_code="HCC_18",
            condition="Diabetes",
            confidence=0.7,
            evidence=("a", "b"),
            raf_uplift=0.32,
            revenue_uplift_estimate=3456.0,
        )
        assert finding.confidence == 0.7

    def test_single_signal_rejected(self) -> None:
        with pytest.raises(ValueError, match="distinct evidence"):
            SuspectFinding("HCC_18", "Diabetes", 0.7, ("a",), 0.32, 3456.0)

    def test_duplicate_signals_rejected(self) -> None:
        with pytest.raises(ValueError):
            SuspectFinding("HCC_18", "Diabetes", 0.7, ("a", "a"), 0.32, 3456.0)

    @pytest.mark.parametrize("confidence", [1.0, 1.2, -0.1])
    def test_confidence_out_of_range_rejected(self, confidence: float) -> None:
        with pytest.raises(ValueError, match="Confidence"):
            SuspectFinding("HCC_18", "Diabetes", confidence, ("a", "b"), 0.32, 3456.0)


class TestRunAgent:
    """Tests for single-member evaluation."""

    def test_rx_heavy_member_findings(self, rx_heavy_member, rx_heavy_index) -> None:
        """Eight $300 fills at age 70 with risk 0.8 surface Diabetes and Hypertension."""
        output = run_agent(rx_heavy_member, rx_heavy_index)
        codes = {f.hcc_code for f in output.suspect_hccs}

        assert {"HCC_18", "HCC_19"} <= codes
        assert "HCC_96" not in codes  # only one COPD signal
        assert output.overall_commentary == FINDINGS_COMMENTARY

    def test_diabetes_finding_detail(self, rx_heavy_member, rx_heavy_index) -> None:
        output = run_agent(rx_heavy_member, rx_heavy_index)
        diabetes = next(f for f in output.suspect_hccs if f.hcc_code == "HCC_18")

        assert diabetes.condition == "Diabetes"
        assert len(diabetes.evidence) == 3
        assert diabetes.confidence == pytest.approx(0.74)
        assert diabetes.raf_uplift == 0.32
        assert diabetes.revenue_uplift_estimate == 3456.0

    def test_every_finding_respects_bounds(self, rx_heavy_member, rx_heavy_index) -> None:
        for finding in run_agent(rx_heavy_member, rx_heavy_index).suspect_hccs:
            assert len(set(finding.evidence)) >= 2
            assert 0.0 <= finding.confidence <= MAX_CONFIDENCE

    def test_coded_condition_not_suspected(self, rx_heavy_claims) -> None:
        member = make_member("M000001", age=70, gender=Gender.F, risk_score=0.8, hcc_codes=("HCC_18",))
        output = run_agent(member, build_claims_index(rx_heavy_claims))
        assert "HCC_18" not in {f.hcc_code for f in output.suspect_hccs}

    def test_inpatient_member_suspects_chf_and_copd(self) -> None:
        member = make_member("M000003", age=58, gender=Gender.F, risk_score=0.9, chronic_condition_flag=True)
        claims = make_claims("M000003", ClaimType.IP, 2, 9000.0) + make_claims("M000003", ClaimType.OP, 6, 150.0)
        output = run_agent(member, build_claims_index(claims))

        assert {f.hcc_code for f in output.suspect_hccs} == {"HCC_85", "HCC_96"}

    def test_high_risk_without_evidence(self) -> None:
        """Risk 0.8 with six OP visits: no findings, insufficient-evidence commentary."""
        member = make_member(risk_score=0.8)
        claims = make_claims(member.member_id, ClaimType.OP, 6, 100.0)
        output = run_agent(member, build_claims_index(claims))

        assert output.suspect_hccs == []
        assert not output.has_findings
        assert output.overall_commentary == INSUFFICIENT_EVIDENCE_COMMENTARY

    def test_low_risk_without_claims(self) -> None:
        output = run_agent(make_member(), build_claims_index([]))
        assert output.suspect_hccs == []
        assert output.overall_commentary is None


class TestRunAgentBatch:
    """Tests for batch evaluation."""

    def test_batch_takes_highest_risk_first(self, population) -> None:
        members, claims = population
        outputs = run_agent_batch(members, build_claims_index(claims), limit=2)

        assert [o.member_id for o in outputs] == ["M000003", "M000001"]

    def test_batch_limit_larger_than_population(self, population) -> None:
        members, claims = population
        assert len(run_agent_batch(members, build_claims_index(claims), limit=50)) == 3


class TestEvidenceStrategy:
    """Tests for the evidence-backed suspect strategy."""

    def test_weights_match_findings(self, rx_heavy_member, rx_heavy_index) -> None:
        weights = EVIDENCE_SUSPECT_STRATEGY.suspect_weights(rx_heavy_member, rx_heavy_index)
        findings = run_agent(rx_heavy_member, rx_heavy_index).suspect_hccs
        assert weights == {f.hcc_code: f.raf_uplift for f in findings}
