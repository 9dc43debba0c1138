"""Tests for the RAF calculator and lightweight suspect heuristic."""

import pytest

from raf_intel.connectors.base import ClaimType, Gender, build_claims_index
from raf_intel.services.raf_calculator import (
    BASE_RATE_PMPM,
    LIGHTWEIGHT_SUSPECT_STRATEGY,
    age_band,
    compute_raf,
    compute_raf_breakdown,
    compute_risk_adj_revenue,
    compute_suspect_hccs,
    demographic_factor,
    summarize_claims,
)
from factories import make_claims, make_member


class TestDemographics:
    """Tests for age bands and demographic factors."""

    @pytest.mark.parametrize(
        "age,band",
        [(18, "18-34"), (34, "18-34"), (35, "35-44"), (54, "45-54"), (64, "55-64"), (65, "65+"), (99, "65+")],
    )
    def test_age_band_boundaries(self, age: int, band: str) -> None:
        assert age_band(age) == band

    def test_demographic_factor_by_gender(self) -> None:
        assert demographic_factor(70, Gender.F) == 1.22
        assert demographic_factor(40, Gender.M) == 0.45

    def test_unknown_gender_falls_back(self) -> None:
        """Unknown or missing gender uses the 0.5 fallback."""
        assert demographic_factor(50, "X") == 0.5
        assert demographic_factor(50, None) == 0.5


class TestComputeRAF:
    """Tests for RAF computation."""

    def test_demographic_only(self) -> None:
        member = make_member(age=70, gender=Gender.F)
        assert compute_raf(member) == 1.22

    def test_coded_conditions_add_weight(self) -> None:
        member = make_member(age=40, gender=Gender.M, hcc_codes=("HCC_18", "HCC_19"))
        assert compute_raf(member) == pytest.approx(0.45 + 0.32 + 0.14)

    def test_unknown_codes_weigh_nothing(self) -> None:
        member = make_member(age=40, gender=Gender.M, hcc_codes=("HCC_999",))
        assert compute_raf(member) == 0.45

    def test_stays_within_bounds(self) -> None:
        member = make_member(
            age=80,
            gender=Gender.F,
            hcc_codes=("HCC_18", "HCC_85", "HCC_96", "HCC_108", "HCC_19", "HCC_18x"),
        )
        raf = compute_raf(member)
        assert 0.3 <= raf <= 3.0

    def test_breakdown_matches_total(self) -> None:
        member = make_member(age=40, gender=Gender.M, hcc_codes=("HCC_18",))
        breakdown = compute_raf_breakdown(member)
        assert breakdown.demographic == 0.45
        assert breakdown.hcc == 0.32
        assert breakdown.total == compute_raf(member)
        assert [c.code for c in breakdown.hcc_list] == ["HCC_18"]


class TestRiskAdjustedRevenue:
    """Tests for revenue math."""

    def test_revenue_formula(self) -> None:
        assert compute_risk_adj_revenue(1.0) == BASE_RATE_PMPM * 12
        assert compute_risk_adj_revenue(1.5, member_months=6) == pytest.approx(1.5 * 900 * 6)


class TestClaimsSummary:
    """Tests for claims aggregation."""

    def test_summary_by_setting(self) -> None:
        claims = (
            make_claims("M1", ClaimType.RX, 8, 300.0)
            + make_claims("M1", ClaimType.IP, 1, 12000.0)
            + make_claims("M1", ClaimType.OP, 3, 100.0)
        )
        summary = summarize_claims(claims)
        assert summary.rx_count == 8
        assert summary.rx_spend == pytest.approx(2400.0)
        assert summary.ip_admissions == 1
        assert summary.op_visits == 3
        assert summary.claim_count == 12
        assert summary.chronic_meds
        assert summary.multiple_rx
        assert summary.high_cost_procedure

    def test_empty_summary(self) -> None:
        summary = summarize_claims([])
        assert summary.claim_count == 0
        assert not summary.chronic_meds
        assert not summary.high_cost_procedure


class TestLightweightSuspects:
    """Tests for the single-signal suspect heuristic."""

    def test_rx_heavy_member(self, rx_heavy_member, rx_heavy_index) -> None:
        codes = {s.code for s in compute_suspect_hccs(rx_heavy_member, rx_heavy_index)}
        assert codes == {"HCC_18", "HCC_19", "HCC_108"}

    def test_coded_condition_is_skipped(self, rx_heavy_claims) -> None:
        member = make_member("M000001", risk_score=0.8, hcc_codes=("HCC_18",))
        codes = {s.code for s in compute_suspect_hccs(member, build_claims_index(rx_heavy_claims))}
        assert "HCC_18" not in codes

    def test_chronic_flag_alone_suspects_copd(self) -> None:
        member = make_member(chronic_condition_flag=True)
        suspects = compute_suspect_hccs(member, build_claims_index([]))
        assert [s.code for s in suspects] == ["HCC_96"]

    def test_strategy_weights(self, rx_heavy_member, rx_heavy_index) -> None:
        weights = LIGHTWEIGHT_SUSPECT_STRATEGY.suspect_weights(rx_heavy_member, rx_heavy_index)
        assert weights == {"HCC_18": 0.32, "HCC_19": 0.14, "HCC_108": 0.38}
