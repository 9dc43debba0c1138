"""Tests for the synthetic dataset generator."""

from pathlib import Path

from raf_intel.core.snapshot import load_snapshot
from raf_intel.scripts.generate_synthetic_data import (
    US_STATES,
    generate_claims,
    generate_members,
    pick_weighted,
    seeded_random,
    write_dataset,
)
from raf_intel.services.upload_validator import validate_upload


class TestSeededRandom:
    """Tests for the deterministic generator."""

    def test_deterministic(self) -> None:
        assert seeded_random(42) == seeded_random(42)

    def test_range(self) -> None:
        values = [seeded_random(seed) for seed in range(1, 500)]
        assert all(0.0 <= v < 1.0 for v in values)

    def test_pick_weighted_in_range(self) -> None:
        picks = {pick_weighted(seed, (0.4, 0.35, 0.25)) for seed in range(1, 200)}
        assert picks <= {0, 1, 2}


class TestGenerateDataset:
    """Tests for generated members and claims."""

    def test_members_are_valid(self) -> None:
        members = generate_members(100)

        assert len(members) == 100
        assert members[0]["member_id"] == "M000001"
        assert len({m["member_id"] for m in members}) == 100
        for member in members:
            assert 18 <= member["age"] <= 84
            assert 0.0 <= member["risk_score"] <= 1.0
            assert member["state"] in US_STATES
            assert member["plan_type"] in ("Bronze", "Silver", "Gold")

    def test_generation_is_reproducible(self) -> None:
        assert generate_members(20) == generate_members(20)

    def test_claims_reference_members(self) -> None:
        members = generate_members(30)
        claims = generate_claims(members)
        member_ids = {m["member_id"] for m in members}

        assert all(c["member_id"] in member_ids for c in claims)
        assert all(c["allowed_amount"] > 0 for c in claims)
        assert all("2024-01-01" <= c["service_date"] <= "2025-12-31" for c in claims)

    def test_claims_cap(self) -> None:
        claims = generate_claims(generate_members(50), max_claims=25)
        assert len(claims) == 25

    def test_dataset_passes_upload_validation(self) -> None:
        members = generate_members(40)
        result = validate_upload(members, generate_claims(members))
        assert result.valid
        assert result.warnings == []

    def test_written_dataset_loads(self, tmp_path: Path) -> None:
        members = generate_members(25)
        claims = generate_claims(members)
        write_dataset(tmp_path, members, claims)

        snapshot = load_snapshot(tmp_path)

        assert snapshot.member_count == 25
        assert len(snapshot.claims) == len(claims)
        assert snapshot.orphan_claim_count == 0
