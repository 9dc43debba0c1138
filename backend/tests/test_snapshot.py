"""Tests for connectors, the data snapshot and the snapshot store."""

import json
from pathlib import Path

import pytest

from raf_intel.connectors.base import (
    ClaimType,
    Gender,
    PlanType,
    claim_from_dict,
    member_from_dict,
    parse_hcc_codes,
)
from raf_intel.connectors.json_connector import CLAIMS_FILE, MEMBERS_FILE, JSONSnapshotConnector
from raf_intel.core.snapshot import (
    DEFAULT_RAF,
    DataSnapshot,
    SnapshotStore,
    get_snapshot_store,
    load_snapshot,
    reset_snapshot_store,
)
from factories import claim_row, make_claims, make_member, member_row


class TestParsing:
    """Tests for raw record parsing."""

    def test_member_from_dict(self) -> None:
        member = member_from_dict(
            member_row(gender="f", state="ny", plan_type="gold", chronic_condition_flag="yes", hcc_codes="HCC_18;HCC_19")
        )
        assert member.gender == Gender.F
        assert member.state == "NY"
        assert member.plan_type == PlanType.GOLD
        assert member.chronic_condition_flag is True
        assert member.hcc_codes == ("HCC_18", "HCC_19")

    def test_member_months_default(self) -> None:
        row = member_row()
        del row["member_months"]
        assert member_from_dict(row).member_months == 12

    def test_missing_field_raises(self) -> None:
        row = member_row()
        del row["age"]
        with pytest.raises(KeyError):
            member_from_dict(row)

    def test_invalid_plan_raises(self) -> None:
        with pytest.raises(ValueError):
            member_from_dict(member_row(plan_type="Platinum"))

    def test_claim_from_dict(self) -> None:
        claim = claim_from_dict(claim_row(service_date="2024-03-01T10:00:00", claim_type="rx"))
        assert claim.claim_type == ClaimType.RX
        assert claim.service_date.isoformat() == "2024-03-01"

    def test_negative_amount_raises(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            claim_from_dict(claim_row(allowed_amount=-1))

    def test_hcc_codes_deduplicated(self) -> None:
        assert parse_hcc_codes(["HCC_18", "HCC_18", "", "HCC_85"]) == ("HCC_18", "HCC_85")
        assert parse_hcc_codes(None) == ()


class TestDataSnapshot:
    """Tests for snapshot construction and caches."""

    def test_caches(self, snapshot: DataSnapshot) -> None:
        assert snapshot.member_count == 3
        assert snapshot.raf_for("M000001") == 1.22
        assert snapshot.raf_for("unknown") == DEFAULT_RAF
        assert snapshot.suspect_weight("M000001") == pytest.approx(0.84)
        assert snapshot.suspects_for("M000002") == ()
        assert len(snapshot.member_claims("M000003")) == 8

    def test_orphan_claims_excluded(self, snapshot: DataSnapshot) -> None:
        assert snapshot.orphan_claim_count == 1
        assert all(c.member_id != "M999999" for c in snapshot.claims)
        assert snapshot.get_stats()["orphan_claims"] == 1

    def test_duplicate_member_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate member_id"):
            DataSnapshot.build([make_member("M1"), make_member("M1")], [])

    def test_empty(self) -> None:
        snapshot = DataSnapshot.empty()
        assert snapshot.member_count == 0
        assert snapshot.get_member("M1") is None

    def test_caches_are_read_only(self, snapshot: DataSnapshot) -> None:
        with pytest.raises(TypeError):
            snapshot.member_raf["M000001"] = 2.0


class TestLoadSnapshot:
    """Tests for loading from a JSON data directory."""

    def test_load_from_directory(self, tmp_path: Path) -> None:
        (tmp_path / MEMBERS_FILE).write_text(json.dumps([member_row("M1"), member_row("M2")]))
        (tmp_path / CLAIMS_FILE).write_text(
            json.dumps([claim_row("C1", "M1"), claim_row("C2", "M3")])
        )

        snapshot = load_snapshot(tmp_path)

        assert snapshot.member_count == 2
        assert len(snapshot.claims) == 1
        assert snapshot.orphan_claim_count == 1
        assert snapshot.source == str(tmp_path)

    def test_missing_files_give_empty_snapshot(self, tmp_path: Path) -> None:
        assert load_snapshot(tmp_path).member_count == 0

    def test_connector_rejects_non_array(self, tmp_path: Path) -> None:
        (tmp_path / MEMBERS_FILE).write_text(json.dumps({"members": []}))
        (tmp_path / CLAIMS_FILE).write_text("[]")
        with pytest.raises(ValueError, match="JSON array"):
            JSONSnapshotConnector(tmp_path).load()


class TestSnapshotStore:
    """Tests for the store and its singleton."""

    @pytest.fixture(autouse=True)
    def setup(self):
        reset_snapshot_store()
        yield
        reset_snapshot_store()

    def test_singleton(self) -> None:
        assert get_snapshot_store() is get_snapshot_store()

    def test_reset_creates_new_instance(self) -> None:
        first = get_snapshot_store()
        reset_snapshot_store()
        assert get_snapshot_store() is not first

    def test_starts_empty(self) -> None:
        assert SnapshotStore().current.member_count == 0

    def test_swap_returns_previous(self, snapshot: DataSnapshot) -> None:
        store = SnapshotStore()
        before = store.current
        reference = store.current

        previous = store.swap(snapshot)

        assert previous is before
        assert store.current is snapshot
        # A reference taken before the swap still sees the old data
        assert reference.member_count == 0

    def test_swap_with_new_claims(self) -> None:
        store = SnapshotStore()
        replacement = DataSnapshot.build(
            [make_member("M1")], make_claims("M1", ClaimType.OP, 2, 100.0), source="upload"
        )
        store.swap(replacement)
        assert store.current.get_stats()["source"] == "upload"
        assert len(store.current.claims) == 2
