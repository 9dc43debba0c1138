"""Immutable data snapshot and the store that serves it.

A DataSnapshot bundles one loaded member/claims dataset with the per-member
caches derived from it (RAF, lightweight suspects). It is built once and never
mutated, so request handlers read it without locking.

The SnapshotStore holds the current snapshot. A new dataset (startup load or
an activated upload) is fully built first and then swapped in under a lock.
Each request takes a single reference up front and keeps using it, so it sees
either the old or the new snapshot, never a mix.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path
import threading
import time
from types import MappingProxyType
from typing import Any

from raf_intel.connectors.base import Claim, ClaimsIndex, Member, build_claims_index
from raf_intel.connectors.json_connector import JSONSnapshotConnector
from raf_intel.services.raf_calculator import (
    LightweightSuspect,
    compute_raf,
    compute_risk_adj_revenue,
    compute_suspect_hccs,
)

logger = logging.getLogger(__name__)

# RAF assumed for an id missing from the cache
DEFAULT_RAF = 0.5


@dataclass(frozen=True)
class DataSnapshot:
    """One consistent, read-only view of members, claims and derived caches."""

    members: tuple[Member, ...]
    claims: tuple[Claim, ...]
    members_by_id: Mapping[str, Member]
    claims_index: ClaimsIndex
    member_raf: Mapping[str, float]
    member_suspects: Mapping[str, tuple[LightweightSuspect, ...]]
    orphan_claim_count: int = 0
    source: str = "memory"
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(
        cls,
        members: Iterable[Member],
        claims: Iterable[Claim],
        source: str = "memory",
    ) -> "DataSnapshot":
        """Build a snapshot and its per-member caches.

        Claims whose member_id matches no member are excluded from analysis.

        Raises:
            ValueError: If two members share a member_id.
        """
        members = tuple(members)
        members_by_id: dict[str, Member] = {}
        for member in members:
            if member.member_id in members_by_id:
                raise ValueError(f"Duplicate member_id {member.member_id}")
            members_by_id[member.member_id] = member

        all_claims = tuple(claims)
        analysis_claims = tuple(c for c in all_claims if c.member_id in members_by_id)
        claims_index = build_claims_index(analysis_claims)

        member_raf = {m.member_id: compute_raf(m) for m in members}
        member_suspects = {
            m.member_id: tuple(compute_suspect_hccs(m, claims_index)) for m in members
        }

        return cls(
            members=members,
            claims=analysis_claims,
            members_by_id=MappingProxyType(members_by_id),
            claims_index=claims_index,
            member_raf=MappingProxyType(member_raf),
            member_suspects=MappingProxyType(member_suspects),
            orphan_claim_count=len(all_claims) - len(analysis_claims),
            source=source,
        )

    @classmethod
    def empty(cls) -> "DataSnapshot":
        return cls.build((), (), source="empty")

    @property
    def member_count(self) -> int:
        return len(self.members)

    def get_member(self, member_id: str) -> Member | None:
        return self.members_by_id.get(member_id)

    def member_claims(self, member_id: str) -> tuple[Claim, ...]:
        return self.claims_index.get(member_id, ())

    def raf_for(self, member_id: str) -> float:
        return self.member_raf.get(member_id, DEFAULT_RAF)

    def risk_revenue_for(self, member: Member) -> float:
        return compute_risk_adj_revenue(self.raf_for(member.member_id), member.member_months)

    def suspects_for(self, member_id: str) -> tuple[LightweightSuspect, ...]:
        return self.member_suspects.get(member_id, ())

    def suspect_weight(self, member_id: str) -> float:
        """Sum of lightweight suspect weights for one member."""
        return sum(s.weight for s in self.suspects_for(member_id))

    def get_stats(self) -> dict[str, Any]:
        return {
            "members": len(self.members),
            "claims": len(self.claims),
            "orphan_claims": self.orphan_claim_count,
            "source": self.source,
            "loaded_at": self.loaded_at.isoformat(),
        }


def load_snapshot(data_dir: str | Path) -> DataSnapshot:
    """Load a snapshot from a JSON data directory.

    Falls back to an empty snapshot when the dataset files are missing.
    """
    start_time = time.perf_counter()
    connector = JSONSnapshotConnector(Path(data_dir))
    if not connector.is_available():
        logger.warning(
            f"No dataset found in {data_dir}. "
            "Run: python -m raf_intel.scripts.generate_synthetic_data"
        )
        return DataSnapshot.empty()

    members, claims = connector.load()
    snapshot = DataSnapshot.build(members, claims, source=str(data_dir))
    load_time_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"Snapshot built: {snapshot.member_count} members, {len(snapshot.claims)} claims, "
        f"{snapshot.orphan_claim_count} orphan claims in {load_time_ms:.0f}ms"
    )
    return snapshot


class SnapshotStore:
    """Holds the current snapshot and swaps it atomically."""

    def __init__(self, snapshot: DataSnapshot | None = None):
        self._snapshot = snapshot or DataSnapshot.empty()
        self._lock = threading.Lock()

    @property
    def current(self) -> DataSnapshot:
        return self._snapshot

    def swap(self, snapshot: DataSnapshot) -> DataSnapshot:
        """Install a fully built snapshot and return the previous one."""
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot
        logger.info(
            f"Snapshot swapped: {previous.member_count} -> {snapshot.member_count} members "
            f"(source={snapshot.source})"
        )
        return previous


# Singleton pattern
_store_instance: SnapshotStore | None = None
_store_lock = threading.Lock()


def get_snapshot_store() -> SnapshotStore:
    """Get singleton instance of SnapshotStore."""
    global _store_instance
    if _store_instance is None:
        with _store_lock:
            if _store_instance is None:
                _store_instance = SnapshotStore()
    return _store_instance


def reset_snapshot_store() -> None:
    """Reset the singleton instance (for testing)."""
    global _store_instance
    with _store_lock:
        _store_instance = None
