"""Core application configuration and data snapshot."""

from raf_intel.core.config import settings
from raf_intel.core.snapshot import (
    DataSnapshot,
    SnapshotStore,
    get_snapshot_store,
    load_snapshot,
    reset_snapshot_store,
)

__all__ = [
    # Config
    "settings",
    # Snapshot
    "DataSnapshot",
    "SnapshotStore",
    "get_snapshot_store",
    "load_snapshot",
    "reset_snapshot_store",
]
