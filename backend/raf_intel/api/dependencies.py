"""Shared request dependencies."""

from typing import Annotated

from fastapi import Depends

from raf_intel.core.snapshot import DataSnapshot, get_snapshot_store
from raf_intel.services.narrative_generator import NarrativeGenerator, get_narrative_generator


def get_snapshot() -> DataSnapshot:
    """Take one snapshot reference for the whole request."""
    return get_snapshot_store().current


def get_narrative() -> NarrativeGenerator | None:
    return get_narrative_generator()


Snapshot = Annotated[DataSnapshot, Depends(get_snapshot)]
Narrator = Annotated[NarrativeGenerator | None, Depends(get_narrative)]
