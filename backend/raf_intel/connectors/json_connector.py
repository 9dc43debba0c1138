"""JSON snapshot connector.

Reads the member and claims datasets written by the synthetic data
generator (or exported from an eligibility/claims warehouse):

    <data_dir>/members.json   - array of member records
    <data_dir>/claims.json    - array of claim records

Usage:
    connector = JSONSnapshotConnector(Path("data"))
    if connector.is_available():
        members, claims = connector.load()
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from raf_intel.connectors.base import Claim, Member, claim_from_dict, member_from_dict

logger = logging.getLogger(__name__)

MEMBERS_FILE = "members.json"
CLAIMS_FILE = "claims.json"


@dataclass
class JSONSnapshotConnector:
    """Loads members and claims from a directory of JSON files."""

    data_dir: Path

    @property
    def members_path(self) -> Path:
        return self.data_dir / MEMBERS_FILE

    @property
    def claims_path(self) -> Path:
        return self.data_dir / CLAIMS_FILE

    def is_available(self) -> bool:
        """Check both dataset files exist."""
        return self.members_path.exists() and self.claims_path.exists()

    def _read_array(self, path: Path) -> list[dict[str, Any]]:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON array")
        return data

    def load(self) -> tuple[list[Member], list[Claim]]:
        """Load and parse both datasets.

        Returns:
            Tuple of (members, claims).

        Raises:
            FileNotFoundError: If either file is missing.
            ValueError: If a record cannot be parsed.
        """
        raw_members = self._read_array(self.members_path)
        raw_claims = self._read_array(self.claims_path)

        members = [member_from_dict(row) for row in raw_members]
        claims = [claim_from_dict(row) for row in raw_claims]

        logger.info(
            f"Loaded {len(members)} members and {len(claims)} claims from {self.data_dir}"
        )
        return members, claims
