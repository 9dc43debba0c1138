"""Source connectors for member and claims data."""

from raf_intel.connectors.base import (
    Claim,
    ClaimsIndex,
    ClaimType,
    Gender,
    Member,
    PlanType,
    build_claims_index,
    claim_from_dict,
    member_from_dict,
)
from raf_intel.connectors.json_connector import JSONSnapshotConnector

__all__ = [
    "Claim",
    "ClaimsIndex",
    "ClaimType",
    "Gender",
    "JSONSnapshotConnector",
    "Member",
    "PlanType",
    "build_claims_index",
    "claim_from_dict",
    "member_from_dict",
]
