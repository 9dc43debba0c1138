"""Base entities and parsing for member and claims sources.

This module defines:
1. Enums shared by every source (gender, plan tier, claim type)
2. Member and Claim - immutable records loaded once per snapshot
3. Parsing helpers turning raw dicts (JSON rows, upload bodies) into records
4. ClaimsIndex - claims grouped by member

Orphan claims (member_id with no member) are legal input. They are dropped
when the claims index is built, never reported as errors here.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any


# ============================================================================
# Enums
# ============================================================================


class Gender(str, Enum):
    """Member gender as carried on eligibility files."""

    M = "M"
    F = "F"


class PlanType(str, Enum):
    """Metal tier of the member's plan."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"


class ClaimType(str, Enum):
    """Claim setting."""

    IP = "IP"  # Inpatient
    OP = "OP"  # Outpatient
    RX = "RX"  # Pharmacy


# ============================================================================
# Records
# ============================================================================


@dataclass(frozen=True)
class Member:
    """A covered member."""

    member_id: str
    age: int
    gender: Gender
    state: str
    plan_type: PlanType
    risk_score: float
    chronic_condition_flag: bool = False
    hcc_codes: tuple[str, ...] = field(default_factory=tuple)
    member_months: int = 12

    def has_hcc(self, hcc_code: str) -> bool:
        """Check whether a condition is already coded for this member."""
        return hcc_code in self.hcc_codes

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["gender"] = self.gender.value
        data["plan_type"] = self.plan_type.value
        data["hcc_codes"] = list(self.hcc_codes)
        return data


@dataclass(frozen=True)
class Claim:
    """A single adjudicated claim line."""

    claim_id: str
    member_id: str
    service_date: date
    claim_type: ClaimType
    allowed_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "member_id": self.member_id,
            "service_date": self.service_date.isoformat(),
            "claim_type": self.claim_type.value,
            "allowed_amount": self.allowed_amount,
        }


# member_id -> claims for that member
ClaimsIndex = Mapping[str, tuple[Claim, ...]]

REQUIRED_MEMBER_FIELDS = ("member_id", "age", "gender", "state", "plan_type", "risk_score")
REQUIRED_CLAIM_FIELDS = ("claim_id", "member_id", "service_date", "claim_type", "allowed_amount")


# ============================================================================
# Parsing
# ============================================================================


def parse_date(value: Any) -> date:
    """Parse a service date from an ISO string, date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_bool(value: Any) -> bool:
    """Parse flag values that may arrive as strings from CSV-derived JSON."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def parse_hcc_codes(value: Any) -> tuple[str, ...]:
    """Parse coded conditions, dropping duplicates but keeping order."""
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        value = [code.strip() for code in value.replace(";", ",").split(",")]
    seen: dict[str, None] = {}
    for code in value:
        if code:
            seen.setdefault(str(code), None)
    return tuple(seen)


def member_from_dict(data: Mapping[str, Any]) -> Member:
    """Build a Member from a raw record.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a field cannot be coerced.
    """
    return Member(
        member_id=str(data["member_id"]),
        age=int(data["age"]),
        gender=Gender(str(data["gender"]).upper()),
        state=str(data["state"]).upper(),
        plan_type=PlanType(str(data["plan_type"]).capitalize()),
        risk_score=float(data["risk_score"]),
        chronic_condition_flag=parse_bool(data.get("chronic_condition_flag", False)),
        hcc_codes=parse_hcc_codes(data.get("hcc_codes")),
        member_months=int(data.get("member_months") or 12),
    )


def claim_from_dict(data: Mapping[str, Any]) -> Claim:
    """Build a Claim from a raw record.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a field cannot be coerced or the amount is negative.
    """
    allowed_amount = float(data["allowed_amount"])
    if allowed_amount < 0:
        raise ValueError(f"allowed_amount must be non-negative, got {allowed_amount}")
    return Claim(
        claim_id=str(data["claim_id"]),
        member_id=str(data["member_id"]),
        service_date=parse_date(data["service_date"]),
        claim_type=ClaimType(str(data["claim_type"]).upper()),
        allowed_amount=allowed_amount,
    )


def build_claims_index(
    claims: Iterable[Claim],
    member_ids: Iterable[str] | None = None,
) -> ClaimsIndex:
    """Group claims by member.

    Args:
        claims: Claims to group.
        member_ids: If given, claims for any other member_id are dropped.

    Returns:
        Read-only mapping of member_id to a tuple of claims.
    """
    allowed = set(member_ids) if member_ids is not None else None
    grouped: dict[str, list[Claim]] = defaultdict(list)
    for claim in claims:
        if allowed is not None and claim.member_id not in allowed:
            continue
        grouped[claim.member_id].append(claim)
    return MappingProxyType({member_id: tuple(items) for member_id, items in grouped.items()})
