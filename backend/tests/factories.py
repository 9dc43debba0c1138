"""Record builders shared by the test modules."""

from datetime import date, timedelta

from raf_intel.connectors.base import Claim, ClaimType, Gender, Member, PlanType


def make_member(member_id: str = "M000001", **overrides) -> Member:
    """Build a member with neutral defaults."""
    fields = {
        "member_id": member_id,
        "age": 40,
        "gender": Gender.M,
        "state": "TX",
        "plan_type": PlanType.SILVER,
        "risk_score": 0.3,
        "chronic_condition_flag": False,
        "hcc_codes": (),
        "member_months": 12,
    }
    fields.update(overrides)
    return Member(**fields)


def make_claims(
    member_id: str,
    claim_type: ClaimType,
    count: int,
    amount: float,
    start: date = date(2024, 1, 15),
    prefix: str | None = None,
) -> list[Claim]:
    """Build ``count`` claims of one type, one week apart."""
    prefix = prefix or f"{member_id}-{claim_type.value}-{start.isoformat()}"
    return [
        Claim(
            claim_id=f"{prefix}-{i}",
            member_id=member_id,
            service_date=start + timedelta(days=7 * i),
            claim_type=claim_type,
            allowed_amount=amount,
        )
        for i in range(count)
    ]


def member_row(member_id: str = "M000001", **overrides) -> dict:
    """Raw member record as it arrives in JSON or an upload body."""
    row = {
        "member_id": member_id,
        "age": 52,
        "gender": "F",
        "state": "NY",
        "plan_type": "Gold",
        "risk_score": 0.4,
        "chronic_condition_flag": False,
        "hcc_codes": [],
        "member_months": 12,
    }
    row.update(overrides)
    return row


def claim_row(claim_id: str = "C000001", member_id: str = "M000001", **overrides) -> dict:
    """Raw claim record as it arrives in JSON or an upload body."""
    row = {
        "claim_id": claim_id,
        "member_id": member_id,
        "service_date": "2024-03-01",
        "claim_type": "OP",
        "allowed_amount": 250.0,
    }
    row.update(overrides)
    return row
