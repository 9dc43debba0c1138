"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from raf_intel.api.dependencies import get_narrative, get_snapshot
from raf_intel.connectors.base import (
    Claim,
    ClaimType,
    Gender,
    Member,
    PlanType,
    build_claims_index,
)
from raf_intel.core.snapshot import DataSnapshot
from raf_intel.main import app

from factories import make_claims, make_member


@pytest.fixture
def rx_heavy_member() -> Member:
    """Age 70 F, no coded conditions, risk 0.8 (eight RX claims, $2400)."""
    return make_member("M000001", age=70, gender=Gender.F, risk_score=0.8, plan_type=PlanType.BRONZE)


@pytest.fixture
def rx_heavy_claims(rx_heavy_member: Member) -> list[Claim]:
    return make_claims(rx_heavy_member.member_id, ClaimType.RX, 8, 300.0)


@pytest.fixture
def rx_heavy_index(rx_heavy_claims: list[Claim]):
    return build_claims_index(rx_heavy_claims)


@pytest.fixture
def population() -> tuple[list[Member], list[Claim]]:
    """Three members plus one orphan claim.

    - M000001: TX Bronze, RX-heavy (Diabetes, CKD and Hypertension candidates)
    - M000002: CA Silver, low risk, Diabetes already coded, light OP use
    - M000003: TX Gold, chronic, two large IP stays and six OP visits
      (CHF and COPD candidates)
    """
    members = [
        make_member("M000001", age=70, gender=Gender.F, risk_score=0.8, plan_type=PlanType.BRONZE),
        make_member(
            "M000002",
            age=40,
            gender=Gender.M,
            state="CA",
            risk_score=0.3,
            hcc_codes=("HCC_18",),
        ),
        make_member(
            "M000003",
            age=58,
            gender=Gender.F,
            risk_score=0.9,
            plan_type=PlanType.GOLD,
            chronic_condition_flag=True,
        ),
    ]
    claims = (
        make_claims("M000001", ClaimType.RX, 8, 300.0)
        + make_claims("M000002", ClaimType.OP, 2, 200.0)
        + make_claims("M000003", ClaimType.IP, 2, 9000.0)
        + make_claims("M000003", ClaimType.OP, 6, 150.0, start=date(2024, 6, 1))
        + make_claims("M999999", ClaimType.OP, 1, 500.0)
    )
    return members, claims


@pytest.fixture
def snapshot(population) -> DataSnapshot:
    members, claims = population
    return DataSnapshot.build(members, claims, source="test")


@pytest.fixture
async def client(snapshot: DataSnapshot) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client serving the fixture snapshot.

    Narrative enrichment is disabled so answers are deterministic.
    """
    app.dependency_overrides[get_snapshot] = lambda: snapshot
    app.dependency_overrides[get_narrative] = lambda: None
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
