"""Tests for the simulation endpoint."""

import pytest
from httpx import AsyncClient


class TestSimulationEndpoint:
    """Test POST /simulation."""

    @pytest.mark.asyncio
    async def test_defaults(self, client: AsyncClient) -> None:
        response = await client.post("/simulation", json={})
        assert response.status_code == 200

        data = response.json()
        assert data["risk_threshold"] == 0.7
        assert data["high_risk_count"] == 2
        assert data["plan_mix"]["bronze"] == pytest.approx(0.4)
        assert data["total_risk_revenue"] == data["baseline_risk_revenue"]

    @pytest.mark.asyncio
    async def test_closure_lever(self, client: AsyncClient) -> None:
        data = (await client.post("/simulation", json={"close_suspect_pct": 100})).json()
        assert data["total_risk_revenue"] > data["baseline_risk_revenue"]
        assert data["close_suspect_pct"] == 100

    @pytest.mark.asyncio
    async def test_plan_mix_normalized(self, client: AsyncClient) -> None:
        body = {"bronze_pct": 2, "silver_pct": 1, "gold_pct": 1}
        mix = (await client.post("/simulation", json=body)).json()["plan_mix"]
        assert mix["bronze"] + mix["silver"] + mix["gold"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"risk_threshold": 1.5},
            {"close_suspect_pct": 120},
            {"coding_improvement_pct": 60},
            {"gold_pct": -0.1},
        ],
    )
    async def test_out_of_range_rejected(self, client: AsyncClient, body: dict) -> None:
        response = await client.post("/simulation", json=body)
        assert response.status_code == 422
