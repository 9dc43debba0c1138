"""Tests for member, per-member pipeline and agent endpoints."""

import pytest
from httpx import AsyncClient


class TestMembersEndpoint:
    """Test GET /members."""

    @pytest.mark.asyncio
    async def test_list_members(self, client: AsyncClient) -> None:
        data = (await client.get("/members")).json()
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["limit"] == 50
        assert data["members"][0]["member_id"] == "M000001"

    @pytest.mark.asyncio
    async def test_filters(self, client: AsyncClient) -> None:
        data = (await client.get("/members", params={"state": "TX", "chronic": "true"})).json()
        assert [m["member_id"] for m in data["members"]] == ["M000003"]

    @pytest.mark.asyncio
    async def test_risk_out_of_range(self, client: AsyncClient) -> None:
        response = await client.get("/members", params={"risk_min": 2})
        assert response.status_code == 422


class TestMemberProfileEndpoint:
    """Test GET /members/{member_id}."""

    @pytest.mark.asyncio
    async def test_profile(self, client: AsyncClient) -> None:
        response = await client.get("/members/M000001")
        assert response.status_code == 200

        data = response.json()
        assert data["member"]["plan_type"] == "Bronze"
        assert data["raf"] == 1.22
        assert data["raf_breakdown"]["demographic"] == 1.22
        assert len(data["recent_claims"]) == 8
        assert {s["code"] for s in data["suspected_hccs"]} == {"HCC_18", "HCC_19", "HCC_108"}
        assert data["orchestrated_output"]["financial_impact"]["plan_level_impact"] == "High"

    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/members/NOPE")
        assert response.status_code == 404
        assert response.json()["detail"] == "Member NOPE not found"


class TestOrchestratorMemberEndpoint:
    """Test GET /orchestrator/member/{member_id}."""

    @pytest.mark.asyncio
    async def test_pipeline_output(self, client: AsyncClient) -> None:
        data = (await client.get("/orchestrator/member/M000003")).json()

        assert {s["hcc"] for s in data["suspect_hccs"]} == {"HCC_85", "HCC_96"}
        assert data["compliance"]["compliance_status"] == "APPROVED"
        assert data["stages"][-1] == "synthesized"
        assert "Recommend coding review" in data["executive_summary"]

    @pytest.mark.asyncio
    async def test_no_findings(self, client: AsyncClient) -> None:
        data = (await client.get("/orchestrator/member/M000002")).json()
        assert data["suspect_hccs"] == []
        assert data["financial_impact"] is None
        assert "finance_evaluated" not in data["stages"]

    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/orchestrator/member/NOPE")
        assert response.status_code == 404


class TestAgentEndpoints:
    """Test /agent endpoints."""

    @pytest.mark.asyncio
    async def test_agent_member(self, client: AsyncClient) -> None:
        data = (await client.get("/agent/member/M000001")).json()
        codes = {f["hcc_code"] for f in data["suspect_hccs"]}
        assert {"HCC_18", "HCC_19"} <= codes
        assert all(len(f["evidence"]) >= 2 for f in data["suspect_hccs"])

    @pytest.mark.asyncio
    async def test_agent_member_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/agent/member/NOPE")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_batch(self, client: AsyncClient) -> None:
        data = (await client.get("/agent/batch", params={"limit": 2})).json()
        assert data["count"] == 2
        assert [r["member_id"] for r in data["results"]] == ["M000003", "M000001"]

    @pytest.mark.asyncio
    async def test_batch_by_leakage(self, client: AsyncClient) -> None:
        data = (await client.get("/agent/batch", params={"sort": "leakage"})).json()
        leakage = [r["leakage_risk"] for r in data["results"]]
        assert leakage == sorted(leakage, reverse=True)

    @pytest.mark.asyncio
    async def test_batch_invalid_sort(self, client: AsyncClient) -> None:
        response = await client.get("/agent/batch", params={"sort": "alphabetical"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_summary(self, client: AsyncClient) -> None:
        data = (await client.get("/agent/summary")).json()
        assert data["members_with_suspects"] == 2
        assert len(data["top_leakage_risk"]) == 2
