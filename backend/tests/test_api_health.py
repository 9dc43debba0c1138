"""Tests for health and root API endpoints."""

import pytest
import uvicorn
from httpx import AsyncClient

from raf_intel.core.config import settings
from raf_intel.main import app, serve


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test health endpoint returns 200 OK."""
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_healthy_status(self, client: AsyncClient) -> None:
        """Test health endpoint returns healthy status and service name."""
        data = (await client.get("/health")).json()
        assert data["status"] == "healthy"
        assert data["service"] == "raf-gap-intelligence"
        assert data["version"] == "0.1.0"
        # Should be ISO format
        assert "T" in data["timestamp"]


class TestReadyEndpoint:
    """Test readiness endpoint."""

    @pytest.mark.asyncio
    async def test_ready_reports_snapshot(self, client: AsyncClient) -> None:
        data = (await client.get("/ready")).json()
        assert data["status"] == "ready"
        assert "data_loaded" in data
        assert set(data["snapshot"]) >= {"members", "claims", "orphan_claims", "source", "loaded_at"}
        assert isinstance(data["narrative_enabled"], bool)


class TestRootEndpoint:
    """Test root endpoint."""

    @pytest.mark.asyncio
    async def test_root_returns_service_info(self, client: AsyncClient) -> None:
        """Test root endpoint returns service info and links."""
        response = await client.get("/")
        data = response.json()
        assert response.status_code == 200
        assert data["service"] == "RAF Gap Intelligence API"
        assert data["docs"] == "/docs"
        assert data["health"] == "/health"
        assert data["ready"] == "/ready"


class TestAPIMetadata:
    """Test API metadata and configuration."""

    def test_app_title(self) -> None:
        assert app.title == "RAF Gap Intelligence"

    def test_app_version(self) -> None:
        assert app.version == "0.1.0"

    def test_routes_registered(self) -> None:
        paths = {route.path for route in app.routes}
        assert {
            "/dashboard",
            "/orchestrator/summary",
            "/risk-explorer",
            "/claims",
            "/members",
            "/members/{member_id}",
            "/orchestrator/member/{member_id}",
            "/agent/member/{member_id}",
            "/agent/batch",
            "/agent/summary",
            "/simulation",
            "/chat/query",
            "/upload/analyze",
        } <= paths


class TestServe:
    """Test the uvicorn entry point."""

    def test_serve_uses_configured_host_and_port(self, monkeypatch) -> None:
        calls: list[tuple] = []
        monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))

        serve()

        assert calls == [
            (
                ("raf_intel.main:app",),
                {"host": settings.host, "port": settings.port, "reload": settings.debug},
            )
        ]
