"""Unit tests for GET /health and the startup readiness gate.

  - /health returns 503 before app.state.ready is set by the lifespan
  - /health returns 200 with the full field set once the lifespan has run
  - store failure reports degraded instead of raising
  - /api/routes is gated by require_ready
"""

from __future__ import annotations

from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from routewatch.constants import POOL_MAX_CONNECTIONS
from routewatch.main import create_app

# ─── Before ready ─────────────────────────────────────────────────────────────


class TestBeforeReady:
    """ASGITransport does not run the lifespan, so the app stays not-ready."""

    async def test_health_returns_503(self) -> None:
        transport = ASGITransport(app=create_app())  # type: ignore[arg-type]
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")
        assert response.status_code == 503
        assert response.json() == {"error": "RouteWatch is starting up"}

    async def test_routes_api_returns_503(self) -> None:
        transport = ASGITransport(app=create_app())  # type: ignore[arg-type]
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/routes")
        assert response.status_code == 503

    async def test_root_is_always_available(self) -> None:
        transport = ASGITransport(app=create_app())  # type: ignore[arg-type]
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "RouteWatch"


# ─── After ready ──────────────────────────────────────────────────────────────


class TestAfterReady:
    def test_health_fields(self, tmp_path: Any) -> None:
        with TestClient(create_app()) as client:
            response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["store"] == "healthy"
        assert data["store_path"] == str(tmp_path / "routewatch.db")
        assert data["connection_pool_size"] == POOL_MAX_CONNECTIONS
        assert data["resolve_hostnames"] is False

    def test_degraded_when_store_unhealthy(self, monkeypatch: pytest.MonkeyPatch) -> None:
        app = create_app()
        with TestClient(app) as client:

            async def _unhealthy() -> bool:
                return False

            monkeypatch.setattr(app.state.route_store, "health_check", _unhealthy)
            data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["store"] == "error"

    def test_ready_cleared_on_shutdown(self) -> None:
        app = create_app()
        with TestClient(app):
            assert app.state.ready is True
        assert app.state.ready is False
