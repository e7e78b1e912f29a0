"""Tests for health check API endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_200(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK

    def test_health_reports_ok_and_version(self, client: TestClient):
        data = client.get("/health").json()
        assert data["status"] == "OK"
        assert data["version"] == "1.0.0"
        assert "timestamp" in data
        assert "checks" not in data

    def test_health_is_served_under_api_prefix(self, client: TestClient):
        response = client.get(f"{API}/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "OK"

    def test_health_needs_no_auth(self, client: TestClient):
        response = client.get("/health", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == status.HTTP_200_OK


class TestLivenessEndpoint:
    """Tests for GET /health/live."""

    def test_live_returns_alive_status(self, client: TestClient):
        response = client.get("/health/live")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "alive"


class TestReadinessEndpoint:
    """Tests for GET /health/ready."""

    def test_ready_when_database_answers(self, client: TestClient):
        response = client.get("/health/ready")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ready", "checks": {"database": True}}

    def test_not_ready_when_database_fails(self, client: TestClient, monkeypatch):
        from app.api.routes import health

        async def broken_ping():
            raise ConnectionError("database is gone")

        monkeypatch.setattr(health, "ping_database", broken_ping)
        response = client.get("/health/ready")
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["checks"]["database"] is False


class TestDbHealthcheck:
    """Tests for db_healthcheck function."""

    @pytest.mark.asyncio
    async def test_reports_error_message(self, monkeypatch):
        from app.api.routes import health

        async def broken_ping():
            raise ConnectionError("refused")

        monkeypatch.setattr(health, "ping_database", broken_ping)
        assert await health.db_healthcheck() == (False, "refused")
