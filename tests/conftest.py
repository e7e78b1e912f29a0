"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

# Must be set before app.core.config builds the settings object
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SESSION_HASH_ROUNDS", "4")
os.environ.setdefault("MARKET_DATA_ONLINE", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from app.api.app import create_api_app
from app.core.config import settings
from app.core.rate_limiter import reset_rate_limiters


API = "/api/v1"
PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Point the app at a fresh SQLite file and forget module-level state."""
    import app.database.connection as db_conn

    monkeypatch.setattr(settings, "database_url_dev", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "environment", "test")
    db_conn._engine = None
    db_conn._session_factory = None
    reset_rate_limiters()

    yield

    db_conn._engine = None
    db_conn._session_factory = None
    reset_rate_limiters()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client; entering it runs the lifespan and therefore the migrations."""
    with TestClient(create_api_app(), raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict]:
    """Register a user and return the auth payload (user, token, refresh_token)."""

    def _register(email: str = "jane@wealthwatch.io", password: str = PASSWORD, **extra) -> dict:
        response = client.post(
            f"{API}/auth/register", json={"email": email, "password": password, **extra}
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register


@pytest.fixture
def auth_headers(register) -> dict[str, str]:
    data = register()
    return {"Authorization": f"Bearer {data['token']}"}


@pytest.fixture
def make_account(client: TestClient, auth_headers) -> Callable[..., dict]:
    def _make(name: str = "Brokerage", headers: dict | None = None, **fields) -> dict:
        response = client.post(
            f"{API}/accounts", json={"name": name, **fields}, headers=headers or auth_headers
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_asset(client: TestClient, auth_headers) -> Callable[..., dict]:
    def _make(symbol: str = "AAPL", **fields) -> dict:
        body = {"symbol": symbol, "name": f"{symbol} Inc.", "asset_type": "STOCK", **fields}
        response = client.post(f"{API}/assets", json=body, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_activity(client: TestClient, auth_headers) -> Callable[..., dict]:
    def _make(
        account_id: str,
        asset_id: str,
        activity_type: str = "BUY",
        quantity: float | None = None,
        unit_price: float | None = None,
        activity_date: str = "2024-01-02T00:00:00Z",
        headers: dict | None = None,
        **fields,
    ) -> dict:
        body = {
            "account_id": account_id,
            "asset_id": asset_id,
            "activity_type": activity_type,
            "activity_date": activity_date,
            "quantity": quantity,
            "unit_price": unit_price,
            "currency": fields.pop("currency", "USD"),
            **fields,
        }
        response = client.post(f"{API}/activities", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_quote(client: TestClient, auth_headers) -> Callable[..., dict]:
    def _make(symbol: str, close_price: float, timestamp: str = "2024-01-03T00:00:00Z", **fields) -> dict:
        body = {"symbol": symbol, "close_price": close_price, "timestamp": timestamp, **fields}
        response = client.post(f"{API}/market-data/quotes", json=body, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
