"""Tests for authentication API endpoints."""

from __future__ import annotations

from datetime import timedelta

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import update

from app.core.security import create_access_token
from app.database.connection import get_session
from app.database.orm import User, UserSession


API = "/api/v1"
PASSWORD = "correct-horse-battery"


def _run(client: TestClient, statement) -> None:
    """Execute a statement on the app's database from the test thread."""

    async def _execute():
        async with get_session() as session:
            await session.execute(statement)
            await session.commit()

    client.portal.call(_execute)


class TestRegister:
    """Tests for POST /auth/register."""

    def test_register_returns_user_and_tokens(self, client: TestClient):
        response = client.post(
            f"{API}/auth/register",
            json={"email": "Jane@WealthWatch.io", "password": PASSWORD, "display_name": "Jane"},
        )
        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["success"] is True
        assert body["data"]["user"]["email"] == "jane@wealthwatch.io"
        assert body["data"]["user"]["display_name"] == "Jane"
        assert body["data"]["token"]
        assert body["data"]["refresh_token"]
        assert "password_hash" not in body["data"]["user"]

    def test_register_creates_default_settings(self, client: TestClient, register):
        data = register()
        response = client.get(
            f"{API}/settings", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert response.json()["data"]["base_currency"] == "USD"

    def test_duplicate_email_rejected(self, client: TestClient, register):
        register()
        response = client.post(
            f"{API}/auth/register", json={"email": "jane@wealthwatch.io", "password": PASSWORD}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "User already exists with this email"
        assert response.json()["code"] == "USER_EXISTS"

    def test_short_password_is_a_validation_error(self, client: TestClient):
        response = client.post(
            f"{API}/auth/register", json={"email": "jane@wealthwatch.io", "password": "short"}
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert "password" in response.json()["details"]["fields"]

    def test_invalid_email_rejected(self, client: TestClient):
        response = client.post(f"{API}/auth/register", json={"email": "nope", "password": PASSWORD})
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestLogin:
    """Tests for POST /auth/login."""

    def test_login_with_valid_credentials(self, client: TestClient, register):
        register()
        response = client.post(
            f"{API}/auth/login", json={"email": "jane@wealthwatch.io", "password": PASSWORD}
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["token"] and data["refresh_token"]

    def test_wrong_password_rejected(self, client: TestClient, register):
        register()
        response = client.post(
            f"{API}/auth/login", json={"email": "jane@wealthwatch.io", "password": "wrong-password"}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Invalid credentials"

    def test_unknown_email_rejected(self, client: TestClient):
        response = client.post(
            f"{API}/auth/login", json={"email": "ghost@wealthwatch.io", "password": PASSWORD}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_inactive_user_rejected(self, client: TestClient, register):
        register()
        _run(client, update(User).where(User.email == "jane@wealthwatch.io").values(is_active=False))
        response = client.post(
            f"{API}/auth/login", json={"email": "jane@wealthwatch.io", "password": PASSWORD}
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "ACCOUNT_INACTIVE"


class TestRefresh:
    """Tests for POST /auth/refresh."""

    def test_refresh_issues_new_access_token(self, client: TestClient, register):
        data = register()
        response = client.post(f"{API}/auth/refresh", json={"refresh_token": data["refresh_token"]})
        assert response.status_code == status.HTTP_200_OK
        token = response.json()["data"]["token"]
        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == status.HTTP_200_OK

    def test_missing_token(self, client: TestClient):
        response = client.post(f"{API}/auth/refresh", json={})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Refresh token is required"

    def test_access_token_is_not_a_refresh_token(self, client: TestClient, register):
        data = register()
        response = client.post(f"{API}/auth/refresh", json={"refresh_token": data["token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "INVALID_REFRESH_TOKEN"

    def test_token_without_session_rejected(self, client: TestClient, register):
        data = register()
        headers = {"Authorization": f"Bearer {data['token']}"}
        client.post(f"{API}/auth/logout", headers=headers)
        response = client.post(f"{API}/auth/refresh", json={"refresh_token": data["refresh_token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_expired_session_rejected(self, client: TestClient, register):
        from datetime import datetime, timezone

        data = register()
        _run(
            client,
            update(UserSession).values(expires_at=datetime.now(timezone.utc) - timedelta(days=1)),
        )
        response = client.post(f"{API}/auth/refresh", json={"refresh_token": data["refresh_token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestLogout:
    """Tests for POST /auth/logout."""

    def test_logout_requires_auth(self, client: TestClient):
        response = client.post(f"{API}/auth/logout")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "AUTH_HEADER_MISSING"

    def test_logout_single_session_keeps_the_other(self, client: TestClient, register):
        first = register()
        second = client.post(
            f"{API}/auth/login", json={"email": "jane@wealthwatch.io", "password": PASSWORD}
        ).json()["data"]
        headers = {"Authorization": f"Bearer {first['token']}"}

        response = client.post(
            f"{API}/auth/logout", json={"refresh_token": first["refresh_token"]}, headers=headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["message"] == "Logged out successfully"

        assert client.post(
            f"{API}/auth/refresh", json={"refresh_token": first["refresh_token"]}
        ).status_code == status.HTTP_401_UNAUTHORIZED
        assert client.post(
            f"{API}/auth/refresh", json={"refresh_token": second["refresh_token"]}
        ).status_code == status.HTTP_200_OK


class TestMe:
    """Tests for GET /auth/me and the bearer token checks."""

    def test_me_returns_user(self, client: TestClient, register):
        data = register()
        response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["email"] == "jane@wealthwatch.io"

    def test_wrong_scheme(self, client: TestClient):
        response = client.get(f"{API}/auth/me", headers={"Authorization": "Token abc"})
        assert response.json()["code"] == "INVALID_AUTH_FORMAT"

    def test_empty_bearer(self, client: TestClient):
        response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer "})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] in ("TOKEN_MISSING", "INVALID_AUTH_FORMAT")

    def test_invalid_token(self, client: TestClient):
        response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer invalid_token"})
        assert response.json()["code"] == "INVALID_TOKEN"

    def test_expired_token(self, client: TestClient, register):
        data = register()
        token = create_access_token(
            data["user"]["id"], data["user"]["email"], expires_delta=timedelta(seconds=-1)
        )
        response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_unknown_user(self, client: TestClient):
        token = create_access_token("no-such-user", "ghost@wealthwatch.io")
        response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_inactive_user(self, client: TestClient, register):
        data = register()
        _run(client, update(User).values(is_active=False))
        response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert response.json()["code"] == "USER_INACTIVE"
