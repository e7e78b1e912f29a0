"""Tests for account and platform endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


class TestAccountCrud:
    """Tests for /accounts."""

    def test_requires_auth(self, client: TestClient):
        response = client.get(f"{API}/accounts")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_with_defaults(self, make_account):
        account = make_account("Brokerage", currency="eur")
        assert account["currency"] == "EUR"
        assert account["account_type"] == "SECURITIES"
        assert account["is_active"] is True
        assert account["is_default"] is False

    def test_list_is_paginated(self, client: TestClient, auth_headers, make_account):
        for i in range(3):
            make_account(f"Account {i}")
        response = client.get(f"{API}/accounts?page=2&per_page=2", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {"page": 2, "per_page": 2, "total": 3, "total_pages": 2}

    def test_per_page_above_limit_rejected(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/accounts?per_page=101", headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_get_unknown_account(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/accounts/missing", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Account not found"

    def test_accounts_are_private(self, client: TestClient, register, make_account):
        account = make_account()
        other = register(email="bob@wealthwatch.io")
        response = client.get(
            f"{API}/accounts/{account['id']}",
            headers={"Authorization": f"Bearer {other['token']}"},
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update(self, client: TestClient, auth_headers, make_account):
        account = make_account()
        response = client.put(
            f"{API}/accounts/{account['id']}",
            json={"name": "Renamed", "group_name": "Retirement"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["name"] == "Renamed"
        assert response.json()["data"]["group_name"] == "Retirement"

    @pytest.mark.parametrize("field", ["name", "currency", "account_type", "is_default", "is_active"])
    def test_null_required_field_rejected(self, client: TestClient, auth_headers, make_account, field):
        account = make_account()
        response = client.put(
            f"{API}/accounts/{account['id']}", json={field: None}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert field in body["details"]["fields"]

    def test_null_optional_field_clears_it(self, client: TestClient, auth_headers, make_account):
        account = make_account(group_name="ISA")
        response = client.put(
            f"{API}/accounts/{account['id']}", json={"group_name": None}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["group_name"] is None

    def test_unknown_platform_rejected(self, client: TestClient, auth_headers):
        response = client.post(
            f"{API}/accounts", json={"name": "X", "platform_id": "nope"}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Platform not found"


class TestDefaultAccount:
    """Exactly one default account per user."""

    def _defaults(self, client, headers):
        accounts = client.get(f"{API}/accounts", headers=headers).json()["data"]
        return [a["id"] for a in accounts if a["is_default"]]

    def test_new_default_replaces_old(self, client: TestClient, auth_headers, make_account):
        make_account("First", is_default=True)
        second = make_account("Second", is_default=True)
        assert self._defaults(client, auth_headers) == [second["id"]]

    def test_update_to_default_replaces_old(self, client: TestClient, auth_headers, make_account):
        first = make_account("First", is_default=True)
        second = make_account("Second")
        client.put(f"{API}/accounts/{second['id']}", json={"is_default": True}, headers=auth_headers)
        assert self._defaults(client, auth_headers) == [second["id"]]
        assert first["id"] not in self._defaults(client, auth_headers)


class TestAccountDelete:
    """Tests for DELETE /accounts/{id}."""

    def test_delete_empty_account(self, client: TestClient, auth_headers, make_account):
        account = make_account()
        response = client.delete(f"{API}/accounts/{account['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["message"] == "Account deleted successfully"
        assert client.get(f"{API}/accounts/{account['id']}", headers=auth_headers).status_code == 404

    def test_delete_with_activities_rejected(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        response = client.delete(f"{API}/accounts/{account['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ACCOUNT_HAS_ACTIVITIES"

    def test_delete_unknown(self, client: TestClient, auth_headers):
        response = client.delete(f"{API}/accounts/missing", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAccountSummary:
    """Tests for GET /accounts/summary."""

    def test_counts_activities(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        make_account("Closed", is_active=False)
        asset = make_asset()
        make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        make_activity(
            account["id"], asset["id"], quantity=1, unit_price=12,
            activity_date="2024-02-01T00:00:00Z",
        )

        summary = client.get(f"{API}/accounts/summary", headers=auth_headers).json()["data"]
        assert len(summary) == 1
        assert summary[0]["activity_count"] == 2
        assert summary[0]["last_activity_date"].startswith("2024-02-01")


class TestPlatforms:
    """Tests for /platforms."""

    def test_create_list_delete(self, client: TestClient, auth_headers):
        created = client.post(
            f"{API}/platforms", json={"name": "Broker", "url": "https://broker.example"},
            headers=auth_headers,
        )
        assert created.status_code == status.HTTP_201_CREATED
        platform_id = created.json()["data"]["id"]

        listed = client.get(f"{API}/platforms", headers=auth_headers).json()["data"]
        assert [p["id"] for p in listed] == [platform_id]

        deleted = client.delete(f"{API}/platforms/{platform_id}", headers=auth_headers)
        assert deleted.status_code == status.HTTP_200_OK
        assert client.delete(f"{API}/platforms/{platform_id}", headers=auth_headers).status_code == 404

    def test_account_keeps_existing_without_platform(
        self, client: TestClient, auth_headers, make_account
    ):
        platform = client.post(f"{API}/platforms", json={"name": "Broker"}, headers=auth_headers)
        platform_id = platform.json()["data"]["id"]
        account = make_account(platform_id=platform_id)
        client.delete(f"{API}/platforms/{platform_id}", headers=auth_headers)

        response = client.get(f"{API}/accounts/{account['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["platform_id"] is None

    def test_platforms_are_private(self, client: TestClient, auth_headers, register, make_account):
        platform = client.post(f"{API}/platforms", json={"name": "Broker"}, headers=auth_headers)
        platform_id = platform.json()["data"]["id"]
        account = make_account(platform_id=platform_id)

        other = register(email="bob@wealthwatch.io")
        other_headers = {"Authorization": f"Bearer {other['token']}"}

        assert client.get(f"{API}/platforms", headers=other_headers).json()["data"] == []
        response = client.delete(f"{API}/platforms/{platform_id}", headers=other_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Platform not found"

        borrowed = client.post(
            f"{API}/accounts",
            json={"name": "Sneaky", "platform_id": platform_id},
            headers=other_headers,
        )
        assert borrowed.status_code == status.HTTP_404_NOT_FOUND

        mine = client.get(f"{API}/accounts/{account['id']}", headers=auth_headers).json()["data"]
        assert mine["platform_id"] == platform_id
