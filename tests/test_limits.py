"""Tests for contribution limit endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


@pytest.fixture
def make_limit(client: TestClient, auth_headers):
    def _make(group_name: str = "ISA", contribution_year: int = 2024, limit_amount: float = 1000, **fields) -> dict:
        response = client.post(
            f"{API}/limits",
            json={
                "group_name": group_name,
                "contribution_year": contribution_year,
                "limit_amount": limit_amount,
                **fields,
            },
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def isa_account(make_account, make_asset, make_activity) -> dict:
    """An ISA account with deposits in 2023, 2024 and a non-deposit in 2024."""
    account = make_account("ISA Main", group_name="ISA")
    cash = make_asset("CASH", asset_type="CASH")
    make_activity(account["id"], cash["id"], "DEPOSIT", amount=100,
                  activity_date="2023-12-31T10:00:00Z")
    make_activity(account["id"], cash["id"], "DEPOSIT", amount=300,
                  activity_date="2024-03-01T00:00:00Z")
    make_activity(account["id"], cash["id"], "CONTRIBUTION", amount=200,
                  activity_date="2024-12-31T23:00:00Z")
    make_activity(account["id"], cash["id"], "WITHDRAWAL", amount=50,
                  activity_date="2024-05-01T00:00:00Z")
    return account


class TestLimitCrud:
    """Tests for /limits."""

    def test_create(self, make_limit):
        limit = make_limit()
        assert limit["group_name"] == "ISA"
        assert limit["account_ids"] == []

    def test_duplicate_group_year(self, client: TestClient, auth_headers, make_limit):
        make_limit()
        response = client.post(
            f"{API}/limits",
            json={"group_name": "ISA", "contribution_year": 2024, "limit_amount": 5},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Contribution limit already exists for this group and year"

    def test_non_positive_amount(self, client: TestClient, auth_headers):
        response = client.post(
            f"{API}/limits",
            json={"group_name": "ISA", "contribution_year": 2024, "limit_amount": 0},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_list_ordered_by_year(self, client: TestClient, auth_headers, make_limit):
        make_limit(contribution_year=2025)
        make_limit(contribution_year=2024)
        data = client.get(f"{API}/limits", headers=auth_headers).json()["data"]
        assert [l["contribution_year"] for l in data] == [2024, 2025]

    def test_update_and_delete(self, client: TestClient, auth_headers, make_limit):
        limit = make_limit()
        url = f"{API}/limits/{limit['id']}"
        updated = client.put(url, json={"limit_amount": 2000}, headers=auth_headers)
        assert updated.json()["data"]["limit_amount"] == 2000

        empty = client.put(url, json={}, headers=auth_headers)
        assert empty.status_code == status.HTTP_400_BAD_REQUEST

        for field in ("group_name", "contribution_year", "limit_amount"):
            nulled = client.put(url, json={field: None}, headers=auth_headers)
            assert nulled.status_code == status.HTTP_400_BAD_REQUEST
            assert nulled.json()["code"] == "VALIDATION_ERROR"

        deleted = client.delete(url, headers=auth_headers)
        assert deleted.json()["data"]["message"] == "Contribution limit deleted successfully"
        missing = client.get(url, headers=auth_headers)
        assert missing.status_code == status.HTTP_404_NOT_FOUND
        assert missing.json()["error"] == "Contribution limit not found"


class TestGroups:
    def test_groups_and_accounts(self, client: TestClient, auth_headers, make_account):
        make_account("ISA Main", group_name="ISA")
        make_account("Pension", group_name="SIPP")
        make_account("Loose")
        groups = client.get(f"{API}/limits/groups", headers=auth_headers).json()["data"]
        assert groups == ["ISA", "SIPP"]

        accounts = client.get(f"{API}/limits/groups/ISA/accounts", headers=auth_headers).json()["data"]
        assert [a["name"] for a in accounts] == ["ISA Main"]


class TestDeposits:
    """Deposits count within the contribution year or explicit window."""

    def test_calendar_year_deposits(self, client: TestClient, auth_headers, make_limit, isa_account):
        limit = make_limit(account_ids=[isa_account["id"]])
        response = client.get(f"{API}/limits/{limit['id']}/deposits", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert [d["amount"] for d in data["deposits"]] == [200, 300]
        assert data["total_deposits"] == 500
        assert data["remaining_limit"] == 500

    def test_explicit_window(self, client: TestClient, auth_headers, make_limit, isa_account):
        limit = make_limit(
            account_ids=[isa_account["id"]],
            start_date="2023-12-01T00:00:00Z",
            end_date="2024-06-30T00:00:00Z",
        )
        data = client.get(f"{API}/limits/{limit['id']}/deposits", headers=auth_headers).json()["data"]
        assert data["total_deposits"] == 400

    def test_no_accounts_no_deposits(self, client: TestClient, auth_headers, make_limit, isa_account):
        limit = make_limit()
        data = client.get(f"{API}/limits/{limit['id']}/deposits", headers=auth_headers).json()["data"]
        assert data["deposits"] == []
        assert data["total_deposits"] == 0

    def test_summary(self, client: TestClient, auth_headers, make_limit, isa_account):
        make_limit(account_ids=[isa_account["id"]], limit_amount=400)
        make_limit(group_name="SIPP", contribution_year=2023, limit_amount=1000,
                   account_ids=[isa_account["id"]])

        summary = client.get(f"{API}/limits/summary", headers=auth_headers).json()["data"]
        by_group = {item["group_name"]: item for item in summary}
        assert by_group["ISA"]["total_deposits"] == 500
        assert by_group["ISA"]["remaining_limit"] == 0
        assert by_group["ISA"]["utilization_percent"] == 125
        assert by_group["SIPP"]["total_deposits"] == 100

        only_2023 = client.get(f"{API}/limits/summary?year=2023", headers=auth_headers).json()["data"]
        assert [item["group_name"] for item in only_2023] == ["SIPP"]
