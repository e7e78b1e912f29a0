"""Tests for goal endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


@pytest.fixture
def make_goal(client: TestClient, auth_headers):
    def _make(title: str = "House", target_amount: float = 1000, **fields) -> dict:
        response = client.post(
            f"{API}/goals",
            json={"title": title, "target_amount": target_amount, **fields},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def funded_account(make_account, make_asset, make_activity, make_quote) -> dict:
    """An account holding 5 AAPL at a last close of 100 (market value 500)."""
    account = make_account("Brokerage")
    asset = make_asset("AAPL")
    make_activity(account["id"], asset["id"], quantity=5, unit_price=80)
    make_quote("AAPL", 100)
    return account


class TestGoalCrud:
    """Tests for /goals."""

    def test_create_and_get(self, client: TestClient, auth_headers, make_goal):
        goal = make_goal(description="Deposit")
        assert goal["is_achieved"] is False
        response = client.get(f"{API}/goals/{goal['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["allocations"] == []

    def test_create_requires_title(self, client: TestClient, auth_headers):
        response = client.post(f"{API}/goals", json={"target_amount": 10}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_negative_target_rejected(self, client: TestClient, auth_headers):
        response = client.post(
            f"{API}/goals", json={"title": "X", "target_amount": -1}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_has_total_allocation(self, client: TestClient, auth_headers, make_goal):
        make_goal()
        (goal,) = client.get(f"{API}/goals", headers=auth_headers).json()["data"]
        assert goal["total_allocation"] == 0

    def test_update(self, client: TestClient, auth_headers, make_goal):
        goal = make_goal()
        response = client.put(
            f"{API}/goals/{goal['id']}", json={"is_achieved": True}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["is_achieved"] is True
        assert response.json()["data"]["title"] == "House"

    def test_empty_update_rejected(self, client: TestClient, auth_headers, make_goal):
        goal = make_goal()
        response = client.put(f"{API}/goals/{goal['id']}", json={}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "No valid fields provided for update"

    @pytest.mark.parametrize("field", ["title", "target_amount", "is_achieved"])
    def test_null_required_field_rejected(self, client: TestClient, auth_headers, make_goal, field):
        goal = make_goal()
        response = client.put(f"{API}/goals/{goal['id']}", json={field: None}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_delete(self, client: TestClient, auth_headers, make_goal):
        goal = make_goal()
        response = client.delete(f"{API}/goals/{goal['id']}", headers=auth_headers)
        assert response.json()["data"]["message"] == "Goal deleted successfully"
        missing = client.get(f"{API}/goals/{goal['id']}", headers=auth_headers)
        assert missing.status_code == status.HTTP_404_NOT_FOUND
        assert missing.json()["error"] == "Goal not found"

    def test_goals_are_private(self, client: TestClient, register, make_goal):
        goal = make_goal()
        other = register(email="bob@wealthwatch.io")
        response = client.get(
            f"{API}/goals/{goal['id']}", headers={"Authorization": f"Bearer {other['token']}"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAllocations:
    """Tests for PUT /goals/{id}/allocations."""

    def test_over_100_percent(self, client: TestClient, auth_headers, make_goal, make_account):
        goal = make_goal()
        first = make_account("A")
        second = make_account("B")
        response = client.put(
            f"{API}/goals/{goal['id']}/allocations",
            json={
                "allocations": [
                    {"account_id": first["id"], "percent_allocation": 60},
                    {"account_id": second["id"], "percent_allocation": 50},
                ]
            },
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["error"] == "Total allocation cannot exceed 100%"
        assert body["details"] == {"total_allocation": 110}

    def test_foreign_account(self, client: TestClient, auth_headers, register, make_goal, make_account):
        goal = make_goal()
        other = register(email="bob@wealthwatch.io")
        theirs = make_account(headers={"Authorization": f"Bearer {other['token']}"})
        response = client.put(
            f"{API}/goals/{goal['id']}/allocations",
            json={"allocations": [{"account_id": theirs["id"], "percent_allocation": 10}]},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_replaces_existing(self, client: TestClient, auth_headers, make_goal, make_account):
        goal = make_goal()
        first = make_account("A")
        second = make_account("B")
        url = f"{API}/goals/{goal['id']}/allocations"
        client.put(
            url,
            json={"allocations": [{"account_id": first["id"], "percent_allocation": 40}]},
            headers=auth_headers,
        )
        response = client.put(
            url,
            json={"allocations": [{"account_id": second["id"], "percent_allocation": 70}]},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        (allocation,) = response.json()["data"]
        assert allocation["account_id"] == second["id"]
        assert allocation["account_name"] == "B"

        (listed,) = client.get(f"{API}/goals", headers=auth_headers).json()["data"]
        assert listed["total_allocation"] == 70


class TestProgress:
    """Progress and summary derive from allocated account market values."""

    def _allocate(self, client, headers, goal_id, account_id, percent):
        response = client.put(
            f"{API}/goals/{goal_id}/allocations",
            json={"allocations": [{"account_id": account_id, "percent_allocation": percent}]},
            headers=headers,
        )
        assert response.status_code == status.HTTP_200_OK

    def test_progress(self, client: TestClient, auth_headers, make_goal, funded_account):
        goal = make_goal(target_amount=2000)
        self._allocate(client, auth_headers, goal["id"], funded_account["id"], 50)

        response = client.get(f"{API}/goals/{goal['id']}/progress", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        (entry,) = data["progress_data"]
        assert entry["allocated_amount"] == 1000
        assert entry["current_value"] == 500
        assert entry["progress_percent"] == 50
        assert data["total_current_value"] == 500
        assert data["overall_progress_percent"] == 25

    def test_progress_without_allocations(self, client: TestClient, auth_headers, make_goal):
        goal = make_goal()
        data = client.get(f"{API}/goals/{goal['id']}/progress", headers=auth_headers).json()["data"]
        assert data["progress_data"] == []
        assert data["overall_progress_percent"] == 0

    def test_summary(self, client: TestClient, auth_headers, make_goal, funded_account):
        funded = make_goal("Car", target_amount=1000)
        make_goal("Boat", target_amount=0)
        self._allocate(client, auth_headers, funded["id"], funded_account["id"], 100)

        summary = client.get(f"{API}/goals/summary", headers=auth_headers).json()["data"]
        by_title = {item["title"]: item for item in summary}
        assert by_title["Car"]["current_value"] == 500
        assert by_title["Car"]["progress_percent"] == 50
        assert by_title["Boat"]["progress_percent"] == 0
