"""Tests for activity endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


def _body(account_id: str, asset_id: str, **fields) -> dict:
    return {
        "account_id": account_id,
        "asset_id": asset_id,
        "activity_type": "buy",
        "activity_date": "2024-02-01T00:00:00Z",
        "quantity": 5,
        "unit_price": 10,
        "currency": "usd",
        **fields,
    }


class TestCreateActivity:
    """Tests for POST /activities."""

    def test_create(self, client: TestClient, auth_headers, make_account, make_asset):
        account = make_account()
        asset = make_asset()
        response = client.post(
            f"{API}/activities", json=_body(account["id"], asset["id"]), headers=auth_headers
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["activity_type"] == "BUY"
        assert data["currency"] == "USD"
        assert data["quantity"] == 5
        assert data["is_draft"] is False

    def test_unknown_account(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.post(
            f"{API}/activities", json=_body("missing", asset["id"]), headers=auth_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Account not found or does not belong to user"

    def test_other_users_account(self, client: TestClient, register, make_account, make_asset):
        account = make_account()
        asset = make_asset()
        other = register(email="bob@wealthwatch.io")
        response = client.post(
            f"{API}/activities",
            json=_body(account["id"], asset["id"]),
            headers={"Authorization": f"Bearer {other['token']}"},
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_asset(self, client: TestClient, auth_headers, make_account):
        account = make_account()
        response = client.post(
            f"{API}/activities", json=_body(account["id"], "missing"), headers=auth_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Asset not found"

    def test_missing_fields(self, client: TestClient, auth_headers):
        response = client.post(f"{API}/activities", json={}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestListActivities:
    """Tests for GET /activities and lookups."""

    def test_detail_includes_names(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account("Main")
        asset = make_asset("MSFT")
        activity = make_activity(account["id"], asset["id"], quantity=1, unit_price=300)
        response = client.get(f"{API}/activities/{activity['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["account_name"] == "Main"
        assert data["asset_symbol"] == "MSFT"
        assert data["asset_name"] == "MSFT Inc."

    def test_newest_first_and_filters(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        apple = make_asset("AAPL")
        tesla = make_asset("TSLA")
        make_activity(account["id"], apple["id"], quantity=1, unit_price=1,
                      activity_date="2024-01-01T00:00:00Z")
        make_activity(account["id"], tesla["id"], "SELL", quantity=1, unit_price=1,
                      activity_date="2024-03-01T00:00:00Z")

        body = client.get(f"{API}/activities", headers=auth_headers).json()
        assert [a["asset_symbol"] for a in body["data"]] == ["TSLA", "AAPL"]
        assert body["pagination"]["total"] == 2

        sells = client.get(f"{API}/activities?activity_type=sell", headers=auth_headers).json()
        assert [a["asset_symbol"] for a in sells["data"]] == ["TSLA"]

        search = client.get(f"{API}/activities?search=aapl", headers=auth_headers).json()
        assert [a["asset_symbol"] for a in search["data"]] == ["AAPL"]

    def test_types_are_distinct(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        make_activity(account["id"], asset["id"], "BUY", quantity=1, unit_price=1)
        make_activity(account["id"], asset["id"], "BUY", quantity=1, unit_price=1)
        make_activity(account["id"], asset["id"], "DIVIDEND", amount=3)
        response = client.get(f"{API}/activities/types", headers=auth_headers)
        assert response.json()["data"] == ["BUY", "DIVIDEND"]

    def test_unknown_activity(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/activities/missing", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Activity not found"


class TestImportActivities:
    """Tests for POST /activities/import."""

    def test_empty_batch(self, client: TestClient, auth_headers):
        response = client.post(
            f"{API}/activities/import", json={"activities": []}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Activities array is required"

    def test_imports_all(self, client: TestClient, auth_headers, make_account, make_asset):
        account = make_account()
        asset = make_asset()
        rows = [_body(account["id"], asset["id"], quantity=q) for q in (1, 2, 3)]
        response = client.post(
            f"{API}/activities/import", json={"activities": rows}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["data"]
        assert data["imported_count"] == 3
        assert sorted(a["quantity"] for a in data["activities"]) == [1, 2, 3]

    def test_foreign_account_rejects_batch(
        self, client: TestClient, auth_headers, register, make_account, make_asset
    ):
        mine = make_account()
        asset = make_asset()
        other = register(email="bob@wealthwatch.io")
        theirs = make_account(headers={"Authorization": f"Bearer {other['token']}"})
        rows = [_body(mine["id"], asset["id"]), _body(theirs["id"], asset["id"])]
        response = client.post(
            f"{API}/activities/import", json={"activities": rows}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "One or more accounts do not belong to user"

        listed = client.get(f"{API}/activities", headers=auth_headers).json()
        assert listed["data"] == []

    def test_missing_asset_rejects_batch(self, client: TestClient, auth_headers, make_account):
        account = make_account()
        response = client.post(
            f"{API}/activities/import",
            json={"activities": [_body(account["id"], "missing")]},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "One or more assets do not exist"


class TestUpdateDeleteActivity:
    """Tests for PUT and DELETE /activities/{id}."""

    def test_update(self, client: TestClient, auth_headers, make_account, make_asset, make_activity):
        account = make_account()
        asset = make_asset()
        activity = make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        response = client.put(
            f"{API}/activities/{activity['id']}",
            json={"quantity": 4, "comment": "top up"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["quantity"] == 4
        assert data["comment"] == "top up"
        assert data["unit_price"] == 10

    @pytest.mark.parametrize(
        "field", ["account_id", "asset_id", "activity_type", "activity_date", "currency"]
    )
    def test_null_required_field_rejected(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity, field
    ):
        account = make_account()
        asset = make_asset()
        activity = make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        response = client.put(
            f"{API}/activities/{activity['id']}", json={field: None}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

        unchanged = client.get(f"{API}/activities/{activity['id']}", headers=auth_headers)
        assert unchanged.json()["data"][field] is not None

    def test_update_to_foreign_account(
        self, client: TestClient, auth_headers, register, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        activity = make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        other = register(email="bob@wealthwatch.io")
        theirs = make_account(headers={"Authorization": f"Bearer {other['token']}"})
        response = client.put(
            f"{API}/activities/{activity['id']}",
            json={"account_id": theirs["id"]},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete(self, client: TestClient, auth_headers, make_account, make_asset, make_activity):
        account = make_account()
        asset = make_asset()
        activity = make_activity(account["id"], asset["id"], quantity=1, unit_price=10)
        response = client.delete(f"{API}/activities/{activity['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["message"] == "Activity deleted successfully"

        again = client.delete(f"{API}/activities/{activity['id']}", headers=auth_headers)
        assert again.status_code == status.HTTP_404_NOT_FOUND
