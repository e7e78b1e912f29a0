"""Tests for portfolio endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


@pytest.fixture
def position(make_account, make_asset, make_activity, make_quote) -> dict:
    """BUY 10 @ 100, SELL 3, last close 120."""
    account = make_account("Brokerage")
    asset = make_asset("AAPL")
    make_activity(account["id"], asset["id"], "BUY", quantity=10, unit_price=100)
    make_activity(account["id"], asset["id"], "SELL", quantity=3, unit_price=110,
                  activity_date="2024-01-03T00:00:00Z")
    make_quote("AAPL", 115, timestamp="2024-01-02T00:00:00Z")
    make_quote("AAPL", 120, timestamp="2024-01-04T00:00:00Z")
    return {"account": account, "asset": asset}


class TestHoldings:
    """Tests for /portfolio/holdings."""

    def test_position_math(self, client: TestClient, auth_headers, position):
        response = client.get(f"{API}/portfolio/holdings", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        (account,) = response.json()["data"]
        assert account["account_name"] == "Brokerage"
        (holding,) = account["holdings"]
        assert holding["symbol"] == "AAPL"
        assert holding["quantity"] == 7
        assert holding["cost_basis"] == 1000
        assert holding["avg_price"] == 100
        assert holding["close_price"] == 120
        assert holding["market_value"] == 840
        assert holding["unrealized_gain"] == -160
        assert holding["unrealized_gain_percent"] == pytest.approx(-16.0)

    def test_closed_positions_hidden(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        make_activity(account["id"], asset["id"], "BUY", quantity=2, unit_price=10)
        make_activity(account["id"], asset["id"], "SELL", quantity=2, unit_price=12)
        response = client.get(f"{API}/portfolio/holdings/{account['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == []

    def test_account_holdings_unknown(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/portfolio/holdings/missing", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Account not found"

    def test_inactive_accounts_excluded(self, client: TestClient, auth_headers, position):
        account_id = position["account"]["id"]
        client.put(f"{API}/accounts/{account_id}", json={"is_active": False}, headers=auth_headers)
        response = client.get(f"{API}/portfolio/holdings", headers=auth_headers)
        assert response.json()["data"] == []


class TestSummary:
    """Tests for /portfolio/summary."""

    def test_in_base_currency(self, client: TestClient, auth_headers, position):
        response = client.get(f"{API}/portfolio/summary", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {
            "total_value": 840,
            "total_cost": 1000,
            "total_gain": -160,
            "total_gain_percent": pytest.approx(-16.0),
            "currency": "USD",
        }

    def test_converts_to_base_currency(self, client: TestClient, auth_headers, position):
        response = client.put(
            f"{API}/settings", json={"base_currency": "EUR"}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_200_OK

        data = client.get(f"{API}/portfolio/summary", headers=auth_headers).json()["data"]
        assert data["currency"] == "EUR"
        assert data["total_value"] == pytest.approx(840 * 0.85)
        assert data["total_cost"] == pytest.approx(1000 * 0.85)
        assert data["total_gain_percent"] == pytest.approx(-16.0)

    def test_empty_portfolio(self, client: TestClient, auth_headers):
        data = client.get(f"{API}/portfolio/summary", headers=auth_headers).json()["data"]
        assert data["total_value"] == 0
        assert data["total_gain_percent"] == 0


class TestIncome:
    def test_lists_income_only(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        make_activity(account["id"], asset["id"], "BUY", quantity=1, unit_price=10)
        make_activity(account["id"], asset["id"], "DIVIDEND", amount=2.5,
                      activity_date="2024-06-01T00:00:00Z")
        response = client.get(f"{API}/portfolio/income", headers=auth_headers)
        (income,) = response.json()["data"]
        assert income["activity_type"] == "DIVIDEND"
        assert income["amount"] == 2.5
        assert income["symbol"] == "AAPL"


class TestRecalculate:
    """Tests for POST /portfolio/recalculate and the stored history."""

    def test_no_accounts(self, client: TestClient, auth_headers):
        response = client.post(f"{API}/portfolio/recalculate", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "No accounts found"

    def test_recalculate_persists_history(self, client: TestClient, auth_headers, position):
        response = client.post(f"{API}/portfolio/recalculate", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        (result,) = response.json()["data"]
        assert result["total_market_value"] == 840
        assert result["total_cost_basis"] == 1000
        assert result["fx_rate_to_base"] == 1

        valuations = client.get(f"{API}/portfolio/valuations", headers=auth_headers).json()["data"]
        (valuation,) = valuations
        assert valuation["total_value"] == 840
        assert valuation["cash_balance"] == 0
        assert valuation["net_contribution"] == 1000

        snapshots = client.get(f"{API}/portfolio/snapshots", headers=auth_headers).json()["data"]
        (snapshot,) = snapshots
        entry = snapshot["positions"][position["asset"]["id"]]
        assert entry["symbol"] == "AAPL"
        assert entry["quantity"] == 7

        performance = client.get(f"{API}/portfolio/performance", headers=auth_headers).json()["data"]
        assert performance[0]["total_gain"] == -160

    def test_same_day_rerun_replaces(self, client: TestClient, auth_headers, position, make_quote):
        client.post(f"{API}/portfolio/recalculate", headers=auth_headers)
        make_quote("AAPL", 200, timestamp="2024-01-05T00:00:00Z")
        client.post(f"{API}/portfolio/recalculate", json={}, headers=auth_headers)

        valuations = client.get(f"{API}/portfolio/valuations", headers=auth_headers).json()["data"]
        assert [v["total_value"] for v in valuations] == [1400]

    def test_single_account(self, client: TestClient, auth_headers, position, make_account):
        make_account("Savings")
        response = client.post(
            f"{API}/portfolio/recalculate",
            json={"account_id": position["account"]["id"]},
            headers=auth_headers,
        )
        assert [r["account_name"] for r in response.json()["data"]] == ["Brokerage"]

    def test_snapshot_keeps_same_symbol_assets_apart(
        self, client: TestClient, auth_headers, make_account, make_asset, make_activity, make_quote
    ):
        account = make_account("Brokerage")
        manual = make_asset("SHOP")
        listed = make_asset("SHOP", data_source="YAHOO")
        make_activity(account["id"], manual["id"], "BUY", quantity=4, unit_price=50)
        make_activity(account["id"], listed["id"], "BUY", quantity=6, unit_price=50)
        make_quote("SHOP", 60)

        client.post(f"{API}/portfolio/recalculate", headers=auth_headers)

        (snapshot,) = client.get(f"{API}/portfolio/snapshots", headers=auth_headers).json()["data"]
        positions = snapshot["positions"]
        assert set(positions) == {manual["id"], listed["id"]}
        assert positions[manual["id"]]["quantity"] == 4
        assert positions[manual["id"]]["data_source"] == "MANUAL"
        assert positions[listed["id"]]["quantity"] == 6
        assert positions[listed["id"]]["data_source"] == "YAHOO"
