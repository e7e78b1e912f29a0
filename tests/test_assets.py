"""Tests for asset endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient


API = "/api/v1"


class TestAssetCrud:
    """Tests for /assets."""

    def test_create_normalizes_codes(self, make_asset):
        asset = make_asset("vwce", currency="eur", data_source="yahoo")
        assert asset["symbol"] == "VWCE"
        assert asset["currency"] == "EUR"
        assert asset["data_source"] == "YAHOO"

    def test_defaults(self, make_asset):
        asset = make_asset("BTC")
        assert asset["currency"] == "USD"
        assert asset["data_source"] == "MANUAL"

    def test_duplicate_symbol_and_source(self, client: TestClient, auth_headers, make_asset):
        make_asset("AAPL")
        response = client.post(f"{API}/assets", json={"symbol": "aapl"}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ASSET_EXISTS"

    def test_same_symbol_other_source_allowed(self, make_asset):
        make_asset("AAPL")
        other = make_asset("AAPL", data_source="YAHOO")
        assert other["data_source"] == "YAHOO"

    def test_list_filters(self, client: TestClient, auth_headers, make_asset):
        make_asset("AAPL")
        make_asset("SPY", asset_type="ETF")
        body = client.get(f"{API}/assets?asset_type=ETF", headers=auth_headers).json()
        assert [a["symbol"] for a in body["data"]] == ["SPY"]
        assert body["pagination"]["total"] == 1

    def test_get_unknown(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/assets/missing", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "Asset not found"

    def test_update(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.put(
            f"{API}/assets/{asset['id']}",
            json={"name": "Apple", "sectors": [{"name": "Technology", "weight": 1}]},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["name"] == "Apple"
        assert data["sectors"] == [{"name": "Technology", "weight": 1}]
        assert data["symbol"] == "AAPL"

    def test_null_data_source_rejected(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.put(
            f"{API}/assets/{asset['id']}", json={"data_source": None}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_data_source_normalized_on_update(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.put(
            f"{API}/assets/{asset['id']}", json={"data_source": " yahoo "}, headers=auth_headers
        )
        assert response.json()["data"]["data_source"] == "YAHOO"


class TestAssetLookups:
    """Search, types and data sources."""

    def test_search_requires_query(self, client: TestClient, auth_headers):
        response = client.get(f"{API}/assets/search", headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Search query is required"

    def test_search_matches_name(self, client: TestClient, auth_headers, make_asset):
        make_asset("AAPL", name="Apple Inc.")
        make_asset("MSFT", name="Microsoft")
        response = client.get(f"{API}/assets/search?q=apple", headers=auth_headers)
        assert [a["symbol"] for a in response.json()["data"]] == ["AAPL"]

    def test_types(self, client: TestClient, auth_headers, make_asset):
        make_asset("AAPL")
        make_asset("SPY", asset_type="ETF")
        make_asset("QQQ", asset_type="ETF")
        response = client.get(f"{API}/assets/types", headers=auth_headers)
        assert response.json()["data"] == ["ETF", "STOCK"]

    def test_data_sources(self, client: TestClient, auth_headers, make_asset):
        make_asset("AAPL")
        make_asset("MSFT", data_source="YAHOO")
        response = client.get(f"{API}/assets/data-sources", headers=auth_headers)
        assert response.json()["data"] == ["MANUAL", "YAHOO"]


class TestAssetDataSource:
    """Tests for PUT /assets/{id}/data-source."""

    def test_requires_value(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.put(
            f"{API}/assets/{asset['id']}/data-source", json={}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Data source is required"

    def test_updates(self, client: TestClient, auth_headers, make_asset):
        asset = make_asset()
        response = client.put(
            f"{API}/assets/{asset['id']}/data-source",
            json={"data_source": "yahoo"},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["data_source"] == "YAHOO"

    def test_unknown_asset(self, client: TestClient, auth_headers):
        response = client.put(
            f"{API}/assets/missing/data-source", json={"data_source": "YAHOO"}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAssetHistoryAndActivities:
    """Quote history and per-asset activities."""

    def test_history_newest_first(self, client: TestClient, auth_headers, make_asset, make_quote):
        asset = make_asset()
        make_quote("AAPL", 100, timestamp="2024-01-01T00:00:00Z")
        make_quote("AAPL", 110, timestamp="2024-01-05T00:00:00Z")
        make_quote("MSFT", 300, timestamp="2024-01-05T00:00:00Z")
        response = client.get(f"{API}/assets/{asset['id']}/history", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert [q["close_price"] for q in response.json()["data"]] == [110, 100]

    def test_history_date_window(self, client: TestClient, auth_headers, make_asset, make_quote):
        asset = make_asset()
        make_quote("AAPL", 100, timestamp="2024-01-01T00:00:00Z")
        make_quote("AAPL", 110, timestamp="2024-01-05T00:00:00Z")
        response = client.get(
            f"{API}/assets/{asset['id']}/history?start_date=2024-01-03", headers=auth_headers
        )
        assert [q["close_price"] for q in response.json()["data"]] == [110]

    def test_activities_scoped_to_user(
        self, client: TestClient, auth_headers, register, make_account, make_asset, make_activity
    ):
        account = make_account()
        asset = make_asset()
        make_activity(account["id"], asset["id"], quantity=2, unit_price=5)

        other = register(email="bob@wealthwatch.io")
        other_headers = {"Authorization": f"Bearer {other['token']}"}
        other_account = make_account(headers=other_headers)
        make_activity(other_account["id"], asset["id"], quantity=9, unit_price=5, headers=other_headers)

        response = client.get(f"{API}/assets/{asset['id']}/activities", headers=auth_headers)
        assert [a["quantity"] for a in response.json()["data"]] == [2]
