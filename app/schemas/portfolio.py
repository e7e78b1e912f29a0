"""Portfolio schemas."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.common import UtcDatetime


class PortfolioSummaryResponse(BaseModel):
    """Totals over open positions in the user's base currency."""

    total_value: float
    total_cost: float
    total_gain: float
    total_gain_percent: float
    currency: str


class HoldingResponse(BaseModel):
    """One open position."""

    id: str = Field(..., description="Asset id")
    account_id: str
    symbol: str
    asset_name: str | None = None
    asset_type: str | None = None
    asset_class: str | None = None
    asset_currency: str | None = None
    sectors: Any = None
    countries: Any = None
    quantity: float
    cost_basis: float
    avg_price: float | None = None
    close_price: float | None = None
    market_value: float
    unrealized_gain: float
    unrealized_gain_percent: float


class AccountHoldingsResponse(BaseModel):
    account_id: str
    account_name: str
    account_currency: str
    holdings: List[HoldingResponse]


class PerformancePoint(BaseModel):
    account_id: str
    account_name: str | None = None
    valuation_date: date
    total_value: float
    cost_basis: float
    net_contribution: float
    total_gain: float
    total_gain_percent: float


class IncomeResponse(BaseModel):
    id: str
    account_id: str
    activity_type: str
    activity_date: UtcDatetime
    amount: float | None = None
    currency: str
    account_name: str | None = None
    symbol: str | None = None
    asset_name: str | None = None


class ValuationResponse(BaseModel):
    """A stored daily account valuation."""

    id: str
    account_id: str
    account_name: str | None = None
    valuation_date: date
    account_currency: str
    base_currency: str
    fx_rate_to_base: float
    cash_balance: float
    investment_market_value: float
    total_value: float
    cost_basis: float
    net_contribution: float
    calculated_at: UtcDatetime


class SnapshotResponse(BaseModel):
    id: str
    account_id: str
    account_name: str | None = None
    snapshot_date: date
    currency: str
    positions: Dict[str, Any]
    cash_balances: Dict[str, Any]
    cost_basis: float
    net_contribution: float
    calculated_at: UtcDatetime


class RecalculateRequest(BaseModel):
    account_id: Optional[str] = None


class RecalculationResult(BaseModel):
    """Totals of one recalculated account, in account currency."""

    account_id: str
    account_name: str
    account_currency: str
    base_currency: str
    fx_rate_to_base: float
    total_cost_basis: float
    total_market_value: float
    total_gain: float
    total_gain_percent: float
