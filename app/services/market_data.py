"""
Market data service - quote providers and sync.

Every asset names the data source its prices come from. ``sync_quotes``
asks the matching provider for the newest bar of each asset and upserts it
into ``quotes``:

- YAHOO: daily bars from yfinance, fetched in a worker thread behind the
  shared yfinance rate limiter.
- MANUAL (and any source without a live provider): the newest stored close
  is carried forward to today, so valuations always have a current price.

Usage:
    from app.services.market_data import sync_quotes

    result = await sync_quotes(session, symbols=["AAPL"])
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime, time
from typing import Any, Optional

import pandas as pd
import yfinance as yf
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AppException, ExternalServiceError
from app.core.logging import get_logger
from app.core.rate_limiter import get_yfinance_limiter
from app.repositories import assets_orm as assets_repo
from app.repositories import quotes_orm as quotes_repo


logger = get_logger("services.market_data")

# Single shared executor for all yfinance calls
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="yfinance")


PROVIDERS: list[dict[str, Any]] = [
    {
        "id": "yahoo",
        "name": "Yahoo Finance",
        "description": "Daily prices for stocks, ETFs and funds via yfinance",
        "requires_api_key": False,
    },
    {
        "id": "manual",
        "name": "Manual",
        "description": "Prices entered by hand; sync carries the last close forward",
        "requires_api_key": False,
    },
    {
        "id": "alpha_vantage",
        "name": "Alpha Vantage",
        "description": "Not configured",
        "requires_api_key": True,
    },
]


def list_providers() -> list[dict[str, Any]]:
    """Static provider catalogue with their current availability."""
    enabled = {"yahoo": settings.market_data_online, "manual": True, "alpha_vantage": False}
    return [{**p, "enabled": enabled[p["id"]]} for p in PROVIDERS]


@dataclass
class PriceBar:
    """One daily bar as returned by a provider."""

    timestamp: datetime
    close_price: float
    open_price: Optional[float] = None
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    adj_close_price: Optional[float] = None
    volume: Optional[int] = None


def _today() -> datetime:
    return datetime.combine(datetime.now(UTC).date(), time.min, tzinfo=UTC)


def _safe_float(value: Any) -> Optional[float]:
    """Convert to float, mapping NaN and unparseable values to None."""
    if value is None:
        return None
    try:
        f = float(value)
    except (ValueError, TypeError):
        return None
    if f != f:
        return None
    return f


# =============================================================================
# YAHOO FINANCE
# =============================================================================


def _bar_from_frame(symbol: str, df: pd.DataFrame) -> PriceBar:
    """Newest row of a yfinance download as a PriceBar."""
    if isinstance(df.columns, pd.MultiIndex):
        # newer yfinance returns (field, ticker) columns even for one ticker
        if symbol in df.columns.get_level_values(1):
            df = df.xs(symbol, axis=1, level=1)
        else:
            df = df.droplevel(1, axis=1)

    df = df.dropna(subset=["Close"])
    if df.empty:
        raise ValueError(f"No prices returned for {symbol}")

    stamp = pd.Timestamp(df.index[-1])
    day = stamp.tz_convert(UTC).date() if stamp.tzinfo else stamp.date()
    row = df.iloc[-1]
    volume = _safe_float(row.get("Volume"))
    return PriceBar(
        timestamp=datetime.combine(day, time.min, tzinfo=UTC),
        open_price=_safe_float(row.get("Open")),
        high_price=_safe_float(row.get("High")),
        low_price=_safe_float(row.get("Low")),
        close_price=float(row["Close"]),
        adj_close_price=_safe_float(row.get("Adj Close")),
        volume=int(volume) if volume is not None else None,
    )


def _fetch_yahoo_bar_sync(symbol: str) -> PriceBar:
    """Download the last few daily bars for a symbol (blocking)."""
    if not get_yfinance_limiter().acquire_sync(timeout=settings.market_data_timeout):
        raise TimeoutError(f"Rate limit timeout for {symbol}")

    df = yf.download(
        symbol,
        period="5d",
        interval="1d",
        auto_adjust=False,
        progress=False,
        timeout=settings.market_data_timeout,
    )
    if df is None or df.empty:
        raise ValueError(f"No prices returned for {symbol}")
    return _bar_from_frame(symbol, df)


async def fetch_yahoo_bar(symbol: str) -> PriceBar:
    """Newest Yahoo Finance bar for a symbol."""
    if not settings.market_data_online:
        raise ExternalServiceError(message="Yahoo Finance provider is disabled")

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(_executor, _fetch_yahoo_bar_sync, symbol)
    except Exception as e:
        logger.warning(f"yfinance quote failed for {symbol}: {e}")
        raise ExternalServiceError(message=f"Yahoo Finance request failed: {e}") from e


# =============================================================================
# MANUAL
# =============================================================================


async def carry_forward_bar(session: AsyncSession, symbol: str) -> PriceBar:
    """Today's bar built from the newest stored close of a symbol."""
    latest = await quotes_repo.latest_close(session, symbol)
    if latest is None or latest["close_price"] is None:
        raise ExternalServiceError(
            message="No stored quote to carry forward",
            error_code="NO_QUOTE_DATA",
        )
    close = latest["close_price"]
    return PriceBar(
        timestamp=_today(),
        open_price=close,
        high_price=close,
        low_price=close,
        close_price=close,
        adj_close_price=latest["adj_close_price"] or close,
        volume=0,
    )


async def fetch_bar(session: AsyncSession, asset: dict[str, Any]) -> PriceBar:
    """Ask the asset's provider for its newest bar."""
    symbol = asset["symbol_mapping"] or asset["symbol"]
    if asset["data_source"] == "YAHOO":
        return await fetch_yahoo_bar(symbol)
    return await carry_forward_bar(session, asset["symbol"])


# =============================================================================
# SYNC
# =============================================================================


async def _is_current(session: AsyncSession, symbol: str) -> bool:
    latest = await quotes_repo.latest_close(session, symbol)
    if latest is None:
        return False
    stamp = latest["timestamp"]
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=UTC)
    return stamp >= _today()


async def sync_quotes(
    session: AsyncSession,
    symbols: list[str] | None = None,
    refetch_all: bool = False,
) -> dict[str, Any]:
    """
    Refresh quotes of every priced (non-CASH) asset, or only ``symbols``.

    Assets already quoted today are skipped unless ``refetch_all`` is set.
    A failing asset is reported in ``errors`` and does not stop the run.
    """
    assets = await assets_repo.list_syncable_assets(session, symbols)
    synced: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []

    for asset in assets:
        symbol = asset["symbol"]
        if not refetch_all and await _is_current(session, symbol):
            synced.append({"symbol": symbol, "status": "skipped", "message": "Quote already up to date"})
            continue
        try:
            bar = await fetch_bar(session, asset)
        except AppException as e:
            errors.append({"symbol": symbol, "status": "error", "message": e.message})
            continue

        await quotes_repo.upsert_quote(
            session,
            symbol=symbol,
            timestamp=bar.timestamp,
            open_price=bar.open_price,
            high_price=bar.high_price,
            low_price=bar.low_price,
            close_price=bar.close_price,
            adj_close_price=bar.adj_close_price,
            volume=bar.volume,
            currency=asset["currency"],
            data_source=asset["data_source"],
        )
        synced.append({"symbol": symbol, "status": "success", "message": "Quote updated successfully"})

    logger.info(
        "Market data sync finished",
        extra={"synced": len(synced), "errors": len(errors), "total": len(assets)},
    )
    return {"synced": synced, "errors": errors, "total_processed": len(assets)}


async def search_symbols(session: AsyncSession, query: str) -> list[dict[str, Any]]:
    """Stored assets matching the query plus a Yahoo candidate for it."""
    term = query.strip()
    matches = await assets_repo.search_assets(session, term, 20)
    results = [
        {
            "symbol": a["symbol"],
            "name": a["name"],
            "asset_type": a["asset_type"],
            "currency": a["currency"],
            "data_source": a["data_source"],
            "asset_id": a["id"],
            "exists": True,
        }
        for a in matches
    ]
    candidate = term.upper()
    if not any(r["symbol"] == candidate and r["data_source"] == "YAHOO" for r in results):
        results.append(
            {
                "symbol": candidate,
                "name": f"{candidate} Stock",
                "asset_type": "STOCK",
                "currency": "USD",
                "data_source": "YAHOO",
                "asset_id": None,
                "exists": False,
            }
        )
    return results
