"""Quotes repository - SQLAlchemy ORM async.

Quotes are global price bars keyed on (symbol, timestamp, data_source).
Writes from providers go through ``upsert_quote`` so a re-sync of the same
bar replaces it instead of failing on the unique constraint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import insert_for
from app.database.orm import Quote


QUOTE_FIELDS = (
    "open_price",
    "high_price",
    "low_price",
    "close_price",
    "adj_close_price",
    "volume",
    "currency",
)

MAX_HISTORY_ROWS = 1000


def _quote_to_dict(q: Quote) -> dict[str, Any]:
    """Convert Quote ORM object to dictionary."""
    return {
        "id": q.id,
        "symbol": q.symbol,
        "timestamp": q.timestamp,
        "open_price": q.open_price,
        "high_price": q.high_price,
        "low_price": q.low_price,
        "close_price": q.close_price,
        "adj_close_price": q.adj_close_price,
        "volume": q.volume,
        "currency": q.currency,
        "data_source": q.data_source,
        "created_at": q.created_at,
    }


async def get_quote(session: AsyncSession, quote_id: str) -> dict[str, Any] | None:
    quote = await session.get(Quote, quote_id)
    return _quote_to_dict(quote) if quote else None


async def create_quote(session: AsyncSession, **fields: Any) -> dict[str, Any]:
    quote = Quote(**fields)
    session.add(quote)
    await session.flush()
    await session.refresh(quote)
    return _quote_to_dict(quote)


async def update_quote(
    session: AsyncSession, quote_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    quote = await session.get(Quote, quote_id)
    if quote is None:
        return None
    for field, value in changes.items():
        setattr(quote, field, value)
    await session.flush()
    await session.refresh(quote)
    return _quote_to_dict(quote)


async def delete_quote(session: AsyncSession, quote_id: str) -> bool:
    result = await session.execute(delete(Quote).where(Quote.id == quote_id))
    return result.rowcount > 0


async def upsert_quote(session: AsyncSession, **fields: Any) -> None:
    """Insert a quote, replacing prices of an existing bar with the same key."""
    stmt = insert_for(session, Quote).values(**fields)
    stmt = stmt.on_conflict_do_update(
        index_elements=["symbol", "timestamp", "data_source"],
        set_={field: stmt.excluded[field] for field in QUOTE_FIELDS if field in fields},
    )
    await session.execute(stmt)


async def quote_history(
    session: AsyncSession,
    symbol: str,
    *,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = MAX_HISTORY_ROWS,
) -> list[dict[str, Any]]:
    """Quotes for a symbol, newest first."""
    stmt = select(Quote).where(Quote.symbol == symbol)
    if start_date:
        stmt = stmt.where(Quote.timestamp >= start_date)
    if end_date:
        stmt = stmt.where(Quote.timestamp <= end_date)
    result = await session.execute(
        stmt.order_by(desc(Quote.timestamp)).limit(min(limit, MAX_HISTORY_ROWS))
    )
    return [_quote_to_dict(q) for q in result.scalars().all()]


def latest_quote_subquery():
    """Subquery of (symbol, close_price) for the newest bar of every symbol."""
    newest = (
        select(Quote.symbol, func.max(Quote.timestamp).label("max_ts"))
        .group_by(Quote.symbol)
        .subquery("newest")
    )
    # two sources can share the newest timestamp; keep one row per symbol
    return (
        select(Quote.symbol, func.max(Quote.close_price).label("close_price"))
        .join(newest, and_(Quote.symbol == newest.c.symbol, Quote.timestamp == newest.c.max_ts))
        .group_by(Quote.symbol)
        .subquery("latest_quote")
    )


async def latest_quotes(session: AsyncSession, symbols: list[str]) -> list[dict[str, Any]]:
    """The newest quote for each requested symbol that has one."""
    newest = (
        select(Quote.symbol, func.max(Quote.timestamp).label("max_ts"))
        .where(Quote.symbol.in_(symbols))
        .group_by(Quote.symbol)
        .subquery()
    )
    result = await session.execute(
        select(Quote)
        .join(newest, and_(Quote.symbol == newest.c.symbol, Quote.timestamp == newest.c.max_ts))
        .order_by(Quote.symbol)
    )
    return [_quote_to_dict(q) for q in result.scalars().all()]


async def latest_close(session: AsyncSession, symbol: str) -> dict[str, Any] | None:
    result = await session.execute(
        select(Quote).where(Quote.symbol == symbol).order_by(desc(Quote.timestamp)).limit(1)
    )
    quote = result.scalar_one_or_none()
    return _quote_to_dict(quote) if quote else None


async def historical_quotes(
    session: AsyncSession,
    symbols: list[str],
    start_date: datetime,
    end_date: datetime,
) -> list[dict[str, Any]]:
    """Quotes for several symbols in a window, by symbol then time."""
    result = await session.execute(
        select(Quote)
        .where(
            Quote.symbol.in_(symbols),
            Quote.timestamp >= start_date,
            Quote.timestamp <= end_date,
        )
        .order_by(Quote.symbol, Quote.timestamp)
    )
    return [_quote_to_dict(q) for q in result.scalars().all()]
