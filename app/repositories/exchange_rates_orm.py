"""Exchange rates repository - SQLAlchemy ORM async.

Rates are read as the shared defaults overlaid with the user's own rows.
Writes only ever touch rows owned by the user.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.orm import ExchangeRate


def pair_id(base_currency: str, target_currency: str) -> str:
    return f"{base_currency}-{target_currency}"


def _rate_to_dict(r: ExchangeRate) -> dict[str, Any]:
    return {
        "id": r.pair,
        "base_currency": r.base_currency,
        "target_currency": r.target_currency,
        "rate": r.rate,
        "source": r.source,
        "is_custom": r.user_id is not None,
        "last_updated": r.last_updated,
    }


async def _effective_rows(
    session: AsyncSession, user_id: str, pair: str | None = None
) -> dict[str, ExchangeRate]:
    stmt = select(ExchangeRate).where(
        or_(ExchangeRate.user_id == user_id, ExchangeRate.user_id.is_(None))
    )
    if pair:
        stmt = stmt.where(ExchangeRate.pair == pair)
    rows = (await session.execute(stmt)).scalars().all()

    effective: dict[str, ExchangeRate] = {}
    # Defaults first so the user's rows replace them
    for row in sorted(rows, key=lambda r: r.user_id is not None):
        effective[row.pair] = row
    return effective


async def _own_row(session: AsyncSession, user_id: str, pair: str) -> ExchangeRate | None:
    result = await session.execute(
        select(ExchangeRate).where(ExchangeRate.user_id == user_id, ExchangeRate.pair == pair)
    )
    return result.scalar_one_or_none()


async def list_rates(
    session: AsyncSession, user_id: str, base_currency: str | None = None
) -> list[dict[str, Any]]:
    rows = (await _effective_rows(session, user_id)).values()
    if base_currency:
        rows = [r for r in rows if r.base_currency == base_currency]
    return [
        _rate_to_dict(r)
        for r in sorted(rows, key=lambda r: (r.base_currency, r.target_currency))
    ]


async def get_rate(session: AsyncSession, user_id: str, rate_id: str) -> dict[str, Any] | None:
    row = (await _effective_rows(session, user_id, rate_id)).get(rate_id)
    return _rate_to_dict(row) if row else None


async def create_rate(
    session: AsyncSession,
    user_id: str,
    base_currency: str,
    target_currency: str,
    rate: float,
    source: str = "MANUAL",
) -> dict[str, Any]:
    row = ExchangeRate(
        user_id=user_id,
        pair=pair_id(base_currency, target_currency),
        base_currency=base_currency,
        target_currency=target_currency,
        rate=rate,
        source=source,
    )
    session.add(row)
    await session.flush()
    await session.refresh(row)
    return _rate_to_dict(row)


async def update_rate(
    session: AsyncSession, user_id: str, rate_id: str, rate: float, source: str | None = None
) -> dict[str, Any] | None:
    """Update the user's rate, creating an override when only a default exists."""
    row = await _own_row(session, user_id, rate_id)
    if row is None:
        default = (await _effective_rows(session, user_id, rate_id)).get(rate_id)
        if default is None:
            return None
        return await create_rate(
            session,
            user_id,
            default.base_currency,
            default.target_currency,
            rate,
            source or "MANUAL",
        )

    row.rate = rate
    if source:
        row.source = source
    await session.flush()
    await session.refresh(row)
    return _rate_to_dict(row)


async def delete_rate(session: AsyncSession, user_id: str, rate_id: str) -> bool:
    """Delete the user's own rate; the shared default, if any, applies again."""
    result = await session.execute(
        delete(ExchangeRate).where(
            ExchangeRate.user_id == user_id, ExchangeRate.pair == rate_id
        )
    )
    return (result.rowcount or 0) > 0


async def rate_map(session: AsyncSession, user_id: str) -> dict[tuple[str, str], float]:
    """The user's effective rates keyed by (base, target)."""
    rows = (await _effective_rows(session, user_id)).values()
    return {(r.base_currency, r.target_currency): r.rate for r in rows}
