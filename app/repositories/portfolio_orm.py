"""Portfolio repository - SQLAlchemy ORM async.

Positions are aggregated from activities on every read; the derived figures
come from ``app.portfolio.valuation``. Daily valuations and holdings
snapshots are the only persisted results and are upserted per account/day.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import asc, case, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import insert_for
from app.database.orm import (
    Account,
    Activity,
    Asset,
    DailyAccountValuation,
    HoldingsSnapshot,
)
from app.portfolio.valuation import gain_percent, value_position
from app.repositories.quotes_orm import latest_quote_subquery


INCOME_TYPES = ("DIVIDEND", "INTEREST", "DISTRIBUTION")


# ───────────────────────────────────────────────────────────────────────────────
# Positions
# ───────────────────────────────────────────────────────────────────────────────


def _position_sums():
    is_buy = Activity.activity_type == "BUY"
    net_quantity = func.coalesce(
        func.sum(case((is_buy, Activity.quantity), else_=-Activity.quantity)), 0
    )
    cost_basis = func.coalesce(
        func.sum(case((is_buy, Activity.quantity * Activity.unit_price), else_=0)), 0
    )
    bought_quantity = func.coalesce(
        func.sum(case((is_buy, Activity.quantity), else_=0)), 0
    )
    return net_quantity, cost_basis, bought_quantity


async def list_positions(
    session: AsyncSession,
    user_id: str,
    *,
    account_id: str | None = None,
    account_ids: list[str] | None = None,
    open_only: bool = True,
) -> list[dict[str, Any]]:
    """
    Per (account, asset) positions of the user's active accounts.

    Each row carries account and asset fields plus quantity, cost_basis,
    avg_price, market_value, unrealized_gain and unrealized_gain_percent.
    With ``open_only`` only positions with a positive quantity are returned.
    """
    latest = latest_quote_subquery()
    net_quantity, cost_basis, bought_quantity = _position_sums()

    stmt = (
        select(
            Account.id,
            Account.name,
            Account.currency,
            Asset,
            net_quantity.label("quantity"),
            cost_basis.label("cost_basis"),
            bought_quantity.label("bought_quantity"),
            func.max(latest.c.close_price).label("close_price"),
        )
        .select_from(Activity)
        .join(Account, Activity.account_id == Account.id)
        .join(Asset, Activity.asset_id == Asset.id)
        .outerjoin(latest, latest.c.symbol == Asset.symbol)
        .where(Account.user_id == user_id, Account.is_active == True)
        .group_by(Account.id, Asset.id)
        .order_by(Account.name, Asset.symbol)
    )
    if account_id:
        stmt = stmt.where(Account.id == account_id)
    if account_ids is not None:
        stmt = stmt.where(Account.id.in_(account_ids))
    if open_only:
        stmt = stmt.having(net_quantity > 0)

    rows = []
    for acc_id, acc_name, acc_currency, asset, qty, cost, bought, close in (await session.execute(stmt)).all():
        valuation = value_position(qty, cost, bought, close)
        rows.append(
            {
                "account_id": acc_id,
                "account_name": acc_name,
                "account_currency": acc_currency,
                "id": asset.id,
                "symbol": asset.symbol,
                "data_source": asset.data_source,
                "asset_name": asset.name,
                "asset_type": asset.asset_type,
                "asset_class": asset.asset_class,
                "asset_currency": asset.currency,
                "sectors": asset.sectors or [],
                "countries": asset.countries or [],
                "close_price": close,
                **valuation.as_dict(),
            }
        )
    return rows


# ───────────────────────────────────────────────────────────────────────────────
# History: valuations, income, snapshots
# ───────────────────────────────────────────────────────────────────────────────


def _valuation_to_dict(v: DailyAccountValuation) -> dict[str, Any]:
    return {
        "id": v.id,
        "account_id": v.account_id,
        "valuation_date": v.valuation_date,
        "account_currency": v.account_currency,
        "base_currency": v.base_currency,
        "fx_rate_to_base": v.fx_rate_to_base,
        "cash_balance": v.cash_balance,
        "investment_market_value": v.investment_market_value,
        "total_value": v.total_value,
        "cost_basis": v.cost_basis,
        "net_contribution": v.net_contribution,
        "calculated_at": v.calculated_at,
    }


def _owned_valuations(
    user_id: str,
    start_date: date | None,
    end_date: date | None,
    account_id: str | None,
):
    stmt = (
        select(DailyAccountValuation, Account.name)
        .join(Account, DailyAccountValuation.account_id == Account.id)
        .where(Account.user_id == user_id, Account.is_active == True)
    )
    if start_date:
        stmt = stmt.where(DailyAccountValuation.valuation_date >= start_date)
    if end_date:
        stmt = stmt.where(DailyAccountValuation.valuation_date <= end_date)
    if account_id:
        stmt = stmt.where(DailyAccountValuation.account_id == account_id)
    return stmt


async def list_valuations(
    session: AsyncSession,
    user_id: str,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    account_id: str | None = None,
) -> list[dict[str, Any]]:
    """Stored daily valuations with account names, newest first."""
    stmt = _owned_valuations(user_id, start_date, end_date, account_id)
    result = await session.execute(
        stmt.order_by(desc(DailyAccountValuation.valuation_date), Account.name)
    )
    return [
        {**_valuation_to_dict(v), "account_name": name}
        for v, name in result.all()
    ]


async def list_performance(
    session: AsyncSession,
    user_id: str,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    account_id: str | None = None,
) -> list[dict[str, Any]]:
    """Daily valuations with gain figures, oldest first."""
    stmt = _owned_valuations(user_id, start_date, end_date, account_id)
    result = await session.execute(
        stmt.order_by(asc(DailyAccountValuation.valuation_date), Account.name)
    )
    points = []
    for v, name in result.all():
        gain = v.total_value - v.cost_basis
        points.append(
            {
                "account_id": v.account_id,
                "account_name": name,
                "valuation_date": v.valuation_date,
                "total_value": v.total_value,
                "cost_basis": v.cost_basis,
                "net_contribution": v.net_contribution,
                "total_gain": gain,
                "total_gain_percent": gain_percent(gain, v.cost_basis),
            }
        )
    return points


async def list_income(
    session: AsyncSession,
    user_id: str,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    account_id: str | None = None,
) -> list[dict[str, Any]]:
    """Dividend, interest and distribution activities, newest first."""
    stmt = (
        select(
            Activity.id,
            Activity.account_id,
            Activity.activity_type,
            Activity.activity_date,
            Activity.amount,
            Activity.currency,
            Account.name.label("account_name"),
            Asset.symbol,
            Asset.name.label("asset_name"),
        )
        .join(Account, Activity.account_id == Account.id)
        .join(Asset, Activity.asset_id == Asset.id)
        .where(
            Account.user_id == user_id,
            Account.is_active == True,
            Activity.activity_type.in_(INCOME_TYPES),
        )
    )
    if start:
        stmt = stmt.where(Activity.activity_date >= start)
    if end:
        stmt = stmt.where(Activity.activity_date <= end)
    if account_id:
        stmt = stmt.where(Activity.account_id == account_id)
    result = await session.execute(stmt.order_by(desc(Activity.activity_date)))
    return [dict(row._mapping) for row in result.all()]


def _snapshot_to_dict(s: HoldingsSnapshot) -> dict[str, Any]:
    return {
        "id": s.id,
        "account_id": s.account_id,
        "snapshot_date": s.snapshot_date,
        "currency": s.currency,
        "positions": s.positions,
        "cash_balances": s.cash_balances,
        "cost_basis": s.cost_basis,
        "net_contribution": s.net_contribution,
        "calculated_at": s.calculated_at,
    }


async def list_snapshots(
    session: AsyncSession,
    user_id: str,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    account_id: str | None = None,
) -> list[dict[str, Any]]:
    stmt = (
        select(HoldingsSnapshot, Account.name)
        .join(Account, HoldingsSnapshot.account_id == Account.id)
        .where(Account.user_id == user_id)
    )
    if start_date:
        stmt = stmt.where(HoldingsSnapshot.snapshot_date >= start_date)
    if end_date:
        stmt = stmt.where(HoldingsSnapshot.snapshot_date <= end_date)
    if account_id:
        stmt = stmt.where(HoldingsSnapshot.account_id == account_id)
    result = await session.execute(
        stmt.order_by(desc(HoldingsSnapshot.snapshot_date), Account.name)
    )
    return [{**_snapshot_to_dict(s), "account_name": name} for s, name in result.all()]


# ───────────────────────────────────────────────────────────────────────────────
# Recalculation writes
# ───────────────────────────────────────────────────────────────────────────────


async def upsert_daily_valuation(session: AsyncSession, **fields: Any) -> None:
    """Insert or replace the valuation for (account_id, valuation_date)."""
    stmt = insert_for(session, DailyAccountValuation).values(**fields)
    stmt = stmt.on_conflict_do_update(
        index_elements=["account_id", "valuation_date"],
        set_={
            key: stmt.excluded[key]
            for key in fields
            if key not in ("id", "account_id", "valuation_date")
        },
    )
    await session.execute(stmt)


async def upsert_holdings_snapshot(session: AsyncSession, **fields: Any) -> None:
    """Insert or replace the snapshot for (account_id, snapshot_date)."""
    stmt = insert_for(session, HoldingsSnapshot).values(**fields)
    stmt = stmt.on_conflict_do_update(
        index_elements=["account_id", "snapshot_date"],
        set_={
            key: stmt.excluded[key]
            for key in fields
            if key not in ("id", "account_id", "snapshot_date")
        },
    )
    await session.execute(stmt)
