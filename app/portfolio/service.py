"""Portfolio service: holdings grouping, summary and on-demand recalculation."""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.portfolio.valuation import fx_rate, gain_percent, totals
from app.repositories import accounts_orm as accounts_repo
from app.repositories import exchange_rates_orm as rates_repo
from app.repositories import portfolio_orm as portfolio_repo
from app.repositories import users_orm as users_repo


logger = get_logger("portfolio.service")


async def holdings_by_account(
    session: AsyncSession, user_id: str, account_id: str | None = None
) -> list[dict[str, Any]]:
    """Active accounts, each with its open positions."""
    accounts = await accounts_repo.list_active_accounts(session, user_id, account_id=account_id)
    positions = await portfolio_repo.list_positions(session, user_id, account_id=account_id)

    by_account: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for position in positions:
        by_account[position["account_id"]].append(position)

    return [
        {
            "account_id": account["id"],
            "account_name": account["name"],
            "account_currency": account["currency"],
            "holdings": by_account.get(account["id"], []),
        }
        for account in accounts
    ]


async def portfolio_summary(
    session: AsyncSession, user_id: str, account_id: str | None = None
) -> dict[str, Any]:
    """
    Total value, cost and gain of open positions in the user's base currency.

    Each position is converted from its account currency with the stored
    exchange rates.
    """
    base_currency = await users_repo.get_base_currency(session, user_id)
    rates = await rates_repo.rate_map(session, user_id)
    positions = await portfolio_repo.list_positions(session, user_id, account_id=account_id)

    total_cost = 0.0
    total_value = 0.0
    for position in positions:
        rate = fx_rate(rates, position["account_currency"], base_currency)
        total_cost += position["cost_basis"] * rate
        total_value += position["market_value"] * rate

    total_gain = total_value - total_cost
    return {
        "total_value": total_value,
        "total_cost": total_cost,
        "total_gain": total_gain,
        "total_gain_percent": gain_percent(total_gain, total_cost),
        "currency": base_currency,
    }


async def recalculate(
    session: AsyncSession, user_id: str, account_id: str | None = None
) -> list[dict[str, Any]]:
    """
    Revalue the user's active accounts and persist today's results.

    One daily valuation and one holdings snapshot per account and day; a
    second run on the same day replaces them.
    """
    accounts = await accounts_repo.list_active_accounts(session, user_id, account_id=account_id)
    if not accounts:
        raise NotFoundError(message="No accounts found")

    base_currency = await users_repo.get_base_currency(session, user_id)
    rates = await rates_repo.rate_map(session, user_id)
    positions = await portfolio_repo.list_positions(
        session, user_id, account_ids=[a["id"] for a in accounts]
    )
    by_account: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for position in positions:
        by_account[position["account_id"]].append(position)

    now = datetime.now(UTC)
    today = now.date()
    results = []

    for account in accounts:
        held = by_account.get(account["id"], [])
        account_totals = totals(held)
        rate = fx_rate(rates, account["currency"], base_currency)

        await portfolio_repo.upsert_daily_valuation(
            session,
            account_id=account["id"],
            valuation_date=today,
            account_currency=account["currency"],
            base_currency=base_currency,
            fx_rate_to_base=rate,
            cash_balance=0,
            investment_market_value=account_totals["total_value"],
            total_value=account_totals["total_value"],
            cost_basis=account_totals["total_cost"],
            net_contribution=account_totals["total_cost"],
            calculated_at=now,
        )
        await portfolio_repo.upsert_holdings_snapshot(
            session,
            account_id=account["id"],
            snapshot_date=today,
            currency=account["currency"],
            positions={
                p["id"]: {
                    "symbol": p["symbol"],
                    "data_source": p["data_source"],
                    "quantity": p["quantity"],
                    "avg_price": p["avg_price"],
                    "cost_basis": p["cost_basis"],
                    "market_value": p["market_value"],
                }
                for p in held
            },
            cash_balances={account["currency"]: 0},
            cost_basis=account_totals["total_cost"],
            net_contribution=account_totals["total_cost"],
            calculated_at=now,
        )

        results.append(
            {
                "account_id": account["id"],
                "account_name": account["name"],
                "account_currency": account["currency"],
                "base_currency": base_currency,
                "fx_rate_to_base": rate,
                "total_cost_basis": account_totals["total_cost"],
                "total_market_value": account_totals["total_value"],
                "total_gain": account_totals["total_gain"],
                "total_gain_percent": account_totals["total_gain_percent"],
            }
        )

    logger.info(
        "Portfolio recalculated",
        extra={"user_id": user_id, "accounts": len(results), "valuation_date": today.isoformat()},
    )
    return results


async def account_market_values(
    session: AsyncSession, user_id: str, account_ids: list[str]
) -> dict[str, float]:
    """Market value of the open positions of each given account."""
    values = {account_id: 0.0 for account_id in account_ids}
    if not account_ids:
        return values
    positions = await portfolio_repo.list_positions(session, user_id, account_ids=account_ids)
    for position in positions:
        values[position["account_id"]] += position["market_value"]
    return values
