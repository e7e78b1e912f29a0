"""Contribution limits repository - SQLAlchemy ORM async."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.orm import Account, Activity, Asset, ContributionLimit
from app.portfolio.contributions import DEPOSIT_TYPES


LIMIT_FIELDS = (
    "group_name",
    "contribution_year",
    "limit_amount",
    "account_ids",
    "start_date",
    "end_date",
)


def _limit_to_dict(c: ContributionLimit) -> dict[str, Any]:
    """Convert ContributionLimit ORM object to dictionary."""
    return {
        "id": c.id,
        "user_id": c.user_id,
        "group_name": c.group_name,
        "contribution_year": c.contribution_year,
        "limit_amount": c.limit_amount,
        "account_ids": c.account_ids or [],
        "start_date": c.start_date,
        "end_date": c.end_date,
        "created_at": c.created_at,
        "updated_at": c.updated_at,
    }


async def list_limits(
    session: AsyncSession, user_id: str, *, year: int | None = None
) -> list[dict[str, Any]]:
    stmt = select(ContributionLimit).where(ContributionLimit.user_id == user_id)
    if year is not None:
        stmt = stmt.where(ContributionLimit.contribution_year == year)
    result = await session.execute(
        stmt.order_by(ContributionLimit.contribution_year, ContributionLimit.group_name)
    )
    return [_limit_to_dict(c) for c in result.scalars().all()]


async def _owned_limit(session: AsyncSession, user_id: str, limit_id: str) -> ContributionLimit | None:
    result = await session.execute(
        select(ContributionLimit).where(
            ContributionLimit.id == limit_id, ContributionLimit.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def get_limit(session: AsyncSession, user_id: str, limit_id: str) -> dict[str, Any] | None:
    limit = await _owned_limit(session, user_id, limit_id)
    return _limit_to_dict(limit) if limit else None


async def find_limit(
    session: AsyncSession, user_id: str, group_name: str, contribution_year: int
) -> dict[str, Any] | None:
    """The user's limit for a group and year, if any."""
    result = await session.execute(
        select(ContributionLimit).where(
            ContributionLimit.user_id == user_id,
            ContributionLimit.group_name == group_name,
            ContributionLimit.contribution_year == contribution_year,
        )
    )
    limit = result.scalar_one_or_none()
    return _limit_to_dict(limit) if limit else None


async def create_limit(session: AsyncSession, user_id: str, **fields: Any) -> dict[str, Any]:
    limit = ContributionLimit(user_id=user_id, **fields)
    session.add(limit)
    await session.flush()
    await session.refresh(limit)
    return _limit_to_dict(limit)


async def update_limit(
    session: AsyncSession, user_id: str, limit_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    limit = await _owned_limit(session, user_id, limit_id)
    if limit is None:
        return None
    for field, value in changes.items():
        if field in LIMIT_FIELDS:
            setattr(limit, field, value)
    await session.flush()
    await session.refresh(limit)
    return _limit_to_dict(limit)


async def delete_limit(session: AsyncSession, user_id: str, limit_id: str) -> bool:
    result = await session.execute(
        delete(ContributionLimit).where(
            ContributionLimit.id == limit_id, ContributionLimit.user_id == user_id
        )
    )
    return result.rowcount > 0


# ───────────────────────────────────────────────────────────────────────────────
# Deposits
# ───────────────────────────────────────────────────────────────────────────────


def _deposit_filter(user_id: str, account_ids: list[str], start: datetime, end: datetime):
    return (
        Account.user_id == user_id,
        Activity.account_id.in_(account_ids),
        Activity.activity_type.in_(DEPOSIT_TYPES),
        Activity.activity_date >= start,
        Activity.activity_date <= end,
    )


async def total_deposits(
    session: AsyncSession,
    user_id: str,
    account_ids: list[str],
    start: datetime,
    end: datetime,
) -> float:
    """Sum of deposit amounts into the given accounts within [start, end]."""
    if not account_ids:
        return 0.0
    total = await session.scalar(
        select(func.coalesce(func.sum(Activity.amount), 0))
        .join(Account, Activity.account_id == Account.id)
        .where(*_deposit_filter(user_id, account_ids, start, end))
    )
    return float(total or 0)


async def list_deposits(
    session: AsyncSession,
    user_id: str,
    account_ids: list[str],
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """Deposit activities into the given accounts within [start, end], newest first."""
    if not account_ids:
        return []
    result = await session.execute(
        select(
            Activity.id,
            Activity.account_id,
            Activity.activity_type,
            Activity.activity_date,
            Activity.amount,
            Activity.currency,
            Activity.comment,
            Account.name.label("account_name"),
            Asset.symbol,
            Asset.name.label("asset_name"),
        )
        .join(Account, Activity.account_id == Account.id)
        .join(Asset, Activity.asset_id == Asset.id)
        .where(*_deposit_filter(user_id, account_ids, start, end))
        .order_by(desc(Activity.activity_date))
    )
    return [dict(row._mapping) for row in result.all()]
