"""Activities repository - SQLAlchemy ORM async."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, delete, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.database.orm import Account, Activity, Asset


logger = get_logger("repositories.activities_orm")


def _activity_to_dict(a: Activity) -> dict[str, Any]:
    """Convert Activity ORM object to dictionary."""
    return {
        "id": a.id,
        "account_id": a.account_id,
        "asset_id": a.asset_id,
        "activity_type": a.activity_type,
        "activity_date": a.activity_date,
        "quantity": a.quantity,
        "unit_price": a.unit_price,
        "currency": a.currency,
        "fee": a.fee,
        "amount": a.amount,
        "is_draft": bool(a.is_draft),
        "comment": a.comment,
        "description": a.description,
        "created_at": a.created_at,
        "updated_at": a.updated_at,
    }


def _detailed_query(user_id: str) -> Select:
    return (
        select(
            Activity,
            Account.name.label("account_name"),
            Asset.symbol.label("asset_symbol"),
            Asset.name.label("asset_name"),
        )
        .join(Account, Activity.account_id == Account.id)
        .join(Asset, Activity.asset_id == Asset.id)
        .where(Account.user_id == user_id)
    )


def _detailed_row(row) -> dict[str, Any]:
    activity, account_name, asset_symbol, asset_name = row
    return {
        **_activity_to_dict(activity),
        "account_name": account_name,
        "asset_symbol": asset_symbol,
        "asset_name": asset_name,
    }


async def list_activities(
    session: AsyncSession,
    user_id: str,
    *,
    limit: int,
    offset: int,
    account_id: str | None = None,
    activity_type: str | None = None,
    search: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    """A filtered page of the user's activities, newest first, and the total."""
    stmt = _detailed_query(user_id)
    if account_id:
        stmt = stmt.where(Activity.account_id == account_id)
    if activity_type:
        stmt = stmt.where(Activity.activity_type == activity_type)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Asset.symbol.ilike(pattern),
                Asset.name.ilike(pattern),
                Activity.comment.ilike(pattern),
            )
        )

    total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
    result = await session.execute(
        stmt.order_by(desc(Activity.activity_date)).limit(limit).offset(offset)
    )
    return [_detailed_row(row) for row in result.all()], total or 0


async def get_activity(session: AsyncSession, user_id: str, activity_id: str) -> dict[str, Any] | None:
    """Get one of the user's activities with account and asset names."""
    result = await session.execute(_detailed_query(user_id).where(Activity.id == activity_id))
    row = result.first()
    return _detailed_row(row) if row else None


async def _owned_activity(session: AsyncSession, user_id: str, activity_id: str) -> Activity | None:
    result = await session.execute(
        select(Activity)
        .join(Account, Activity.account_id == Account.id)
        .where(Activity.id == activity_id, Account.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_activity(session: AsyncSession, **fields: Any) -> dict[str, Any]:
    activity = Activity(**fields)
    session.add(activity)
    await session.flush()
    await session.refresh(activity)
    return _activity_to_dict(activity)


async def create_activities(session: AsyncSession, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Insert a batch of activities in one flush."""
    activities = [Activity(**fields) for fields in rows]
    session.add_all(activities)
    await session.flush()
    for activity in activities:
        await session.refresh(activity)
    logger.info("Imported activities", extra={"count": len(activities)})
    return [_activity_to_dict(a) for a in activities]


async def update_activity(
    session: AsyncSession, user_id: str, activity_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    activity = await _owned_activity(session, user_id, activity_id)
    if activity is None:
        return None
    for field, value in changes.items():
        setattr(activity, field, value)
    await session.flush()
    await session.refresh(activity)
    return _activity_to_dict(activity)


async def delete_activity(session: AsyncSession, user_id: str, activity_id: str) -> bool:
    activity = await _owned_activity(session, user_id, activity_id)
    if activity is None:
        return False
    await session.execute(delete(Activity).where(Activity.id == activity_id))
    return True


async def list_activity_types(session: AsyncSession, user_id: str) -> list[str]:
    """Distinct activity types used by the user, sorted."""
    result = await session.execute(
        select(Activity.activity_type)
        .join(Account, Activity.account_id == Account.id)
        .where(Account.user_id == user_id)
        .distinct()
        .order_by(Activity.activity_type)
    )
    return list(result.scalars().all())


async def list_asset_activities(session: AsyncSession, user_id: str, asset_id: str) -> list[dict[str, Any]]:
    """The user's activities on one asset, newest first."""
    result = await session.execute(
        _detailed_query(user_id)
        .where(Activity.asset_id == asset_id)
        .order_by(desc(Activity.activity_date))
    )
    return [_detailed_row(row) for row in result.all()]
