"""Accounts and platforms repository - SQLAlchemy ORM async."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.database.orm import Account, Activity, Platform


logger = get_logger("repositories.accounts_orm")


# ───────────────────────────────────────────────────────────────────────────────
# Accounts
# ───────────────────────────────────────────────────────────────────────────────


def _account_to_dict(a: Account) -> dict[str, Any]:
    """Convert Account ORM object to dictionary."""
    return {
        "id": a.id,
        "user_id": a.user_id,
        "name": a.name,
        "account_type": a.account_type,
        "group_name": a.group_name,
        "currency": a.currency,
        "platform_id": a.platform_id,
        "is_default": bool(a.is_default),
        "is_active": bool(a.is_active),
        "created_at": a.created_at,
        "updated_at": a.updated_at,
    }


async def _clear_default(session: AsyncSession, user_id: str, *, keep_id: str | None = None) -> None:
    stmt = update(Account).where(Account.user_id == user_id, Account.is_default == True)
    if keep_id is not None:
        stmt = stmt.where(Account.id != keep_id)
    await session.execute(stmt.values(is_default=False))


async def list_accounts(
    session: AsyncSession, user_id: str, *, limit: int, offset: int
) -> tuple[list[dict[str, Any]], int]:
    """A page of the user's accounts, newest first, and the total count."""
    total = await session.scalar(
        select(func.count()).select_from(Account).where(Account.user_id == user_id)
    )
    result = await session.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(desc(Account.created_at))
        .limit(limit)
        .offset(offset)
    )
    return [_account_to_dict(a) for a in result.scalars().all()], total or 0


async def list_active_accounts(
    session: AsyncSession, user_id: str, *, account_id: str | None = None
) -> list[dict[str, Any]]:
    stmt = select(Account).where(Account.user_id == user_id, Account.is_active == True)
    if account_id:
        stmt = stmt.where(Account.id == account_id)
    result = await session.execute(stmt.order_by(desc(Account.created_at)))
    return [_account_to_dict(a) for a in result.scalars().all()]


async def get_account(
    session: AsyncSession, user_id: str, account_id: str, *, active_only: bool = False
) -> dict[str, Any] | None:
    """Get an account owned by the user."""
    stmt = select(Account).where(Account.id == account_id, Account.user_id == user_id)
    if active_only:
        stmt = stmt.where(Account.is_active == True)
    account = (await session.execute(stmt)).scalar_one_or_none()
    return _account_to_dict(account) if account else None


async def create_account(session: AsyncSession, user_id: str, **fields: Any) -> dict[str, Any]:
    """Create an account, demoting the previous default when this one is default."""
    if fields.get("is_default"):
        await _clear_default(session, user_id)

    account = Account(user_id=user_id, **fields)
    session.add(account)
    await session.flush()
    await session.refresh(account)
    logger.info("Created account", extra={"user_id": user_id, "account_id": account.id})
    return _account_to_dict(account)


async def update_account(
    session: AsyncSession, user_id: str, account_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    """Apply changes to an account. Returns None when it does not exist."""
    account = (
        await session.execute(
            select(Account).where(Account.id == account_id, Account.user_id == user_id)
        )
    ).scalar_one_or_none()
    if account is None:
        return None

    if changes.get("is_default"):
        await _clear_default(session, user_id, keep_id=account_id)

    for field, value in changes.items():
        setattr(account, field, value)
    await session.flush()
    await session.refresh(account)
    return _account_to_dict(account)


async def count_activities(session: AsyncSession, account_id: str) -> int:
    total = await session.scalar(
        select(func.count()).select_from(Activity).where(Activity.account_id == account_id)
    )
    return total or 0


async def delete_account(session: AsyncSession, user_id: str, account_id: str) -> bool:
    result = await session.execute(
        delete(Account).where(Account.id == account_id, Account.user_id == user_id)
    )
    return (result.rowcount or 0) > 0


async def account_summaries(session: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """Active accounts with their activity count and latest activity date."""
    stats = (
        select(
            Activity.account_id.label("account_id"),
            func.count(Activity.id).label("activity_count"),
            func.max(Activity.activity_date).label("last_activity_date"),
        )
        .group_by(Activity.account_id)
        .subquery()
    )
    result = await session.execute(
        select(Account, stats.c.activity_count, stats.c.last_activity_date)
        .outerjoin(stats, stats.c.account_id == Account.id)
        .where(Account.user_id == user_id, Account.is_active == True)
        .order_by(desc(Account.created_at))
    )
    return [
        {
            **_account_to_dict(account),
            "activity_count": activity_count or 0,
            "last_activity_date": last_activity_date,
        }
        for account, activity_count, last_activity_date in result.all()
    ]


async def owned_account_ids(session: AsyncSession, user_id: str, account_ids: list[str]) -> set[str]:
    """Subset of the given ids that belong to the user."""
    if not account_ids:
        return set()
    result = await session.execute(
        select(Account.id).where(Account.user_id == user_id, Account.id.in_(account_ids))
    )
    return set(result.scalars().all())


async def list_groups(session: AsyncSession, user_id: str) -> list[str]:
    """Distinct non-null account group names."""
    result = await session.execute(
        select(Account.group_name)
        .where(Account.user_id == user_id, Account.group_name.is_not(None))
        .distinct()
        .order_by(Account.group_name)
    )
    return list(result.scalars().all())


async def list_group_accounts(session: AsyncSession, user_id: str, group_name: str) -> list[dict[str, Any]]:
    result = await session.execute(
        select(Account)
        .where(
            Account.user_id == user_id,
            Account.group_name == group_name,
            Account.is_active == True,
        )
        .order_by(Account.name)
    )
    return [_account_to_dict(a) for a in result.scalars().all()]


# ───────────────────────────────────────────────────────────────────────────────
# Platforms
# ───────────────────────────────────────────────────────────────────────────────


def _platform_to_dict(p: Platform) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "url": p.url,
        "created_at": p.created_at,
        "updated_at": p.updated_at,
    }


def _visible_to(user_id: str):
    return or_(Platform.user_id == user_id, Platform.user_id.is_(None))


async def list_platforms(session: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """The user's own platforms plus the shared ones."""
    result = await session.execute(
        select(Platform).where(_visible_to(user_id)).order_by(Platform.name)
    )
    return [_platform_to_dict(p) for p in result.scalars().all()]


async def list_platform_ids(session: AsyncSession, user_id: str) -> set[str]:
    result = await session.execute(select(Platform.id).where(_visible_to(user_id)))
    return set(result.scalars().all())


async def get_platform(
    session: AsyncSession, user_id: str, platform_id: str
) -> dict[str, Any] | None:
    result = await session.execute(
        select(Platform).where(Platform.id == platform_id, _visible_to(user_id))
    )
    platform = result.scalar_one_or_none()
    return _platform_to_dict(platform) if platform else None


async def create_platform(
    session: AsyncSession, user_id: str, name: str, url: str | None = None
) -> dict[str, Any]:
    platform = Platform(user_id=user_id, name=name, url=url)
    session.add(platform)
    await session.flush()
    await session.refresh(platform)
    return _platform_to_dict(platform)


async def delete_platform(session: AsyncSession, user_id: str, platform_id: str) -> bool:
    """Delete one of the user's own platforms, unlinking their accounts from it.

    Shared platforms and other users' platforms are left alone.
    """
    owned = await session.execute(
        select(Platform.id).where(Platform.id == platform_id, Platform.user_id == user_id)
    )
    if owned.scalar_one_or_none() is None:
        return False
    await session.execute(
        update(Account)
        .where(Account.user_id == user_id, Account.platform_id == platform_id)
        .values(platform_id=None)
    )
    await session.execute(delete(Platform).where(Platform.id == platform_id))
    return True
