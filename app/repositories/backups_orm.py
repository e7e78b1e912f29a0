"""Backup, restore, export and statistics queries over a user's data.

A backup is a plain dict of table name -> rows (one dict per row, keyed by
column name). Global tables (assets, quotes) are limited to what the
user's activities reference.

Usage:
    from app.repositories import backups_orm as backups_repo

    data = await backups_repo.collect_user_data(db, user.id)
    await backups_repo.restore_user_data(db, user.id, data)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, delete, func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.database.connection import insert_for
from app.database.orm import (
    Account,
    Activity,
    ActivityImportProfile,
    Asset,
    ContributionLimit,
    DailyAccountValuation,
    Goal,
    GoalAllocation,
    HoldingsSnapshot,
    Quote,
    User,
    UserSettings,
)
from app.repositories import accounts_orm as accounts_repo
from app.repositories import users_orm as users_repo


logger = get_logger("repositories.backups_orm")

REQUIRED_TABLES = ("user", "user_settings", "accounts", "assets", "activities", "goals")
EXPORT_MODELS: dict[str, type] = {"accounts": Account, "activities": Activity, "goals": Goal}


def _row_to_dict(row: Any) -> dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in sa_inspect(row).mapper.column_attrs}


def _coerce(model: type, data: dict[str, Any]) -> dict[str, Any]:
    """Keep the model's columns and parse ISO date strings back into values.

    Raises ValueError on a malformed date.
    """
    columns = {c.key: c for c in sa_inspect(model).columns}
    values: dict[str, Any] = {}
    for key, value in data.items():
        column = columns.get(key)
        if column is None:
            continue
        if isinstance(value, str):
            if isinstance(column.type, DateTime):
                value = datetime.fromisoformat(value)
            elif isinstance(column.type, Date):
                value = date.fromisoformat(value[:10])
        values[key] = value
    return values


def _owned_accounts(user_id: str):
    return select(Account.id).where(Account.user_id == user_id)


def _owned_goals(user_id: str):
    return select(Goal.id).where(Goal.user_id == user_id)


def _referenced_assets(user_id: str):
    return select(Activity.asset_id).where(Activity.account_id.in_(_owned_accounts(user_id)))


async def _rows(session: AsyncSession, stmt) -> list[dict[str, Any]]:
    result = await session.execute(stmt)
    return [_row_to_dict(r) for r in result.scalars().all()]


# ───────────────────────────────────────────────────────────────────────────────
# Backup / export
# ───────────────────────────────────────────────────────────────────────────────


async def collect_user_data(session: AsyncSession, user_id: str) -> dict[str, Any]:
    """Every row belonging to the user, grouped by table."""
    user = await session.get(User, user_id)
    user_data = _row_to_dict(user) if user else None
    if user_data:
        user_data.pop("password_hash", None)

    settings_row = await session.get(UserSettings, user_id)
    owned = _owned_accounts(user_id)

    return {
        "user": user_data,
        "user_settings": _row_to_dict(settings_row) if settings_row else None,
        "accounts": await _rows(session, select(Account).where(Account.user_id == user_id)),
        "assets": await _rows(session, select(Asset).where(Asset.id.in_(_referenced_assets(user_id)))),
        "activities": await _rows(
            session,
            select(Activity).where(Activity.account_id.in_(owned)).order_by(Activity.activity_date),
        ),
        "goals": await _rows(session, select(Goal).where(Goal.user_id == user_id)),
        "goals_allocation": await _rows(
            session, select(GoalAllocation).where(GoalAllocation.goal_id.in_(_owned_goals(user_id)))
        ),
        "contribution_limits": await _rows(
            session, select(ContributionLimit).where(ContributionLimit.user_id == user_id)
        ),
        "quotes": await _rows(
            session,
            select(Quote).where(
                Quote.symbol.in_(select(Asset.symbol).where(Asset.id.in_(_referenced_assets(user_id))))
            ),
        ),
        "activity_import_profiles": await _rows(
            session, select(ActivityImportProfile).where(ActivityImportProfile.user_id == user_id)
        ),
        "holdings_snapshots": await _rows(
            session, select(HoldingsSnapshot).where(HoldingsSnapshot.account_id.in_(owned))
        ),
        "daily_account_valuation": await _rows(
            session, select(DailyAccountValuation).where(DailyAccountValuation.account_id.in_(owned))
        ),
    }


def export_columns(table: str) -> list[str]:
    """Column names of an exportable table, in table order."""
    return [c.key for c in EXPORT_MODELS[table].__table__.columns]


async def export_table(session: AsyncSession, user_id: str, table: str) -> list[dict[str, Any]]:
    """Rows of one exportable table (accounts, activities or goals)."""
    if table == "accounts":
        stmt = select(Account).where(Account.user_id == user_id).order_by(Account.name)
    elif table == "activities":
        stmt = (
            select(Activity)
            .where(Activity.account_id.in_(_owned_accounts(user_id)))
            .order_by(Activity.activity_date)
        )
    elif table == "goals":
        stmt = select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at)
    else:
        raise ValueError(f"Unsupported export table: {table}")
    return await _rows(session, stmt)


async def table_counts(session: AsyncSession, user_id: str) -> dict[str, int]:
    """Per-table row counts of the user's data."""
    referenced = _referenced_assets(user_id)
    queries = {
        "accounts": select(func.count()).select_from(Account).where(Account.user_id == user_id),
        "assets": select(func.count()).select_from(Asset).where(Asset.id.in_(referenced)),
        "activities": select(func.count())
        .select_from(Activity)
        .where(Activity.account_id.in_(_owned_accounts(user_id))),
        "goals": select(func.count()).select_from(Goal).where(Goal.user_id == user_id),
        "quotes": select(func.count())
        .select_from(Quote)
        .where(Quote.symbol.in_(select(Asset.symbol).where(Asset.id.in_(referenced)))),
        "contribution_limits": select(func.count())
        .select_from(ContributionLimit)
        .where(ContributionLimit.user_id == user_id),
    }
    counts: dict[str, int] = {}
    for table, stmt in queries.items():
        counts[table] = (await session.execute(stmt)).scalar_one()
    return counts


# ───────────────────────────────────────────────────────────────────────────────
# Restore
# ───────────────────────────────────────────────────────────────────────────────


async def delete_user_data(session: AsyncSession, user_id: str) -> None:
    """Remove the user's accounts, goals, limits and everything hanging off them."""
    owned = _owned_accounts(user_id)
    for stmt in (
        delete(DailyAccountValuation).where(DailyAccountValuation.account_id.in_(owned)),
        delete(HoldingsSnapshot).where(HoldingsSnapshot.account_id.in_(owned)),
        delete(GoalAllocation).where(GoalAllocation.goal_id.in_(_owned_goals(user_id))),
        delete(Activity).where(Activity.account_id.in_(owned)),
        delete(Goal).where(Goal.user_id == user_id),
        delete(ContributionLimit).where(ContributionLimit.user_id == user_id),
        delete(ActivityImportProfile).where(ActivityImportProfile.user_id == user_id),
        delete(Account).where(Account.user_id == user_id),
    ):
        await session.execute(stmt.execution_options(synchronize_session=False))


async def _restore_assets(session: AsyncSession, rows: list[dict[str, Any]]) -> dict[str, str]:
    """Insert unknown assets; map backup asset ids onto stored ones."""
    id_map: dict[str, str] = {}
    for data in rows:
        values = _coerce(Asset, data)
        backup_id = values.get("id")
        if backup_id and await session.get(Asset, backup_id):
            id_map[backup_id] = backup_id
            continue
        result = await session.execute(
            select(Asset.id).where(
                Asset.symbol == values.get("symbol"), Asset.data_source == values.get("data_source")
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            id_map[backup_id] = existing
            continue
        asset = Asset(**values)
        session.add(asset)
        await session.flush()
        id_map[backup_id or asset.id] = asset.id
    return id_map


async def restore_user_data(session: AsyncSession, user_id: str, data: dict[str, Any]) -> None:
    """Replace the user's data with a backup.

    Rows are forced onto ``user_id``. Rows pointing at accounts, goals or
    assets the backup does not carry are dropped. Stored assets and quotes
    are kept as they are. Runs inside the caller's transaction.
    """
    await delete_user_data(session, user_id)

    if data.get("user_settings"):
        changes = {
            k: v
            for k, v in data["user_settings"].items()
            if k in users_repo.SETTINGS_FIELDS and v is not None
        }
        await users_repo.upsert_settings(session, user_id, changes)

    platform_ids = await accounts_repo.list_platform_ids(session, user_id)
    account_ids: set[str] = set()
    for row in data.get("accounts") or []:
        values = _coerce(Account, row)
        values["user_id"] = user_id
        if values.get("platform_id") not in platform_ids:
            values["platform_id"] = None
        account = Account(**values)
        session.add(account)
        await session.flush()
        account_ids.add(account.id)

    asset_map = await _restore_assets(session, data.get("assets") or [])

    for row in data.get("activities") or []:
        values = _coerce(Activity, row)
        asset_id = asset_map.get(values.get("asset_id"))
        if values.get("account_id") not in account_ids or asset_id is None:
            continue
        values["asset_id"] = asset_id
        session.add(Activity(**values))

    goal_ids: set[str] = set()
    for row in data.get("goals") or []:
        values = _coerce(Goal, row)
        values["user_id"] = user_id
        goal = Goal(**values)
        session.add(goal)
        await session.flush()
        goal_ids.add(goal.id)

    for row in data.get("goals_allocation") or []:
        values = _coerce(GoalAllocation, row)
        if values.get("goal_id") in goal_ids and values.get("account_id") in account_ids:
            session.add(GoalAllocation(**values))

    for row in data.get("contribution_limits") or []:
        values = _coerce(ContributionLimit, row)
        values["user_id"] = user_id
        session.add(ContributionLimit(**values))

    for row in data.get("activity_import_profiles") or []:
        values = _coerce(ActivityImportProfile, row)
        if values.get("account_id") in account_ids:
            values["user_id"] = user_id
            session.add(ActivityImportProfile(**values))

    for model, key in (
        (HoldingsSnapshot, "holdings_snapshots"),
        (DailyAccountValuation, "daily_account_valuation"),
    ):
        for row in data.get(key) or []:
            values = _coerce(model, row)
            if values.get("account_id") in account_ids:
                session.add(model(**values))

    await session.flush()

    for row in data.get("quotes") or []:
        values = _coerce(Quote, row)
        values.pop("id", None)
        await session.execute(insert_for(session, Quote).values(**values).on_conflict_do_nothing())

    logger.info(
        "Backup restored",
        extra={"user_id": user_id, "accounts": len(account_ids), "goals": len(goal_ids)},
    )
