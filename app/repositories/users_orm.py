"""User, session and settings repository using SQLAlchemy ORM.

Usage:
    from app.repositories import users_orm as users_repo

    user = await users_repo.get_user_by_email(db, "someone@example.com")
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.database.orm import User, UserSession, UserSettings


logger = get_logger("repositories.users_orm")

SETTINGS_FIELDS = (
    "theme",
    "font_family",
    "base_currency",
    "privacy_mode",
    "date_format",
    "number_format",
    "timezone",
)

DEFAULT_SETTINGS: dict[str, Any] = {
    "theme": "light",
    "font_family": "Inter",
    "base_currency": "USD",
    "privacy_mode": False,
    "date_format": "MM/DD/YYYY",
    "number_format": "US",
    "timezone": "UTC",
}


def _user_to_dict(user: User, *, include_hash: bool = False) -> dict[str, Any]:
    data = {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_active": bool(user.is_active),
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }
    if include_hash:
        data["password_hash"] = user.password_hash
    return data


def _settings_to_dict(settings_row: UserSettings) -> dict[str, Any]:
    data = {field: getattr(settings_row, field) for field in SETTINGS_FIELDS}
    data["user_id"] = settings_row.user_id
    data["privacy_mode"] = bool(settings_row.privacy_mode)
    data["created_at"] = settings_row.created_at
    data["updated_at"] = settings_row.updated_at
    return data


# ───────────────────────────────────────────────────────────────────────────────
# Users
# ───────────────────────────────────────────────────────────────────────────────


async def get_user_by_id(session: AsyncSession, user_id: str) -> dict[str, Any] | None:
    """Get a user by ID."""
    user = await session.get(User, user_id)
    return _user_to_dict(user) if user else None


async def get_user_by_email(session: AsyncSession, email: str) -> dict[str, Any] | None:
    """Get a user by email, including the password hash."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    return _user_to_dict(user, include_hash=True) if user else None


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    display_name: str | None = None,
) -> dict[str, Any]:
    """Create a user together with its default settings row."""
    user = User(
        email=email.lower(),
        password_hash=password_hash,
        display_name=display_name,
        is_active=True,
    )
    session.add(user)
    await session.flush()

    session.add(UserSettings(user_id=user.id, **DEFAULT_SETTINGS))
    await session.flush()

    logger.info("Created user", extra={"user_id": user.id})
    return _user_to_dict(user)


async def touch_last_login(session: AsyncSession, user_id: str) -> None:
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(last_login_at=datetime.now(timezone.utc))
    )


# ───────────────────────────────────────────────────────────────────────────────
# Sessions
# ───────────────────────────────────────────────────────────────────────────────


async def create_session(
    session: AsyncSession,
    user_id: str,
    token_hash: str,
    expires_at: datetime,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> str:
    """Store a hashed refresh token. Returns the session id."""
    row = UserSession(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    session.add(row)
    await session.flush()
    return row.id


async def list_active_sessions(session: AsyncSession, user_id: str) -> list[UserSession]:
    """Sessions of a user that have not expired yet."""
    result = await session.execute(
        select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    return list(result.scalars().all())


async def list_sessions(session: AsyncSession, user_id: str) -> list[UserSession]:
    result = await session.execute(select(UserSession).where(UserSession.user_id == user_id))
    return list(result.scalars().all())


async def mark_session_used(session: AsyncSession, session_id: str) -> None:
    await session.execute(
        update(UserSession)
        .where(UserSession.id == session_id)
        .values(last_used_at=datetime.now(timezone.utc))
    )


async def delete_session(session: AsyncSession, session_id: str) -> None:
    await session.execute(delete(UserSession).where(UserSession.id == session_id))


async def delete_all_sessions(session: AsyncSession, user_id: str) -> int:
    """Log a user out everywhere. Returns the number of sessions removed."""
    result = await session.execute(delete(UserSession).where(UserSession.user_id == user_id))
    return result.rowcount or 0


# ───────────────────────────────────────────────────────────────────────────────
# Settings
# ───────────────────────────────────────────────────────────────────────────────


async def get_settings(session: AsyncSession, user_id: str) -> dict[str, Any] | None:
    row = await session.get(UserSettings, user_id)
    return _settings_to_dict(row) if row else None


async def get_or_create_settings(session: AsyncSession, user_id: str) -> dict[str, Any]:
    """Return the user's settings, creating the defaults when missing."""
    row = await session.get(UserSettings, user_id)
    if row is None:
        row = UserSettings(user_id=user_id, **DEFAULT_SETTINGS)
        session.add(row)
        await session.flush()
    return _settings_to_dict(row)


async def upsert_settings(
    session: AsyncSession, user_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    """Apply allowed setting changes, creating the row if needed."""
    row = await session.get(UserSettings, user_id)
    if row is None:
        row = UserSettings(user_id=user_id, **{**DEFAULT_SETTINGS, **changes})
        session.add(row)
    else:
        for field, value in changes.items():
            setattr(row, field, value)
    await session.flush()
    await session.refresh(row)
    return _settings_to_dict(row)


async def get_base_currency(session: AsyncSession, user_id: str) -> str:
    """The user's reporting currency (USD when no settings exist)."""
    result = await session.execute(
        select(UserSettings.base_currency).where(UserSettings.user_id == user_id)
    )
    return result.scalar_one_or_none() or DEFAULT_SETTINGS["base_currency"]
