"""Database module: async SQLAlchemy engine, sessions and ORM models."""

from .connection import (
    close_sqlalchemy_engine,
    get_async_database_url,
    get_engine,
    get_session,
    get_session_factory,
    init_sqlalchemy_engine,
    insert_for,
    ping_database,
)
from .orm import (
    Account,
    Activity,
    ActivityImportProfile,
    Asset,
    Base,
    ContributionLimit,
    DailyAccountValuation,
    ExchangeRate,
    Goal,
    GoalAllocation,
    HoldingsSnapshot,
    Platform,
    Quote,
    User,
    UserSession,
    UserSettings,
)


__all__ = [
    # SQLAlchemy
    "init_sqlalchemy_engine",
    "close_sqlalchemy_engine",
    "get_async_database_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "insert_for",
    "ping_database",
    "Base",
    # ORM models
    "User",
    "UserSession",
    "UserSettings",
    "Platform",
    "Account",
    "Asset",
    "Activity",
    "Quote",
    "Goal",
    "GoalAllocation",
    "ContributionLimit",
    "ActivityImportProfile",
    "HoldingsSnapshot",
    "DailyAccountValuation",
    "ExchangeRate",
]
