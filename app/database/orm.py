"""SQLAlchemy ORM models for WealthWatch.

This module defines all database tables using SQLAlchemy 2.0 ORM style.
Primary keys are application generated UUID strings so rows can be
exported and restored across databases unchanged.

Usage:
    from app.database.orm import Account, Activity
    from app.database.connection import get_session

    async with get_session() as session:
        account = await session.get(Account, account_id)
        account.name = "Brokerage"
        await session.commit()
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


# Naming convention for constraints and indexes (deterministic names for Alembic)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def new_id() -> str:
    """Generate a primary key."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def Money(**kwargs: Any):
    """Fixed precision amount column returned to Python as float."""
    return mapped_column(Numeric(20, 8, asdecimal=False), **kwargs)


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# =============================================================================
# USERS & SESSIONS
# =============================================================================


class User(TimestampMixin, Base):
    """Registered user."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    sessions: Mapped[list[UserSession]] = relationship(back_populates="user", passive_deletes=True)
    accounts: Mapped[list[Account]] = relationship(back_populates="user", passive_deletes=True)

    __table_args__ = (
        Index("idx_users_email", "email"),
    )


class UserSession(Base):
    """Login session holding a hashed refresh token."""
    __tablename__ = "user_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_used_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    user_agent: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(45))

    user: Mapped[User] = relationship(back_populates="sessions")

    __table_args__ = (
        Index("idx_user_sessions_user", "user_id"),
        Index("idx_user_sessions_expires", "expires_at"),
    )


class UserSettings(TimestampMixin, Base):
    """Per-user display preferences."""
    __tablename__ = "user_settings"

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    theme: Mapped[str] = mapped_column(String(50), default="light")
    font_family: Mapped[str] = mapped_column(String(100), default="Inter")
    base_currency: Mapped[str] = mapped_column(String(3), default="USD")
    privacy_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    date_format: Mapped[str] = mapped_column(String(20), default="MM/DD/YYYY")
    number_format: Mapped[str] = mapped_column(String(20), default="US")
    timezone: Mapped[str] = mapped_column(String(50), default="UTC")


# =============================================================================
# ACCOUNTS
# =============================================================================


class Platform(TimestampMixin, Base):
    """Brokerage or bank an account is held at."""
    __tablename__ = "platforms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # NULL for platforms shared by every user
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    name: Mapped[str | None] = mapped_column(String(255))
    url: Mapped[str | None] = mapped_column(String(500))

    __table_args__ = (
        Index("idx_platforms_user", "user_id"),
    )


class Account(TimestampMixin, Base):
    """Investment or cash account owned by a user."""
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(String(50), default="SECURITIES")
    group_name: Mapped[str | None] = mapped_column(String(100))
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    platform_id: Mapped[str | None] = mapped_column(ForeignKey("platforms.id", ondelete="SET NULL"))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    user: Mapped[User] = relationship(back_populates="accounts")

    __table_args__ = (
        Index("idx_accounts_user", "user_id"),
        Index("idx_accounts_currency", "currency"),
        Index("idx_accounts_platform", "platform_id"),
    )


# =============================================================================
# ASSETS, ACTIVITIES & QUOTES
# =============================================================================


class Asset(TimestampMixin, Base):
    """Tradable instrument, shared across users."""
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    isin: Mapped[str | None] = mapped_column(String(12))
    name: Mapped[str | None] = mapped_column(String(255))
    asset_type: Mapped[str | None] = mapped_column(String(50))
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    symbol_mapping: Mapped[str | None] = mapped_column(String(20))
    asset_class: Mapped[str | None] = mapped_column(String(100))
    asset_sub_class: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)
    countries: Mapped[Any | None] = mapped_column(JSON)
    categories: Mapped[Any | None] = mapped_column(JSON)
    classes: Mapped[Any | None] = mapped_column(JSON)
    attributes: Mapped[Any | None] = mapped_column(JSON)
    sectors: Mapped[Any | None] = mapped_column(JSON)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    data_source: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str | None] = mapped_column(String(500))

    __table_args__ = (
        UniqueConstraint("symbol", "data_source", name="uq_assets_symbol_data_source"),
        Index("idx_assets_type", "asset_type"),
        Index("idx_assets_currency", "currency"),
        Index("idx_assets_data_source", "data_source"),
    )


class Activity(TimestampMixin, Base):
    """Trade or cash movement recorded against an account."""
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    asset_id: Mapped[str] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    activity_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    quantity: Mapped[float | None] = Money()
    unit_price: Mapped[float | None] = Money()
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    fee: Mapped[float | None] = Money(default=0)
    amount: Mapped[float | None] = Money()
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False)
    comment: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("idx_activities_account", "account_id"),
        Index("idx_activities_asset", "asset_id"),
        Index("idx_activities_type", "activity_type"),
        Index("idx_activities_date", "activity_date"),
    )


class Quote(Base):
    """Price bar for a symbol from one data source."""
    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    open_price: Mapped[float | None] = Money()
    high_price: Mapped[float | None] = Money()
    low_price: Mapped[float | None] = Money()
    close_price: Mapped[float | None] = Money()
    adj_close_price: Mapped[float | None] = Money()
    volume: Mapped[int | None] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    data_source: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("symbol", "timestamp", "data_source", name="uq_quotes_symbol_timestamp_source"),
        Index("idx_quotes_symbol", "symbol"),
        Index("idx_quotes_timestamp", "timestamp"),
        Index("idx_quotes_symbol_timestamp", "symbol", "timestamp"),
    )


# =============================================================================
# GOALS & LIMITS
# =============================================================================


class Goal(TimestampMixin, Base):
    """Savings target funded by a share of one or more accounts."""
    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    target_amount: Mapped[float] = Money(nullable=False)
    is_achieved: Mapped[bool] = mapped_column(Boolean, default=False)

    allocations: Mapped[list[GoalAllocation]] = relationship(back_populates="goal", passive_deletes=True)

    __table_args__ = (
        Index("idx_goals_user", "user_id"),
    )


class GoalAllocation(TimestampMixin, Base):
    """Percentage of an account's value assigned to a goal."""
    __tablename__ = "goals_allocation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    percent_allocation: Mapped[int] = mapped_column(Integer, nullable=False)
    goal_id: Mapped[str] = mapped_column(ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    goal: Mapped[Goal] = relationship(back_populates="allocations")

    __table_args__ = (
        Index("idx_goals_allocation_goal", "goal_id"),
        Index("idx_goals_allocation_account", "account_id"),
    )


class ContributionLimit(TimestampMixin, Base):
    """Yearly deposit cap for a group of accounts."""
    __tablename__ = "contribution_limits"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    group_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contribution_year: Mapped[int] = mapped_column(Integer, nullable=False)
    limit_amount: Mapped[float] = Money(nullable=False)
    account_ids: Mapped[list[str] | None] = mapped_column(JSON)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_contribution_limits_user", "user_id"),
        Index("idx_contribution_limits_year", "contribution_year"),
    )


class ActivityImportProfile(TimestampMixin, Base):
    """Saved column mappings for importing an account's activities."""
    __tablename__ = "activity_import_profiles"

    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    field_mappings: Mapped[dict] = mapped_column(JSON, nullable=False)
    activity_mappings: Mapped[dict] = mapped_column(JSON, nullable=False)
    symbol_mappings: Mapped[dict] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        Index("idx_activity_import_profiles_user", "user_id"),
    )


# =============================================================================
# VALUATION HISTORY
# =============================================================================


class HoldingsSnapshot(Base):
    """Positions of an account as of one day."""
    __tablename__ = "holdings_snapshots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    positions: Mapped[Any] = mapped_column(JSON, nullable=False)
    cash_balances: Mapped[Any] = mapped_column(JSON, nullable=False)
    cost_basis: Mapped[float] = Money(nullable=False)
    net_contribution: Mapped[float] = Money(nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("account_id", "snapshot_date", name="uq_holdings_snapshots_account_date"),
        Index("idx_holdings_snapshots_account", "account_id"),
        Index("idx_holdings_snapshots_date", "snapshot_date"),
    )


class DailyAccountValuation(Base):
    """Valuation of an account on one day, in account and base currency."""
    __tablename__ = "daily_account_valuation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    valuation_date: Mapped[date] = mapped_column(Date, nullable=False)
    account_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    fx_rate_to_base: Mapped[float] = Money(nullable=False)
    cash_balance: Mapped[float] = Money(nullable=False)
    investment_market_value: Mapped[float] = Money(nullable=False)
    total_value: Mapped[float] = Money(nullable=False)
    cost_basis: Mapped[float] = Money(nullable=False)
    net_contribution: Mapped[float] = Money(nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("account_id", "valuation_date", name="uq_daily_account_valuation_account_date"),
        Index("idx_daily_account_valuation_account", "account_id"),
        Index("idx_daily_account_valuation_date", "valuation_date"),
    )


class ExchangeRate(Base):
    """Conversion rate between two currencies.

    Rows without a user are the shared defaults. A user's own row for the
    same ``BASE-TARGET`` pair overrides the default for that user only.
    """
    __tablename__ = "exchange_rates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    pair: Mapped[str] = mapped_column(String(7), nullable=False)
    base_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    target_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[float] = Money(nullable=False)
    source: Mapped[str] = mapped_column(String(50), default="MANUAL")
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("rate > 0", name="positive_rate"),
        UniqueConstraint("user_id", "pair", name="uq_exchange_rates_user_pair"),
        Index("idx_exchange_rates_user", "user_id"),
    )
