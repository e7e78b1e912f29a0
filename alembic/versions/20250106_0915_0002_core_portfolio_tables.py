"""core_portfolio_tables

Revision ID: 0002
Revises: 0001
Create Date: 2025-01-06 09:15:00.000000+00:00

Accounts, assets, activities, quotes, goals, contribution limits and
the valuation history tables.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(20, 8), **kwargs)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _fk(column: str, target: str, table: str, ondelete: str, **kwargs) -> sa.Column:
    referred = target.split(".")[0]
    return sa.Column(
        column,
        sa.String(36),
        sa.ForeignKey(target, ondelete=ondelete, name=f"fk_{table}_{column}_{referred}"),
        **kwargs,
    )


def upgrade() -> None:
    """Create the portfolio tables."""
    op.create_table(
        "platforms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255)),
        sa.Column("url", sa.String(500)),
        *_timestamps(),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("user_id", "users.id", "accounts", "CASCADE", nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("account_type", sa.String(50), server_default="SECURITIES"),
        sa.Column("group_name", sa.String(100)),
        sa.Column("currency", sa.String(3), nullable=False),
        _fk("platform_id", "platforms.id", "accounts", "SET NULL"),
        sa.Column("is_default", sa.Boolean(), server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("idx_accounts_user", "accounts", ["user_id"])
    op.create_index("idx_accounts_currency", "accounts", ["currency"])
    op.create_index("idx_accounts_platform", "accounts", ["platform_id"])

    op.create_table(
        "assets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("isin", sa.String(12)),
        sa.Column("name", sa.String(255)),
        sa.Column("asset_type", sa.String(50)),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("symbol_mapping", sa.String(20)),
        sa.Column("asset_class", sa.String(100)),
        sa.Column("asset_sub_class", sa.String(100)),
        sa.Column("notes", sa.Text()),
        sa.Column("countries", sa.JSON()),
        sa.Column("categories", sa.JSON()),
        sa.Column("classes", sa.JSON()),
        sa.Column("attributes", sa.JSON()),
        sa.Column("sectors", sa.JSON()),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("data_source", sa.String(50), nullable=False),
        sa.Column("url", sa.String(500)),
        *_timestamps(),
        sa.UniqueConstraint("symbol", "data_source", name="uq_assets_symbol_data_source"),
    )
    op.create_index("idx_assets_type", "assets", ["asset_type"])
    op.create_index("idx_assets_currency", "assets", ["currency"])
    op.create_index("idx_assets_data_source", "assets", ["data_source"])

    op.create_table(
        "activities",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("account_id", "accounts.id", "activities", "CASCADE", nullable=False),
        _fk("asset_id", "assets.id", "activities", "CASCADE", nullable=False),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("activity_date", sa.DateTime(timezone=True), nullable=False),
        _money("quantity"),
        _money("unit_price"),
        sa.Column("currency", sa.String(3), nullable=False),
        _money("fee", server_default="0"),
        _money("amount"),
        sa.Column("is_draft", sa.Boolean(), server_default=sa.false()),
        sa.Column("comment", sa.Text()),
        *_timestamps(),
    )
    op.create_index("idx_activities_account", "activities", ["account_id"])
    op.create_index("idx_activities_asset", "activities", ["asset_id"])
    op.create_index("idx_activities_type", "activities", ["activity_type"])
    op.create_index("idx_activities_date", "activities", ["activity_date"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        _money("open_price"),
        _money("high_price"),
        _money("low_price"),
        _money("close_price"),
        _money("adj_close_price"),
        sa.Column("volume", sa.BigInteger()),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("data_source", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "symbol", "timestamp", "data_source", name="uq_quotes_symbol_timestamp_source"
        ),
    )
    op.create_index("idx_quotes_symbol", "quotes", ["symbol"])
    op.create_index("idx_quotes_timestamp", "quotes", ["timestamp"])
    op.create_index("idx_quotes_symbol_timestamp", "quotes", ["symbol", "timestamp"])

    op.create_table(
        "goals",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("user_id", "users.id", "goals", "CASCADE", nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        _money("target_amount", nullable=False),
        sa.Column("is_achieved", sa.Boolean(), server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("idx_goals_user", "goals", ["user_id"])

    op.create_table(
        "goals_allocation",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("percent_allocation", sa.Integer(), nullable=False),
        _fk("goal_id", "goals.id", "goals_allocation", "CASCADE", nullable=False),
        _fk("account_id", "accounts.id", "goals_allocation", "CASCADE", nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_goals_allocation_goal", "goals_allocation", ["goal_id"])
    op.create_index("idx_goals_allocation_account", "goals_allocation", ["account_id"])

    op.create_table(
        "contribution_limits",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("user_id", "users.id", "contribution_limits", "CASCADE", nullable=False),
        sa.Column("group_name", sa.String(255), nullable=False),
        sa.Column("contribution_year", sa.Integer(), nullable=False),
        _money("limit_amount", nullable=False),
        sa.Column("account_ids", sa.JSON()),
        sa.Column("start_date", sa.DateTime(timezone=True)),
        sa.Column("end_date", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("idx_contribution_limits_user", "contribution_limits", ["user_id"])
    op.create_index("idx_contribution_limits_year", "contribution_limits", ["contribution_year"])

    op.create_table(
        "activity_import_profiles",
        sa.Column(
            "account_id",
            sa.String(36),
            sa.ForeignKey(
                "accounts.id",
                ondelete="CASCADE",
                name="fk_activity_import_profiles_account_id_accounts",
            ),
            primary_key=True,
        ),
        _fk("user_id", "users.id", "activity_import_profiles", "CASCADE", nullable=False),
        sa.Column("field_mappings", sa.JSON(), nullable=False),
        sa.Column("activity_mappings", sa.JSON(), nullable=False),
        sa.Column("symbol_mappings", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_activity_import_profiles_user", "activity_import_profiles", ["user_id"])

    op.create_table(
        "holdings_snapshots",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("account_id", "accounts.id", "holdings_snapshots", "CASCADE", nullable=False),
        sa.Column("snapshot_date", sa.Date(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("positions", sa.JSON(), nullable=False),
        sa.Column("cash_balances", sa.JSON(), nullable=False),
        _money("cost_basis", nullable=False),
        _money("net_contribution", nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "account_id", "snapshot_date", name="uq_holdings_snapshots_account_date"
        ),
    )
    op.create_index("idx_holdings_snapshots_account", "holdings_snapshots", ["account_id"])
    op.create_index("idx_holdings_snapshots_date", "holdings_snapshots", ["snapshot_date"])

    op.create_table(
        "daily_account_valuation",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk("account_id", "accounts.id", "daily_account_valuation", "CASCADE", nullable=False),
        sa.Column("valuation_date", sa.Date(), nullable=False),
        sa.Column("account_currency", sa.String(3), nullable=False),
        sa.Column("base_currency", sa.String(3), nullable=False),
        _money("fx_rate_to_base", nullable=False),
        _money("cash_balance", nullable=False),
        _money("investment_market_value", nullable=False),
        _money("total_value", nullable=False),
        _money("cost_basis", nullable=False),
        _money("net_contribution", nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "account_id", "valuation_date", name="uq_daily_account_valuation_account_date"
        ),
    )
    op.create_index("idx_daily_account_valuation_account", "daily_account_valuation", ["account_id"])
    op.create_index("idx_daily_account_valuation_date", "daily_account_valuation", ["valuation_date"])


def downgrade() -> None:
    """Drop the portfolio tables."""
    for table in (
        "daily_account_valuation",
        "holdings_snapshots",
        "activity_import_profiles",
        "contribution_limits",
        "goals_allocation",
        "goals",
        "quotes",
        "activities",
        "assets",
        "accounts",
        "platforms",
    ):
        op.drop_table(table)
