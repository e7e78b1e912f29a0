"""scope_platforms_and_rates

Revision ID: 0005
Revises: 0004
Create Date: 2025-01-27 09:30:00.000000+00:00

Platforms and exchange rates become owned by users. Rows without an owner
are shared: existing platforms stay visible to everyone, and the existing
exchange rates become the defaults each user can override.
"""

import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0005"
down_revision: Union[str, None] = "0004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


_RATE_COLUMNS = ("base_currency", "target_currency", "rate", "source", "last_updated")
_RATE_TYPES = {
    "base_currency": sa.String,
    "target_currency": sa.String,
    "rate": sa.Numeric(20, 8),
    "source": sa.String,
    "last_updated": sa.DateTime(timezone=True),
}


def _old_rates_table() -> sa.Table:
    return sa.table(
        "exchange_rates",
        sa.column("id", sa.String),
        *(sa.column(name, _RATE_TYPES[name]) for name in _RATE_COLUMNS),
    )


def upgrade() -> None:
    """Add owners to platforms and exchange rates."""
    bind = op.get_bind()

    op.add_column("platforms", sa.Column("user_id", sa.String(36), nullable=True))
    # SQLite can only add the constraint by rebuilding platforms, which would
    # null every account's platform_id through ON DELETE SET NULL
    if bind.dialect.name != "sqlite":
        op.create_foreign_key(
            "fk_platforms_user_id_users",
            "platforms",
            "users",
            ["user_id"],
            ["id"],
            ondelete="CASCADE",
        )
    op.create_index("idx_platforms_user", "platforms", ["user_id"])

    # The primary key changes from the pair to a surrogate id
    existing = [dict(row._mapping) for row in bind.execute(sa.select(_old_rates_table()))]
    op.drop_table("exchange_rates")

    exchange_rates = op.create_table(
        "exchange_rates",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_exchange_rates_user_id_users"),
            nullable=True,
        ),
        sa.Column("pair", sa.String(7), nullable=False),
        sa.Column("base_currency", sa.String(3), nullable=False),
        sa.Column("target_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.Numeric(20, 8), nullable=False),
        sa.Column("source", sa.String(50), server_default="MANUAL"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_exchange_rates"),
        sa.CheckConstraint("rate > 0", name=op.f("ck_exchange_rates_positive_rate")),
        sa.UniqueConstraint("user_id", "pair", name="uq_exchange_rates_user_pair"),
    )
    op.create_index("idx_exchange_rates_user", "exchange_rates", ["user_id"])

    if existing:
        op.bulk_insert(
            exchange_rates,
            [
                {
                    "id": str(uuid.uuid4()),
                    "user_id": None,
                    "pair": row["id"],
                    **{name: row[name] for name in _RATE_COLUMNS},
                }
                for row in existing
            ],
        )


def downgrade() -> None:
    bind = op.get_bind()
    shared = sa.table(
        "exchange_rates",
        sa.column("user_id", sa.String),
        sa.column("pair", sa.String),
        *(sa.column(name, _RATE_TYPES[name]) for name in _RATE_COLUMNS),
    )
    defaults = [
        dict(row._mapping)
        for row in bind.execute(sa.select(shared).where(shared.c.user_id.is_(None)))
    ]
    op.drop_index("idx_exchange_rates_user", table_name="exchange_rates")
    op.drop_table("exchange_rates")

    exchange_rates = op.create_table(
        "exchange_rates",
        sa.Column("id", sa.String(7), primary_key=True),
        sa.Column("base_currency", sa.String(3), nullable=False),
        sa.Column("target_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.Numeric(20, 8), nullable=False),
        sa.Column("source", sa.String(50), server_default="MANUAL"),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rate > 0", name=op.f("ck_exchange_rates_positive_rate")),
        sa.UniqueConstraint("base_currency", "target_currency", name="uq_exchange_rates_pair"),
    )
    if defaults:
        op.bulk_insert(
            exchange_rates,
            [{"id": row["pair"], **{name: row[name] for name in _RATE_COLUMNS}} for row in defaults],
        )

    op.drop_index("idx_platforms_user", table_name="platforms")
    if bind.dialect.name != "sqlite":
        op.drop_constraint("fk_platforms_user_id_users", "platforms", type_="foreignkey")
    op.drop_column("platforms", "user_id")
