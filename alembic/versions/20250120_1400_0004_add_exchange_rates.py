"""add_exchange_rates

Revision ID: 0004
Revises: 0003
Create Date: 2025-01-20 14:00:00.000000+00:00

Persisted currency conversion rates, seeded with the common USD pairs.
"""

from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0004"
down_revision: Union[str, None] = "0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


SEED_RATES = [
    ("USD", "EUR", 0.85),
    ("USD", "GBP", 0.73),
    ("USD", "CAD", 1.35),
    ("USD", "CHF", 0.88),
    ("USD", "JPY", 110.5),
]


def upgrade() -> None:
    """Create exchange_rates and seed it."""
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

    now = datetime.now(timezone.utc)
    op.bulk_insert(
        exchange_rates,
        [
            {
                "id": f"{base}-{target}",
                "base_currency": base,
                "target_currency": target,
                "rate": rate,
                "source": "ECB",
                "last_updated": now,
            }
            for base, target, rate in SEED_RATES
        ],
    )


def downgrade() -> None:
    op.drop_table("exchange_rates")
