"""Apply pending Alembic migrations at application startup."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy.engine import Connection

from app.core.logging import get_logger
from app.database.connection import get_engine


logger = get_logger("database.migrations")

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _alembic_config() -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config


def _upgrade(connection: Connection) -> None:
    config = _alembic_config()
    config.attributes["connection"] = connection
    command.upgrade(config, "head")


async def run_migrations() -> None:
    """Upgrade the schema to head over the application engine."""
    engine = await get_engine()
    logger.info("Applying database migrations")
    async with engine.begin() as conn:
        await conn.run_sync(_upgrade)
    logger.info("Database schema is up to date")
