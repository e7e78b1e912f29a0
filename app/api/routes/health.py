"""Health check endpoints."""

from __future__ import annotations

import time
from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import get_logger
from app.database.connection import ping_database
from app.schemas.common import HealthResponse


router = APIRouter(prefix="/health")

logger = get_logger("health")

STARTED_AT = time.monotonic()


def uptime_seconds() -> float:
    return round(time.monotonic() - STARTED_AT, 3)


async def db_healthcheck() -> tuple[bool, str | None]:
    """Ping the database; returns (ok, error message)."""
    try:
        await ping_database()
    except Exception as e:
        logger.warning(f"Database healthcheck failed: {e}")
        return False, str(e)
    return True, None


@router.get(
    "",
    response_model=HealthResponse,
    response_model_exclude={"checks"},
    summary="Health check",
    description="Report that the API process is up.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="OK",
        version=settings.app_version,
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the API is ready to accept traffic.",
)
async def readiness_check():
    """
    Kubernetes-style readiness probe.

    Returns 200 when the database answers, 503 otherwise.
    """
    db_ok, _ = await db_healthcheck()
    if not db_ok:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "checks": {"database": False}},
        )
    return {"status": "ready", "checks": {"database": True}}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the API process is alive.",
)
async def liveness_check() -> dict:
    """
    Kubernetes-style liveness probe.

    Simple check that the process is running.
    """
    return {"status": "alive"}
