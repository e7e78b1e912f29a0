"""Utility API routes: backup and restore, data export, health and stats."""

from __future__ import annotations

import io
import json
from datetime import UTC, datetime
from typing import Literal

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, StreamingResponse

from app.api.dependencies import CurrentUser, require_user
from app.api.routes.health import db_healthcheck, uptime_seconds
from app.core.config import settings
from app.core.exceptions import BadRequestError
from app.core.logging import get_logger
from app.database.session import DbSession
from app.repositories import backups_orm as backups_repo
from app.schemas.common import ApiResponse, ok
from app.schemas.utilities import (
    BackupResponse,
    DatabaseStatsResponse,
    RestoreRequest,
    RestoreResponse,
    SystemHealthResponse,
)


logger = get_logger("api.routes.utilities")

router = APIRouter(prefix="/utilities", tags=["Utilities"])

BACKUP_VERSION = "1.0.0"


def _data_tables(data: dict) -> list[str]:
    return [k for k in data if k not in ("backup_created_at", "backup_version")]


@router.post("/backup", response_model=ApiResponse[BackupResponse])
async def create_backup(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Snapshot of every row the user owns, ready to be fed to /restore."""
    created_at = datetime.now(UTC)
    data = jsonable_encoder(await backups_repo.collect_user_data(db, user.id))
    data["backup_created_at"] = created_at.isoformat()
    data["backup_version"] = BACKUP_VERSION

    logger.info(f"Backup created for user {user.id}")
    return ok(
        {
            "backup_id": f"backup_{user.id}_{int(created_at.timestamp() * 1000)}",
            "backup_size": len(json.dumps(data).encode()),
            "backup_created_at": created_at,
            "tables_backed_up": _data_tables(data),
            "backup_data": data,
        }
    )


@router.post("/restore", response_model=ApiResponse[RestoreResponse])
async def restore_backup(
    db: DbSession,
    payload: RestoreRequest | None = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """
    Replace the user's data with a backup.

    The whole restore runs in the request transaction: any failure leaves
    the existing data untouched.
    """
    data = payload.backup_data if payload else None
    if not data:
        raise BadRequestError(message="Backup data is required")
    for table in backups_repo.REQUIRED_TABLES:
        if data.get(table) is None:
            raise BadRequestError(message=f"Invalid backup data: missing {table}")

    try:
        await backups_repo.restore_user_data(db, user.id, data)
    except (ValueError, TypeError, AttributeError) as e:
        raise BadRequestError(message=f"Invalid backup data: {e}") from e

    logger.info(f"Backup restored for user {user.id}")
    return ok({"restored_at": datetime.now(UTC), "tables_restored": _data_tables(data)})


@router.get("/export")
async def export_data(
    db: DbSession,
    format: Literal["json", "csv"] = Query("json", description="Output format"),
    table: Literal["accounts", "activities", "goals"] = Query(
        "activities", description="Table to export as CSV"
    ),
    user: CurrentUser = Depends(require_user),
):
    """Download the user's data as a JSON document or one table as CSV."""
    stamp = int(datetime.now(UTC).timestamp() * 1000)

    if format == "csv":
        rows = jsonable_encoder(await backups_repo.export_table(db, user.id, table))
        df = pd.DataFrame(rows, columns=backups_repo.export_columns(table))
        csv_buffer = io.StringIO()
        df.to_csv(csv_buffer, index=False)
        csv_buffer.seek(0)
        return StreamingResponse(
            iter([csv_buffer.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="wealthwatch_{table}_{stamp}.csv"'
            },
        )

    data = await backups_repo.collect_user_data(db, user.id)
    data["export_created_at"] = datetime.now(UTC)
    data["export_version"] = BACKUP_VERSION
    return JSONResponse(
        content=jsonable_encoder(ok(data)),
        headers={"Content-Disposition": f'attachment; filename="wealthwatch_export_{stamp}.json"'},
    )


@router.get("/health", response_model=ApiResponse[SystemHealthResponse])
async def system_health(
    user: CurrentUser = Depends(require_user),
):
    db_ok, error = await db_healthcheck()
    now = datetime.now(UTC)
    if not db_ok:
        body = {
            "success": False,
            "data": {
                "status": "unhealthy",
                "timestamp": now,
                "database": "disconnected",
                "error": error,
            },
            "error": "Database connection failed",
        }
        return JSONResponse(status_code=503, content=jsonable_encoder(body))

    return ok(
        {
            "status": "healthy",
            "timestamp": now,
            "database": "connected",
            "version": settings.app_version,
            "uptime": uptime_seconds(),
            "environment": settings.environment,
        }
    )


@router.get("/stats", response_model=ApiResponse[DatabaseStatsResponse])
async def database_stats(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    counts = await backups_repo.table_counts(db, user.id)
    return ok({**counts, "generated_at": datetime.now(UTC)})
