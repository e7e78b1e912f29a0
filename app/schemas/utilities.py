"""Backup, restore and maintenance schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.common import UtcDatetime


class BackupResponse(BaseModel):
    """A full copy of the user's data plus its metadata."""

    backup_id: str
    backup_size: int = Field(..., description="Size of the serialized backup in bytes")
    backup_created_at: UtcDatetime
    tables_backed_up: List[str]
    backup_data: Dict[str, Any]


class RestoreRequest(BaseModel):
    backup_data: Optional[Dict[str, Any]] = None


class RestoreResponse(BaseModel):
    restored_at: UtcDatetime
    tables_restored: List[str]


class SystemHealthResponse(BaseModel):
    status: str
    timestamp: UtcDatetime
    database: str
    version: str | None = None
    uptime: float | None = None
    environment: str | None = None
    error: str | None = None


class DatabaseStatsResponse(BaseModel):
    """Row counts of the user's data."""

    accounts: int
    assets: int
    activities: int
    goals: int
    quotes: int
    contribution_limits: int
    generated_at: UtcDatetime
