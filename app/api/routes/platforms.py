"""Platform API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.dependencies import CurrentUser, require_user
from app.core.exceptions import NotFoundError
from app.database.session import DbSession
from app.repositories import accounts_orm as accounts_repo
from app.schemas.accounts import PlatformCreateRequest, PlatformResponse
from app.schemas.common import ApiResponse, MessageResponse, ok


router = APIRouter(prefix="/platforms", tags=["Platforms"])


@router.get("", response_model=ApiResponse[List[PlatformResponse]])
async def list_platforms(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await accounts_repo.list_platforms(db, user.id))


@router.post("", response_model=ApiResponse[PlatformResponse], status_code=status.HTTP_201_CREATED)
async def create_platform(
    payload: PlatformCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await accounts_repo.create_platform(db, user.id, payload.name, payload.url))


@router.delete("/{platform_id}", response_model=ApiResponse[MessageResponse])
async def delete_platform(
    platform_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Delete one of the caller's platforms. Accounts held there lose the link."""
    if not await accounts_repo.delete_platform(db, user.id, platform_id):
        raise NotFoundError(message="Platform not found")
    return ok({"message": "Platform deleted successfully"})
