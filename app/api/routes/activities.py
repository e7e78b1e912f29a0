"""Activity API routes."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import CurrentUser, get_pagination, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.database.session import DbSession
from app.repositories import accounts_orm as accounts_repo
from app.repositories import activities_orm as activities_repo
from app.repositories import assets_orm as assets_repo
from app.schemas.activities import (
    ActivityCreateRequest,
    ActivityDetailResponse,
    ActivityImportRequest,
    ActivityImportResponse,
    ActivityResponse,
    ActivityUpdateRequest,
)
from app.schemas.common import ApiResponse, MessageResponse, PaginationParams, ok, paginated


logger = get_logger("api.routes.activities")

router = APIRouter(prefix="/activities", tags=["Activities"])


async def _check_references(
    db: DbSession,
    user_id: str,
    account_id: str | None,
    asset_id: str | None,
) -> None:
    """404 unless the account belongs to the user and the asset exists."""
    if account_id and not await accounts_repo.get_account(db, user_id, account_id):
        raise NotFoundError(message="Account not found or does not belong to user")
    if asset_id and not await assets_repo.get_asset(db, asset_id):
        raise NotFoundError(message="Asset not found")


@router.get("", response_model=ApiResponse[List[ActivityDetailResponse]])
async def list_activities(
    db: DbSession,
    page: PaginationParams = Depends(get_pagination),
    account_id: Optional[str] = Query(None),
    activity_type: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match symbol, asset name or comment"),
    user: CurrentUser = Depends(require_user),
) -> dict:
    rows, total = await activities_repo.list_activities(
        db,
        user.id,
        limit=page.limit,
        offset=page.offset,
        account_id=account_id,
        activity_type=activity_type.upper() if activity_type else None,
        search=search,
    )
    return paginated(rows, page, total)


@router.get("/types", response_model=ApiResponse[List[str]])
async def activity_types(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await activities_repo.list_activity_types(db, user.id))


@router.get("/{activity_id}", response_model=ApiResponse[ActivityDetailResponse])
async def get_activity(
    activity_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    activity = await activities_repo.get_activity(db, user.id, activity_id)
    if not activity:
        raise NotFoundError(message="Activity not found")
    return ok(activity)


@router.post("", response_model=ApiResponse[ActivityResponse], status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    await _check_references(db, user.id, payload.account_id, payload.asset_id)
    return ok(await activities_repo.create_activity(db, **payload.model_dump()))


@router.post(
    "/import",
    response_model=ApiResponse[ActivityImportResponse],
    status_code=status.HTTP_201_CREATED,
)
async def import_activities(
    payload: ActivityImportRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """
    Bulk import activities.

    The whole batch is validated before anything is written: every account
    must belong to the caller and every asset must exist.
    """
    if not payload.activities:
        raise BadRequestError(message="Activities array is required")

    account_ids = list({a.account_id for a in payload.activities})
    owned = await accounts_repo.owned_account_ids(db, user.id, account_ids)
    if len(owned) != len(account_ids):
        raise BadRequestError(message="One or more accounts do not belong to user")

    asset_ids = list({a.asset_id for a in payload.activities})
    existing = await assets_repo.existing_asset_ids(db, asset_ids)
    if len(existing) != len(asset_ids):
        raise BadRequestError(message="One or more assets do not exist")

    created = await activities_repo.create_activities(
        db, [a.model_dump() for a in payload.activities]
    )
    logger.info(
        "Activities imported",
        extra={"user_id": user.id, "count": len(created)},
    )
    return ok({"imported_count": len(created), "activities": created})


@router.put("/{activity_id}", response_model=ApiResponse[ActivityResponse])
async def update_activity(
    activity_id: str,
    payload: ActivityUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    await _check_references(db, user.id, changes.get("account_id"), changes.get("asset_id"))
    activity = await activities_repo.update_activity(db, user.id, activity_id, changes)
    if not activity:
        raise NotFoundError(message="Activity not found")
    return ok(activity)


@router.delete("/{activity_id}", response_model=ApiResponse[MessageResponse])
async def delete_activity(
    activity_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not await activities_repo.delete_activity(db, user.id, activity_id):
        raise NotFoundError(message="Activity not found")
    return ok({"message": "Activity deleted successfully"})
