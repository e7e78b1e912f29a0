"""Account API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.dependencies import CurrentUser, get_pagination, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.database.session import DbSession
from app.repositories import accounts_orm as accounts_repo
from app.schemas.accounts import (
    AccountCreateRequest,
    AccountResponse,
    AccountSummaryResponse,
    AccountUpdateRequest,
)
from app.schemas.common import ApiResponse, MessageResponse, PaginationParams, ok, paginated


router = APIRouter(prefix="/accounts", tags=["Accounts"])


async def _check_platform(db: DbSession, user_id: str, platform_id: str | None) -> None:
    if platform_id and not await accounts_repo.get_platform(db, user_id, platform_id):
        raise NotFoundError(message="Platform not found")


@router.get("", response_model=ApiResponse[List[AccountResponse]])
async def list_accounts(
    db: DbSession,
    page: PaginationParams = Depends(get_pagination),
    user: CurrentUser = Depends(require_user),
) -> dict:
    rows, total = await accounts_repo.list_accounts(
        db, user.id, limit=page.limit, offset=page.offset
    )
    return paginated(rows, page, total)


@router.get("/summary", response_model=ApiResponse[List[AccountSummaryResponse]])
async def account_summary(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Active accounts with activity counts and the latest activity date."""
    return ok(await accounts_repo.account_summaries(db, user.id))


@router.get("/{account_id}", response_model=ApiResponse[AccountResponse])
async def get_account(
    account_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    account = await accounts_repo.get_account(db, user.id, account_id)
    if not account:
        raise NotFoundError(message="Account not found")
    return ok(account)


@router.post("", response_model=ApiResponse[AccountResponse], status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Create an account. A new default account replaces the previous one."""
    await _check_platform(db, user.id, payload.platform_id)
    created = await accounts_repo.create_account(db, user.id, **payload.model_dump())
    return ok(created)


@router.put("/{account_id}", response_model=ApiResponse[AccountResponse])
async def update_account(
    account_id: str,
    payload: AccountUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    await _check_platform(db, user.id, changes.get("platform_id"))
    updated = await accounts_repo.update_account(db, user.id, account_id, changes)
    if not updated:
        raise NotFoundError(message="Account not found")
    return ok(updated)


@router.delete("/{account_id}", response_model=ApiResponse[MessageResponse])
async def delete_account(
    account_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Delete an account that has no activities."""
    if not await accounts_repo.get_account(db, user.id, account_id):
        raise NotFoundError(message="Account not found")

    if await accounts_repo.count_activities(db, account_id) > 0:
        raise BadRequestError(
            message="Cannot delete account with existing activities",
            error_code="ACCOUNT_HAS_ACTIVITIES",
        )

    await accounts_repo.delete_account(db, user.id, account_id)
    return ok({"message": "Account deleted successfully"})
