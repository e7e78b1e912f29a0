"""Contribution limit API routes."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import CurrentUser, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.database.session import DbSession
from app.portfolio.contributions import deposit_window, limit_usage
from app.repositories import accounts_orm as accounts_repo
from app.repositories import limits_orm as limits_repo
from app.schemas.common import ApiResponse, MessageResponse, ok
from app.schemas.limits import (
    GroupAccountResponse,
    LimitCreateRequest,
    LimitDepositsResponse,
    LimitResponse,
    LimitSummaryItem,
    LimitUpdateRequest,
)


router = APIRouter(prefix="/limits", tags=["Contribution Limits"])


async def _get_limit_or_404(db: DbSession, user_id: str, limit_id: str) -> dict:
    limit = await limits_repo.get_limit(db, user_id, limit_id)
    if not limit:
        raise NotFoundError(message="Contribution limit not found")
    return limit


def _window(limit: dict):
    return deposit_window(limit["contribution_year"], limit["start_date"], limit["end_date"])


@router.get("", response_model=ApiResponse[List[LimitResponse]])
async def list_limits(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await limits_repo.list_limits(db, user.id))


@router.get("/summary", response_model=ApiResponse[List[LimitSummaryItem]])
async def limits_summary(
    db: DbSession,
    year: Optional[int] = Query(None, description="Only limits of this contribution year"),
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Deposits, headroom and utilization of each limit."""
    summary = []
    for limit in await limits_repo.list_limits(db, user.id, year=year):
        start, end = _window(limit)
        deposits = await limits_repo.total_deposits(db, user.id, limit["account_ids"], start, end)
        summary.append(
            {
                "id": limit["id"],
                "group_name": limit["group_name"],
                "contribution_year": limit["contribution_year"],
                "limit_amount": limit["limit_amount"],
                **limit_usage(limit["limit_amount"], deposits),
            }
        )
    return ok(summary)


@router.post("", response_model=ApiResponse[LimitResponse], status_code=status.HTTP_201_CREATED)
async def create_limit(
    payload: LimitCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if await limits_repo.find_limit(db, user.id, payload.group_name, payload.contribution_year):
        raise BadRequestError(message="Contribution limit already exists for this group and year")
    return ok(await limits_repo.create_limit(db, user.id, **payload.model_dump()))


@router.get("/groups", response_model=ApiResponse[List[str]])
async def account_groups(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await accounts_repo.list_groups(db, user.id))


@router.get("/groups/{group_name}/accounts", response_model=ApiResponse[List[GroupAccountResponse]])
async def group_accounts(
    group_name: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await accounts_repo.list_group_accounts(db, user.id, group_name))


@router.get("/{limit_id}", response_model=ApiResponse[LimitResponse])
async def get_limit(
    limit_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await _get_limit_or_404(db, user.id, limit_id))


@router.put("/{limit_id}", response_model=ApiResponse[LimitResponse])
async def update_limit(
    limit_id: str,
    payload: LimitUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    await _get_limit_or_404(db, user.id, limit_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequestError(message="No valid fields provided for update")
    return ok(await limits_repo.update_limit(db, user.id, limit_id, changes))


@router.delete("/{limit_id}", response_model=ApiResponse[MessageResponse])
async def delete_limit(
    limit_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not await limits_repo.delete_limit(db, user.id, limit_id):
        raise NotFoundError(message="Contribution limit not found")
    return ok({"message": "Contribution limit deleted successfully"})


@router.get("/{limit_id}/deposits", response_model=ApiResponse[LimitDepositsResponse])
async def limit_deposits(
    limit_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Deposits counted against a limit, newest first."""
    limit = await _get_limit_or_404(db, user.id, limit_id)
    start, end = _window(limit)
    deposits = await limits_repo.list_deposits(db, user.id, limit["account_ids"], start, end)
    total = sum(d["amount"] or 0 for d in deposits)
    usage = limit_usage(limit["limit_amount"], total)
    return ok(
        {
            "limit": limit,
            "deposits": deposits,
            "total_deposits": total,
            "remaining_limit": usage["remaining_limit"],
        }
    )
