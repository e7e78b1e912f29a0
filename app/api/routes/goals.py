"""Goal API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from app.api.dependencies import CurrentUser, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.database.session import DbSession
from app.portfolio import service as portfolio_service
from app.portfolio.valuation import percent_of
from app.repositories import accounts_orm as accounts_repo
from app.repositories import goals_orm as goals_repo
from app.schemas.common import ApiResponse, MessageResponse, ok
from app.schemas.goals import (
    AllocationResponse,
    AllocationsRequest,
    GoalCreateRequest,
    GoalDetailResponse,
    GoalListItem,
    GoalProgressResponse,
    GoalResponse,
    GoalSummaryItem,
    GoalUpdateRequest,
)


router = APIRouter(prefix="/goals", tags=["Goals"])


async def _get_goal_or_404(db: DbSession, user_id: str, goal_id: str) -> dict:
    goal = await goals_repo.get_goal(db, user_id, goal_id)
    if not goal:
        raise NotFoundError(message="Goal not found")
    return goal


@router.get("", response_model=ApiResponse[List[GoalListItem]])
async def list_goals(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await goals_repo.list_goals(db, user.id))


@router.get("/summary", response_model=ApiResponse[List[GoalSummaryItem]])
async def goals_summary(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Current value and progress of every goal."""
    goals = await goals_repo.list_goals(db, user.id)
    allocations = {goal["id"]: await goals_repo.list_allocations(db, goal["id"]) for goal in goals}
    account_ids = sorted({a["account_id"] for allocs in allocations.values() for a in allocs})
    values = await portfolio_service.account_market_values(db, user.id, account_ids)

    summary = []
    for goal in goals:
        current = sum(values.get(a["account_id"], 0.0) for a in allocations[goal["id"]])
        summary.append(
            {
                "id": goal["id"],
                "title": goal["title"],
                "target_amount": goal["target_amount"],
                "current_value": current,
                "progress_percent": percent_of(current, goal["target_amount"]),
                "is_achieved": goal["is_achieved"],
                "created_at": goal["created_at"],
            }
        )
    return ok(summary)


@router.post("", response_model=ApiResponse[GoalResponse], status_code=status.HTTP_201_CREATED)
async def create_goal(
    payload: GoalCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await goals_repo.create_goal(db, user.id, **payload.model_dump()))


@router.get("/{goal_id}", response_model=ApiResponse[GoalDetailResponse])
async def get_goal(
    goal_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    goal = await _get_goal_or_404(db, user.id, goal_id)
    goal["allocations"] = await goals_repo.list_allocations(db, goal_id)
    return ok(goal)


@router.put("/{goal_id}", response_model=ApiResponse[GoalResponse])
async def update_goal(
    goal_id: str,
    payload: GoalUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    await _get_goal_or_404(db, user.id, goal_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise BadRequestError(message="No valid fields provided for update")
    return ok(await goals_repo.update_goal(db, user.id, goal_id, changes))


@router.delete("/{goal_id}", response_model=ApiResponse[MessageResponse])
async def delete_goal(
    goal_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not await goals_repo.delete_goal(db, user.id, goal_id):
        raise NotFoundError(message="Goal not found")
    return ok({"message": "Goal deleted successfully"})


@router.put("/{goal_id}/allocations", response_model=ApiResponse[List[AllocationResponse]])
async def update_allocations(
    goal_id: str,
    payload: AllocationsRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Replace all allocations of a goal. Percentages may total at most 100."""
    await _get_goal_or_404(db, user.id, goal_id)

    total = sum(a.percent_allocation for a in payload.allocations)
    if total > 100:
        raise BadRequestError(
            message="Total allocation cannot exceed 100%",
            details={"total_allocation": total},
        )

    account_ids = list({a.account_id for a in payload.allocations})
    owned = await accounts_repo.owned_account_ids(db, user.id, account_ids)
    if len(owned) != len(account_ids):
        raise BadRequestError(message="One or more accounts not found or do not belong to user")

    allocations = await goals_repo.replace_allocations(
        db, goal_id, [a.model_dump() for a in payload.allocations]
    )
    return ok(allocations)


@router.get("/{goal_id}/progress", response_model=ApiResponse[GoalProgressResponse])
async def goal_progress(
    goal_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    goal = await _get_goal_or_404(db, user.id, goal_id)
    allocations = await goals_repo.list_allocations(db, goal_id)
    values = await portfolio_service.account_market_values(
        db, user.id, [a["account_id"] for a in allocations]
    )

    progress_data = []
    total_current = 0.0
    for allocation in allocations:
        current = values.get(allocation["account_id"], 0.0)
        allocated = goal["target_amount"] * allocation["percent_allocation"] / 100
        progress_data.append(
            {
                "account_id": allocation["account_id"],
                "account_name": allocation["account_name"],
                "account_currency": allocation["account_currency"],
                "percent_allocation": allocation["percent_allocation"],
                "allocated_amount": allocated,
                "current_value": current,
                "progress_percent": percent_of(current, allocated),
            }
        )
        total_current += current

    return ok(
        {
            "goal": goal,
            "progress_data": progress_data,
            "total_current_value": total_current,
            "overall_progress_percent": percent_of(total_current, goal["target_amount"]),
        }
    )
