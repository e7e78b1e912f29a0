"""Goals repository - SQLAlchemy ORM async."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.orm import Account, Goal, GoalAllocation


GOAL_FIELDS = ("title", "description", "target_amount", "is_achieved")


def _goal_to_dict(g: Goal) -> dict[str, Any]:
    """Convert Goal ORM object to dictionary."""
    return {
        "id": g.id,
        "user_id": g.user_id,
        "title": g.title,
        "description": g.description,
        "target_amount": g.target_amount,
        "is_achieved": bool(g.is_achieved),
        "created_at": g.created_at,
        "updated_at": g.updated_at,
    }


async def list_goals(session: AsyncSession, user_id: str) -> list[dict[str, Any]]:
    """The user's goals with their summed allocation percentage, newest first."""
    result = await session.execute(
        select(Goal, func.coalesce(func.sum(GoalAllocation.percent_allocation), 0))
        .outerjoin(GoalAllocation, GoalAllocation.goal_id == Goal.id)
        .where(Goal.user_id == user_id)
        .group_by(Goal.id)
        .order_by(desc(Goal.created_at))
    )
    return [
        {**_goal_to_dict(goal), "total_allocation": int(total)}
        for goal, total in result.all()
    ]


async def get_goal(session: AsyncSession, user_id: str, goal_id: str) -> dict[str, Any] | None:
    result = await session.execute(
        select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    )
    goal = result.scalar_one_or_none()
    return _goal_to_dict(goal) if goal else None


async def create_goal(session: AsyncSession, user_id: str, **fields: Any) -> dict[str, Any]:
    goal = Goal(user_id=user_id, **fields)
    session.add(goal)
    await session.flush()
    await session.refresh(goal)
    return _goal_to_dict(goal)


async def update_goal(
    session: AsyncSession, user_id: str, goal_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    """Apply changes restricted to GOAL_FIELDS."""
    result = await session.execute(
        select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    )
    goal = result.scalar_one_or_none()
    if goal is None:
        return None
    for field, value in changes.items():
        if field in GOAL_FIELDS:
            setattr(goal, field, value)
    await session.flush()
    await session.refresh(goal)
    return _goal_to_dict(goal)


async def delete_goal(session: AsyncSession, user_id: str, goal_id: str) -> bool:
    result = await session.execute(
        delete(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    )
    return result.rowcount > 0


# ───────────────────────────────────────────────────────────────────────────────
# Allocations
# ───────────────────────────────────────────────────────────────────────────────


async def list_allocations(session: AsyncSession, goal_id: str) -> list[dict[str, Any]]:
    """Allocations of a goal with the account name and currency."""
    result = await session.execute(
        select(GoalAllocation, Account.name, Account.currency)
        .join(Account, GoalAllocation.account_id == Account.id)
        .where(GoalAllocation.goal_id == goal_id)
        .order_by(Account.name)
    )
    return [
        {
            "id": alloc.id,
            "goal_id": alloc.goal_id,
            "account_id": alloc.account_id,
            "percent_allocation": alloc.percent_allocation,
            "account_name": name,
            "account_currency": currency,
            "created_at": alloc.created_at,
            "updated_at": alloc.updated_at,
        }
        for alloc, name, currency in result.all()
    ]


async def replace_allocations(
    session: AsyncSession, goal_id: str, allocations: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Drop every allocation of the goal and insert the given ones."""
    await session.execute(delete(GoalAllocation).where(GoalAllocation.goal_id == goal_id))
    session.add_all(
        GoalAllocation(
            goal_id=goal_id,
            account_id=alloc["account_id"],
            percent_allocation=alloc["percent_allocation"],
        )
        for alloc in allocations
    )
    await session.flush()
    return await list_allocations(session, goal_id)
