"""Goal schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime, reject_null


class GoalCreateRequest(BaseModel):
    """Create goal request."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_amount: float = Field(..., ge=0)
    is_achieved: bool = False


class GoalUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    target_amount: float | None = Field(default=None, ge=0)
    is_achieved: bool | None = None

    @field_validator("title", "target_amount", "is_achieved")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class GoalResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    target_amount: float
    is_achieved: bool
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class GoalListItem(GoalResponse):
    total_allocation: int


class AllocationInput(BaseModel):
    account_id: str = Field(..., min_length=1)
    percent_allocation: int = Field(..., ge=0, le=100)


class AllocationsRequest(BaseModel):
    """Replacement set of allocations for a goal."""

    allocations: List[AllocationInput]


class AllocationResponse(BaseModel):
    id: str
    goal_id: str
    account_id: str
    percent_allocation: int
    account_name: str | None = None
    account_currency: str | None = None


class GoalDetailResponse(GoalResponse):
    allocations: List[AllocationResponse]


class GoalSummaryItem(BaseModel):
    id: str
    title: str
    target_amount: float
    current_value: float
    progress_percent: float
    is_achieved: bool
    created_at: UtcDatetime | None = None


class AllocationProgress(BaseModel):
    account_id: str
    account_name: str | None = None
    account_currency: str | None = None
    percent_allocation: int
    allocated_amount: float
    current_value: float
    progress_percent: float


class GoalProgressResponse(BaseModel):
    """Progress of a goal, per allocated account and overall."""

    goal: GoalResponse
    progress_data: List[AllocationProgress]
    total_current_value: float
    overall_progress_percent: float
