"""Contribution limit schemas."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime, reject_null


class LimitCreateRequest(BaseModel):
    """Create contribution limit request."""

    group_name: str = Field(..., min_length=1, max_length=255)
    contribution_year: int = Field(..., ge=1900, le=2200)
    limit_amount: float = Field(..., gt=0)
    account_ids: List[str] | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None


class LimitUpdateRequest(BaseModel):
    group_name: str | None = Field(default=None, min_length=1, max_length=255)
    contribution_year: int | None = Field(default=None, ge=1900, le=2200)
    limit_amount: float | None = Field(default=None, ge=0)
    account_ids: List[str] | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None

    @field_validator("group_name", "contribution_year", "limit_amount")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class LimitResponse(BaseModel):
    id: str
    group_name: str
    contribution_year: int
    limit_amount: float
    account_ids: List[str]
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class LimitSummaryItem(BaseModel):
    id: str
    group_name: str
    contribution_year: int
    limit_amount: float
    total_deposits: float
    remaining_limit: float
    utilization_percent: float


class DepositResponse(BaseModel):
    id: str
    account_id: str
    activity_type: str
    activity_date: UtcDatetime
    amount: float | None = None
    currency: str
    comment: str | None = None
    account_name: str | None = None
    symbol: str | None = None
    asset_name: str | None = None


class LimitDepositsResponse(BaseModel):
    """A limit with the deposits counted against it."""

    limit: LimitResponse
    deposits: List[DepositResponse]
    total_deposits: float
    remaining_limit: float


class GroupAccountResponse(BaseModel):
    id: str
    name: str
    account_type: str
    currency: str
    is_active: bool
