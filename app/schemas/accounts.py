"""Account and platform schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime, reject_null


def _upper_currency(v: str | None) -> str | None:
    return v.strip().upper() if v else v


class AccountCreateRequest(BaseModel):
    """Create account request."""

    name: str = Field(..., min_length=1, max_length=255)
    account_type: str = Field(default="SECURITIES", max_length=50)
    group_name: str | None = Field(default=None, max_length=100)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    platform_id: str | None = None
    is_default: bool = False
    is_active: bool = True

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return _upper_currency(v)


class AccountUpdateRequest(BaseModel):
    """Partial account update."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    account_type: str | None = Field(default=None, max_length=50)
    group_name: str | None = Field(default=None, max_length=100)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    platform_id: str | None = None
    is_default: bool | None = None
    is_active: bool | None = None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str | None) -> str | None:
        return _upper_currency(v)

    @field_validator("name", "account_type", "currency", "is_default", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class AccountResponse(BaseModel):
    """Account response."""

    id: str
    user_id: str
    name: str
    account_type: str | None = None
    group_name: str | None = None
    currency: str
    platform_id: str | None = None
    is_default: bool
    is_active: bool
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class AccountSummaryResponse(AccountResponse):
    """Account with activity statistics."""

    activity_count: int = 0
    last_activity_date: UtcDatetime | None = None


class PlatformCreateRequest(BaseModel):
    """Create platform request."""

    name: str = Field(..., min_length=1, max_length=255)
    url: str | None = Field(default=None, max_length=500)


class PlatformResponse(BaseModel):
    """Platform response."""

    id: str
    name: str | None = None
    url: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None
