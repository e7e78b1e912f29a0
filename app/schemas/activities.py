"""Activity schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime, reject_null


ACTIVITY_TYPES = (
    "BUY",
    "SELL",
    "DIVIDEND",
    "INTEREST",
    "DISTRIBUTION",
    "DEPOSIT",
    "WITHDRAWAL",
    "CONTRIBUTION",
    "TRANSFER_IN",
    "TRANSFER_OUT",
    "FEE",
    "TAX",
    "SPLIT",
)


class ActivityCreateRequest(BaseModel):
    """Create activity request."""

    account_id: str = Field(..., min_length=1)
    asset_id: str = Field(..., min_length=1)
    activity_type: str = Field(..., min_length=1, max_length=50, examples=list(ACTIVITY_TYPES))
    activity_date: UtcDatetime
    quantity: float | None = None
    unit_price: float | None = None
    currency: str = Field(..., min_length=3, max_length=3)
    fee: float = 0
    amount: float | None = None
    is_draft: bool = False
    comment: str | None = None
    description: str | None = None

    @field_validator("activity_type", "currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper()


class ActivityUpdateRequest(BaseModel):
    """Partial activity update."""

    account_id: str | None = None
    asset_id: str | None = None
    activity_type: str | None = Field(default=None, min_length=1, max_length=50)
    activity_date: UtcDatetime | None = None
    quantity: float | None = None
    unit_price: float | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    fee: float | None = None
    amount: float | None = None
    is_draft: bool | None = None
    comment: str | None = None
    description: str | None = None

    @field_validator("activity_type", "currency")
    @classmethod
    def upper(cls, v: str | None) -> str | None:
        return v.strip().upper() if v else v

    @field_validator(
        "account_id", "asset_id", "activity_type", "activity_date", "currency", "is_draft"
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class ActivityImportRequest(BaseModel):
    """Bulk import request. An empty list is rejected by the handler."""

    activities: list[ActivityCreateRequest] | None = None


class ActivityResponse(BaseModel):
    """Activity response."""

    id: str
    account_id: str
    asset_id: str
    activity_type: str
    activity_date: UtcDatetime
    quantity: float | None = None
    unit_price: float | None = None
    currency: str
    fee: float | None = None
    amount: float | None = None
    is_draft: bool
    comment: str | None = None
    description: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class ActivityDetailResponse(ActivityResponse):
    """Activity joined with its account and asset names."""

    account_name: str | None = None
    asset_symbol: str | None = None
    asset_name: str | None = None


class ActivityImportResponse(BaseModel):
    """Bulk import result."""

    imported_count: int
    activities: list[ActivityResponse]
