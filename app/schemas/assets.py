"""Asset schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime, reject_null


class AssetCreateRequest(BaseModel):
    """Create asset request."""

    symbol: str = Field(..., min_length=1, max_length=20)
    name: str | None = Field(default=None, max_length=255)
    isin: str | None = Field(default=None, max_length=12)
    asset_type: str | None = Field(default=None, max_length=50)
    symbol_mapping: str | None = Field(default=None, max_length=20)
    asset_class: str | None = Field(default=None, max_length=100)
    asset_sub_class: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    countries: list[Any] | None = None
    categories: list[Any] | None = None
    classes: list[Any] | None = None
    attributes: dict[str, Any] | None = None
    sectors: list[Any] | None = None
    currency: str = Field(default="USD", min_length=3, max_length=3)
    data_source: str = Field(default="MANUAL", min_length=1, max_length=50)
    url: str | None = Field(default=None, max_length=500)

    @field_validator("symbol", "currency", "data_source")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper()


class AssetUpdateRequest(BaseModel):
    """Partial asset update. Symbol and currency are fixed once created."""

    name: str | None = Field(default=None, max_length=255)
    asset_type: str | None = Field(default=None, max_length=50)
    symbol_mapping: str | None = Field(default=None, max_length=20)
    asset_class: str | None = Field(default=None, max_length=100)
    asset_sub_class: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    countries: list[Any] | None = None
    categories: list[Any] | None = None
    classes: list[Any] | None = None
    attributes: dict[str, Any] | None = None
    sectors: list[Any] | None = None
    data_source: str | None = Field(default=None, max_length=50)
    url: str | None = Field(default=None, max_length=500)

    @field_validator("data_source")
    @classmethod
    def not_null(cls, v):
        return reject_null(v).strip().upper()


class AssetDataSourceRequest(BaseModel):
    data_source: str | None = None


class AssetResponse(BaseModel):
    """Asset response."""

    id: str
    symbol: str
    name: str | None = None
    isin: str | None = None
    asset_type: str | None = None
    symbol_mapping: str | None = None
    asset_class: str | None = None
    asset_sub_class: str | None = None
    notes: str | None = None
    countries: Any = None
    categories: Any = None
    classes: Any = None
    attributes: Any = None
    sectors: Any = None
    currency: str
    data_source: str
    url: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class AssetActivityResponse(BaseModel):
    """An activity on an asset, with its account name."""

    id: str
    account_id: str
    account_name: str | None = None
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
