"""Market data schemas: quotes, provider search and sync."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import UtcDatetime


class QuoteResponse(BaseModel):
    """A price bar."""

    id: str
    symbol: str
    timestamp: UtcDatetime
    open_price: float | None = None
    high_price: float | None = None
    low_price: float | None = None
    close_price: float | None = None
    adj_close_price: float | None = None
    volume: int | None = None
    currency: str
    data_source: str
    created_at: UtcDatetime | None = None


class QuoteCreateRequest(BaseModel):
    """Manual quote entry."""

    symbol: str = Field(..., min_length=1, max_length=20)
    timestamp: UtcDatetime
    open_price: float | None = None
    high_price: float | None = None
    low_price: float | None = None
    close_price: float = Field(..., ge=0)
    adj_close_price: float | None = None
    volume: int | None = Field(default=None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    data_source: str = Field(default="MANUAL", max_length=50)

    @field_validator("symbol", "currency", "data_source")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper()


class QuoteUpdateRequest(BaseModel):
    """Partial quote update. The (symbol, timestamp, source) key stays fixed."""

    open_price: float | None = None
    high_price: float | None = None
    low_price: float | None = None
    close_price: float | None = Field(default=None, ge=0)
    adj_close_price: float | None = None
    volume: int | None = Field(default=None, ge=0)


class SymbolCandidate(BaseModel):
    """A search hit, either a stored asset or a provider candidate."""

    symbol: str
    name: str | None = None
    asset_type: str | None = None
    currency: str | None = None
    data_source: str
    asset_id: str | None = None
    exists: bool = False


class SyncRequest(BaseModel):
    symbols: Optional[List[str]] = None
    refetch_all: bool = False


class SyncResult(BaseModel):
    symbol: str
    status: str
    message: str


class SyncResponse(BaseModel):
    """Result of a quote sync run."""

    synced: List[SyncResult]
    errors: List[SyncResult]
    total_processed: int


class ProviderInfo(BaseModel):
    id: str
    name: str
    description: str
    requires_api_key: bool
    enabled: bool
