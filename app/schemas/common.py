"""Common schemas: the response envelope, pagination and error responses."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, Field


T = TypeVar("T")


def _assume_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


def reject_null(value: Any) -> Any:
    """Partial updates may leave a required column out but not clear it."""
    if value is None:
        raise ValueError("cannot be null")
    return value


class Pagination(BaseModel):
    """Page metadata attached to list responses."""

    page: int = Field(..., ge=1, description="Current page (1-based)")
    per_page: int = Field(..., ge=1, le=100, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")
    total_pages: int = Field(..., ge=0, description="Number of pages")


class ApiResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    pagination: Optional[Pagination] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = Field(default=False)
    data: None = None
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code", examples=["NOT_FOUND"])
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error details"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "data": None,
                "error": "Account not found",
                "code": "NOT_FOUND",
            }
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall health status", examples=["OK", "DEGRADED"])
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(default_factory=dict, description="Individual service health checks")


class PaginationParams(BaseModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    per_page: int = Field(default=50, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str = Field(..., description="Response message")


def ok(data: Any = None) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"success": True, "data": data, "error": None}


def paginated(items: List[Any], params: PaginationParams, total: int) -> dict[str, Any]:
    """Wrap a page of items with its pagination block."""
    return {
        "success": True,
        "data": items,
        "error": None,
        "pagination": {
            "page": params.page,
            "per_page": params.per_page,
            "total": total,
            "total_pages": math.ceil(total / params.per_page) if total else 0,
        },
    }
