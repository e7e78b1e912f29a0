"""API dependencies for authentication, pagination and client identity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from fastapi import Header, Query, Request

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.security import decode_access_token
from app.database.session import DbSession
from app.repositories import users_orm as users_repo
from app.schemas.common import PaginationParams


__all__ = [
    "CurrentUser",
    "DateRange",
    "get_client_ip",
    "get_date_range",
    "get_pagination",
    "require_user",
]


@dataclass(frozen=True)
class CurrentUser:
    """Identity of the authenticated caller."""

    id: str
    email: str


def get_client_ip(request: Request) -> str:
    """Client IP of the connection, or the first X-Forwarded-For hop behind a trusted proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and settings.trust_proxy_headers:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def _extract_token(authorization: str | None) -> str:
    """Pull the bearer token out of the Authorization header."""
    if not authorization:
        raise AuthenticationError(
            message="Authorization header is required",
            error_code="AUTH_HEADER_MISSING",
        )
    if not authorization.startswith("Bearer "):
        raise AuthenticationError(
            message="Authorization header must start with 'Bearer '",
            error_code="INVALID_AUTH_FORMAT",
        )
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError(
            message="Access token is required",
            error_code="TOKEN_MISSING",
        )
    return token


async def require_user(
    db: DbSession,
    authorization: str | None = Header(default=None),
) -> CurrentUser:
    """
    Require an authenticated, active user.

    Raises AuthenticationError with a machine-readable code when the
    header is missing or malformed, the token is bad or expired, or the
    user is gone or deactivated.
    """
    token = _extract_token(authorization)
    token_data = decode_access_token(token)

    user = await users_repo.get_user_by_id(db, token_data.sub)
    if user is None:
        raise AuthenticationError(
            message="User not found",
            error_code="USER_NOT_FOUND",
        )
    if not user["is_active"]:
        raise AuthenticationError(
            message="User account is inactive",
            error_code="USER_INACTIVE",
        )

    return CurrentUser(id=user["id"], email=user["email"])


def get_pagination(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    per_page: int = Query(default=50, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    """Pagination query parameters."""
    return PaginationParams(page=page, per_page=per_page)


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window as UTC datetimes, either end optional."""

    start_date: date | None = None
    end_date: date | None = None

    @property
    def start(self) -> datetime | None:
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)

    @property
    def end(self) -> datetime | None:
        if self.end_date is None:
            return None
        return datetime.combine(self.end_date, time.max, tzinfo=timezone.utc)


def get_date_range(
    start_date: date | None = Query(default=None, description="First day (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Last day, inclusive"),
) -> DateRange:
    """Optional start_date/end_date query parameters."""
    return DateRange(start_date=start_date, end_date=end_date)
