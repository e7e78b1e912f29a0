"""Custom exceptions and centralized exception handlers."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_logger


logger = get_logger("error")


class AppException(Exception):
    """Base application exception rendered as the standard error envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the `{success, data, error, code}` envelope."""
        return error_envelope(self.message, self.error_code, self.details)


class NotFoundError(AppException):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Resource not found"


class BadRequestError(AppException):
    """Bad request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    message = "Bad request"


class AuthenticationError(AppException):
    """Authentication failed."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_FAILED"
    message = "Authentication required"


class ConflictError(AppException):
    """Resource conflict."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    message = "Resource already exists"


class RateLimitError(AppException):
    """Client exceeded its request budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMIT_EXCEEDED"
    message = "Too many requests from this IP"

    def __init__(self, message: str | None = None, retry_after: int = 1):
        super().__init__(message=message)
        self.retry_after = retry_after


class ExternalServiceError(AppException):
    """External service error."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EXTERNAL_SERVICE_ERROR"
    message = "External service temporarily unavailable"


def error_envelope(
    message: str, code: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build the failure envelope shared by every error response."""
    body: dict[str, Any] = {
        "success": False,
        "data": None,
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details
    return body


def _format_validation_errors(exc: RequestValidationError) -> tuple[str, dict[str, str]]:
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        fields.setdefault(field, err.get("msg", "Invalid value"))
    message = ", ".join(f"{field}: {msg}" for field, msg in fields.items())
    return message or "Validation failed", fields


def _log_error(request: Request, status_code: int, message: str, exc: Exception | None = None) -> None:
    extra = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
        "client_ip": request.client.host if request.client else None,
    }
    if status_code >= 500:
        logger.error(f"API error: {message}", extra=extra, exc_info=exc)
    else:
        logger.warning(f"API warning: {message}", extra=extra)


def _respond(request: Request, status_code: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={
            "X-Request-ID": getattr(request.state, "request_id", "unknown"),
            **(headers or {}),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        _log_error(request, exc.status_code, exc.message)
        return _respond(request, exc.status_code, exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message, fields = _format_validation_errors(exc)
        _log_error(request, status.HTTP_400_BAD_REQUEST, message)
        return _respond(
            request,
            status.HTTP_400_BAD_REQUEST,
            error_envelope(message, "VALIDATION_ERROR", {"fields": fields}),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(
        request: Request, exc: IntegrityError
    ) -> JSONResponse:
        _log_error(request, status.HTTP_409_CONFLICT, f"Integrity error: {exc.orig}")
        conflict = ConflictError(message="Database constraint violation")
        return _respond(request, conflict.status_code, conflict.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message, code = "Route not found", "ROUTE_NOT_FOUND"
        else:
            message, code = str(exc.detail), "HTTP_ERROR"
        _log_error(request, exc.status_code, message)
        body = error_envelope(message, code)
        if code == "ROUTE_NOT_FOUND":
            body["pagination"] = None
        return _respond(request, exc.status_code, body, getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        _log_error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Unhandled exception", exc)

        # Don't expose internal error details in production
        from .config import settings

        if settings.debug:
            message = str(exc)
        else:
            message = "Internal Server Error"

        return _respond(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_envelope(message, "INTERNAL_ERROR"),
        )
