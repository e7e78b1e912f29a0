"""API application factory."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.exceptions import RateLimitError, register_exception_handlers
from app.core.logging import get_logger, request_id_var, setup_logging
from app.core.rate_limiter import check_client_rate_limit
from app.schemas.common import ErrorResponse

from .dependencies import get_client_ip
from .routes import (
    accounts,
    activities,
    assets,
    auth,
    goals,
    health,
    limits,
    market_data,
    platforms,
    portfolio,
    settings as settings_routes,
    utilities,
)


logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and bring the schema up to date; close on shutdown."""
    from app.database.connection import close_sqlalchemy_engine, init_sqlalchemy_engine
    from app.database.migrations import run_migrations

    setup_logging()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    await init_sqlalchemy_engine()
    await run_migrations()

    yield

    logger.info("Shutting down...")
    await close_sqlalchemy_engine()
    logger.info("Shutdown complete")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none'"

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to all requests for tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_var.set(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()

        response = await call_next(request)

        duration = time.monotonic() - start_time

        # Log path only (not query params which may contain sensitive data)
        path = request.url.path

        logger.info(
            f"{request.method} {path} -> {response.status_code} ({duration:.3f}s)",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": int(duration * 1000),
            },
        )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP token bucket in front of every ``/api/`` route."""

    async def dispatch(self, request: Request, call_next):
        if not settings.rate_limit_enabled or not request.url.path.startswith("/api/"):
            return await call_next(request)

        allowed, retry_after = check_client_rate_limit(get_client_ip(request))
        if not allowed:
            exc = RateLimitError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)


def create_api_app() -> FastAPI:
    """Create and configure the API application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Personal finance and portfolio tracking API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        responses={
            400: {"model": ErrorResponse, "description": "Bad Request"},
            401: {"model": ErrorResponse, "description": "Unauthorized"},
            404: {"model": ErrorResponse, "description": "Not Found"},
            409: {"model": ErrorResponse, "description": "Conflict"},
            429: {"model": ErrorResponse, "description": "Rate Limit Exceeded"},
            500: {"model": ErrorResponse, "description": "Internal Server Error"},
        },
    )

    # Last added runs outermost: request id is set before logging and limiting
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=600,
    )

    register_exception_handlers(app)

    prefix = settings.api_prefix
    app.include_router(health.router, tags=["Health"])
    app.include_router(health.router, prefix=prefix, tags=["Health"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(accounts.router, prefix=prefix)
    app.include_router(platforms.router, prefix=prefix)
    app.include_router(activities.router, prefix=prefix)
    app.include_router(assets.router, prefix=prefix)
    app.include_router(portfolio.router, prefix=prefix)
    app.include_router(goals.router, prefix=prefix)
    app.include_router(market_data.router, prefix=prefix)
    app.include_router(settings_routes.router, prefix=prefix)
    app.include_router(limits.router, prefix=prefix)
    app.include_router(utilities.router, prefix=prefix)

    return app
