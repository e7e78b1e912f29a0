"""Authentication routes: register, login, refresh, logout, me."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import CurrentUser, get_client_ip, require_user
from app.core.config import settings
from app.core.exceptions import AuthenticationError, BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_refresh_token,
    verify_password,
    verify_refresh_token,
)
from app.database.session import DbSession
from app.repositories import users_orm as users_repo
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from app.schemas.common import ApiResponse, MessageResponse, ok


router = APIRouter()

logger = get_logger("api.auth")


async def _issue_tokens(db: DbSession, request: Request, user: dict) -> dict:
    """Sign an access/refresh pair and store the refresh token's hash."""
    token = create_access_token(user["id"], user["email"])
    refresh_token = create_refresh_token(user["id"], user["email"])

    await users_repo.create_session(
        db,
        user["id"],
        hash_refresh_token(refresh_token),
        datetime.now(timezone.utc) + timedelta(seconds=settings.refresh_token_ttl),
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request),
    )
    return {"user": user, "token": token, "refresh_token": refresh_token}


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    responses={400: {"description": "Email already registered"}},
)
async def register(
    request: Request,
    payload: RegisterRequest,
    db: DbSession,
) -> dict:
    """Create an account and return a fresh token pair."""
    if await users_repo.get_user_by_email(db, payload.email):
        raise BadRequestError(
            message="User already exists with this email",
            error_code="USER_EXISTS",
        )

    user = await users_repo.create_user(
        db,
        payload.email,
        hash_password(payload.password),
        payload.display_name,
    )
    return ok(await _issue_tokens(db, request, user))


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    summary="Authenticate user",
    responses={401: {"description": "Invalid credentials or inactive account"}},
)
async def login(
    request: Request,
    payload: LoginRequest,
    db: DbSession,
) -> dict:
    """Verify credentials and return a fresh token pair."""
    user = await users_repo.get_user_by_email(db, payload.email)
    if user is None:
        raise AuthenticationError(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
        )

    if not user["is_active"]:
        raise AuthenticationError(
            message="Account is inactive",
            error_code="ACCOUNT_INACTIVE",
        )

    if not verify_password(payload.password, user.pop("password_hash")):
        raise AuthenticationError(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
        )

    await users_repo.touch_last_login(db, user["id"])
    logger.info("User logged in", extra={"user_id": user["id"]})
    return ok(await _issue_tokens(db, request, user))


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenResponse],
    summary="Refresh access token",
)
async def refresh(
    db: DbSession,
    payload: Optional[RefreshRequest] = None,
) -> dict:
    """
    Exchange a refresh token for a new access token.

    The token must match the hash of one of the user's unexpired sessions.
    """
    presented = payload.refresh_token if payload else None
    if not presented:
        raise BadRequestError(message="Refresh token is required")

    invalid = AuthenticationError(
        message="Invalid refresh token",
        error_code="INVALID_REFRESH_TOKEN",
    )

    try:
        token_data = decode_token(presented, expected_type="refresh")
    except AuthenticationError:
        raise invalid

    user = await users_repo.get_user_by_id(db, token_data.sub)
    if user is None or not user["is_active"]:
        raise invalid

    for user_session in await users_repo.list_active_sessions(db, user["id"]):
        if verify_refresh_token(presented, user_session.token_hash):
            await users_repo.mark_session_used(db, user_session.id)
            return ok({"token": create_access_token(user["id"], user["email"])})

    raise invalid


@router.post(
    "/logout",
    response_model=ApiResponse[MessageResponse],
    summary="Logout user",
    description="Close the session of the given refresh token, or all sessions when none is given.",
)
async def logout(
    db: DbSession,
    payload: Optional[LogoutRequest] = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Delete the matching session, or every session of the user."""
    presented = payload.refresh_token if payload else None

    if presented:
        for user_session in await users_repo.list_sessions(db, user.id):
            if verify_refresh_token(presented, user_session.token_hash):
                await users_repo.delete_session(db, user_session.id)
                break
    else:
        removed = await users_repo.delete_all_sessions(db, user.id)
        logger.info("Logged out everywhere", extra={"user_id": user.id, "sessions": removed})

    return ok({"message": "Logged out successfully"})


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Get current user",
    responses={401: {"description": "Not authenticated"}},
)
async def get_me(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Get current authenticated user information."""
    record = await users_repo.get_user_by_id(db, user.id)
    if record is None:
        raise NotFoundError(message="User not found")
    return ok(record)
