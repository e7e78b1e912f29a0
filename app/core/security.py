"""Security utilities: password hashing, JWT tokens, refresh token digests."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

import bcrypt
import jwt
from pydantic import BaseModel

from .config import settings
from .exceptions import AuthenticationError


# JWT Configuration
JWT_ALGORITHM = "HS256"
JWT_ISSUER = "wealthwatch"
JWT_AUDIENCE = "wealthwatch-api"

TokenType = Literal["access", "refresh"]


class TokenData(BaseModel):
    """Decoded JWT token data."""

    sub: str  # user id
    email: str
    type: TokenType = "access"
    exp: datetime
    iat: datetime
    jti: str


def hash_password(password: str) -> str:
    """Hash password using bcrypt with salt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _token_digest(token: str) -> bytes:
    # bcrypt only reads 72 bytes and every JWT of a user shares its prefix
    return hashlib.sha256(token.encode("utf-8")).hexdigest().encode("ascii")


def hash_refresh_token(token: str) -> str:
    """Hash a refresh token for storage in the session table."""
    salt = bcrypt.gensalt(rounds=settings.session_hash_rounds)
    return bcrypt.hashpw(_token_digest(token), salt).decode("utf-8")


def verify_refresh_token(token: str, token_hash: str) -> bool:
    """Compare a presented refresh token with a stored session hash."""
    try:
        return bcrypt.checkpw(_token_digest(token), token_hash.encode("utf-8"))
    except ValueError:
        return False


def _create_token(
    user_id: str,
    email: str,
    token_type: TokenType,
    expires_delta: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "type": token_type,
        "exp": now + expires_delta,
        "iat": now,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def create_access_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed short-lived access token."""
    return _create_token(
        user_id,
        email,
        "access",
        expires_delta or timedelta(seconds=settings.access_token_ttl),
    )


def create_refresh_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed long-lived refresh token."""
    return _create_token(
        user_id,
        email,
        "refresh",
        expires_delta or timedelta(seconds=settings.refresh_token_ttl),
    )


def decode_token(token: str, expected_type: TokenType = "access") -> TokenData:
    """Decode and validate a JWT, raising AuthenticationError with a machine code."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
            options={
                "require": ["exp", "iat", "sub", "iss", "aud", "jti"],
            },
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(
            message="Token has expired. Please log in again",
            error_code="TOKEN_EXPIRED",
        )
    except jwt.InvalidTokenError:
        raise AuthenticationError(message="Invalid token format", error_code="INVALID_TOKEN")

    if payload.get("type", "access") != expected_type:
        raise AuthenticationError(message="Invalid token type", error_code="INVALID_TOKEN")

    return TokenData(
        sub=payload["sub"],
        email=payload.get("email", ""),
        type=payload.get("type", "access"),
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        jti=payload["jti"],
    )


def decode_access_token(token: str) -> TokenData:
    """Decode and validate a JWT access token."""
    return decode_token(token, "access")
