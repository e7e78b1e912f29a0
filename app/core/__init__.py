"""Core infrastructure: settings, security, logging, exceptions."""

from .config import settings
from .exceptions import (
    AppException,
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
)
from .security import (
    TokenData,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_token,
    hash_password,
    verify_password,
)


__all__ = [
    "AppException",
    "AuthenticationError",
    "BadRequestError",
    "ConflictError",
    "ExternalServiceError",
    "NotFoundError",
    "RateLimitError",
    "TokenData",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_token",
    "hash_password",
    "settings",
    "verify_password",
]
