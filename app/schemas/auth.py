"""Auth-related schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import UtcDatetime


class RegisterRequest(BaseModel):
    """Registration request schema."""

    email: EmailStr = Field(..., description="Login email", examples=["jane@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (bcrypt reads at most 72 bytes)",
    )
    display_name: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(BaseModel):
    """Refresh request schema. The token is checked by the handler."""

    refresh_token: str | None = Field(default=None, description="Refresh token from login")


class LogoutRequest(BaseModel):
    """Logout request schema. Without a token every session is closed."""

    refresh_token: str | None = Field(default=None)


class UserResponse(BaseModel):
    """Public user fields."""

    id: str
    email: str
    display_name: str | None = None
    is_active: bool
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None
    last_login_at: UtcDatetime | None = None


class AuthResponse(BaseModel):
    """Tokens issued on register and login."""

    user: UserResponse
    token: str = Field(..., description="Access token")
    refresh_token: str = Field(..., description="Refresh token")


class TokenResponse(BaseModel):
    """Reissued access token."""

    token: str
