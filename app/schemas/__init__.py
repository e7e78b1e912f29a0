"""Pydantic schemas for API request/response validation."""

from .accounts import (
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
    PlatformResponse,
)
from .activities import (
    ActivityCreateRequest,
    ActivityDetailResponse,
    ActivityResponse,
    ActivityUpdateRequest,
)
from .assets import (
    AssetCreateRequest,
    AssetResponse,
    AssetUpdateRequest,
)
from .auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from .common import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    PaginationParams,
)
from .goals import (
    GoalCreateRequest,
    GoalResponse,
    GoalUpdateRequest,
)
from .limits import (
    LimitCreateRequest,
    LimitResponse,
    LimitUpdateRequest,
)
from .market_data import (
    QuoteCreateRequest,
    QuoteResponse,
    SyncRequest,
    SyncResponse,
)
from .portfolio import (
    HoldingResponse,
    PortfolioSummaryResponse,
)
from .settings import (
    ExchangeRateResponse,
    SettingsResponse,
    SettingsUpdateRequest,
)


__all__ = [
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "TokenResponse",
    "UserResponse",
    # Accounts
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "AccountResponse",
    "PlatformResponse",
    # Activities
    "ActivityCreateRequest",
    "ActivityUpdateRequest",
    "ActivityResponse",
    "ActivityDetailResponse",
    # Assets
    "AssetCreateRequest",
    "AssetUpdateRequest",
    "AssetResponse",
    # Portfolio
    "HoldingResponse",
    "PortfolioSummaryResponse",
    # Goals
    "GoalCreateRequest",
    "GoalUpdateRequest",
    "GoalResponse",
    # Limits
    "LimitCreateRequest",
    "LimitUpdateRequest",
    "LimitResponse",
    # Market data
    "QuoteCreateRequest",
    "QuoteResponse",
    "SyncRequest",
    "SyncResponse",
    # Settings
    "SettingsResponse",
    "SettingsUpdateRequest",
    "ExchangeRateResponse",
    # Common
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "PaginationParams",
]
