"""Settings API routes: user preferences, exchange rates and option lists."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import CurrentUser, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.database.session import DbSession
from app.repositories import exchange_rates_orm as rates_repo
from app.repositories import users_orm as users_repo
from app.schemas.common import ApiResponse, MessageResponse, ok
from app.schemas.settings import (
    CURRENCIES,
    DATE_FORMATS,
    NUMBER_FORMATS,
    THEMES,
    CurrencyOption,
    DateFormatOption,
    ExchangeRateCreateRequest,
    ExchangeRateResponse,
    ExchangeRateUpdateRequest,
    NumberFormatOption,
    SettingsResponse,
    SettingsUpdateRequest,
    ThemeOption,
)


logger = get_logger("api.routes.settings")

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=ApiResponse[SettingsResponse])
async def get_settings(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Current settings, created with defaults on first access."""
    return ok(await users_repo.get_or_create_settings(db, user.id))


@router.put("", response_model=ApiResponse[SettingsResponse])
async def update_settings(
    db: DbSession,
    payload: Optional[SettingsUpdateRequest] = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    changes = payload.model_dump(exclude_none=True) if payload else {}
    if not changes:
        raise BadRequestError(message="No valid settings fields provided")
    return ok(await users_repo.upsert_settings(db, user.id, changes))


# =============================================================================
# Exchange rates
# =============================================================================


@router.get("/exchange-rates", response_model=ApiResponse[List[ExchangeRateResponse]])
async def list_exchange_rates(
    db: DbSession,
    base_currency: str = Query("USD", min_length=3, max_length=3),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await rates_repo.list_rates(db, user.id, base_currency.upper()))


@router.post(
    "/exchange-rates",
    response_model=ApiResponse[ExchangeRateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_exchange_rate(
    payload: ExchangeRateCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not payload.base_currency or not payload.target_currency or payload.rate is None:
        raise BadRequestError(message="Base currency, target currency, and rate are required")
    if payload.base_currency == payload.target_currency:
        raise BadRequestError(message="Base currency and target currency must be different")

    rate_id = rates_repo.pair_id(payload.base_currency, payload.target_currency)
    if await rates_repo.get_rate(db, user.id, rate_id):
        raise BadRequestError(
            message="Exchange rate already exists for this currency pair",
            error_code="EXCHANGE_RATE_EXISTS",
        )

    rate = await rates_repo.create_rate(
        db, user.id, payload.base_currency, payload.target_currency, payload.rate, payload.source
    )
    logger.info(f"Exchange rate {rate_id} created by user {user.id}")
    return ok(rate)


@router.put("/exchange-rates/{rate_id}", response_model=ApiResponse[ExchangeRateResponse])
async def update_exchange_rate(
    rate_id: str,
    payload: ExchangeRateUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if payload.rate is None:
        raise BadRequestError(message="Rate is required")
    rate = await rates_repo.update_rate(db, user.id, rate_id.upper(), payload.rate, payload.source)
    if not rate:
        raise NotFoundError(message="Exchange rate not found")
    return ok(rate)


@router.delete("/exchange-rates/{rate_id}", response_model=ApiResponse[MessageResponse])
async def delete_exchange_rate(
    rate_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Remove the caller's own rate. Shared default rates cannot be deleted."""
    if not await rates_repo.delete_rate(db, user.id, rate_id.upper()):
        raise NotFoundError(message="Exchange rate not found")
    return ok({"message": "Exchange rate deleted successfully"})


# =============================================================================
# Option lists
# =============================================================================


@router.get("/currencies", response_model=ApiResponse[List[CurrencyOption]])
async def list_currencies(user: CurrentUser = Depends(require_user)) -> dict:
    return ok(CURRENCIES)


@router.get("/themes", response_model=ApiResponse[List[ThemeOption]])
async def list_themes(user: CurrentUser = Depends(require_user)) -> dict:
    return ok(THEMES)


@router.get("/date-formats", response_model=ApiResponse[List[DateFormatOption]])
async def list_date_formats(user: CurrentUser = Depends(require_user)) -> dict:
    return ok(DATE_FORMATS)


@router.get("/number-formats", response_model=ApiResponse[List[NumberFormatOption]])
async def list_number_formats(user: CurrentUser = Depends(require_user)) -> dict:
    return ok(NUMBER_FORMATS)
