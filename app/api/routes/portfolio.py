"""Portfolio API routes: holdings, performance, income and recalculation."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import CurrentUser, DateRange, get_date_range, require_user
from app.core.exceptions import NotFoundError
from app.database.session import DbSession
from app.portfolio import service as portfolio_service
from app.repositories import accounts_orm as accounts_repo
from app.repositories import portfolio_orm as portfolio_repo
from app.schemas.common import ApiResponse, ok
from app.schemas.portfolio import (
    AccountHoldingsResponse,
    HoldingResponse,
    IncomeResponse,
    PerformancePoint,
    PortfolioSummaryResponse,
    RecalculateRequest,
    RecalculationResult,
    SnapshotResponse,
    ValuationResponse,
)


router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("/summary", response_model=ApiResponse[PortfolioSummaryResponse])
async def portfolio_summary(
    db: DbSession,
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await portfolio_service.portfolio_summary(db, user.id, account_id))


@router.get("/holdings", response_model=ApiResponse[List[AccountHoldingsResponse]])
async def portfolio_holdings(
    db: DbSession,
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Active accounts with their open positions."""
    return ok(await portfolio_service.holdings_by_account(db, user.id, account_id))


@router.get("/holdings/{account_id}", response_model=ApiResponse[List[HoldingResponse]])
async def account_holdings(
    account_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not await accounts_repo.get_account(db, user.id, account_id, active_only=True):
        raise NotFoundError(message="Account not found")
    return ok(await portfolio_repo.list_positions(db, user.id, account_id=account_id))


@router.get("/performance", response_model=ApiResponse[List[PerformancePoint]])
async def portfolio_performance(
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(
        await portfolio_repo.list_performance(
            db,
            user.id,
            start_date=window.start_date,
            end_date=window.end_date,
            account_id=account_id,
        )
    )


@router.get("/income", response_model=ApiResponse[List[IncomeResponse]])
async def portfolio_income(
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(
        await portfolio_repo.list_income(
            db, user.id, start=window.start, end=window.end, account_id=account_id
        )
    )


@router.get("/valuations", response_model=ApiResponse[List[ValuationResponse]])
async def portfolio_valuations(
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(
        await portfolio_repo.list_valuations(
            db,
            user.id,
            start_date=window.start_date,
            end_date=window.end_date,
            account_id=account_id,
        )
    )


@router.get("/snapshots", response_model=ApiResponse[List[SnapshotResponse]])
async def portfolio_snapshots(
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    account_id: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(
        await portfolio_repo.list_snapshots(
            db,
            user.id,
            start_date=window.start_date,
            end_date=window.end_date,
            account_id=account_id,
        )
    )


@router.post("/recalculate", response_model=ApiResponse[List[RecalculationResult]])
async def recalculate_portfolio(
    db: DbSession,
    payload: Optional[RecalculateRequest] = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Revalue active accounts and upsert today's valuation and snapshot."""
    account_id = payload.account_id if payload else None
    return ok(await portfolio_service.recalculate(db, user.id, account_id))
