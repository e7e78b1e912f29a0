"""Market data API routes: symbol search, quote sync and stored quotes."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import CurrentUser, DateRange, get_date_range, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.database.session import DbSession
from app.repositories import quotes_orm as quotes_repo
from app.schemas.common import ApiResponse, MessageResponse, ok
from app.schemas.market_data import (
    ProviderInfo,
    QuoteCreateRequest,
    QuoteResponse,
    QuoteUpdateRequest,
    SymbolCandidate,
    SyncRequest,
    SyncResponse,
)
from app.services import market_data


router = APIRouter(prefix="/market-data", tags=["Market Data"])


def _split_symbols(raw: list[str] | None) -> list[str]:
    """Accept ``?symbols=A&symbols=B`` as well as ``?symbols=A,B``."""
    symbols: list[str] = []
    for chunk in raw or []:
        symbols.extend(s.strip().upper() for s in chunk.split(",") if s.strip())
    return list(dict.fromkeys(symbols))


@router.get("/search", response_model=ApiResponse[List[SymbolCandidate]])
async def search_symbols(
    db: DbSession,
    query: Optional[str] = Query(None, description="Symbol or name fragment"),
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not query or not query.strip():
        raise BadRequestError(message="Query parameter is required")
    return ok(await market_data.search_symbols(db, query))


@router.post("/sync", response_model=ApiResponse[SyncResponse])
async def sync_market_data(
    db: DbSession,
    payload: Optional[SyncRequest] = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Fetch the newest quote of every priced asset from its provider."""
    payload = payload or SyncRequest()
    symbols = [s.upper() for s in payload.symbols] if payload.symbols else None
    return ok(await market_data.sync_quotes(db, symbols, payload.refetch_all))


@router.get("/providers", response_model=ApiResponse[List[ProviderInfo]])
async def list_providers(
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(market_data.list_providers())


@router.get("/quotes/latest", response_model=ApiResponse[List[QuoteResponse]])
async def latest_quotes(
    db: DbSession,
    symbols: Optional[List[str]] = Query(None, description="Repeated or comma-separated"),
    user: CurrentUser = Depends(require_user),
) -> dict:
    wanted = _split_symbols(symbols)
    if not wanted:
        raise BadRequestError(message="Symbols parameter is required")
    return ok(await quotes_repo.latest_quotes(db, wanted))


@router.get("/quotes/historical", response_model=ApiResponse[List[QuoteResponse]])
async def historical_quotes(
    db: DbSession,
    symbols: Optional[List[str]] = Query(None, description="Repeated or comma-separated"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    wanted = _split_symbols(symbols)
    if not wanted or start_date is None or end_date is None:
        raise BadRequestError(message="Symbols, start date, and end date are required")
    window = DateRange(start_date=start_date, end_date=end_date)
    return ok(await quotes_repo.historical_quotes(db, wanted, window.start, window.end))


@router.post("/quotes", response_model=ApiResponse[QuoteResponse], status_code=status.HTTP_201_CREATED)
async def create_quote(
    payload: QuoteCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Store a hand-entered quote."""
    return ok(await quotes_repo.create_quote(db, **payload.model_dump()))


@router.put("/quotes/{quote_id}", response_model=ApiResponse[QuoteResponse])
async def update_quote(
    quote_id: str,
    payload: QuoteUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    quote = await quotes_repo.update_quote(db, quote_id, payload.model_dump(exclude_unset=True))
    if not quote:
        raise NotFoundError(message="Quote not found")
    return ok(quote)


@router.delete("/quotes/{quote_id}", response_model=ApiResponse[MessageResponse])
async def delete_quote(
    quote_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not await quotes_repo.delete_quote(db, quote_id):
        raise NotFoundError(message="Quote not found")
    return ok({"message": "Quote deleted successfully"})


@router.get("/quotes/{symbol}/history", response_model=ApiResponse[List[QuoteResponse]])
async def quote_history(
    symbol: str,
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    user: CurrentUser = Depends(require_user),
) -> dict:
    quotes = await quotes_repo.quote_history(
        db, symbol.upper(), start_date=window.start, end_date=window.end
    )
    return ok(quotes)
