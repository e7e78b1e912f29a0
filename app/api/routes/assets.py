"""Asset API routes."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import CurrentUser, DateRange, get_date_range, get_pagination, require_user
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.database.session import DbSession
from app.repositories import activities_orm as activities_repo
from app.repositories import assets_orm as assets_repo
from app.repositories import quotes_orm as quotes_repo
from app.schemas.assets import (
    AssetActivityResponse,
    AssetCreateRequest,
    AssetDataSourceRequest,
    AssetResponse,
    AssetUpdateRequest,
)
from app.schemas.common import ApiResponse, PaginationParams, ok, paginated
from app.schemas.market_data import QuoteResponse


logger = get_logger("api.routes.assets")

router = APIRouter(prefix="/assets", tags=["Assets"])


async def _get_asset_or_404(db: DbSession, asset_id: str) -> dict:
    asset = await assets_repo.get_asset(db, asset_id)
    if not asset:
        raise NotFoundError(message="Asset not found")
    return asset


@router.get("", response_model=ApiResponse[List[AssetResponse]])
async def list_assets(
    db: DbSession,
    page: PaginationParams = Depends(get_pagination),
    search: Optional[str] = Query(None, description="Match symbol, name or ISIN"),
    asset_type: Optional[str] = Query(None),
    data_source: Optional[str] = Query(None),
    user: CurrentUser = Depends(require_user),
) -> dict:
    rows, total = await assets_repo.list_assets(
        db,
        limit=page.limit,
        offset=page.offset,
        search=search,
        asset_type=asset_type,
        data_source=data_source,
    )
    return paginated(rows, page, total)


@router.post("", response_model=ApiResponse[AssetResponse], status_code=status.HTTP_201_CREATED)
async def create_asset(
    payload: AssetCreateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Create an asset. (symbol, data_source) must be unique."""
    if await assets_repo.get_asset_by_symbol(db, payload.symbol, payload.data_source):
        raise BadRequestError(
            message="Asset already exists with this symbol and data source",
            error_code="ASSET_EXISTS",
        )
    asset = await assets_repo.create_asset(db, **payload.model_dump())
    logger.info("Asset created", extra={"symbol": asset["symbol"], "data_source": asset["data_source"]})
    return ok(asset)


@router.get("/search", response_model=ApiResponse[List[AssetResponse]])
async def search_assets(
    db: DbSession,
    q: Optional[str] = Query(None, description="Search term"),
    limit: int = Query(10, ge=1, description="Maximum results, capped at 50"),
    user: CurrentUser = Depends(require_user),
) -> dict:
    if not q or not q.strip():
        raise BadRequestError(message="Search query is required")
    return ok(await assets_repo.search_assets(db, q.strip(), min(limit, 50)))


@router.get("/types", response_model=ApiResponse[List[str]])
async def asset_types(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await assets_repo.list_asset_types(db))


@router.get("/data-sources", response_model=ApiResponse[List[str]])
async def data_sources(
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await assets_repo.list_data_sources(db))


@router.get("/{asset_id}", response_model=ApiResponse[AssetResponse])
async def get_asset(
    asset_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    return ok(await _get_asset_or_404(db, asset_id))


@router.get("/{asset_id}/history", response_model=ApiResponse[List[QuoteResponse]])
async def asset_history(
    asset_id: str,
    db: DbSession,
    window: DateRange = Depends(get_date_range),
    user: CurrentUser = Depends(require_user),
) -> dict:
    """Stored quotes for the asset's symbol, newest first."""
    asset = await _get_asset_or_404(db, asset_id)
    quotes = await quotes_repo.quote_history(
        db, asset["symbol"], start_date=window.start, end_date=window.end
    )
    return ok(quotes)


@router.get("/{asset_id}/activities", response_model=ApiResponse[List[AssetActivityResponse]])
async def asset_activities(
    asset_id: str,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    await _get_asset_or_404(db, asset_id)
    return ok(await activities_repo.list_asset_activities(db, user.id, asset_id))


@router.put("/{asset_id}", response_model=ApiResponse[AssetResponse])
async def update_asset(
    asset_id: str,
    payload: AssetUpdateRequest,
    db: DbSession,
    user: CurrentUser = Depends(require_user),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    asset = await assets_repo.update_asset(db, asset_id, changes)
    if not asset:
        raise NotFoundError(message="Asset not found")
    return ok(asset)


@router.put("/{asset_id}/data-source", response_model=ApiResponse[AssetResponse])
async def update_asset_data_source(
    asset_id: str,
    db: DbSession,
    payload: Optional[AssetDataSourceRequest] = None,
    user: CurrentUser = Depends(require_user),
) -> dict:
    if payload is None or not payload.data_source or not payload.data_source.strip():
        raise BadRequestError(message="Data source is required")
    asset = await assets_repo.update_asset(
        db, asset_id, {"data_source": payload.data_source.strip().upper()}
    )
    if not asset:
        raise NotFoundError(message="Asset not found")
    return ok(asset)
