"""Assets repository - SQLAlchemy ORM async."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.orm import Asset


ASSET_FIELDS = (
    "isin",
    "name",
    "asset_type",
    "symbol",
    "symbol_mapping",
    "asset_class",
    "asset_sub_class",
    "notes",
    "countries",
    "categories",
    "classes",
    "attributes",
    "sectors",
    "currency",
    "data_source",
    "url",
)


def _asset_to_dict(a: Asset) -> dict[str, Any]:
    """Convert Asset ORM object to dictionary."""
    data = {field: getattr(a, field) for field in ASSET_FIELDS}
    data["id"] = a.id
    data["created_at"] = a.created_at
    data["updated_at"] = a.updated_at
    return data


def _search_clause(term: str):
    pattern = f"%{term}%"
    return or_(
        Asset.symbol.ilike(pattern),
        Asset.name.ilike(pattern),
        Asset.isin.ilike(pattern),
    )


def _filtered(
    search: str | None,
    asset_type: str | None,
    data_source: str | None,
) -> Select:
    stmt = select(Asset)
    if search:
        stmt = stmt.where(_search_clause(search))
    if asset_type:
        stmt = stmt.where(Asset.asset_type == asset_type)
    if data_source:
        stmt = stmt.where(Asset.data_source == data_source)
    return stmt


async def list_assets(
    session: AsyncSession,
    *,
    limit: int,
    offset: int,
    search: str | None = None,
    asset_type: str | None = None,
    data_source: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    """A filtered page of assets ordered by symbol, and the total."""
    stmt = _filtered(search, asset_type, data_source)
    total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
    result = await session.execute(stmt.order_by(Asset.symbol).limit(limit).offset(offset))
    return [_asset_to_dict(a) for a in result.scalars().all()], total or 0


async def search_assets(session: AsyncSession, term: str, limit: int) -> list[dict[str, Any]]:
    result = await session.execute(
        select(Asset).where(_search_clause(term)).order_by(Asset.symbol).limit(limit)
    )
    return [_asset_to_dict(a) for a in result.scalars().all()]


async def get_asset(session: AsyncSession, asset_id: str) -> dict[str, Any] | None:
    asset = await session.get(Asset, asset_id)
    return _asset_to_dict(asset) if asset else None


async def get_asset_by_symbol(
    session: AsyncSession, symbol: str, data_source: str
) -> dict[str, Any] | None:
    result = await session.execute(
        select(Asset).where(Asset.symbol == symbol, Asset.data_source == data_source)
    )
    asset = result.scalar_one_or_none()
    return _asset_to_dict(asset) if asset else None


async def existing_asset_ids(session: AsyncSession, asset_ids: list[str]) -> set[str]:
    if not asset_ids:
        return set()
    result = await session.execute(select(Asset.id).where(Asset.id.in_(asset_ids)))
    return set(result.scalars().all())


async def create_asset(session: AsyncSession, **fields: Any) -> dict[str, Any]:
    asset = Asset(**fields)
    session.add(asset)
    await session.flush()
    await session.refresh(asset)
    return _asset_to_dict(asset)


async def update_asset(
    session: AsyncSession, asset_id: str, changes: dict[str, Any]
) -> dict[str, Any] | None:
    asset = await session.get(Asset, asset_id)
    if asset is None:
        return None
    for field, value in changes.items():
        setattr(asset, field, value)
    await session.flush()
    await session.refresh(asset)
    return _asset_to_dict(asset)


async def list_asset_types(session: AsyncSession) -> list[str]:
    """Distinct non-null asset types."""
    result = await session.execute(
        select(Asset.asset_type)
        .where(Asset.asset_type.is_not(None))
        .distinct()
        .order_by(Asset.asset_type)
    )
    return list(result.scalars().all())


async def list_data_sources(session: AsyncSession) -> list[str]:
    result = await session.execute(
        select(Asset.data_source).distinct().order_by(Asset.data_source)
    )
    return list(result.scalars().all())


async def list_syncable_assets(
    session: AsyncSession, symbols: list[str] | None = None
) -> list[dict[str, Any]]:
    """Assets that have market prices (everything except cash)."""
    stmt = select(Asset).where(or_(Asset.asset_type.is_(None), Asset.asset_type != "CASH"))
    if symbols:
        stmt = stmt.where(Asset.symbol.in_(symbols))
    result = await session.execute(stmt.order_by(Asset.symbol))
    return [_asset_to_dict(a) for a in result.scalars().all()]
