"""Database session dependency injection for FastAPI routes.

This module provides request-scoped database sessions via FastAPI's
dependency injection system. Each request gets its own session that
is automatically committed on success or rolled back on error, so
every write a handler performs lands together or not at all.

Usage in routes (see ``app.api.routes.accounts``):
    @router.get("/{account_id}")
    async def get_account(
        account_id: str,
        db: DbSession,
        user: CurrentUser = Depends(require_user),
    ) -> dict:
        account = await accounts_repo.get_account(db, user.id, account_id)

Code running outside a request opens its own session with
``app.database.connection.get_session``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    `require_user` and the route share this session, so the user lookup,
    the handler's writes and the final commit happen in one transaction.
    """
    session_factory = await get_session_factory()

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Route signature alias; FastAPI caches it per request
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
