"""Main application entry point.

Run with ``python -m app.main`` or ``uvicorn app.main:app``.
"""

from __future__ import annotations

import asyncio
import sys

import uvicorn

from app.api.app import create_api_app
from app.core.config import settings
from app.core.logging import get_logger


logger = get_logger("main")


def _fatal_excepthook(exc_type, exc, tb) -> None:
    """Log any exception that escapes to the top of the process and exit."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
    sys.exit(1)


def _fatal_loop_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Asyncio counterpart of the excepthook for exceptions nobody awaited."""
    exc = context.get("exception")
    logger.critical(
        f"Unhandled asyncio exception: {context.get('message')}",
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )
    sys.exit(1)


def install_fatal_handlers(loop: asyncio.AbstractEventLoop | None = None) -> None:
    sys.excepthook = _fatal_excepthook
    if loop is not None:
        loop.set_exception_handler(_fatal_loop_handler)


# Application instance
app = create_api_app()


async def serve() -> None:
    install_fatal_handlers(asyncio.get_running_loop())
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    await uvicorn.Server(config).serve()


if __name__ == "__main__":
    install_fatal_handlers()
    asyncio.run(serve())
