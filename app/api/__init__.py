"""HTTP layer: the FastAPI app factory, auth dependencies and routers."""

from .app import create_api_app
from .dependencies import CurrentUser, get_pagination, require_user


__all__ = [
    "CurrentUser",
    "create_api_app",
    "get_pagination",
    "require_user",
]
