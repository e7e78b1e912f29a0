"""API routes package."""

from . import (
    accounts,
    activities,
    assets,
    auth,
    goals,
    health,
    limits,
    market_data,
    platforms,
    portfolio,
    settings,
    utilities,
)


__all__ = [
    "accounts",
    "activities",
    "assets",
    "auth",
    "goals",
    "health",
    "limits",
    "market_data",
    "platforms",
    "portfolio",
    "settings",
    "utilities",
]
