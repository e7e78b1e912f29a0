"""Data access layer repositories.

Each repository module provides async functions for database operations.
All code uses SQLAlchemy ORM models from `app.database.orm`; functions take
the caller's session and never commit.

ORM-based repositories:
- users_orm: users, refresh sessions and user settings
- accounts_orm: accounts, account groups and platforms
- assets_orm: tradable assets
- activities_orm: account activities (trades, income, cash movements)
- quotes_orm: daily price bars
- exchange_rates_orm: currency conversion rates
- portfolio_orm: positions, valuations, snapshots and income
- goals_orm: goals and their account allocations
- limits_orm: contribution limits and counted deposits
- backups_orm: backup, restore, export and statistics
"""

from . import accounts_orm
from . import activities_orm
from . import assets_orm
from . import backups_orm
from . import exchange_rates_orm
from . import goals_orm
from . import limits_orm
from . import portfolio_orm
from . import quotes_orm
from . import users_orm

__all__ = [
    "accounts_orm",
    "activities_orm",
    "assets_orm",
    "backups_orm",
    "exchange_rates_orm",
    "goals_orm",
    "limits_orm",
    "portfolio_orm",
    "quotes_orm",
    "users_orm",
]
