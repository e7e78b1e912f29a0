"""Contribution limit arithmetic."""

from __future__ import annotations

from datetime import UTC, datetime, time

from app.portfolio.valuation import percent_of


DEPOSIT_TYPES = ("BUY", "DEPOSIT", "CONTRIBUTION")


def deposit_window(
    contribution_year: int,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Period whose deposits count against a limit.

    Explicit dates win; otherwise the calendar year. The end is inclusive
    to the last microsecond of its day.
    """
    if start_date is None:
        start = datetime(contribution_year, 1, 1, tzinfo=UTC)
    else:
        start = start_date if start_date.tzinfo else start_date.replace(tzinfo=UTC)

    if end_date is None:
        end_day = datetime(contribution_year, 12, 31, tzinfo=UTC).date()
    else:
        end_day = end_date.date()
    end = datetime.combine(end_day, time.max, tzinfo=UTC)
    return start, end


def limit_usage(limit_amount: float, total_deposits: float) -> dict[str, float]:
    """Remaining headroom (never negative) and utilization of a limit."""
    return {
        "total_deposits": total_deposits,
        "remaining_limit": max(0.0, limit_amount - total_deposits),
        "utilization_percent": percent_of(total_deposits, limit_amount),
    }
