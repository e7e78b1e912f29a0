"""Tests for contribution limit arithmetic."""

from __future__ import annotations

from datetime import UTC, datetime, time

from app.portfolio.contributions import deposit_window, limit_usage


class TestDepositWindow:
    """Tests for deposit_window."""

    def test_calendar_year(self):
        start, end = deposit_window(2024)
        assert start == datetime(2024, 1, 1, tzinfo=UTC)
        assert end == datetime.combine(datetime(2024, 12, 31).date(), time.max, tzinfo=UTC)

    def test_explicit_dates(self):
        start, end = deposit_window(
            2024,
            start_date=datetime(2024, 4, 6),
            end_date=datetime(2025, 4, 5, 12, 30, tzinfo=UTC),
        )
        assert start == datetime(2024, 4, 6, tzinfo=UTC)
        assert end.date() == datetime(2025, 4, 5).date()
        assert end.time() == time.max


class TestLimitUsage:
    def test_under_limit(self):
        assert limit_usage(1000, 250) == {
            "total_deposits": 250,
            "remaining_limit": 750,
            "utilization_percent": 25.0,
        }

    def test_over_limit_clamps_remaining(self):
        usage = limit_usage(1000, 1500)
        assert usage["remaining_limit"] == 0.0
        assert usage["utilization_percent"] == 150.0

    def test_zero_limit(self):
        assert limit_usage(0, 100)["utilization_percent"] == 0.0
