"""Unit tests for statistics helpers."""

from datetime import date

from readpulse.services.stats_service import percent_change, week_start_of


class TestPercentChange:
    """Test period-over-period comparison."""

    def test_no_baseline_is_zero(self):
        assert percent_change(3600, 0) == 0.0
        assert percent_change(0, 0) == 0.0

    def test_rounded_to_one_decimal(self):
        assert percent_change(4000, 3000) == 33.3
        assert percent_change(1000, 3000) == -66.7

    def test_no_change(self):
        assert percent_change(1800, 1800) == 0.0


class TestWeekStart:
    """Test Monday-based weeks."""

    def test_mid_week(self):
        assert week_start_of(date(2026, 3, 11)) == date(2026, 3, 9)

    def test_monday_and_sunday(self):
        assert week_start_of(date(2026, 3, 9)) == date(2026, 3, 9)
        assert week_start_of(date(2026, 3, 15)) == date(2026, 3, 9)
