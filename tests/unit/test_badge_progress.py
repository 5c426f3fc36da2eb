"""Unit tests for badge progress helpers."""

from readpulse.models.user import User
from readpulse.services.badge_service import (
    DEFAULT_BADGES,
    calculate_progress,
    condition_metric,
    format_remaining,
)


class TestRemaining:
    """Test the remaining-distance text."""

    def test_achieved(self):
        assert format_remaining("streak_days", 0) == "Achieved"
        assert format_remaining("streak_days", -3) == "Achieved"

    def test_units_and_plurals(self):
        assert format_remaining("streak_days", 1) == "1 more day to earn"
        assert format_remaining("total_days", 4) == "4 more days to earn"
        assert format_remaining("total_hours", 12) == "12 more hours to earn"
        assert format_remaining("books_finished", 1) == "1 more book to earn"

    def test_unknown_condition(self):
        assert format_remaining("mystery", 2) == "2 more to earn"


class TestProgress:
    """Test progress percentages."""

    def test_rounded_to_one_decimal(self):
        progress = calculate_progress(3, 7, "streak_days")

        assert progress.percentage == 42.9
        assert progress.remaining == "4 more days to earn"

    def test_clamped_at_hundred(self):
        progress = calculate_progress(12, 10, "books_finished")

        assert progress.percentage == 100.0
        assert progress.remaining == "Achieved"


class TestConditionMetric:
    """Test which aggregate figure each condition reads."""

    def test_metrics(self):
        user = User(
            current_streak_days=3,
            max_streak_days=8,
            total_reading_duration=7250,
            total_reading_days=40,
            books_finished_count=2,
            books_read_count=5,
        )

        assert condition_metric(user, "streak_days") == 3
        assert condition_metric(user, "max_streak_days") == 8
        assert condition_metric(user, "total_hours") == 2
        assert condition_metric(user, "total_days") == 40
        assert condition_metric(user, "books_finished") == 2
        assert condition_metric(user, "books_read") == 5
        assert condition_metric(user, "mystery") is None


def test_default_catalog_shape():
    """23 badges over four categories, levels increasing with thresholds."""
    assert len(DEFAULT_BADGES) == 23
    assert {b["category"] for b in DEFAULT_BADGES} == {
        "reading_streak",
        "reading_duration",
        "reading_days",
        "books_finished",
    }

    for category in {b["category"] for b in DEFAULT_BADGES}:
        ladder = sorted((b for b in DEFAULT_BADGES if b["category"] == category), key=lambda b: b["level"])
        values = [b["condition_value"] for b in ladder]
        assert values == sorted(values)
