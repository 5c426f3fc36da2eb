"""Unit tests for content ranking scores."""

import math
from datetime import timedelta

import pytest

from readpulse.schemas.ranking import RankingType
from readpulse.services.ranking_service import (
    bayesian_rating,
    hidden_gem_score,
    popular_score,
    ranking_interval,
    trending_score,
)


class TestBayesianRating:
    """Test top-rated shrinkage toward the prior."""

    def test_confidence_beats_raw_score_at_low_counts(self):
        """A few high ratings rank below many slightly lower ones."""
        few = bayesian_rating(4.5, 5)
        many = bayesian_rating(4.2, 200)

        assert few == pytest.approx(3.8333, abs=1e-4)
        assert many == pytest.approx(4.1667, abs=1e-4)
        assert few < many

    def test_no_ratings_returns_prior(self):
        assert bayesian_rating(None, 0) == 3.5

    def test_internal_ratings_are_count_weighted(self):
        # 10 external at 4.0 and 10 internal at 5.0: raw 4.5 over n=20
        expected = (20 / 30) * 4.5 + (10 / 30) * 3.5
        assert bayesian_rating(4.0, 10, 5.0, 10) == pytest.approx(expected)

    def test_missing_internal_rating_ignores_its_count(self):
        assert bayesian_rating(4.0, 10, None, 50) == bayesian_rating(4.0, 10)


class TestActivityScores:
    """Test trending, popular and hidden-gem scores."""

    def test_trending_weights_unique_readers_double(self):
        assert trending_score(unique_readers=3, session_count=10) == 16.0

    def test_popular_combines_shelf_adds_and_sessions(self):
        assert popular_score(shelf_adds=2, unique_readers=3, session_count=4) == 3 * 2 + 5 * 3 + 4

    def test_popular_with_only_shelf_adds(self):
        assert popular_score(shelf_adds=4, unique_readers=0, session_count=0) == 12.0

    def test_hidden_gem_discounts_audience(self):
        assert hidden_gem_score(4.5, 0) == 90.0
        assert hidden_gem_score(4.5, 5) == pytest.approx(90 - math.log10(6) * 5)
        assert hidden_gem_score(4.5, 5) > hidden_gem_score(4.5, 40)


class TestRankingIntervals:
    """Test refresh cadence per ranking type."""

    def test_intervals(self):
        assert ranking_interval(RankingType.TRENDING) == timedelta(hours=1)
        assert ranking_interval(RankingType.POPULAR_THIS_WEEK) == timedelta(hours=6)
        for ranking_type in (
            RankingType.TOP_RATED,
            RankingType.MOST_READ,
            RankingType.NEW_RELEASES,
            RankingType.HIDDEN_GEMS,
        ):
            assert ranking_interval(ranking_type) == timedelta(days=1)
