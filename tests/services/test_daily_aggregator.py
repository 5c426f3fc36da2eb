"""Daily aggregation tests."""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.repositories.daily_stats_repo import DailyStatsRepository
from readpulse.services.daily_stats_service import CounterDelta, DailyAggregator

DAY = date(2026, 3, 11)


@pytest.fixture
def aggregator(db_session: AsyncSession) -> DailyAggregator:
    return DailyAggregator(db_session)


class TestAccumulate:
    """Test folding sessions into a day's row."""

    @pytest.mark.asyncio
    async def test_first_session_seeds_row(self, aggregator: DailyAggregator, db_session, test_user):
        await aggregator.accumulate(
            test_user.id,
            DAY,
            900,
            CounterDelta(books_finished=1, pages_read=12),
            content_key="ebook:a",
            category="fiction",
        )
        await db_session.commit()

        row = await DailyStatsRepository(db_session).get_day(test_user.id, DAY)
        assert row.total_duration_seconds == 900
        assert row.books_finished == 1
        assert row.pages_read == 12
        assert row.books_read == 1
        assert row.book_durations == {"ebook:a": 900}
        assert row.category_durations == {"fiction": 900}

    @pytest.mark.asyncio
    async def test_sessions_add_up(self, aggregator: DailyAggregator, db_session, test_user):
        await aggregator.accumulate(test_user.id, DAY, 600, content_key="ebook:a", category="fiction")
        await aggregator.accumulate(test_user.id, DAY, 300, content_key="ebook:a", category="fiction")
        await aggregator.accumulate(test_user.id, DAY, 120, content_key="audiobook:b", category="history")
        await db_session.commit()

        row = await DailyStatsRepository(db_session).get_day(test_user.id, DAY)
        assert row.total_duration_seconds == 1020
        assert row.books_read == 2
        assert row.book_durations == {"ebook:a": 900, "audiobook:b": 120}
        assert row.category_durations == {"fiction": 900, "history": 120}

    @pytest.mark.asyncio
    async def test_counters_without_breakdowns(self, aggregator: DailyAggregator, db_session, test_user):
        await aggregator.accumulate(test_user.id, DAY, 0, CounterDelta(notes_created=2, highlights_created=5))
        await db_session.commit()

        row = await DailyStatsRepository(db_session).get_day(test_user.id, DAY)
        assert row.total_duration_seconds == 0
        assert row.notes_created == 2
        assert row.highlights_created == 5
        assert row.books_read == 0

    @pytest.mark.asyncio
    async def test_negative_duration_clamped(self, aggregator: DailyAggregator, db_session, test_user):
        await aggregator.accumulate(test_user.id, DAY, -40, content_key="ebook:a")
        await db_session.commit()

        assert await aggregator.get_day_total(test_user.id, DAY) == 0

    @pytest.mark.asyncio
    async def test_days_are_separate(self, aggregator: DailyAggregator, db_session, test_user, other_user):
        await aggregator.accumulate(test_user.id, DAY, 100)
        await aggregator.accumulate(test_user.id, date(2026, 3, 12), 200)
        await aggregator.accumulate(other_user.id, DAY, 400)
        await db_session.commit()

        assert await aggregator.get_day_total(test_user.id, DAY) == 100
        assert await aggregator.get_day_total(test_user.id, date(2026, 3, 12)) == 200
        assert await aggregator.get_day_total(other_user.id, DAY) == 400
        assert await aggregator.get_day_total(other_user.id, date(2026, 3, 10)) == 0
