"""Daily reading aggregation."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.repositories.daily_stats_repo import DailyStatsRepository

logger = structlog.get_logger(__name__)


@dataclass
class CounterDelta:
    """Additive counters folded into a day's row alongside the duration."""

    books_finished: int = 0
    pages_read: int = 0
    notes_created: int = 0
    highlights_created: int = 0


class DailyAggregator:
    """Folds ended-session durations into per-user, per-day totals.

    Does not commit; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.daily_repo = DailyStatsRepository(db)

    async def accumulate(
        self,
        user_id: UUID,
        day: date,
        duration_seconds: int,
        delta: CounterDelta | None = None,
        content_key: str | None = None,
        category: str | None = None,
    ) -> None:
        """Add a session's contribution to the (user, day) row.

        Counters go through a single atomic upsert-by-add. The JSON
        breakdowns are then merged under a row lock; the first time a
        content key shows up on a day it counts as one more book read.
        """
        delta = delta or CounterDelta()
        duration_seconds = max(0, duration_seconds)

        await self.daily_repo.add_counters(
            user_id,
            day,
            {
                "total_duration_seconds": duration_seconds,
                "books_finished": delta.books_finished,
                "pages_read": delta.pages_read,
                "notes_created": delta.notes_created,
                "highlights_created": delta.highlights_created,
            },
        )

        if content_key is None and category is None:
            return

        row = await self.daily_repo.get_for_update(user_id, day)
        if row is None:
            # add_counters just created or updated it within this transaction
            raise RuntimeError(f"daily stats row missing for {user_id} on {day}")

        book_durations = dict(row.book_durations or {})
        category_durations = dict(row.category_durations or {})
        books_read_delta = 0

        if content_key is not None:
            if content_key not in book_durations:
                books_read_delta = 1
            book_durations[content_key] = book_durations.get(content_key, 0) + duration_seconds

        if category is not None:
            category_durations[category] = category_durations.get(category, 0) + duration_seconds

        await self.daily_repo.write_breakdowns(
            row.id,
            category_durations=category_durations,
            book_durations=book_durations,
            books_read_delta=books_read_delta,
        )

        logger.debug(
            "daily_stats_accumulated",
            user_id=str(user_id),
            day=day.isoformat(),
            duration_seconds=duration_seconds,
            new_book=bool(books_read_delta),
        )

    async def get_day_total(self, user_id: UUID, day: date) -> int:
        """Seconds recorded for one day, 0 when there is no row."""
        row = await self.daily_repo.get_day(user_id, day)
        return row.total_duration_seconds if row else 0
