"""Daily reading statistics repository."""

from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import and_, case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.db.upsert import insert_for
from readpulse.models.reading import DailyReadingStat

_COUNTER_COLUMNS = (
    "total_duration_seconds",
    "books_read",
    "books_finished",
    "pages_read",
    "notes_created",
    "highlights_created",
)


class DailyStatsRepository:
    """Repository for per-user, per-day reading rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_counters(self, user_id: UUID, day: date, counters: dict[str, int]) -> None:
        """Upsert-by-add: insert a seeded row or add to the existing one.

        A single INSERT ... ON CONFLICT DO UPDATE, so concurrent session ends on
        the same day both land.
        """
        table = DailyReadingStat.__table__
        values = {column: int(counters.get(column, 0)) for column in _COUNTER_COLUMNS}

        stmt = insert_for(self.db, table).values(user_id=user_id, date=day, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "date"],
            set_={
                **{column: table.c[column] + stmt.excluded[column] for column in _COUNTER_COLUMNS},
                "updated_at": datetime.now(timezone.utc),
            },
        )
        await self.db.execute(stmt)

    async def get_for_update(self, user_id: UUID, day: date) -> DailyReadingStat | None:
        """Lock the day's row for a read-modify-write of the JSON breakdowns."""
        query = (
            select(DailyReadingStat)
            .where(
                and_(
                    DailyReadingStat.user_id == user_id,
                    DailyReadingStat.stat_date == day,
                )
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def write_breakdowns(
        self,
        stat_id: UUID,
        *,
        category_durations: dict[str, int],
        book_durations: dict[str, int],
        books_read_delta: int = 0,
    ) -> None:
        """Replace the JSON breakdowns of a locked row."""
        stmt = (
            update(DailyReadingStat)
            .where(DailyReadingStat.id == stat_id)
            .values(
                category_durations=category_durations,
                book_durations=book_durations,
                books_read=DailyReadingStat.books_read + books_read_delta,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def get_day(self, user_id: UUID, day: date) -> DailyReadingStat | None:
        """Get one day's row."""
        query = select(DailyReadingStat).where(
            and_(
                DailyReadingStat.user_id == user_id,
                DailyReadingStat.stat_date == day,
            )
        ).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_range(self, user_id: UUID, start: date, end: date) -> list[DailyReadingStat]:
        """Rows for an inclusive date range, oldest first."""
        query = (
            select(DailyReadingStat)
            .where(
                and_(
                    DailyReadingStat.user_id == user_id,
                    DailyReadingStat.stat_date >= start,
                    DailyReadingStat.stat_date <= end,
                )
            )
            .order_by(DailyReadingStat.stat_date.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def total_duration(self, user_id: UUID, start: date, end: date) -> int:
        """Sum of seconds over an inclusive date range."""
        query = select(
            func.coalesce(func.sum(DailyReadingStat.total_duration_seconds), 0)
        ).where(
            and_(
                DailyReadingStat.user_id == user_id,
                DailyReadingStat.stat_date >= start,
                DailyReadingStat.stat_date <= end,
            )
        )
        result = await self.db.execute(query)
        return int(result.scalar() or 0)

    async def weekly_totals(self, start: date, end: date) -> list[tuple[UUID, int, int, int]]:
        """Per-user (user_id, seconds, reading days, books read) over a date range, all users."""
        query = (
            select(
                DailyReadingStat.user_id,
                func.sum(DailyReadingStat.total_duration_seconds).label("total"),
                func.sum(
                    case((DailyReadingStat.total_duration_seconds > 0, 1), else_=0)
                ).label("reading_days"),
                func.sum(DailyReadingStat.books_read).label("books_read"),
            )
            .where(
                and_(
                    DailyReadingStat.stat_date >= start,
                    DailyReadingStat.stat_date <= end,
                )
            )
            .group_by(DailyReadingStat.user_id)
        )
        result = await self.db.execute(query)
        return [
            (row.user_id, int(row.total or 0), int(row.reading_days or 0), int(row.books_read or 0))
            for row in result.all()
        ]
