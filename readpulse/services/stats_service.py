"""Reading statistics query service.

Read-side only. Every range view is gap-filled so callers always get one
entry per day (or month) in the range, and comparisons are against the
previous period of the same length.
"""

import calendar
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.config import settings
from readpulse.core.clock import Clock, ensure_utc, utcnow
from readpulse.core.exceptions import AlreadyExistsError, NotFoundError
from readpulse.models.reading import DailyReadingStat
from readpulse.models.user import User
from readpulse.repositories.daily_stats_repo import DailyStatsRepository
from readpulse.repositories.leaderboard_repo import LeaderboardRepository
from readpulse.repositories.milestone_repo import MilestoneRepository
from readpulse.repositories.user_repo import UserRepository
from readpulse.schemas.stats import (
    CalendarDay,
    CalendarMilestone,
    CalendarStatsResponse,
    DateRange,
    DayDuration,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    LeaderboardUser,
    LikeResponse,
    MilestoneContent,
    MilestoneResponse,
    MonthDuration,
    MonthStatsResponse,
    MonthSummary,
    MyRanking,
    ReadingRecords,
    TotalStatsResponse,
    TotalSummary,
    WeekRange,
    WeekStatsResponse,
    WeekSummary,
    YearStatsResponse,
    YearSummary,
)

logger = structlog.get_logger(__name__)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def percent_change(current: int, previous: int) -> float:
    """Change versus the previous period in percent, one decimal; 0 when there is no baseline."""
    if previous == 0:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def week_start_of(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def _fill_days(start: date, end: date, rows: list[DailyReadingStat]) -> list[DayDuration]:
    by_day = {row.stat_date: row.total_duration_seconds or 0 for row in rows}
    days = []
    current = start
    while current <= end:
        days.append(
            DayDuration(
                date=current.isoformat(),
                duration=by_day.get(current, 0),
                day_of_week=DAY_NAMES[current.weekday()],
            )
        )
        current += timedelta(days=1)
    return days


def _reading_days(rows: list[DailyReadingStat]) -> int:
    return sum(1 for row in rows if (row.total_duration_seconds or 0) > 0)


class StatsService:
    """Service for week/month/year/lifetime/calendar views and the weekly leaderboard."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.daily_repo = DailyStatsRepository(db)
        self.milestone_repo = MilestoneRepository(db)
        self.leaderboard_repo = LeaderboardRepository(db)

    async def _require_user(self, user_id: UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def get_week_stats(self, user_id: UUID, week_start: date) -> WeekStatsResponse:
        """Seven days starting at ``week_start``."""
        await self._require_user(user_id)
        week_end = week_start + timedelta(days=6)

        rows = await self.daily_repo.get_range(user_id, week_start, week_end)
        total = sum(row.total_duration_seconds or 0 for row in rows)
        previous = await self.daily_repo.total_duration(
            user_id, week_start - timedelta(days=7), week_start - timedelta(days=1)
        )
        entry = await self.leaderboard_repo.get_entry(user_id, week_start)

        books: set[str] = set()
        for row in rows:
            books.update((row.book_durations or {}).keys())

        return WeekStatsResponse(
            date_range=DateRange(start=week_start.isoformat(), end=week_end.isoformat()),
            summary=WeekSummary(
                total_duration=total,
                daily_average=total // 7,
                comparison_change=percent_change(total, previous),
                friend_ranking=entry.rank if entry else None,
            ),
            reading_records=ReadingRecords(
                books_read=len(books),
                reading_days=_reading_days(rows),
                notes_count=sum(row.notes_created or 0 for row in rows),
                highlights_count=sum(row.highlights_created or 0 for row in rows),
            ),
            duration_by_day=_fill_days(week_start, week_end, rows),
        )

    async def get_month_stats(self, user_id: UUID, year: int, month: int) -> MonthStatsResponse:
        """One calendar month."""
        await self._require_user(user_id)
        start, end = _month_bounds(year, month)

        rows = await self.daily_repo.get_range(user_id, start, end)
        total = sum(row.total_duration_seconds or 0 for row in rows)
        previous_start, previous_end = _month_bounds(*_previous_month(year, month))
        previous = await self.daily_repo.total_duration(user_id, previous_start, previous_end)

        return MonthStatsResponse(
            date_range=DateRange(start=start.isoformat(), end=end.isoformat()),
            summary=MonthSummary(
                total_duration=total,
                daily_average=total // end.day,
                comparison_change=percent_change(total, previous),
                reading_days=_reading_days(rows),
            ),
            duration_by_day=_fill_days(start, end, rows),
        )

    async def get_year_stats(self, user_id: UUID, year: int) -> YearStatsResponse:
        """Twelve months of one year."""
        await self._require_user(user_id)

        rows = await self.daily_repo.get_range(user_id, date(year, 1, 1), date(year, 12, 31))
        months = {m: MonthDuration(month=m, duration=0, reading_days=0) for m in range(1, 13)}
        for row in rows:
            bucket = months[row.stat_date.month]
            bucket.duration += row.total_duration_seconds or 0
            if (row.total_duration_seconds or 0) > 0:
                bucket.reading_days += 1

        total = sum(m.duration for m in months.values())
        previous = await self.daily_repo.total_duration(
            user_id, date(year - 1, 1, 1), date(year - 1, 12, 31)
        )

        return YearStatsResponse(
            year=year,
            summary=YearSummary(
                total_duration=total,
                monthly_average=total // 12,
                total_reading_days=sum(m.reading_days for m in months.values()),
                comparison_change=percent_change(total, previous),
            ),
            duration_by_month=list(months.values()),
        )

    async def get_total_stats(self, user_id: UUID) -> TotalStatsResponse:
        """Lifetime aggregate straight from the user row."""
        user = await self._require_user(user_id)
        return TotalStatsResponse(
            summary=TotalSummary(
                total_duration=user.total_reading_duration or 0,
                total_days=user.total_reading_days or 0,
                current_streak=user.current_streak_days or 0,
                longest_streak=user.max_streak_days or 0,
                books_read=user.books_read_count or 0,
                books_finished=user.books_finished_count or 0,
            )
        )

    async def get_calendar_stats(self, user_id: UUID, year: int, month: int) -> CalendarStatsResponse:
        """Every day of a month plus the milestones achieved in it."""
        await self._require_user(user_id)
        start, end = _month_bounds(year, month)

        rows = await self.daily_repo.get_range(user_id, start, end)
        by_day = {row.stat_date: row.total_duration_seconds or 0 for row in rows}
        days = []
        for day_number in range(1, end.day + 1):
            current = date(year, month, day_number)
            duration = by_day.get(current, 0)
            days.append(CalendarDay(date=current.isoformat(), duration=duration, has_reading=duration > 0))

        range_start = datetime(year, month, 1, tzinfo=UTC)
        range_end = datetime.combine(end + timedelta(days=1), datetime.min.time(), tzinfo=UTC)
        milestones = await self.milestone_repo.list_for_user(
            user_id, limit=100, start=range_start, end=range_end
        )

        return CalendarStatsResponse(
            year=year,
            month=month,
            calendar_days=days,
            milestones=[
                CalendarMilestone(
                    id=m.id,
                    date=ensure_utc(m.achieved_at).date().isoformat(),
                    type=m.milestone_type,
                    title=m.title,
                    value=m.milestone_value,
                    content_title=m.content_title,
                )
                for m in milestones
            ],
        )

    async def get_milestones(
        self,
        user_id: UUID,
        limit: int = 20,
        year: int | None = None,
    ) -> list[MilestoneResponse]:
        """Newest milestones first, optionally within one year."""
        await self._require_user(user_id)

        start = end = None
        if year is not None:
            start = datetime(year, 1, 1, tzinfo=UTC)
            end = datetime(year + 1, 1, 1, tzinfo=UTC)

        milestones = await self.milestone_repo.list_for_user(user_id, limit=limit, start=start, end=end)
        return [
            MilestoneResponse(
                id=m.id,
                type=m.milestone_type,
                date=ensure_utc(m.achieved_at).date().isoformat(),
                title=m.title,
                description=m.description,
                value=m.milestone_value,
                content=(
                    MilestoneContent(id=m.content_id, title=m.content_title, type=m.content_type)
                    if m.content_id
                    else None
                ),
            )
            for m in milestones
        ]

    async def get_leaderboard(self, user_id: UUID, week_start: date) -> LeaderboardResponse:
        """Top entries for a week, the caller's own standing and their likes."""
        week_end = week_start + timedelta(days=6)

        rows = await self.leaderboard_repo.get_top(week_start, limit=settings.leaderboard_limit)
        liked = await self.leaderboard_repo.liked_targets(user_id, week_start)
        mine = await self.leaderboard_repo.get_entry(user_id, week_start)
        participants = await self.leaderboard_repo.count_participants(week_start)

        return LeaderboardResponse(
            week_range=WeekRange(
                start=week_start.isoformat(),
                end=week_end.isoformat(),
                settlement_time=f"{week_end.isoformat()}T23:59:59Z",
            ),
            my_ranking=(
                MyRanking(
                    rank=mine.rank,
                    duration=mine.total_duration_seconds,
                    rank_change=mine.rank_change,
                    reading_days=mine.reading_days,
                )
                if mine
                else None
            ),
            entries=[
                LeaderboardEntryResponse(
                    rank=entry.rank,
                    user=LeaderboardUser(
                        id=user.id,
                        username=user.username,
                        display_name=user.display_name,
                        avatar_url=user.avatar_url,
                    ),
                    duration=entry.total_duration_seconds,
                    reading_days=entry.reading_days,
                    rank_change=entry.rank_change,
                    likes_count=entry.likes_received,
                    is_liked=entry.user_id in liked,
                )
                for entry, user in rows
            ],
            total_participants=participants,
        )

    async def like_leaderboard_user(
        self,
        user_id: UUID,
        target_user_id: UUID,
        week_start: date,
    ) -> LikeResponse:
        """Like another reader on that week's board, once per week."""
        if not await self.user_repo.exists(target_user_id):
            raise NotFoundError("User", str(target_user_id))
        if not await self.leaderboard_repo.get_entry(target_user_id, week_start):
            raise NotFoundError("Leaderboard entry", str(target_user_id))

        inserted = await self.leaderboard_repo.add_like(user_id, target_user_id, week_start)
        if not inserted:
            raise AlreadyExistsError(
                "Already liked this user this week",
                {"target_user_id": str(target_user_id), "week_start": week_start.isoformat()},
            )

        await self.leaderboard_repo.increment_likes(target_user_id, week_start)
        await self.db.commit()

        logger.info(
            "leaderboard_like",
            user_id=str(user_id),
            target_user_id=str(target_user_id),
            week_start=week_start.isoformat(),
        )
        return LikeResponse(success=True)

    def current_week_start(self) -> date:
        """Monday of the current UTC week."""
        return week_start_of(self.clock().date())
