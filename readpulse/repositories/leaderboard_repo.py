"""Weekly leaderboard repository."""

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.db.upsert import insert_for
from readpulse.models.leaderboard import LeaderboardLike, WeeklyLeaderboardEntry
from readpulse.models.user import User


class LeaderboardRepository:
    """Repository for weekly leaderboard rows and likes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_top(
        self,
        week_start: date,
        limit: int = 100,
    ) -> list[tuple[WeeklyLeaderboardEntry, User]]:
        """Ranked entries for a week with the user row for display."""
        query = (
            select(WeeklyLeaderboardEntry, User)
            .join(User, WeeklyLeaderboardEntry.user_id == User.id)
            .where(WeeklyLeaderboardEntry.week_start == week_start)
            .order_by(WeeklyLeaderboardEntry.rank.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [(entry, user) for entry, user in result.all()]

    async def get_entry(self, user_id: UUID, week_start: date) -> WeeklyLeaderboardEntry | None:
        """One user's row for a week."""
        query = (
            select(WeeklyLeaderboardEntry)
            .where(
                and_(
                    WeeklyLeaderboardEntry.user_id == user_id,
                    WeeklyLeaderboardEntry.week_start == week_start,
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_ranks(self, week_start: date) -> dict[UUID, int]:
        """user_id -> rank for a week."""
        query = select(WeeklyLeaderboardEntry.user_id, WeeklyLeaderboardEntry.rank).where(
            WeeklyLeaderboardEntry.week_start == week_start
        )
        result = await self.db.execute(query)
        return {row.user_id: row.rank for row in result.all() if row.rank is not None}

    async def count_participants(self, week_start: date) -> int:
        """Number of ranked users for a week."""
        query = select(func.count(WeeklyLeaderboardEntry.id)).where(
            WeeklyLeaderboardEntry.week_start == week_start
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def liked_targets(self, user_id: UUID, week_start: date) -> set[UUID]:
        """Users the caller has liked during the week."""
        query = select(LeaderboardLike.target_user_id).where(
            and_(
                LeaderboardLike.user_id == user_id,
                LeaderboardLike.week_start == week_start,
            )
        )
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def add_like(self, user_id: UUID, target_user_id: UUID, week_start: date) -> bool:
        """Insert a like; False when one already exists for (liker, target, week)."""
        stmt = (
            insert_for(self.db, LeaderboardLike.__table__)
            .values(user_id=user_id, target_user_id=target_user_id, week_start=week_start)
            .on_conflict_do_nothing(index_elements=["user_id", "target_user_id", "week_start"])
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def increment_likes(self, target_user_id: UUID, week_start: date) -> None:
        """likes_received = likes_received + 1 on the target's week row."""
        stmt = (
            update(WeeklyLeaderboardEntry)
            .where(
                and_(
                    WeeklyLeaderboardEntry.user_id == target_user_id,
                    WeeklyLeaderboardEntry.week_start == week_start,
                )
            )
            .values(likes_received=WeeklyLeaderboardEntry.likes_received + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def upsert_entry(
        self,
        user_id: UUID,
        week_start: date,
        week_end: date,
        *,
        total_duration_seconds: int,
        rank: int,
        rank_change: int,
        reading_days: int,
        books_read: int,
    ) -> None:
        """Write a user's computed standing, keeping likes already received."""
        table = WeeklyLeaderboardEntry.__table__
        values = {
            "total_duration_seconds": total_duration_seconds,
            "rank": rank,
            "rank_change": rank_change,
            "reading_days": reading_days,
            "books_read": books_read,
        }
        stmt = insert_for(self.db, table).values(
            user_id=user_id,
            week_start=week_start,
            week_end=week_end,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "week_start"],
            set_={column: stmt.excluded[column] for column in values},
        )
        await self.db.execute(stmt)
