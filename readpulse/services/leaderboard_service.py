"""Weekly leaderboard computation.

Ranks every reader with activity in a week by total seconds read and writes
the standings consumed by the stats service.
"""

from datetime import date, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.repositories.daily_stats_repo import DailyStatsRepository
from readpulse.repositories.leaderboard_repo import LeaderboardRepository

logger = structlog.get_logger(__name__)


class LeaderboardService:
    """Service that refreshes a week's leaderboard rows."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.daily_repo = DailyStatsRepository(db)
        self.leaderboard_repo = LeaderboardRepository(db)

    async def refresh_weekly_leaderboard(self, week_start: date) -> int:
        """Recompute ranks for a week. Returns the number of ranked users.

        Ties on duration are broken by reading days. Rank change is relative
        to the previous week; positive means the reader moved up.
        """
        week_end = week_start + timedelta(days=6)
        totals = await self.daily_repo.weekly_totals(week_start, week_end)
        previous_ranks = await self.leaderboard_repo.get_ranks(week_start - timedelta(days=7))

        ranked = sorted(
            (row for row in totals if row[1] > 0),
            key=lambda row: (-row[1], -row[2]),
        )

        for rank, (user_id, total, reading_days, books_read) in enumerate(ranked, start=1):
            previous = previous_ranks.get(user_id)
            await self.leaderboard_repo.upsert_entry(
                user_id,
                week_start,
                week_end,
                total_duration_seconds=total,
                rank=rank,
                rank_change=(previous - rank) if previous else 0,
                reading_days=reading_days,
                books_read=books_read,
            )

        await self.db.commit()
        logger.info("leaderboard_refreshed", week_start=week_start.isoformat(), ranked=len(ranked))
        return len(ranked)
