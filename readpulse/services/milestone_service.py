"""Streak tracking and milestone detection."""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.core.clock import Clock, utcnow
from readpulse.core.exceptions import NotFoundError
from readpulse.repositories.milestone_repo import MilestoneRepository
from readpulse.repositories.user_repo import UserRepository
from readpulse.schemas.session import MilestoneAchieved

logger = structlog.get_logger(__name__)


class MilestoneType(str, Enum):
    """Milestone ladders."""

    TOTAL_HOURS = "total_hours"
    STREAK_DAYS = "streak_days"
    TOTAL_DAYS = "total_days"


MILESTONE_LADDERS: dict[MilestoneType, tuple[int, ...]] = {
    MilestoneType.TOTAL_HOURS: (10, 50, 100, 500, 1000, 2000, 3000, 5000),
    MilestoneType.STREAK_DAYS: (7, 30, 90, 180, 365, 500, 1000),
    MilestoneType.TOTAL_DAYS: (100, 200, 365, 500, 1000),
}

MILESTONE_TITLES: dict[MilestoneType, str] = {
    MilestoneType.TOTAL_HOURS: "{value} hours of reading",
    MilestoneType.STREAK_DAYS: "{value}-day reading streak",
    MilestoneType.TOTAL_DAYS: "Read on {value} days",
}


@dataclass
class StreakUpdate:
    """Result of applying one reading day to a streak."""

    is_new_day: bool
    current_streak_days: int
    max_streak_days: int


def compute_streak(
    last_reading_date: date | None,
    today: date,
    current_streak_days: int,
    max_streak_days: int,
) -> StreakUpdate:
    """Advance, reset or keep a streak for a read on ``today``."""
    is_new_day = last_reading_date != today
    is_consecutive = last_reading_date is not None and last_reading_date == today - timedelta(days=1)

    streak = current_streak_days or 0
    if is_consecutive:
        streak += 1
    elif is_new_day:
        streak = 1

    return StreakUpdate(
        is_new_day=is_new_day,
        current_streak_days=streak,
        max_streak_days=max(max_streak_days or 0, streak),
    )


class MilestoneService:
    """Maintains the user's lifetime aggregate and milestone ladders.

    Does not commit; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.user_repo = UserRepository(db)
        self.milestone_repo = MilestoneRepository(db)

    async def update_user_aggregate(
        self,
        user_id: UUID,
        duration_seconds: int,
        today: date | None = None,
        books_read_delta: int = 0,
        books_finished_delta: int = 0,
    ) -> StreakUpdate:
        """Apply one session end to the user's aggregate in a single update."""
        today = today or self.clock().date()

        user = await self.user_repo.get_by_id(user_id, for_update=True)
        if not user:
            raise NotFoundError("User", str(user_id))

        streak = compute_streak(
            user.last_reading_date,
            today,
            user.current_streak_days,
            user.max_streak_days,
        )

        await self.user_repo.apply_reading_aggregate(
            user_id,
            duration_seconds=max(0, duration_seconds),
            new_day=streak.is_new_day,
            current_streak_days=streak.current_streak_days,
            max_streak_days=streak.max_streak_days,
            last_reading_date=today,
            books_read_delta=books_read_delta,
            books_finished_delta=books_finished_delta,
        )

        logger.debug(
            "user_aggregate_updated",
            user_id=str(user_id),
            new_day=streak.is_new_day,
            streak=streak.current_streak_days,
        )
        return streak

    async def check_milestones(self, user_id: UUID) -> list[MilestoneAchieved]:
        """Rescan every ladder and insert whatever is newly crossed."""
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            return []

        current_values = {
            MilestoneType.TOTAL_HOURS: (user.total_reading_duration or 0) // 3600,
            MilestoneType.STREAK_DAYS: user.current_streak_days or 0,
            MilestoneType.TOTAL_DAYS: user.total_reading_days or 0,
        }

        now = self.clock()
        achieved: list[MilestoneAchieved] = []

        for milestone_type, thresholds in MILESTONE_LADDERS.items():
            current = current_values[milestone_type]
            for threshold in thresholds:
                if current < threshold:
                    break

                title = MILESTONE_TITLES[milestone_type].format(value=threshold)
                created = await self.milestone_repo.create_if_absent(
                    user_id,
                    milestone_type.value,
                    threshold,
                    title,
                    achieved_at=now,
                )
                if not created:
                    logger.debug(
                        "milestone_already_recorded",
                        user_id=str(user_id),
                        type=milestone_type.value,
                        value=threshold,
                    )
                    continue

                logger.info(
                    "milestone_achieved",
                    user_id=str(user_id),
                    type=milestone_type.value,
                    value=threshold,
                )
                achieved.append(
                    MilestoneAchieved(type=milestone_type.value, value=threshold, title=title)
                )

        return achieved
