"""Badge evaluation and award service.

Badges are declarative: each row names a condition type and a threshold. The
condition type selects which figure of the user's reading aggregate is
compared against the threshold.
"""

from collections.abc import Callable
from enum import Enum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.cache.decorators import cached
from readpulse.config import settings
from readpulse.core.clock import Clock, utcnow
from readpulse.core.exceptions import NotFoundError
from readpulse.models.badge import Badge
from readpulse.models.user import User
from readpulse.repositories.badge_repo import BadgeRepository
from readpulse.repositories.user_repo import UserRepository
from readpulse.schemas.badge import (
    BadgeProgress,
    BadgeResponse,
    CategorySummary,
    EarnedBadgeResponse,
    InProgressBadge,
    UserBadgesResponse,
)

logger = structlog.get_logger(__name__)

BADGE_CATALOG_CACHE_KEY = "badges:catalog"


class BadgeCondition(str, Enum):
    """What a badge threshold is measured against."""

    STREAK_DAYS = "streak_days"
    MAX_STREAK_DAYS = "max_streak_days"
    TOTAL_HOURS = "total_hours"
    TOTAL_DAYS = "total_days"
    BOOKS_FINISHED = "books_finished"
    BOOKS_READ = "books_read"


CONDITION_METRICS: dict[BadgeCondition, Callable[[User], int]] = {
    BadgeCondition.STREAK_DAYS: lambda user: user.current_streak_days or 0,
    BadgeCondition.MAX_STREAK_DAYS: lambda user: user.max_streak_days or 0,
    BadgeCondition.TOTAL_HOURS: lambda user: (user.total_reading_duration or 0) // 3600,
    BadgeCondition.TOTAL_DAYS: lambda user: user.total_reading_days or 0,
    BadgeCondition.BOOKS_FINISHED: lambda user: user.books_finished_count or 0,
    BadgeCondition.BOOKS_READ: lambda user: user.books_read_count or 0,
}

CONDITION_UNITS: dict[BadgeCondition, str] = {
    BadgeCondition.STREAK_DAYS: "day",
    BadgeCondition.MAX_STREAK_DAYS: "day",
    BadgeCondition.TOTAL_DAYS: "day",
    BadgeCondition.TOTAL_HOURS: "hour",
    BadgeCondition.BOOKS_FINISHED: "book",
    BadgeCondition.BOOKS_READ: "book",
}


def _condition(condition_type: str) -> BadgeCondition | None:
    try:
        return BadgeCondition(condition_type)
    except ValueError:
        return None


def condition_metric(user: User, condition_type: str) -> int | None:
    """The user's current figure for a condition, or None if the type is unknown."""
    condition = _condition(condition_type)
    if condition is None:
        return None
    return CONDITION_METRICS[condition](user)


def format_remaining(condition_type: str, remaining: int) -> str:
    """Human-readable distance to a badge."""
    if remaining <= 0:
        return "Achieved"

    condition = _condition(condition_type)
    if condition is None:
        return f"{remaining} more to earn"

    unit = CONDITION_UNITS[condition]
    plural = "" if remaining == 1 else "s"
    return f"{remaining} more {unit}{plural} to earn"


def calculate_progress(current: int, target: int, condition_type: str) -> BadgeProgress:
    """Progress toward a threshold, clamped to 100% and rounded to one decimal."""
    percentage = min(100.0, (current / target) * 100) if target > 0 else 100.0
    return BadgeProgress(
        current=current,
        target=target,
        percentage=round(percentage, 1),
        remaining=format_remaining(condition_type, target - current),
    )


def _earned(badge: Badge, earned_at) -> EarnedBadgeResponse:
    return EarnedBadgeResponse(
        id=badge.id,
        category=badge.category,
        level=badge.level or 1,
        name=badge.name,
        description=badge.description,
        requirement=badge.requirement,
        icon_url=badge.icon_url,
        background_color=badge.background_color,
        earned_at=earned_at,
        earned_count=badge.earned_count or 0,
    )


DEFAULT_BADGES: list[dict] = [
    # Reading streak
    {"category": "reading_streak", "level": 1, "name": "7-Day Streak", "requirement": "Read for 7 consecutive days", "condition_type": "streak_days", "condition_value": 7, "description": "Building a habit starts here"},
    {"category": "reading_streak", "level": 2, "name": "30-Day Streak", "requirement": "Read for 30 consecutive days", "condition_type": "streak_days", "condition_value": 30, "description": "A month of dedication"},
    {"category": "reading_streak", "level": 3, "name": "90-Day Streak", "requirement": "Read for 90 consecutive days", "condition_type": "streak_days", "condition_value": 90, "description": "A quarter of consistency"},
    {"category": "reading_streak", "level": 4, "name": "180-Day Streak", "requirement": "Read for 180 consecutive days", "condition_type": "streak_days", "condition_value": 180, "description": "Half a year strong"},
    {"category": "reading_streak", "level": 5, "name": "365-Day Streak", "requirement": "Read for 365 consecutive days", "condition_type": "streak_days", "condition_value": 365, "description": "A full year of reading!"},
    {"category": "reading_streak", "level": 6, "name": "1000-Day Streak", "requirement": "Read for 1000 consecutive days", "condition_type": "streak_days", "condition_value": 1000, "description": "Legendary dedication"},
    # Reading duration
    {"category": "reading_duration", "level": 1, "name": "100 Hours Read", "requirement": "Accumulate 100 hours of reading", "condition_type": "total_hours", "condition_value": 100, "description": "Your reading journey begins"},
    {"category": "reading_duration", "level": 2, "name": "500 Hours Read", "requirement": "Accumulate 500 hours of reading", "condition_type": "total_hours", "condition_value": 500, "description": "A serious reader"},
    {"category": "reading_duration", "level": 3, "name": "1000 Hours Read", "requirement": "Accumulate 1000 hours of reading", "condition_type": "total_hours", "condition_value": 1000, "description": "Master reader status"},
    {"category": "reading_duration", "level": 4, "name": "2000 Hours Read", "requirement": "Accumulate 2000 hours of reading", "condition_type": "total_hours", "condition_value": 2000, "description": "Expert level achieved"},
    {"category": "reading_duration", "level": 5, "name": "3000 Hours Read", "requirement": "Accumulate 3000 hours of reading", "condition_type": "total_hours", "condition_value": 3000, "description": "Scholar status"},
    {"category": "reading_duration", "level": 6, "name": "5000 Hours Read", "requirement": "Accumulate 5000 hours of reading", "condition_type": "total_hours", "condition_value": 5000, "description": "Legendary reader"},
    # Reading days
    {"category": "reading_days", "level": 1, "name": "100 Days Read", "requirement": "Read on 100 different days", "condition_type": "total_days", "condition_value": 100, "description": "Century of reading days"},
    {"category": "reading_days", "level": 2, "name": "200 Days Read", "requirement": "Read on 200 different days", "condition_type": "total_days", "condition_value": 200, "description": "Double century"},
    {"category": "reading_days", "level": 3, "name": "365 Days Read", "requirement": "Read on 365 different days", "condition_type": "total_days", "condition_value": 365, "description": "A year worth of reading"},
    {"category": "reading_days", "level": 4, "name": "500 Days Read", "requirement": "Read on 500 different days", "condition_type": "total_days", "condition_value": 500, "description": "Half a thousand"},
    {"category": "reading_days", "level": 5, "name": "1000 Days Read", "requirement": "Read on 1000 different days", "condition_type": "total_days", "condition_value": 1000, "description": "Millennial reader"},
    # Books finished
    {"category": "books_finished", "level": 1, "name": "10 Books Finished", "requirement": "Finish reading 10 books", "condition_type": "books_finished", "condition_value": 10, "description": "First milestone"},
    {"category": "books_finished", "level": 2, "name": "50 Books Finished", "requirement": "Finish reading 50 books", "condition_type": "books_finished", "condition_value": 50, "description": "Avid reader"},
    {"category": "books_finished", "level": 3, "name": "100 Books Finished", "requirement": "Finish reading 100 books", "condition_type": "books_finished", "condition_value": 100, "description": "Century of books"},
    {"category": "books_finished", "level": 4, "name": "200 Books Finished", "requirement": "Finish reading 200 books", "condition_type": "books_finished", "condition_value": 200, "description": "Bookworm elite"},
    {"category": "books_finished", "level": 5, "name": "500 Books Finished", "requirement": "Finish reading 500 books", "condition_type": "books_finished", "condition_value": 500, "description": "Library conqueror"},
    {"category": "books_finished", "level": 6, "name": "1000 Books Finished", "requirement": "Finish reading 1000 books", "condition_type": "books_finished", "condition_value": 1000, "description": "The ultimate bibliophile"},
]


class BadgeService:
    """Service for badge catalog reads, progress and awards."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.badge_repo = BadgeRepository(db)
        self.user_repo = UserRepository(db)

    async def get_user_badges(self, user_id: UUID) -> UserBadgesResponse:
        """Partition the active catalog into earned and in-progress for a user."""
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))

        badges = await self.badge_repo.list_active()
        earned_map = await self.badge_repo.get_earned(user_id)

        earned: list[EarnedBadgeResponse] = []
        in_progress: list[InProgressBadge] = []
        categories: dict[str, CategorySummary] = {}

        for badge in badges:
            summary = categories.setdefault(badge.category, CategorySummary(earned=0, total=0))
            summary.total += 1

            if badge.id in earned_map:
                summary.earned += 1
                earned.append(_earned(badge, earned_map[badge.id]))
                continue

            current = condition_metric(user, badge.condition_type)
            if current is None:
                continue
            in_progress.append(
                InProgressBadge(
                    badge=BadgeResponse.model_validate(badge),
                    progress=calculate_progress(current, badge.condition_value, badge.condition_type),
                )
            )

        return UserBadgesResponse(earned=earned, in_progress=in_progress, categories=categories)

    async def check_and_award_badges(self, user_id: UUID) -> list[EarnedBadgeResponse]:
        """Award every qualifying badge the user does not hold yet.

        Safe to call repeatedly; a badge is awarded at most once per user.
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            return []

        badges = await self.badge_repo.list_active()
        earned_map = await self.badge_repo.get_earned(user_id)
        now = self.clock()
        newly_earned: list[EarnedBadgeResponse] = []

        for badge in badges:
            if badge.id in earned_map:
                continue

            current = condition_metric(user, badge.condition_type)
            if current is None or current < badge.condition_value:
                continue

            awarded = await self.badge_repo.award(user_id, badge.id, now)
            if not awarded:
                logger.debug("badge_already_awarded", user_id=str(user_id), badge_id=str(badge.id))
                continue

            response = _earned(badge, now)
            response.earned_count = (badge.earned_count or 0) + 1
            newly_earned.append(response)
            logger.info(
                "badge_awarded",
                user_id=str(user_id),
                badge_id=str(badge.id),
                badge=badge.name,
            )

        await self.db.commit()
        return newly_earned

    async def get_badge(self, badge_id: UUID) -> BadgeResponse:
        """Get a catalog entry."""
        badge = await self.badge_repo.get_by_id(badge_id)
        if not badge:
            raise NotFoundError("Badge", str(badge_id))
        return BadgeResponse.model_validate(badge)

    @cached(
        ttl=settings.badge_catalog_cache_ttl,
        key_builder=lambda self: BADGE_CATALOG_CACHE_KEY,
    )
    async def get_all_badges(self) -> dict[str, list[dict]]:
        """Active catalog grouped by category, each group ordered by level."""
        badges = await self.badge_repo.list_active()

        grouped: dict[str, list[dict]] = {}
        for badge in badges:
            grouped.setdefault(badge.category, []).append(
                BadgeResponse.model_validate(badge).model_dump(mode="json")
            )
        return grouped

    async def initialize_default_badges(self) -> int:
        """Seed the default catalog. No-op when any badge already exists."""
        existing = await self.badge_repo.count()
        if existing > 0:
            logger.info("badges_already_initialized", count=existing)
            return 0

        created = await self.badge_repo.create_many(DEFAULT_BADGES)
        await self.db.commit()
        await BadgeService.get_all_badges.invalidate(self)

        logger.info("badges_initialized", count=created)
        return created
