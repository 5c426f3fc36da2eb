"""SQLAlchemy models package."""

from readpulse.models.badge import Badge, UserBadge
from readpulse.models.base import Base
from readpulse.models.book import CONTENT_TYPES, Book, BookStats, ContentType, ShelfEntry
from readpulse.models.leaderboard import LeaderboardLike, WeeklyLeaderboardEntry
from readpulse.models.reading import (
    DailyReadingStat,
    ReadingHistory,
    ReadingMilestone,
    ReadingSession,
)
from readpulse.models.user import User

__all__ = [
    "Base",
    "User",
    "Book",
    "BookStats",
    "ShelfEntry",
    "ContentType",
    "CONTENT_TYPES",
    "ReadingSession",
    "ReadingHistory",
    "DailyReadingStat",
    "ReadingMilestone",
    "Badge",
    "UserBadge",
    "WeeklyLeaderboardEntry",
    "LeaderboardLike",
]
