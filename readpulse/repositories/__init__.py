"""Repository package for data access."""

from readpulse.repositories.badge_repo import BadgeRepository
from readpulse.repositories.book_repo import BookRepository
from readpulse.repositories.daily_stats_repo import DailyStatsRepository
from readpulse.repositories.history_repo import HistoryRepository
from readpulse.repositories.leaderboard_repo import LeaderboardRepository
from readpulse.repositories.milestone_repo import MilestoneRepository
from readpulse.repositories.session_repo import SessionRepository
from readpulse.repositories.user_repo import UserRepository

__all__ = [
    "UserRepository",
    "BookRepository",
    "SessionRepository",
    "HistoryRepository",
    "DailyStatsRepository",
    "MilestoneRepository",
    "BadgeRepository",
    "LeaderboardRepository",
]
