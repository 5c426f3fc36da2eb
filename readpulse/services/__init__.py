"""Services package for business logic."""

from readpulse.services.badge_service import BadgeService
from readpulse.services.daily_stats_service import DailyAggregator
from readpulse.services.leaderboard_service import LeaderboardService
from readpulse.services.milestone_service import MilestoneService
from readpulse.services.ranking_service import RankingEngine
from readpulse.services.session_service import SessionService
from readpulse.services.stats_service import StatsService

__all__ = [
    "SessionService",
    "DailyAggregator",
    "MilestoneService",
    "BadgeService",
    "StatsService",
    "LeaderboardService",
    "RankingEngine",
]
