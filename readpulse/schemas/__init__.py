"""Pydantic schemas package."""

from readpulse.schemas.badge import (
    BadgeCheckResponse,
    BadgeProgress,
    BadgeResponse,
    CategorySummary,
    EarnedBadgeResponse,
    InProgressBadge,
    UserBadgesResponse,
)
from readpulse.schemas.ranking import RankedBook, RankingListResponse, RankingResult, RankingType
from readpulse.schemas.session import (
    EndSessionRequest,
    EndSessionResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    MilestoneAchieved,
    PauseStateResponse,
    SessionResponse,
    SessionStart,
    TodayDurationResponse,
)
from readpulse.schemas.stats import (
    CalendarStatsResponse,
    LeaderboardResponse,
    LikeResponse,
    MilestoneResponse,
    MonthStatsResponse,
    StatsResponse,
    TotalStatsResponse,
    WeekStatsResponse,
    YearStatsResponse,
)

__all__ = [
    # Sessions
    "SessionStart",
    "HeartbeatRequest",
    "EndSessionRequest",
    "SessionResponse",
    "HeartbeatResponse",
    "PauseStateResponse",
    "MilestoneAchieved",
    "EndSessionResponse",
    "TodayDurationResponse",
    # Stats
    "StatsResponse",
    "WeekStatsResponse",
    "MonthStatsResponse",
    "YearStatsResponse",
    "TotalStatsResponse",
    "CalendarStatsResponse",
    "MilestoneResponse",
    "LeaderboardResponse",
    "LikeResponse",
    # Badges
    "BadgeResponse",
    "EarnedBadgeResponse",
    "BadgeProgress",
    "InProgressBadge",
    "CategorySummary",
    "UserBadgesResponse",
    "BadgeCheckResponse",
    # Rankings
    "RankingType",
    "RankedBook",
    "RankingResult",
    "RankingListResponse",
]
