"""Reading statistics, milestone and leaderboard schemas.

Dates are ISO ``YYYY-MM-DD`` strings in UTC.
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class DateRange(BaseModel):
    """Inclusive date range."""

    start: str
    end: str


class DayDuration(BaseModel):
    """Seconds read on one day."""

    date: str
    duration: int
    day_of_week: str


class WeekSummary(BaseModel):
    """Headline numbers for a week."""

    total_duration: int
    daily_average: int
    comparison_change: float = Field(description="Percent change versus the previous week")
    friend_ranking: int | None = None


class ReadingRecords(BaseModel):
    """Activity counts for a week."""

    books_read: int
    reading_days: int
    notes_count: int
    highlights_count: int


class WeekStatsResponse(BaseModel):
    """Week view."""

    dimension: Literal["week"] = "week"
    date_range: DateRange
    summary: WeekSummary
    reading_records: ReadingRecords
    duration_by_day: list[DayDuration]


class MonthSummary(BaseModel):
    """Headline numbers for a month."""

    total_duration: int
    daily_average: int
    comparison_change: float
    reading_days: int


class MonthStatsResponse(BaseModel):
    """Month view, one entry per day of the month."""

    dimension: Literal["month"] = "month"
    date_range: DateRange
    summary: MonthSummary
    duration_by_day: list[DayDuration]


class MonthDuration(BaseModel):
    """Seconds and reading days in one month."""

    month: int = Field(ge=1, le=12)
    duration: int
    reading_days: int


class YearSummary(BaseModel):
    """Headline numbers for a year."""

    total_duration: int
    monthly_average: int
    total_reading_days: int
    comparison_change: float


class YearStatsResponse(BaseModel):
    """Year view, twelve month entries."""

    dimension: Literal["year"] = "year"
    year: int
    summary: YearSummary
    duration_by_month: list[MonthDuration]


class TotalSummary(BaseModel):
    """Lifetime aggregate."""

    total_duration: int
    total_days: int
    current_streak: int
    longest_streak: int
    books_read: int
    books_finished: int


class TotalStatsResponse(BaseModel):
    """Lifetime view."""

    dimension: Literal["total"] = "total"
    summary: TotalSummary


class CalendarDay(BaseModel):
    """One calendar cell."""

    date: str
    duration: int
    has_reading: bool


class CalendarMilestone(BaseModel):
    """Milestone marker shown on the calendar."""

    id: UUID
    date: str
    type: str
    title: str
    value: int
    content_title: str | None = None


class CalendarStatsResponse(BaseModel):
    """Calendar view, one entry per day of the month."""

    dimension: Literal["calendar"] = "calendar"
    year: int
    month: int
    calendar_days: list[CalendarDay]
    milestones: list[CalendarMilestone]


StatsResponse = (
    WeekStatsResponse
    | MonthStatsResponse
    | YearStatsResponse
    | TotalStatsResponse
    | CalendarStatsResponse
)


class MilestoneContent(BaseModel):
    """Content a milestone refers to."""

    id: UUID
    title: str | None = None
    type: str | None = None


class MilestoneResponse(BaseModel):
    """Achieved milestone."""

    id: UUID
    type: str
    date: str
    title: str
    description: str | None = None
    value: int
    content: MilestoneContent | None = None


class WeekRange(BaseModel):
    """Leaderboard week and its settlement instant."""

    start: str
    end: str
    settlement_time: str


class MyRanking(BaseModel):
    """The caller's own standing."""

    rank: int | None
    duration: int
    rank_change: int
    reading_days: int


class LeaderboardUser(BaseModel):
    """Display data for a ranked user."""

    id: UUID
    username: str
    display_name: str
    avatar_url: str | None = None


class LeaderboardEntryResponse(BaseModel):
    """One leaderboard row."""

    rank: int | None
    user: LeaderboardUser
    duration: int
    reading_days: int
    rank_change: int
    likes_count: int
    is_liked: bool


class LeaderboardResponse(BaseModel):
    """Weekly leaderboard."""

    week_range: WeekRange
    my_ranking: MyRanking | None = None
    entries: list[LeaderboardEntryResponse]
    total_participants: int


class LikeResponse(BaseModel):
    """Like outcome."""

    success: bool
