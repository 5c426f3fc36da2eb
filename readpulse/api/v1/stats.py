"""Reading statistics, milestones and weekly leaderboard endpoints."""

from datetime import date, timedelta
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Query

from readpulse.api.v1.deps import CurrentUser, DBSession, ServiceClock
from readpulse.schemas.stats import (
    LeaderboardResponse,
    LikeResponse,
    MilestoneResponse,
    StatsResponse,
)
from readpulse.services.stats_service import StatsService, week_start_of

router = APIRouter()

Dimension = Literal["week", "month", "year", "total", "calendar"]


@router.get(
    "",
    response_model=StatsResponse,
    summary="Get reading statistics",
    description=(
        "Reading statistics for one dimension. `week` uses `week_start` (any day of the week "
        "is accepted), `month`/`calendar` use `year` and `month`, `year` uses `year`. "
        "Omitted values default to the current UTC period."
    ),
)
async def get_stats(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
    dimension: Dimension = Query("week"),
    week_start: date | None = Query(None, description="Any day in the wanted week"),
    year: int | None = Query(None, ge=2000, le=2100),
    month: int | None = Query(None, ge=1, le=12),
) -> StatsResponse:
    """Get reading statistics."""
    service = StatsService(db, clock)
    today = clock().date()
    year = year or today.year
    month = month or today.month

    if dimension == "week":
        return await service.get_week_stats(current_user.id, week_start_of(week_start or today))
    if dimension == "month":
        return await service.get_month_stats(current_user.id, year, month)
    if dimension == "year":
        return await service.get_year_stats(current_user.id, year)
    if dimension == "calendar":
        return await service.get_calendar_stats(current_user.id, year, month)
    return await service.get_total_stats(current_user.id)


@router.get(
    "/milestones",
    response_model=list[MilestoneResponse],
    summary="Get milestones",
)
async def get_milestones(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
    limit: int = Query(20, ge=1, le=100),
    year: int | None = Query(None, ge=2000, le=2100),
) -> list[MilestoneResponse]:
    """Newest milestones first."""
    service = StatsService(db, clock)
    return await service.get_milestones(current_user.id, limit=limit, year=year)


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Get weekly leaderboard",
)
async def get_leaderboard(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
    week_start: date | None = Query(None, description="Any day in the wanted week"),
    previous: bool = Query(False, description="Show last week instead of the current one"),
) -> LeaderboardResponse:
    """Weekly leaderboard with the caller's own standing."""
    service = StatsService(db, clock)
    start = week_start_of(week_start) if week_start else service.current_week_start()
    if previous and week_start is None:
        start -= timedelta(days=7)
    return await service.get_leaderboard(current_user.id, start)


@router.post(
    "/leaderboard/{target_user_id}/like",
    response_model=LikeResponse,
    summary="Like a reader",
    description="Like another reader on this week's leaderboard. Once per reader per week.",
)
async def like_user(
    target_user_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> LikeResponse:
    """Like another reader for the current week."""
    service = StatsService(db, clock)
    return await service.like_leaderboard_user(
        current_user.id,
        target_user_id,
        service.current_week_start(),
    )
