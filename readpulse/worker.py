"""arq worker for the scheduled ranking and leaderboard batches.

Run with ``arq readpulse.worker.WorkerSettings``.
"""

from datetime import UTC, date, datetime, timedelta
from typing import Any

import structlog
from arq import cron
from arq.connections import RedisSettings

from readpulse.cache.ranking_cache import create_ranking_cache
from readpulse.cache.redis_client import RedisCache
from readpulse.config import settings
from readpulse.db.session import async_session_factory, close_db
from readpulse.schemas.ranking import RankingType
from readpulse.services.leaderboard_service import LeaderboardService
from readpulse.services.ranking_service import RankingEngine
from readpulse.services.stats_service import week_start_of

logger = structlog.get_logger(__name__)

DAILY_RANKINGS = [
    RankingType.TOP_RATED,
    RankingType.MOST_READ,
    RankingType.NEW_RELEASES,
    RankingType.HIDDEN_GEMS,
]


async def compute_rankings(ctx: dict[str, Any], types: list[str] | None = None) -> dict[str, bool]:
    """Compute the given ranking types, or all of them."""
    engine: RankingEngine = ctx["ranking_engine"]
    requested = [RankingType(value) for value in types] if types else None
    report = await engine.compute_book_rankings(requested)
    return {ranking_type.value: ok for ranking_type, ok in report.items()}


async def compute_trending(ctx: dict[str, Any]) -> dict[str, bool]:
    return await compute_rankings(ctx, [RankingType.TRENDING.value])


async def compute_popular(ctx: dict[str, Any]) -> dict[str, bool]:
    return await compute_rankings(ctx, [RankingType.POPULAR_THIS_WEEK.value])


async def compute_daily_rankings(ctx: dict[str, Any]) -> dict[str, bool]:
    return await compute_rankings(ctx, [ranking_type.value for ranking_type in DAILY_RANKINGS])


async def refresh_leaderboard(ctx: dict[str, Any], week_start: str | None = None) -> int:
    """Recompute a week's leaderboard, the current week by default."""
    _ = ctx
    day = date.fromisoformat(week_start) if week_start else week_start_of(datetime.now(UTC).date())

    async with async_session_factory() as db:
        return await LeaderboardService(db).refresh_weekly_leaderboard(day)


async def refresh_previous_leaderboard(ctx: dict[str, Any]) -> int:
    """Settle last week once the week has closed."""
    previous = week_start_of(datetime.now(UTC).date()) - timedelta(days=7)
    return await refresh_leaderboard(ctx, previous.isoformat())


async def startup(ctx: dict[str, Any]) -> None:
    cache = await create_ranking_cache()
    engine = RankingEngine(async_session_factory, cache)
    ctx["ranking_engine"] = engine

    report = await engine.refresh_stale()
    logger.info("worker_started", refreshed_rankings=[ranking_type.value for ranking_type in report])


async def shutdown(ctx: dict[str, Any]) -> None:
    _ = ctx
    await RedisCache.close()
    await close_db()
    logger.info("worker_stopped")


class WorkerSettings:
    """arq worker configuration."""

    functions = [compute_rankings, refresh_leaderboard]
    cron_jobs = [
        cron(compute_trending, minute=0),
        cron(compute_popular, hour={0, 6, 12, 18}, minute=10),
        cron(compute_daily_rankings, hour=3, minute=20),
        cron(refresh_leaderboard, minute={15, 45}),
        cron(refresh_previous_leaderboard, weekday="mon", hour=0, minute=30),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(str(settings.redis_url))
