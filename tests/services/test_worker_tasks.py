"""Worker task tests."""

import pytest

from readpulse.schemas.ranking import RankingType
from readpulse.worker import (
    DAILY_RANKINGS,
    WorkerSettings,
    compute_daily_rankings,
    compute_popular,
    compute_rankings,
    compute_trending,
)


@pytest.mark.asyncio
async def test_compute_rankings_by_name(ranking_engine):
    ctx = {"ranking_engine": ranking_engine}

    report = await compute_rankings(ctx, ["trending", "most_read"])

    assert report == {"trending": True, "most_read": True}
    assert await ranking_engine.get_ranking(RankingType.MOST_READ) is not None


@pytest.mark.asyncio
async def test_scheduled_groups(ranking_engine):
    ctx = {"ranking_engine": ranking_engine}

    assert await compute_trending(ctx) == {"trending": True}
    assert await compute_popular(ctx) == {"popular_this_week": True}
    assert set(await compute_daily_rankings(ctx)) == {ranking_type.value for ranking_type in DAILY_RANKINGS}

    assert await ranking_engine.stale_types() == []


def test_every_type_is_scheduled():
    scheduled = {RankingType.TRENDING, RankingType.POPULAR_THIS_WEEK, *DAILY_RANKINGS}

    assert scheduled == set(RankingType)
    assert len(WorkerSettings.cron_jobs) == 5
