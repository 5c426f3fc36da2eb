"""Ranking slot store tests."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from readpulse.cache.ranking_cache import (
    InMemoryRankingCache,
    RedisRankingCache,
    create_ranking_cache,
    ranking_key,
)
from readpulse.cache.redis_client import CacheService
from readpulse.core.exceptions import UpstreamUnavailableError
from readpulse.schemas.ranking import RankedBook, RankingResult, RankingType

NOW = datetime(2026, 3, 11, 10, 0, tzinfo=UTC)


class FakeRedis:
    """Dict-backed stand-in for the handful of commands CacheService issues."""

    def __init__(self, fail_writes: bool = False, fail_reads: bool = False):
        self.data: dict[str, str] = {}
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads

    async def get(self, key):
        return (await self.mget([key]))[0]

    async def set(self, key, value):
        if self.fail_writes:
            raise RedisConnectionError("redis down")
        self.data[key] = value

    async def setex(self, key, ttl, value):
        await self.set(key, value)

    async def mget(self, keys):
        if self.fail_reads:
            raise RedisConnectionError("redis down")
        return [self.data.get(key) for key in keys]

    async def delete(self, *keys):
        return sum(1 for key in keys if self.data.pop(key, None) is not None)


def make_result(ranking_type: RankingType, title: str = "Dune") -> RankingResult:
    return RankingResult(
        type=ranking_type,
        books=[
            RankedBook(rank=1, content_type="ebook", content_id=uuid4(), title=title, score=7.0, recent_readers=2)
        ],
        computed_at=NOW,
        next_update=NOW + timedelta(hours=1),
    )


def test_ranking_key():
    assert ranking_key(RankingType.HIDDEN_GEMS) == "rankings:hidden_gems"
    assert ranking_key("trending") == "rankings:trending"


class TestInMemoryRankingCache:
    """Test the process-local store."""

    @pytest.mark.asyncio
    async def test_slots_are_replaced(self):
        cache = InMemoryRankingCache()
        await cache.set(make_result(RankingType.TRENDING, "First"))
        await cache.set(make_result(RankingType.TRENDING, "Second"))

        result = await cache.get(RankingType.TRENDING)

        assert [b.title for b in result.books] == ["Second"]
        assert await cache.get(RankingType.TOP_RATED) is None

    @pytest.mark.asyncio
    async def test_get_all_and_clear(self):
        cache = InMemoryRankingCache()
        await cache.set(make_result(RankingType.TRENDING))
        await cache.set(make_result(RankingType.MOST_READ))

        assert set(await cache.get_all()) == {RankingType.TRENDING, RankingType.MOST_READ}

        await cache.clear()
        assert await cache.get_all() == {}


class TestRedisRankingCache:
    """Test JSON slots in Redis."""

    @pytest.mark.asyncio
    async def test_round_trip_without_expiry(self):
        redis = FakeRedis()
        cache = RedisRankingCache(CacheService(redis))
        stored = make_result(RankingType.POPULAR_THIS_WEEK)

        await cache.set(stored)

        assert "rankings:popular_this_week" in redis.data
        assert await cache.get(RankingType.POPULAR_THIS_WEEK) == stored
        assert await cache.get(RankingType.TRENDING) is None

    @pytest.mark.asyncio
    async def test_get_all_skips_missing_slots(self):
        cache = RedisRankingCache(CacheService(FakeRedis()))
        await cache.set(make_result(RankingType.NEW_RELEASES))

        slots = await cache.get_all()

        assert list(slots) == [RankingType.NEW_RELEASES]

    @pytest.mark.asyncio
    async def test_clear_removes_every_slot(self):
        redis = FakeRedis()
        redis.data["unrelated"] = "keep"
        cache = RedisRankingCache(CacheService(redis))
        await cache.set(make_result(RankingType.TRENDING))
        await cache.set(make_result(RankingType.TOP_RATED))

        await cache.clear()

        assert redis.data == {"unrelated": "keep"}

    @pytest.mark.asyncio
    async def test_failed_write_raises(self):
        cache = RedisRankingCache(CacheService(FakeRedis(fail_writes=True)))

        with pytest.raises(UpstreamUnavailableError):
            await cache.set(make_result(RankingType.TRENDING))

    @pytest.mark.asyncio
    async def test_read_error_is_not_an_empty_slot(self):
        redis = FakeRedis()
        cache = RedisRankingCache(CacheService(redis))
        await cache.set(make_result(RankingType.TRENDING))
        redis.fail_reads = True

        with pytest.raises(UpstreamUnavailableError):
            await cache.get(RankingType.TRENDING)
        with pytest.raises(UpstreamUnavailableError):
            await cache.get_all()


@pytest.mark.asyncio
async def test_falls_back_to_memory_when_redis_disabled():
    cache = await create_ranking_cache()

    assert isinstance(cache, InMemoryRankingCache)
