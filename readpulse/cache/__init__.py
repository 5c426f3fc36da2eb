"""Cache package for Redis-based caching."""

from readpulse.cache.decorators import cache_key, cached
from readpulse.cache.ranking_cache import (
    InMemoryRankingCache,
    RankingCache,
    RedisRankingCache,
    create_ranking_cache,
)
from readpulse.cache.redis_client import CacheService, RedisCache, get_redis_client

__all__ = [
    "CacheService",
    "InMemoryRankingCache",
    "RankingCache",
    "RedisCache",
    "RedisRankingCache",
    "cache_key",
    "cached",
    "create_ranking_cache",
    "get_redis_client",
]
