"""Redis client for the rankings store and cached lookups.

Provides async Redis client with connection pooling and graceful shutdown.
"""

import redis.asyncio as redis
import structlog

from readpulse.config import settings
from readpulse.core.exceptions import UpstreamUnavailableError

logger = structlog.get_logger(__name__)


def _redacted_url() -> str:
    url = str(settings.redis_url)
    password = settings.redis_url.password
    return url.replace(password, "***") if password else url


class RedisCache:
    """Async Redis client singleton with connection management."""

    _client: redis.Redis | None = None
    _pool: redis.ConnectionPool | None = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        """Get or create Redis client.

        Lazy initialization - only connects when first used.

        Raises:
            UpstreamUnavailableError: If Redis is disabled by configuration
        """
        if not settings.redis_enabled:
            raise UpstreamUnavailableError("redis", "Redis is disabled")

        if cls._client is None:
            try:
                cls._pool = redis.ConnectionPool.from_url(
                    str(settings.redis_url),
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=10,
                )
                cls._client = redis.Redis(connection_pool=cls._pool)

                await cls._client.ping()
                logger.info("redis_connected", url=_redacted_url())
            except Exception as e:
                logger.error("redis_connection_failed", error=str(e))
                cls._client = None
                raise

        return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection and cleanup."""
        if cls._client:
            await cls._client.aclose()
            cls._client = None
            logger.info("redis_disconnected")

        if cls._pool:
            await cls._pool.disconnect()
            cls._pool = None

    @classmethod
    def is_connected(cls) -> bool:
        """Check if Redis client is connected."""
        return cls._client is not None


async def get_redis_client() -> redis.Redis | None:
    """Redis client, or None when Redis is unavailable."""
    try:
        return await RedisCache.get_client()
    except Exception:
        return None


class CacheService:
    """High-level caching operations over one client."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def get(self, key: str) -> str | None:
        """Get value from cache, None if missing or on error."""
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.warning("cache_get_error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl: int | None = 300) -> bool:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds, None to keep until overwritten

        Returns:
            True if successful, False otherwise
        """
        try:
            if ttl is None:
                await self.redis.set(key, value)
            else:
                await self.redis.setex(key, ttl, value)
            return True
        except Exception as e:
            logger.warning("cache_set_error", key=key, error=str(e))
            return False

    async def delete(self, *keys: str) -> int:
        """Delete keys from cache. Returns the number removed."""
        if not keys:
            return 0
        try:
            return await self.redis.delete(*keys)
        except Exception as e:
            logger.warning("cache_delete_error", keys=list(keys), error=str(e))
            return 0

    async def get_many(self, keys: list[str]) -> dict[str, str | None]:
        """Get multiple values, None for missing."""
        try:
            values = await self.redis.mget(keys)
            return dict(zip(keys, values, strict=False))
        except Exception as e:
            logger.warning("cache_get_many_error", keys=keys, error=str(e))
            return {k: None for k in keys}
