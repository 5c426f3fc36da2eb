"""Caching decorator for read-mostly lookups.

Results are stored as JSON in Redis. When Redis is disabled or unreachable
the wrapped function runs uncached.
"""

import hashlib
import json
from functools import wraps
from typing import Callable, TypeVar

import structlog

from readpulse.cache.redis_client import RedisCache

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def cache_key(*args, prefix: str = "", **kwargs) -> str:
    """Deterministic key from function arguments."""
    key_data = json.dumps(
        {"args": [str(a) for a in args], "kwargs": {k: str(v) for k, v in sorted(kwargs.items())}},
        sort_keys=True,
    )
    key_hash = hashlib.md5(key_data.encode()).hexdigest()

    if prefix:
        return f"{prefix}:{key_hash}"
    return key_hash


def cached(
    ttl: int = 300,
    prefix: str = "",
    key_builder: Callable[..., str] | None = None,
):
    """Decorator to cache async function results in Redis.

    Args:
        ttl: Time-to-live in seconds (default 5 minutes)
        prefix: Key prefix for namespacing
        key_builder: Optional custom function to build cache key

    Example:
        @cached(ttl=600, key_builder=lambda self: "badges:catalog")
        async def get_all_badges(self) -> dict:
            ...

        await BadgeService.get_all_badges.invalidate(service)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        def build_key(*args, **kwargs) -> str:
            if key_builder:
                return key_builder(*args, **kwargs)
            func_prefix = f"{prefix}:{func.__name__}" if prefix else func.__name__
            return cache_key(*args, prefix=func_prefix, **kwargs)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                redis_client = await RedisCache.get_client()
            except Exception:
                logger.debug("cache_skip_no_redis", func=func.__name__)
                return await func(*args, **kwargs)

            key = build_key(*args, **kwargs)

            try:
                cached_value = await redis_client.get(key)
                if cached_value is not None:
                    logger.debug("cache_hit", key=key, func=func.__name__)
                    return json.loads(cached_value)
            except json.JSONDecodeError:
                logger.warning("cache_invalid_json", key=key)
            except Exception as e:
                logger.warning("cache_get_error", key=key, error=str(e))

            logger.debug("cache_miss", key=key, func=func.__name__)
            result = await func(*args, **kwargs)

            try:
                await redis_client.setex(key, ttl, json.dumps(result, default=str))
                logger.debug("cache_set", key=key, ttl=ttl)
            except Exception as e:
                logger.warning("cache_set_error", key=key, error=str(e))

            return result

        async def invalidate(*args, **kwargs) -> bool:
            """Invalidate the cached value for given arguments."""
            try:
                redis_client = await RedisCache.get_client()
                key = build_key(*args, **kwargs)
                result = await redis_client.delete(key)
                logger.debug("cache_invalidated", key=key)
                return result > 0
            except Exception as e:
                logger.warning("cache_invalidate_error", error=str(e))
                return False

        wrapper.invalidate = invalidate  # type: ignore
        wrapper.cache_prefix = prefix  # type: ignore

        return wrapper

    return decorator
