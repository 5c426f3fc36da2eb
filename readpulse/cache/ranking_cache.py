"""Ranked-results store shared by the ranking engine and the API.

Each ranking type owns one slot. A slot is replaced wholesale on every
computation and is never partially updated.
"""

from abc import ABC, abstractmethod

import structlog
from redis.exceptions import RedisError

from readpulse.cache.redis_client import CacheService, RedisCache
from readpulse.core.exceptions import UpstreamUnavailableError
from readpulse.schemas.ranking import RankingResult, RankingType

logger = structlog.get_logger(__name__)

RANKING_KEY_PREFIX = "rankings"


def ranking_key(ranking_type: RankingType) -> str:
    """Redis key of a ranking slot."""
    return f"{RANKING_KEY_PREFIX}:{RankingType(ranking_type).value}"


class RankingCache(ABC):
    """Abstract ranking slot store."""

    @abstractmethod
    async def get(self, ranking_type: RankingType) -> RankingResult | None:
        """The slot for a type, None if never computed."""

    @abstractmethod
    async def set(self, result: RankingResult) -> None:
        """Replace the slot for ``result.type``."""

    @abstractmethod
    async def get_all(self) -> dict[RankingType, RankingResult]:
        """Every computed slot."""

    @abstractmethod
    async def clear(self) -> None:
        """Drop every slot."""


class InMemoryRankingCache(RankingCache):
    """Process-local store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._slots: dict[RankingType, RankingResult] = {}

    async def get(self, ranking_type: RankingType) -> RankingResult | None:
        return self._slots.get(RankingType(ranking_type))

    async def set(self, result: RankingResult) -> None:
        self._slots[result.type] = result

    async def get_all(self) -> dict[RankingType, RankingResult]:
        return dict(self._slots)

    async def clear(self) -> None:
        self._slots.clear()


class RedisRankingCache(RankingCache):
    """Redis-backed store; one JSON value per slot, no expiry.

    Reads go to the client directly: an unreachable Redis raises
    UpstreamUnavailableError rather than looking like an empty slot.
    """

    def __init__(self, cache: CacheService):
        self.cache = cache

    async def _read(self, keys: list[str]) -> list[str | None]:
        try:
            return await self.cache.redis.mget(keys)
        except RedisError as e:
            logger.warning("ranking_cache_read_error", keys=keys, error=str(e))
            raise UpstreamUnavailableError("redis", "Rankings are temporarily unavailable") from e

    async def get(self, ranking_type: RankingType) -> RankingResult | None:
        (raw,) = await self._read([ranking_key(ranking_type)])
        if raw is None:
            return None
        return RankingResult.model_validate_json(raw)

    async def set(self, result: RankingResult) -> None:
        stored = await self.cache.set(ranking_key(result.type), result.model_dump_json(), ttl=None)
        if not stored:
            raise UpstreamUnavailableError("redis", f"Could not store ranking '{result.type.value}'")

    async def get_all(self) -> dict[RankingType, RankingResult]:
        values = await self._read([ranking_key(ranking_type) for ranking_type in RankingType])
        slots = {}
        for ranking_type, raw in zip(RankingType, values, strict=True):
            if raw is not None:
                slots[ranking_type] = RankingResult.model_validate_json(raw)
        return slots

    async def clear(self) -> None:
        deleted = await self.cache.delete(*(ranking_key(ranking_type) for ranking_type in RankingType))
        logger.info("rankings_cache_cleared", deleted=deleted)


async def create_ranking_cache() -> RankingCache:
    """Redis-backed store when Redis is reachable, otherwise process-local."""
    try:
        client = await RedisCache.get_client()
    except Exception as e:
        logger.warning("ranking_cache_in_memory", reason=str(e))
        return InMemoryRankingCache()
    return RedisRankingCache(CacheService(client))
