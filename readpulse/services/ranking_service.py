"""Content ranking engine.

Each ranking type is scored independently from engagement signals and
written to its own slot in the ranking cache. A computation replaces the
whole slot; a failed computation leaves the previous slot in place.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readpulse.cache.ranking_cache import RankingCache
from readpulse.config import settings
from readpulse.core.clock import Clock, utcnow
from readpulse.repositories.book_repo import BookRepository, ContentKey
from readpulse.schemas.ranking import RankedBook, RankingResult, RankingType

logger = structlog.get_logger(__name__)

# Bayesian shrinkage: confidence constant and prior mean
TOP_RATED_CONFIDENCE = 10
TOP_RATED_PRIOR = 3.5
TOP_RATED_CANDIDATES = 200

HIDDEN_GEM_MIN_RATING = 4.0
HIDDEN_GEM_MIN_RATINGS = 10
HIDDEN_GEM_MAX_READERS = 50
HIDDEN_GEM_CANDIDATES = 100
HIDDEN_GEM_LIMIT = 50

RANKING_LIMIT = 100
ACTIVITY_WINDOW = timedelta(days=7)
NEW_RELEASE_WINDOW = timedelta(days=365)

UNKNOWN_TITLE = "Unknown"


def ranking_interval(ranking_type: RankingType) -> timedelta:
    """How long a freshly computed slot stays current."""
    if ranking_type == RankingType.TRENDING:
        return timedelta(seconds=settings.ranking_trending_interval_seconds)
    if ranking_type == RankingType.POPULAR_THIS_WEEK:
        return timedelta(seconds=settings.ranking_popular_interval_seconds)
    return timedelta(seconds=settings.ranking_daily_interval_seconds)


def trending_score(unique_readers: int, session_count: int) -> float:
    return float(2 * unique_readers + session_count)


def bayesian_rating(
    external_rating: float | None,
    external_count: int,
    internal_rating: float | None = None,
    internal_count: int = 0,
    confidence: int = TOP_RATED_CONFIDENCE,
    prior: float = TOP_RATED_PRIOR,
) -> float:
    """Count-weighted blend of both ratings, shrunk toward the prior.

    ``weighted = n/(n+m) * raw + m/(n+m) * prior`` where ``n`` is the
    combined rating count and ``raw`` the count-weighted average.
    """
    external_count = external_count if external_rating is not None else 0
    internal_count = internal_count if internal_rating is not None else 0
    n = external_count + internal_count
    if n == 0:
        return prior

    raw = ((external_rating or 0.0) * external_count + (internal_rating or 0.0) * internal_count) / n
    return (n / (n + confidence)) * raw + (confidence / (n + confidence)) * prior


def hidden_gem_score(rating: float, readers: int) -> float:
    """High rating, discounted logarithmically by audience size."""
    return rating * 20 - math.log10(readers + 1) * 5


def popular_score(shelf_adds: int, unique_readers: int, session_count: int) -> float:
    return float(3 * shelf_adds + 5 * unique_readers + session_count)


@dataclass
class Candidate:
    """A scored content item before catalog enrichment."""

    content_type: str
    content_id: UUID
    score: float
    rating: float | None = None
    rating_count: int | None = None
    reader_count: int | None = None
    recent_readers: int | None = None

    @property
    def key(self) -> ContentKey:
        return (self.content_type, self.content_id)


Scorer = Callable[[BookRepository, datetime], Awaitable[list[Candidate]]]


async def score_trending(repo: BookRepository, now: datetime) -> list[Candidate]:
    """Trailing-week sessions, ordered by unique readers then sessions."""
    activity = await repo.session_activity(now - ACTIVITY_WINDOW, limit=RANKING_LIMIT)
    return [
        Candidate(
            content_type=content_type,
            content_id=content_id,
            score=trending_score(unique_readers, session_count),
            recent_readers=unique_readers,
        )
        for content_type, content_id, session_count, unique_readers in activity
    ]


async def score_top_rated(repo: BookRepository, now: datetime) -> list[Candidate]:
    """Externally rated content blended with internal ratings."""
    books = await repo.externally_rated(limit=TOP_RATED_CANDIDATES)
    internal = await repo.internal_ratings()

    candidates = []
    for book in books:
        stats = internal.get((book.content_type, book.id))
        internal_rating = stats.average_rating if stats else None
        internal_count = stats.rating_count if stats else 0
        candidates.append(
            Candidate(
                content_type=book.content_type,
                content_id=book.id,
                score=round(
                    bayesian_rating(
                        book.external_rating,
                        book.external_ratings_count or 0,
                        internal_rating,
                        internal_count or 0,
                    ),
                    4,
                ),
                rating=book.external_rating,
                rating_count=(book.external_ratings_count or 0) + (internal_count or 0),
                reader_count=stats.total_readers if stats else None,
            )
        )

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[:RANKING_LIMIT]


async def score_most_read(repo: BookRepository, now: datetime) -> list[Candidate]:
    """All-time reader counter, no decay."""
    stats = await repo.most_read(limit=RANKING_LIMIT)
    return [
        Candidate(
            content_type=row.content_type,
            content_id=row.content_id,
            score=float(row.total_readers),
            rating=row.average_rating,
            rating_count=row.rating_count,
            reader_count=row.total_readers,
        )
        for row in stats
    ]


async def score_new_releases(repo: BookRepository, now: datetime) -> list[Candidate]:
    """Pure recency ordering over the trailing year."""
    cutoff = now - NEW_RELEASE_WINDOW
    books = await repo.recent_releases(cutoff.date(), cutoff, limit=RANKING_LIMIT)
    return [
        Candidate(
            content_type=book.content_type,
            content_id=book.id,
            score=0.0,
            rating=book.external_rating,
            rating_count=book.external_ratings_count,
        )
        for book in books
    ]


async def score_popular_this_week(repo: BookRepository, now: datetime) -> list[Candidate]:
    """Trailing-week shelf adds and sessions combined additively."""
    since = now - ACTIVITY_WINDOW
    shelf_rows = await repo.shelf_adds(since)
    session_rows = await repo.session_activity(since)

    adds = {(content_type, content_id): count for content_type, content_id, count in shelf_rows}
    sessions = {
        (content_type, content_id): (session_count, unique_readers)
        for content_type, content_id, session_count, unique_readers in session_rows
    }

    candidates = []
    for key in adds.keys() | sessions.keys():
        session_count, unique_readers = sessions.get(key, (0, 0))
        candidates.append(
            Candidate(
                content_type=key[0],
                content_id=key[1],
                score=popular_score(adds.get(key, 0), unique_readers, session_count),
                recent_readers=unique_readers,
            )
        )

    candidates.sort(key=lambda c: (-c.score, c.content_type, str(c.content_id)))
    return candidates[:RANKING_LIMIT]


async def score_hidden_gems(repo: BookRepository, now: datetime) -> list[Candidate]:
    """Well-rated content that few internal readers have found."""
    books = await repo.hidden_gem_candidates(
        HIDDEN_GEM_MIN_RATING,
        HIDDEN_GEM_MIN_RATINGS,
        limit=HIDDEN_GEM_CANDIDATES,
    )
    readers = await repo.reader_counts([(book.content_type, book.id) for book in books])

    candidates = []
    for book in books:
        reader_count = readers.get((book.content_type, book.id), 0)
        if reader_count >= HIDDEN_GEM_MAX_READERS:
            continue
        candidates.append(
            Candidate(
                content_type=book.content_type,
                content_id=book.id,
                score=round(hidden_gem_score(book.external_rating, reader_count), 4),
                rating=book.external_rating,
                rating_count=book.external_ratings_count,
                reader_count=reader_count,
            )
        )

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[:HIDDEN_GEM_LIMIT]


SCORERS: dict[RankingType, Scorer] = {
    RankingType.TRENDING: score_trending,
    RankingType.TOP_RATED: score_top_rated,
    RankingType.MOST_READ: score_most_read,
    RankingType.NEW_RELEASES: score_new_releases,
    RankingType.POPULAR_THIS_WEEK: score_popular_this_week,
    RankingType.HIDDEN_GEMS: score_hidden_gems,
}


class RankingEngine:
    """Computes ranking slots and serves them from the injected cache."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: RankingCache,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.clock = clock

    async def compute_book_rankings(
        self,
        types: list[RankingType] | None = None,
    ) -> dict[RankingType, bool]:
        """Compute the requested types one after another.

        A failing type is logged and keeps its previous slot; the remaining
        types still run. Returns success per type.
        """
        report: dict[RankingType, bool] = {}
        for ranking_type in types or list(RankingType):
            try:
                await self.compute_ranking(ranking_type)
                report[ranking_type] = True
            except Exception:
                logger.exception("ranking_compute_failed", type=ranking_type.value)
                report[ranking_type] = False
        return report

    async def compute_ranking(self, ranking_type: RankingType) -> RankingResult:
        """Score one type, enrich it and replace its slot."""
        ranking_type = RankingType(ranking_type)
        now = self.clock()

        async with self.session_factory() as db:
            repo = BookRepository(db)
            candidates = await SCORERS[ranking_type](repo, now)
            books = await self._enrich(repo, candidates)

        result = RankingResult(
            type=ranking_type,
            books=books,
            computed_at=now,
            next_update=now + ranking_interval(ranking_type),
        )
        await self.cache.set(result)

        logger.info("ranking_computed", type=ranking_type.value, count=len(books))
        return result

    async def _enrich(self, repo: BookRepository, candidates: list[Candidate]) -> list[RankedBook]:
        catalog = await repo.get_many([candidate.key for candidate in candidates])

        ranked = []
        for rank, candidate in enumerate(candidates, start=1):
            book = catalog.get(candidate.key)
            rating = candidate.rating
            if rating is None and book is not None:
                rating = book.external_rating
            ranked.append(
                RankedBook(
                    rank=rank,
                    content_type=candidate.content_type,
                    content_id=candidate.content_id,
                    title=book.title if book else UNKNOWN_TITLE,
                    author=book.author if book else None,
                    cover_url=book.cover_url if book else None,
                    score=candidate.score,
                    rating=rating,
                    rating_count=candidate.rating_count,
                    reader_count=candidate.reader_count,
                    recent_readers=candidate.recent_readers,
                )
            )
        return ranked

    async def get_ranking(self, ranking_type: RankingType) -> RankingResult | None:
        """Cached slot, None if never computed."""
        return await self.cache.get(RankingType(ranking_type))

    async def get_all_rankings(self) -> dict[str, RankingResult]:
        """Every computed slot keyed by type value."""
        slots = await self.cache.get_all()
        return {ranking_type.value: result for ranking_type, result in slots.items()}

    async def needs_refresh(self, ranking_type: RankingType) -> bool:
        """True when the slot is missing or past its next update."""
        result = await self.cache.get(RankingType(ranking_type))
        return result is None or self.clock() > result.next_update

    async def stale_types(self) -> list[RankingType]:
        """Types whose slot needs recomputing."""
        return [ranking_type for ranking_type in RankingType if await self.needs_refresh(ranking_type)]

    async def refresh_stale(self) -> dict[RankingType, bool]:
        """Recompute every type whose slot is missing or due."""
        stale = await self.stale_types()
        if not stale:
            return {}
        return await self.compute_book_rankings(stale)

    async def clear_rankings_cache(self) -> None:
        """Drop every slot."""
        await self.cache.clear()
        logger.info("rankings_cleared")


async def refresh_rankings_periodically(engine: RankingEngine, interval_seconds: int) -> None:
    """Keep the engine's cache filled without a worker. Runs until cancelled."""
    logger.info("ranking_local_refresh_started", interval_seconds=interval_seconds)
    while True:
        try:
            report = await engine.refresh_stale()
            if report:
                logger.info("ranking_local_refresh", computed={t.value: ok for t, ok in report.items()})
        except Exception:
            logger.exception("ranking_local_refresh_failed")
        await asyncio.sleep(interval_seconds)
