"""Content catalog and engagement-signal repository.

Read-only access used by the ranking engine: grouped session and shelf
activity, rating aggregates and batched metadata lookups.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import and_, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.models.book import Book, BookStats, ShelfEntry
from readpulse.models.reading import ReadingSession

ContentKey = tuple[str, uuid.UUID]


class BookRepository:
    """Repository for catalog reads and engagement aggregates."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_many(self, keys: list[ContentKey]) -> dict[ContentKey, Book]:
        """Batch lookup of catalog rows by (content_type, id)."""
        if not keys:
            return {}

        ids = list({content_id for _, content_id in keys})
        result = await self.db.execute(select(Book).where(Book.id.in_(ids)))
        wanted = set(keys)
        return {
            (book.content_type, book.id): book
            for book in result.scalars().all()
            if (book.content_type, book.id) in wanted
        }

    async def session_activity(
        self,
        since: datetime,
        limit: int | None = None,
    ) -> list[tuple[str, uuid.UUID, int, int]]:
        """(content_type, content_id, session_count, unique_readers) since a point in time.

        Ordered by unique readers, then session count, both descending.
        """
        session_count = func.count(ReadingSession.id)
        unique_readers = func.count(distinct(ReadingSession.user_id))
        query = (
            select(
                ReadingSession.content_type,
                ReadingSession.content_id,
                session_count.label("session_count"),
                unique_readers.label("unique_readers"),
            )
            .where(ReadingSession.start_time >= since)
            .group_by(ReadingSession.content_type, ReadingSession.content_id)
            .order_by(unique_readers.desc(), session_count.desc())
        )
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [
            (row.content_type, row.content_id, int(row.session_count), int(row.unique_readers))
            for row in result.all()
        ]

    async def shelf_adds(self, since: datetime) -> list[tuple[str, uuid.UUID, int]]:
        """(content_type, content_id, add_count) for shelf additions since a point in time."""
        query = (
            select(
                ShelfEntry.content_type,
                ShelfEntry.content_id,
                func.count(ShelfEntry.id).label("add_count"),
            )
            .where(ShelfEntry.added_at >= since)
            .group_by(ShelfEntry.content_type, ShelfEntry.content_id)
        )
        result = await self.db.execute(query)
        return [(row.content_type, row.content_id, int(row.add_count)) for row in result.all()]

    async def externally_rated(self, limit: int = 200) -> list[Book]:
        """Catalog rows carrying an external rating, best rated first."""
        query = (
            select(Book)
            .where(Book.external_rating.is_not(None))
            .order_by(Book.external_rating.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def internal_ratings(self) -> dict[ContentKey, BookStats]:
        """Stats rows that carry at least one internal rating."""
        query = select(BookStats).where(
            and_(
                BookStats.average_rating.is_not(None),
                BookStats.rating_count >= 1,
            )
        )
        result = await self.db.execute(query)
        return {(stats.content_type, stats.content_id): stats for stats in result.scalars().all()}

    async def most_read(self, limit: int = 100) -> list[BookStats]:
        """Stats rows with at least one reader, by total readers."""
        query = (
            select(BookStats)
            .where(BookStats.total_readers >= 1)
            .order_by(BookStats.total_readers.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def recent_releases(
        self,
        published_since: date,
        created_since: datetime,
        limit: int = 100,
    ) -> list[Book]:
        """Published or ingested since the cutoffs, newest publication first."""
        query = (
            select(Book)
            .where(
                or_(
                    Book.publication_date >= published_since,
                    Book.created_at >= created_since,
                )
            )
            .order_by(Book.publication_date.desc().nulls_last(), Book.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def hidden_gem_candidates(
        self,
        min_rating: float,
        min_ratings_count: int,
        limit: int = 100,
    ) -> list[Book]:
        """Well-rated catalog rows, highest rating and fewest ratings first."""
        query = (
            select(Book)
            .where(
                and_(
                    Book.external_rating.is_not(None),
                    Book.external_rating >= min_rating,
                    Book.external_ratings_count >= min_ratings_count,
                )
            )
            .order_by(Book.external_rating.desc(), Book.external_ratings_count.asc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def reader_counts(self, keys: list[ContentKey]) -> dict[ContentKey, int]:
        """total_readers for the given content keys; absent keys are omitted."""
        if not keys:
            return {}
        wanted = set(keys)
        query = select(
            BookStats.content_type,
            BookStats.content_id,
            BookStats.total_readers,
        ).where(BookStats.content_id.in_([content_id for _, content_id in wanted]))
        result = await self.db.execute(query)
        return {
            (row.content_type, row.content_id): int(row.total_readers or 0)
            for row in result.all()
            if (row.content_type, row.content_id) in wanted
        }
