"""Ranking engine tests against a seeded catalog."""

import asyncio
import contextlib
import uuid
from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.models.book import Book, BookStats, ShelfEntry
from readpulse.models.reading import ReadingSession
from readpulse.schemas.ranking import RankingType
from readpulse.services import ranking_service
from readpulse.services.ranking_service import UNKNOWN_TITLE, RankingEngine


def add_book(db: AsyncSession, title: str, **fields) -> Book:
    book = Book(title=title, author="Anon", content_type="ebook", category="fiction", **fields)
    db.add(book)
    return book


def add_session(db: AsyncSession, user_id, content_id, start: datetime, content_type: str = "ebook") -> None:
    db.add(
        ReadingSession(
            user_id=user_id,
            content_id=content_id,
            content_type=content_type,
            start_time=start,
            end_time=start + timedelta(minutes=20),
            duration_seconds=1200,
            is_active=False,
        )
    )


class TestTrending:
    """Test trailing-week activity ranking."""

    @pytest.mark.asyncio
    async def test_order_and_window(self, ranking_engine: RankingEngine, db_session, test_user, other_user, clock):
        recent = clock() - timedelta(days=2)
        busy = add_book(db_session, "Busy")
        quiet = add_book(db_session, "Quiet")
        stale = add_book(db_session, "Stale")
        await db_session.flush()

        add_session(db_session, test_user.id, busy.id, recent)
        add_session(db_session, test_user.id, busy.id, recent + timedelta(hours=1))
        add_session(db_session, other_user.id, busy.id, recent)
        add_session(db_session, test_user.id, quiet.id, recent)
        add_session(db_session, test_user.id, stale.id, clock() - timedelta(days=10))
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.TRENDING)

        assert [b.title for b in result.books] == ["Busy", "Quiet"]
        assert [b.rank for b in result.books] == [1, 2]
        assert result.books[0].score == 7.0
        assert result.books[0].recent_readers == 2
        assert result.computed_at == clock()
        assert result.next_update == clock() + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_missing_catalog_row_is_unknown(self, ranking_engine: RankingEngine, db_session, test_user, clock):
        orphan = uuid.uuid4()
        add_session(db_session, test_user.id, orphan, clock() - timedelta(hours=3), content_type="magazine")
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.TRENDING)

        assert len(result.books) == 1
        assert result.books[0].content_id == orphan
        assert result.books[0].content_type == "magazine"
        assert result.books[0].title == UNKNOWN_TITLE
        assert result.books[0].author is None


class TestRatedRankings:
    """Test top rated and hidden gems."""

    @pytest.mark.asyncio
    async def test_top_rated_prefers_confidence(self, ranking_engine: RankingEngine, db_session):
        add_book(db_session, "Few Ratings", external_rating=4.5, external_ratings_count=5)
        add_book(db_session, "Many Ratings", external_rating=4.2, external_ratings_count=200)
        add_book(db_session, "Unrated")
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.TOP_RATED)

        assert [b.title for b in result.books] == ["Many Ratings", "Few Ratings"]
        assert result.books[0].score == pytest.approx(4.1667, abs=1e-4)
        assert result.books[1].score == pytest.approx(3.8333, abs=1e-4)

    @pytest.mark.asyncio
    async def test_top_rated_blends_internal_ratings(self, ranking_engine: RankingEngine, db_session):
        book = add_book(db_session, "Blended", external_rating=4.0, external_ratings_count=10)
        await db_session.flush()
        db_session.add(
            BookStats(content_type="ebook", content_id=book.id, total_readers=4, average_rating=5.0, rating_count=10)
        )
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.TOP_RATED)

        # raw 4.5 over 20 ratings, shrunk by 10 toward 3.5
        assert result.books[0].score == pytest.approx(4.1667, abs=1e-4)
        assert result.books[0].rating_count == 20
        assert result.books[0].reader_count == 4

    @pytest.mark.asyncio
    async def test_hidden_gems(self, ranking_engine: RankingEngine, db_session):
        gem = add_book(db_session, "Gem", external_rating=4.6, external_ratings_count=20)
        famous = add_book(db_session, "Famous", external_rating=4.8, external_ratings_count=30)
        add_book(db_session, "Undiscovered", external_rating=4.3, external_ratings_count=15)
        add_book(db_session, "Too Few Ratings", external_rating=4.9, external_ratings_count=5)
        add_book(db_session, "Mediocre", external_rating=3.9, external_ratings_count=500)
        await db_session.flush()
        db_session.add(BookStats(content_type="ebook", content_id=gem.id, total_readers=5))
        db_session.add(BookStats(content_type="ebook", content_id=famous.id, total_readers=80))
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.HIDDEN_GEMS)

        assert [b.title for b in result.books] == ["Gem", "Undiscovered"]
        assert result.books[0].reader_count == 5
        assert result.books[0].score == pytest.approx(88.1092, abs=1e-4)
        assert result.books[1].score == pytest.approx(86.0)
        assert result.next_update == result.computed_at + timedelta(days=1)


class TestCatalogRankings:
    """Test most read, new releases and popular this week."""

    @pytest.mark.asyncio
    async def test_most_read(self, ranking_engine: RankingEngine, db_session):
        big = add_book(db_session, "Big")
        small = add_book(db_session, "Small")
        unread = add_book(db_session, "Unread")
        await db_session.flush()
        for book, readers in ((big, 10), (small, 3), (unread, 0)):
            db_session.add(BookStats(content_type="ebook", content_id=book.id, total_readers=readers))
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.MOST_READ)

        assert [(b.title, b.score) for b in result.books] == [("Big", 10.0), ("Small", 3.0)]

    @pytest.mark.asyncio
    async def test_new_releases(self, ranking_engine: RankingEngine, db_session):
        long_ago = datetime(2019, 1, 1, tzinfo=UTC)
        add_book(db_session, "Older", publication_date=date(2025, 9, 1), created_at=long_ago)
        add_book(db_session, "Newest", publication_date=date(2026, 2, 1), created_at=long_ago)
        add_book(db_session, "Classic", publication_date=date(1990, 5, 1), created_at=long_ago)
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.NEW_RELEASES)

        assert [b.title for b in result.books] == ["Newest", "Older"]

    @pytest.mark.asyncio
    async def test_popular_this_week(
        self, ranking_engine: RankingEngine, db_session, test_user, other_user, user_factory, clock
    ):
        third = await user_factory("third")
        shelved = add_book(db_session, "Shelved")
        read = add_book(db_session, "Read")
        await db_session.flush()

        yesterday = clock() - timedelta(days=1)
        for user in (test_user, other_user, third):
            db_session.add(ShelfEntry(user_id=user.id, content_type="ebook", content_id=shelved.id, added_at=yesterday))
        add_session(db_session, test_user.id, read.id, yesterday)
        await db_session.commit()

        result = await ranking_engine.compute_ranking(RankingType.POPULAR_THIS_WEEK)

        assert [(b.title, b.score) for b in result.books] == [("Shelved", 9.0), ("Read", 6.0)]
        assert result.next_update == clock() + timedelta(hours=6)


class TestEngineLifecycle:
    """Test batch runs, failure isolation and slot bookkeeping."""

    @pytest.mark.asyncio
    async def test_compute_all(self, ranking_engine: RankingEngine):
        report = await ranking_engine.compute_book_rankings()

        assert report == {ranking_type: True for ranking_type in RankingType}
        rankings = await ranking_engine.get_all_rankings()
        assert set(rankings) == {ranking_type.value for ranking_type in RankingType}
        assert all(result.books == [] for result in rankings.values())

    @pytest.mark.asyncio
    async def test_failing_type_keeps_previous_slot(
        self, ranking_engine: RankingEngine, db_session, clock, monkeypatch
    ):
        add_book(db_session, "Rated", external_rating=4.4, external_ratings_count=40)
        await db_session.commit()
        first = await ranking_engine.compute_ranking(RankingType.TOP_RATED)

        async def broken(repo, now):
            raise RuntimeError("scorer failed")

        monkeypatch.setitem(ranking_service.SCORERS, RankingType.TOP_RATED, broken)
        clock.advance(days=1)

        report = await ranking_engine.compute_book_rankings([RankingType.TOP_RATED, RankingType.TRENDING])

        assert report == {RankingType.TOP_RATED: False, RankingType.TRENDING: True}
        kept = await ranking_engine.get_ranking(RankingType.TOP_RATED)
        assert kept.computed_at == first.computed_at
        assert [b.title for b in kept.books] == ["Rated"]

    @pytest.mark.asyncio
    async def test_needs_refresh(self, ranking_engine: RankingEngine, clock):
        assert await ranking_engine.needs_refresh(RankingType.TRENDING) is True
        assert await ranking_engine.get_ranking(RankingType.TRENDING) is None

        await ranking_engine.compute_ranking(RankingType.TRENDING)
        assert await ranking_engine.needs_refresh(RankingType.TRENDING) is False

        clock.advance(hours=1, seconds=1)
        assert await ranking_engine.needs_refresh(RankingType.TRENDING) is True
        assert RankingType.TRENDING in await ranking_engine.stale_types()

    @pytest.mark.asyncio
    async def test_clear(self, ranking_engine: RankingEngine):
        await ranking_engine.compute_book_rankings([RankingType.MOST_READ])

        await ranking_engine.clear_rankings_cache()

        assert await ranking_engine.get_all_rankings() == {}
        assert len(await ranking_engine.stale_types()) == len(RankingType)

    @pytest.mark.asyncio
    async def test_refresh_stale_only_recomputes_due_slots(self, ranking_engine: RankingEngine, clock):
        first = await ranking_engine.refresh_stale()
        assert first == {ranking_type: True for ranking_type in RankingType}

        assert await ranking_engine.refresh_stale() == {}

        clock.advance(hours=1, seconds=1)
        assert await ranking_engine.refresh_stale() == {RankingType.TRENDING: True}


@pytest.mark.asyncio
async def test_periodic_refresh_fills_local_cache(ranking_engine: RankingEngine, ranking_cache):
    async def filled() -> None:
        while len(await ranking_cache.get_all()) < len(RankingType):
            await asyncio.sleep(0.01)

    task = asyncio.create_task(ranking_service.refresh_rankings_periodically(ranking_engine, 3600))
    try:
        await asyncio.wait_for(filled(), timeout=5)
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    assert set(await ranking_cache.get_all()) == set(RankingType)
    assert task.cancelled()
