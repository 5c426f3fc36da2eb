"""Milestone and badge evaluation tests."""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.core.exceptions import NotFoundError
from readpulse.repositories.milestone_repo import MilestoneRepository
from readpulse.repositories.user_repo import UserRepository
from readpulse.services.badge_service import DEFAULT_BADGES, BadgeService
from readpulse.services.milestone_service import MilestoneService


class TestUserAggregate:
    """Test streak updates through the aggregate write."""

    @pytest.mark.asyncio
    async def test_consecutive_day(self, db_session: AsyncSession, user_factory, clock):
        today = clock().date()
        user = await user_factory(
            "steady", current_streak_days=4, max_streak_days=4, last_reading_date=today - timedelta(days=1)
        )

        await MilestoneService(db_session, clock).update_user_aggregate(user.id, 600)
        refreshed = await UserRepository(db_session).get_by_id(user.id)

        assert refreshed.current_streak_days == 5
        assert refreshed.max_streak_days == 5
        assert refreshed.total_reading_days == 1
        assert refreshed.total_reading_duration == 600

    @pytest.mark.asyncio
    async def test_gap_resets(self, db_session: AsyncSession, user_factory, clock):
        today = clock().date()
        user = await user_factory(
            "lapsed", current_streak_days=9, max_streak_days=12, last_reading_date=today - timedelta(days=2)
        )

        await MilestoneService(db_session, clock).update_user_aggregate(user.id, 60)
        refreshed = await UserRepository(db_session).get_by_id(user.id)

        assert refreshed.current_streak_days == 1
        assert refreshed.max_streak_days == 12

    @pytest.mark.asyncio
    async def test_same_day_unchanged(self, db_session: AsyncSession, user_factory, clock):
        today = clock().date()
        user = await user_factory(
            "daily", current_streak_days=3, max_streak_days=3, total_reading_days=3, last_reading_date=today
        )

        await MilestoneService(db_session, clock).update_user_aggregate(user.id, 60)
        refreshed = await UserRepository(db_session).get_by_id(user.id)

        assert refreshed.current_streak_days == 3
        assert refreshed.total_reading_days == 3
        assert refreshed.total_reading_duration == 60

    @pytest.mark.asyncio
    async def test_missing_user(self, db_session: AsyncSession, clock):

        with pytest.raises(NotFoundError):
            await MilestoneService(db_session, clock).update_user_aggregate(uuid.uuid4(), 60)


class TestMilestones:
    """Test ladder scanning and uniqueness."""

    @pytest.mark.asyncio
    async def test_crossing_several_thresholds(self, db_session: AsyncSession, user_factory, clock):
        user = await user_factory(
            "binge", total_reading_duration=120 * 3600, current_streak_days=30, total_reading_days=100
        )

        achieved = await MilestoneService(db_session, clock).check_milestones(user.id)

        assert {(m.type, m.value) for m in achieved} == {
            ("total_hours", 10),
            ("total_hours", 50),
            ("total_hours", 100),
            ("streak_days", 7),
            ("streak_days", 30),
            ("total_days", 100),
        }

    @pytest.mark.asyncio
    async def test_hundred_hours_recorded_once(self, db_session: AsyncSession, user_factory, clock):
        """Two evaluations that both see 100+ hours produce one row."""
        user = await user_factory("century", total_reading_duration=100 * 3600 + 5)
        service = MilestoneService(db_session, clock)

        first = await service.check_milestones(user.id)
        await db_session.commit()
        second = await service.check_milestones(user.id)
        await db_session.commit()

        assert ("total_hours", 100) in {(m.type, m.value) for m in first}
        assert second == []
        assert await MilestoneRepository(db_session).count_for(user.id, "total_hours", 100) == 1

    @pytest.mark.asyncio
    async def test_nothing_below_first_threshold(self, db_session: AsyncSession, user_factory, clock):
        user = await user_factory("newcomer", total_reading_duration=3600, current_streak_days=2, total_reading_days=2)

        assert await MilestoneService(db_session, clock).check_milestones(user.id) == []


@pytest.fixture
def badges(db_session: AsyncSession, clock) -> BadgeService:
    return BadgeService(db_session, clock)


class TestBadges:
    """Test catalog seeding, awards and progress."""

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, badges: BadgeService):
        assert await badges.initialize_default_badges() == len(DEFAULT_BADGES)
        assert await badges.initialize_default_badges() == 0

        catalog = await badges.get_all_badges()
        assert set(catalog) == {"reading_streak", "reading_duration", "reading_days", "books_finished"}
        assert [b["level"] for b in catalog["reading_streak"]] == [1, 2, 3, 4, 5, 6]
        assert sum(len(group) for group in catalog.values()) == 23

    @pytest.mark.asyncio
    async def test_award_is_idempotent(self, badges: BadgeService, user_factory):
        await badges.initialize_default_badges()
        user = await user_factory("collector", current_streak_days=8, books_finished_count=12)

        first = await badges.check_and_award_badges(user.id)
        second = await badges.check_and_award_badges(user.id)

        assert {b.name for b in first} == {"7-Day Streak", "10 Books Finished"}
        assert all(b.earned_count == 1 for b in first)
        assert second == []

    @pytest.mark.asyncio
    async def test_user_badges_progress(self, badges: BadgeService, user_factory):
        await badges.initialize_default_badges()
        user = await user_factory("progressing", current_streak_days=3, total_reading_duration=50 * 3600)
        await badges.check_and_award_badges(user.id)

        shelf = await badges.get_user_badges(user.id)

        assert shelf.earned == []
        assert shelf.categories["reading_streak"].total == 6
        assert shelf.categories["reading_streak"].earned == 0

        streak = next(item for item in shelf.in_progress if item.badge.name == "7-Day Streak")
        assert streak.progress.percentage == 42.9
        assert streak.progress.remaining == "4 more days to earn"

        hours = next(item for item in shelf.in_progress if item.badge.name == "100 Hours Read")
        assert hours.progress.percentage == 50.0
        assert hours.progress.remaining == "50 more hours to earn"

    @pytest.mark.asyncio
    async def test_user_badges_earned_summary(self, badges: BadgeService, user_factory):
        await badges.initialize_default_badges()
        user = await user_factory("achiever", total_reading_days=210)
        await badges.check_and_award_badges(user.id)

        shelf = await badges.get_user_badges(user.id)

        assert {b.name for b in shelf.earned} == {"100 Days Read", "200 Days Read"}
        assert shelf.categories["reading_days"].earned == 2
        assert shelf.categories["reading_days"].total == 5

    @pytest.mark.asyncio
    async def test_missing_user_and_badge(self, badges: BadgeService):

        with pytest.raises(NotFoundError):
            await badges.get_user_badges(uuid.uuid4())
        with pytest.raises(NotFoundError):
            await badges.get_badge(uuid.uuid4())
        assert await badges.check_and_award_badges(uuid.uuid4()) == []
