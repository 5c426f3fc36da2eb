"""Reading session tracking service.

Owns the lifecycle of a user's single active reading session and the
effective-duration arithmetic. Ending a session feeds the daily aggregate,
the user's lifetime aggregate and the milestone ladders, in that order.
"""

import math
from datetime import date, datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.core.clock import Clock, ensure_utc, utcnow
from readpulse.core.exceptions import InvalidStateError, NotFoundError
from readpulse.models.book import ContentType
from readpulse.models.reading import ReadingSession
from readpulse.repositories.book_repo import BookRepository
from readpulse.repositories.history_repo import HistoryRepository
from readpulse.repositories.session_repo import SessionRepository
from readpulse.schemas.badge import EarnedBadgeResponse
from readpulse.schemas.session import (
    EndSessionResponse,
    HeartbeatResponse,
    PauseStateResponse,
    ReadingHistoryResponse,
    SessionResponse,
    TodayDurationResponse,
)
from readpulse.services.badge_service import BadgeService
from readpulse.services.daily_stats_service import CounterDelta, DailyAggregator
from readpulse.services.milestone_service import MilestoneService

logger = structlog.get_logger(__name__)

# A concurrent start for the same user can win the active-session index
START_ATTEMPTS = 2


def _whole_seconds(later: datetime, earlier: datetime) -> int:
    return math.floor((later - earlier).total_seconds())


def current_pause_seconds(session: ReadingSession, now: datetime) -> int:
    """Length of the open pause, 0 if the session is running."""
    if not session.is_paused or session.paused_at is None:
        return 0
    return max(0, _whole_seconds(now, ensure_utc(session.paused_at)))


def effective_duration(session: ReadingSession, now: datetime) -> int:
    """Elapsed seconds since start minus every paused interval, never negative."""
    elapsed = _whole_seconds(now, ensure_utc(session.start_time))
    paused_total = (session.total_paused_seconds or 0) + current_pause_seconds(session, now)
    return max(0, elapsed - paused_total)


class SessionService:
    """Service for reading session operations."""

    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.session_repo = SessionRepository(db)
        self.book_repo = BookRepository(db)
        self.history_repo = HistoryRepository(db)
        self.daily = DailyAggregator(db)
        self.milestones = MilestoneService(db, clock)
        self.badges = BadgeService(db, clock)

    async def _get_session(self, session_id: UUID, user_id: UUID | None) -> ReadingSession:
        session = await self.session_repo.get(session_id)
        if not session or (user_id is not None and session.user_id != user_id):
            raise NotFoundError("Reading session", str(session_id))
        return session

    async def start_session(
        self,
        user_id: UUID,
        content_id: UUID,
        content_type: ContentType | str,
        position: str | None = None,
        chapter: int | None = None,
        device_type: str | None = None,
        device_id: str | None = None,
    ) -> SessionResponse:
        """Start a session, silently finalizing any session still active for the user."""
        content_type = ContentType(content_type).value

        for attempt in range(1, START_ATTEMPTS + 1):
            now = self.clock()
            try:
                closed = await self.session_repo.close_active(user_id, now)
                session = await self.session_repo.create(
                    user_id=user_id,
                    content_id=content_id,
                    content_type=content_type,
                    start_time=now,
                    start_position=position,
                    start_chapter=chapter,
                    device_type=device_type,
                    device_id=device_id,
                )
                await self.db.commit()
                break
            except IntegrityError:
                await self.db.rollback()
                if attempt == START_ATTEMPTS:
                    raise
                logger.warning("session_start_conflict", user_id=str(user_id), attempt=attempt)

        if closed:
            logger.info("abandoned_sessions_closed", user_id=str(user_id), count=closed)

        logger.info(
            "session_started",
            user_id=str(user_id),
            session_id=str(session.id),
            content_type=content_type,
            content_id=str(content_id),
        )
        return SessionResponse.model_validate(session)

    async def heartbeat(
        self,
        session_id: UUID,
        position: str | None = None,
        chapter: int | None = None,
        pages_read_delta: int = 0,
        user_id: UUID | None = None,
    ) -> HeartbeatResponse:
        """Record progress and report live totals.

        While paused nothing is written; the returned duration is still the
        live effective duration at call time.
        """
        session = await self._get_session(session_id, user_id)
        if not session.is_active:
            raise NotFoundError("Active reading session", str(session_id))

        now = self.clock()
        duration = effective_duration(session, now)

        if not session.is_paused:
            await self.session_repo.record_progress(
                session_id,
                duration_seconds=duration,
                pages_read_delta=max(0, pages_read_delta),
                end_position=position,
                end_chapter=chapter,
            )
            await self.db.commit()

        return HeartbeatResponse(
            session_id=session_id,
            duration_seconds=duration,
            today_duration=await self.get_today_duration(session.user_id),
            total_content_duration=await self.get_content_duration(
                session.user_id, session.content_id, session.content_type
            ),
            is_paused=bool(session.is_paused),
        )

    async def pause_session(self, session_id: UUID, user_id: UUID | None = None) -> PauseStateResponse:
        """Pause a running session."""
        session = await self._get_session(session_id, user_id)
        if not session.is_active:
            raise InvalidStateError("Session is not active", {"session_id": str(session_id)})
        if session.is_paused:
            raise InvalidStateError("Session is already paused", {"session_id": str(session_id)})

        updated = await self.session_repo.mark_paused(session_id, self.clock())
        if not updated:
            await self.db.rollback()
            raise InvalidStateError("Session state changed", {"session_id": str(session_id)})
        await self.db.commit()

        logger.info("session_paused", user_id=str(session.user_id), session_id=str(session_id))
        return PauseStateResponse(
            session_id=session_id,
            is_paused=True,
            total_paused_seconds=session.total_paused_seconds or 0,
        )

    async def resume_session(self, session_id: UUID, user_id: UUID | None = None) -> PauseStateResponse:
        """Resume a paused session, folding the pause into the paused total."""
        session = await self._get_session(session_id, user_id)
        if not session.is_active:
            raise InvalidStateError("Session is not active", {"session_id": str(session_id)})
        if not session.is_paused:
            raise InvalidStateError("Session is not paused", {"session_id": str(session_id)})

        paused_seconds = current_pause_seconds(session, self.clock())
        updated = await self.session_repo.mark_resumed(session_id, paused_seconds)
        if not updated:
            await self.db.rollback()
            raise InvalidStateError("Session state changed", {"session_id": str(session_id)})
        await self.db.commit()

        total_paused = (session.total_paused_seconds or 0) + paused_seconds
        logger.info(
            "session_resumed",
            user_id=str(session.user_id),
            session_id=str(session_id),
            paused_seconds=paused_seconds,
        )
        return PauseStateResponse(
            session_id=session_id,
            is_paused=False,
            total_paused_seconds=total_paused,
        )

    async def end_session(
        self,
        session_id: UUID,
        end_position: str | None = None,
        chapter: int | None = None,
        pages_read_delta: int = 0,
        finished: bool = False,
        user_id: UUID | None = None,
    ) -> EndSessionResponse:
        """Finalize a session and fold it into the aggregates.

        Daily stats, reading history, the user aggregate and the milestone
        ladders are updated in one transaction. Badge awarding runs
        afterwards in its own.
        """
        session = await self._get_session(session_id, user_id)
        if not session.is_active:
            raise InvalidStateError("Session has already ended", {"session_id": str(session_id)})

        now = self.clock()
        today = now.date()
        duration = effective_duration(session, now)
        pages_read_delta = max(0, pages_read_delta)
        owner_id = session.user_id
        content_type, content_id = session.content_type, session.content_id
        content_key = (content_type, content_id)

        finalized = await self.session_repo.finalize(
            session_id,
            now=now,
            duration_seconds=duration,
            paused_seconds=current_pause_seconds(session, now),
            pages_read_delta=pages_read_delta,
            end_position=end_position,
            end_chapter=chapter,
        )
        if not finalized:
            await self.db.rollback()
            raise InvalidStateError("Session has already ended", {"session_id": str(session_id)})

        first_read = not await self.session_repo.has_prior_session(
            owner_id, content_id, content_type, exclude_session_id=session_id
        )
        books = await self.book_repo.get_many([content_key])
        book = books.get(content_key)

        await self.daily.accumulate(
            owner_id,
            today,
            duration,
            CounterDelta(books_finished=1 if finished else 0, pages_read=pages_read_delta),
            content_key=f"{content_type}:{content_id}",
            category=book.category if book else None,
        )
        await self.history_repo.record(
            owner_id,
            content_id,
            content_type,
            read_at=now,
            duration_seconds=duration,
            position=end_position if end_position is not None else session.end_position,
            chapter=chapter if chapter is not None else session.end_chapter,
        )
        await self.milestones.update_user_aggregate(
            owner_id,
            duration,
            today=today,
            books_read_delta=1 if first_read else 0,
            books_finished_delta=1 if finished else 0,
        )
        achieved = await self.milestones.check_milestones(owner_id)
        await self.db.commit()

        logger.info(
            "session_ended",
            user_id=str(owner_id),
            session_id=str(session_id),
            duration_seconds=duration,
            milestones=len(achieved),
        )

        badges = await self._award_badges(owner_id)

        return EndSessionResponse(
            session_id=session_id,
            duration_seconds=duration,
            total_content_duration=await self.get_content_duration(owner_id, content_id, content_type),
            today_duration=await self.get_today_duration(owner_id, today),
            milestones_achieved=achieved,
            badges_earned=badges,
        )

    async def _award_badges(self, user_id: UUID) -> list[EarnedBadgeResponse]:
        # Session is already committed here
        try:
            return await self.badges.check_and_award_badges(user_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("badge_check_failed", user_id=str(user_id), error=str(e))
            return []

    async def get_active_session(self, user_id: UUID) -> SessionResponse | None:
        """The user's active session, if any."""
        session = await self.session_repo.get_active(user_id)
        if not session:
            return None
        return SessionResponse.model_validate(session)

    async def get_today_duration(self, user_id: UUID, today: date | None = None) -> int:
        """Seconds recorded in today's daily row."""
        today = today or self.clock().date()
        return await self.daily.get_day_total(user_id, today)

    async def get_today(self, user_id: UUID) -> TodayDurationResponse:
        """Today's total as a response."""
        today = self.clock().date()
        return TodayDurationResponse(
            day=today,
            duration_seconds=await self.get_today_duration(user_id, today),
        )

    async def get_content_duration(self, user_id: UUID, content_id: UUID, content_type: str) -> int:
        """Stored session seconds the user has spent on one content item."""
        return await self.session_repo.get_content_duration(user_id, content_id, content_type)

    async def get_reading_history(self, user_id: UUID, limit: int = 20) -> list[ReadingHistoryResponse]:
        """Items the user has read, most recent first."""
        rows = await self.history_repo.list_recent(user_id, limit=limit)
        return [ReadingHistoryResponse.model_validate(row) for row in rows]
