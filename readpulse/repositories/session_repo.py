"""Reading session repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.models.reading import ReadingSession


class SessionRepository:
    """Repository for reading session rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, session_id: UUID) -> ReadingSession | None:
        """Get a session by ID with fresh column values."""
        query = (
            select(ReadingSession)
            .where(ReadingSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_active(self, user_id: UUID) -> ReadingSession | None:
        """Get the user's active session, if any."""
        query = (
            select(ReadingSession)
            .where(
                and_(
                    ReadingSession.user_id == user_id,
                    ReadingSession.is_active.is_(True),
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def close_active(self, user_id: UUID, now: datetime) -> int:
        """Finalize any active session for the user. Returns rows closed."""
        stmt = (
            update(ReadingSession)
            .where(
                and_(
                    ReadingSession.user_id == user_id,
                    ReadingSession.is_active.is_(True),
                )
            )
            .values(is_active=False, is_paused=False, paused_at=None, end_time=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def create(self, **values) -> ReadingSession:
        """Insert a new active session."""
        session = ReadingSession(is_active=True, is_paused=False, **values)
        self.db.add(session)
        await self.db.flush()
        return session

    async def record_progress(
        self,
        session_id: UUID,
        *,
        duration_seconds: int,
        pages_read_delta: int = 0,
        end_position: str | None = None,
        end_chapter: int | None = None,
    ) -> int:
        """Heartbeat write: only touches an active, unpaused session."""
        values: dict = {
            "duration_seconds": duration_seconds,
            "pages_read": ReadingSession.pages_read + pages_read_delta,
        }
        if end_position is not None:
            values["end_position"] = end_position
        if end_chapter is not None:
            values["end_chapter"] = end_chapter

        stmt = (
            update(ReadingSession)
            .where(
                and_(
                    ReadingSession.id == session_id,
                    ReadingSession.is_active.is_(True),
                    ReadingSession.is_paused.is_(False),
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def mark_paused(self, session_id: UUID, now: datetime) -> int:
        """Pause an active, running session. Returns 0 when the state did not allow it."""
        stmt = (
            update(ReadingSession)
            .where(
                and_(
                    ReadingSession.id == session_id,
                    ReadingSession.is_active.is_(True),
                    ReadingSession.is_paused.is_(False),
                )
            )
            .values(is_paused=True, paused_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def mark_resumed(self, session_id: UUID, paused_seconds: int) -> int:
        """Resume a paused session, folding the pause into the running total."""
        stmt = (
            update(ReadingSession)
            .where(
                and_(
                    ReadingSession.id == session_id,
                    ReadingSession.is_active.is_(True),
                    ReadingSession.is_paused.is_(True),
                )
            )
            .values(
                is_paused=False,
                paused_at=None,
                total_paused_seconds=ReadingSession.total_paused_seconds + paused_seconds,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def finalize(
        self,
        session_id: UUID,
        *,
        now: datetime,
        duration_seconds: int,
        paused_seconds: int = 0,
        pages_read_delta: int = 0,
        end_position: str | None = None,
        end_chapter: int | None = None,
    ) -> int:
        """End an active session. Returns 0 if it was already ended."""
        values: dict = {
            "is_active": False,
            "is_paused": False,
            "paused_at": None,
            "end_time": now,
            "duration_seconds": duration_seconds,
            "total_paused_seconds": ReadingSession.total_paused_seconds + paused_seconds,
            "pages_read": ReadingSession.pages_read + pages_read_delta,
            "is_aggregated": True,
        }
        if end_position is not None:
            values["end_position"] = end_position
        if end_chapter is not None:
            values["end_chapter"] = end_chapter

        stmt = (
            update(ReadingSession)
            .where(
                and_(
                    ReadingSession.id == session_id,
                    ReadingSession.is_active.is_(True),
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def get_content_duration(
        self,
        user_id: UUID,
        content_id: UUID,
        content_type: str,
    ) -> int:
        """Total stored session seconds the user has spent on one content item."""
        query = select(func.coalesce(func.sum(ReadingSession.duration_seconds), 0)).where(
            and_(
                ReadingSession.user_id == user_id,
                ReadingSession.content_id == content_id,
                ReadingSession.content_type == content_type,
            )
        )
        result = await self.db.execute(query)
        return int(result.scalar() or 0)

    async def has_prior_session(
        self,
        user_id: UUID,
        content_id: UUID,
        content_type: str,
        exclude_session_id: UUID,
    ) -> bool:
        """Whether another session on this content was already ended and aggregated.

        Sessions abandoned by starting a new one are closed without being
        aggregated and do not count.
        """
        query = (
            select(ReadingSession.id)
            .where(
                and_(
                    ReadingSession.user_id == user_id,
                    ReadingSession.content_id == content_id,
                    ReadingSession.content_type == content_type,
                    ReadingSession.id != exclude_session_id,
                    ReadingSession.is_aggregated.is_(True),
                )
            )
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none() is not None
