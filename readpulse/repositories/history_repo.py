"""Reading history repository."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.db.upsert import insert_for
from readpulse.models.reading import ReadingHistory


class HistoryRepository:
    """Repository for per-content reading history rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        user_id: UUID,
        content_id: UUID,
        content_type: str,
        *,
        read_at: datetime,
        duration_seconds: int,
        position: str | None = None,
        chapter: int | None = None,
    ) -> None:
        """Upsert-by-add of the item's accumulated seconds.

        A missing position or chapter keeps the stored one.
        """
        table = ReadingHistory.__table__
        stmt = insert_for(self.db, table).values(
            user_id=user_id,
            content_id=content_id,
            content_type=content_type,
            last_position=position,
            last_chapter=chapter,
            total_duration_seconds=duration_seconds,
            last_read_at=read_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "content_type", "content_id"],
            set_={
                "last_position": func.coalesce(stmt.excluded.last_position, table.c.last_position),
                "last_chapter": func.coalesce(stmt.excluded.last_chapter, table.c.last_chapter),
                "total_duration_seconds": table.c.total_duration_seconds
                + stmt.excluded.total_duration_seconds,
                "last_read_at": stmt.excluded.last_read_at,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        await self.db.execute(stmt)

    async def get(self, user_id: UUID, content_id: UUID, content_type: str) -> ReadingHistory | None:
        """Get one item's history row."""
        query = (
            select(ReadingHistory)
            .where(
                and_(
                    ReadingHistory.user_id == user_id,
                    ReadingHistory.content_id == content_id,
                    ReadingHistory.content_type == content_type,
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_recent(self, user_id: UUID, limit: int = 20) -> list[ReadingHistory]:
        """The user's items, most recently read first."""
        query = (
            select(ReadingHistory)
            .where(ReadingHistory.user_id == user_id)
            .order_by(ReadingHistory.last_read_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
