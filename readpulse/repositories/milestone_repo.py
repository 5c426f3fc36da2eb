"""Reading milestone repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.db.upsert import insert_for
from readpulse.models.reading import ReadingMilestone


class MilestoneRepository:
    """Repository for append-only milestone facts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_if_absent(
        self,
        user_id: UUID,
        milestone_type: str,
        milestone_value: int,
        title: str,
        achieved_at: datetime,
        description: str | None = None,
    ) -> bool:
        """Insert a milestone unless (user, type, value) already exists.

        Returns True only when this call created the row.
        """
        stmt = (
            insert_for(self.db, ReadingMilestone.__table__)
            .values(
                user_id=user_id,
                milestone_type=milestone_type,
                milestone_value=milestone_value,
                title=title,
                description=description,
                achieved_at=achieved_at,
            )
            .on_conflict_do_nothing(
                index_elements=["user_id", "milestone_type", "milestone_value"],
            )
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def list_for_user(
        self,
        user_id: UUID,
        limit: int = 20,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[ReadingMilestone]:
        """Newest-first milestones, optionally bounded to [start, end)."""
        conditions = [ReadingMilestone.user_id == user_id]
        if start is not None:
            conditions.append(ReadingMilestone.achieved_at >= start)
        if end is not None:
            conditions.append(ReadingMilestone.achieved_at < end)

        query = (
            select(ReadingMilestone)
            .where(and_(*conditions))
            .order_by(ReadingMilestone.achieved_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for(self, user_id: UUID, milestone_type: str, milestone_value: int) -> int:
        """Number of rows for one (user, type, value); at most 1."""
        query = select(ReadingMilestone.id).where(
            and_(
                ReadingMilestone.user_id == user_id,
                ReadingMilestone.milestone_type == milestone_type,
                ReadingMilestone.milestone_value == milestone_value,
            )
        )
        result = await self.db.execute(query)
        return len(result.all())
