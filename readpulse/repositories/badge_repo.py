"""Badge catalog and award repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.db.upsert import insert_for
from readpulse.models.badge import Badge, UserBadge


class BadgeRepository:
    """Repository for Badge and UserBadge rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self) -> list[Badge]:
        """Active catalog ordered by category, then level."""
        query = (
            select(Badge)
            .where(Badge.is_active.is_(True))
            .order_by(Badge.category.asc(), Badge.level.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_id(self, badge_id: UUID) -> Badge | None:
        """Get a badge by ID."""
        result = await self.db.execute(select(Badge).where(Badge.id == badge_id))
        return result.scalar_one_or_none()

    async def count(self) -> int:
        """Total catalog size, active or not."""
        result = await self.db.execute(select(func.count(Badge.id)))
        return result.scalar() or 0

    async def create_many(self, definitions: list[dict]) -> int:
        """Insert catalog rows."""
        for definition in definitions:
            self.db.add(Badge(**definition))
        await self.db.flush()
        return len(definitions)

    async def get_earned(self, user_id: UUID) -> dict[UUID, datetime]:
        """Map of badge_id to earned_at for a user."""
        query = select(UserBadge.badge_id, UserBadge.earned_at).where(
            UserBadge.user_id == user_id
        )
        result = await self.db.execute(query)
        return {row.badge_id: row.earned_at for row in result.all()}

    async def award(self, user_id: UUID, badge_id: UUID, earned_at: datetime) -> bool:
        """Insert the award if absent and bump the badge's counter.

        Returns False when the user already had the badge.
        """
        stmt = (
            insert_for(self.db, UserBadge.__table__)
            .values(user_id=user_id, badge_id=badge_id, earned_at=earned_at)
            .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            return False

        await self.db.execute(
            update(Badge)
            .where(Badge.id == badge_id)
            .values(earned_count=Badge.earned_count + 1)
            .execution_options(synchronize_session=False)
        )
        return True
