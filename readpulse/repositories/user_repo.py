"""User repository for database operations."""

import uuid
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.models.user import User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str | uuid.UUID, *, for_update: bool = False) -> User | None:
        """Get user by ID, always reloading the aggregate columns."""
        if isinstance(user_id, str):
            user_id = uuid.UUID(user_id)

        stmt = (
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, user_id: uuid.UUID) -> bool:
        """Check whether a user row exists."""
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def get_many(self, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, User]:
        """Batch lookup of users by ID."""
        if not user_ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars().all()}

    async def apply_reading_aggregate(
        self,
        user_id: uuid.UUID,
        *,
        duration_seconds: int,
        new_day: bool,
        current_streak_days: int,
        max_streak_days: int,
        last_reading_date: date,
        books_read_delta: int = 0,
        books_finished_delta: int = 0,
    ) -> None:
        """Write one session-end's effect on the lifetime aggregate.

        Counters are added in SQL; streak fields are the values computed from
        the row read just before this write.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                total_reading_duration=User.total_reading_duration + duration_seconds,
                total_reading_days=User.total_reading_days + (1 if new_day else 0),
                current_streak_days=current_streak_days,
                max_streak_days=max_streak_days,
                last_reading_date=last_reading_date,
                books_read_count=User.books_read_count + books_read_delta,
                books_finished_count=User.books_finished_count + books_finished_delta,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
