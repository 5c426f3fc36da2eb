"""Weekly leaderboard models."""

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from readpulse.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from readpulse.models.user import User


class WeeklyLeaderboardEntry(Base, UUIDMixin, TimestampMixin):
    """A user's precomputed rank for one week."""

    __tablename__ = "weekly_leaderboard"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)

    total_duration_seconds: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rank_change: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    reading_days: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    books_read: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    likes_received: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_weekly_lb_user_week"),
        Index("idx_weekly_lb_week_rank", "week_start", "rank"),
    )

    def __repr__(self) -> str:
        return f"<WeeklyLeaderboardEntry {self.week_start} #{self.rank} user={self.user_id}>"


class LeaderboardLike(Base, UUIDMixin):
    """One like from one user to another for a given week."""

    __tablename__ = "leaderboard_likes"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    week_start: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "target_user_id", "week_start", name="uq_leaderboard_like"),
    )

    def __repr__(self) -> str:
        return f"<LeaderboardLike {self.user_id} -> {self.target_user_id} {self.week_start}>"
