"""Reading session, daily statistics and milestone models."""

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from readpulse.models.base import Base, JSONType, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from readpulse.models.user import User


class ReadingSession(Base, UUIDMixin):
    """One user's reading of one content item over a time window."""

    __tablename__ = "reading_sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Session window
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Position tokens: CFI, page number or byte offset depending on content type
    start_position: Mapped[str | None] = mapped_column(Text, nullable=True)
    end_position: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_chapter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_chapter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pages_read: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Device
    device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # ios, android, web
    device_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))
    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_paused_seconds: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    # Set only when end_session folded the session into the aggregates
    is_aggregated: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship("User", backref="reading_sessions")

    __table_args__ = (
        Index("idx_reading_sessions_user_time", "user_id", "start_time"),
        Index("idx_reading_sessions_content", "content_type", "content_id"),
        Index("idx_reading_sessions_start_time", "start_time"),
        # At most one active session per user
        Index(
            "uq_reading_sessions_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        CheckConstraint("duration_seconds >= 0", name="check_session_duration_positive"),
        CheckConstraint("total_paused_seconds >= 0", name="check_session_paused_positive"),
    )

    def __repr__(self) -> str:
        return f"<ReadingSession user={self.user_id} {self.content_type}:{self.content_id} active={self.is_active}>"


class ReadingHistory(Base, UUIDMixin, TimestampMixin):
    """Latest position and accumulated reading time per user and content item."""

    __tablename__ = "reading_history"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)

    last_position: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_chapter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_duration_seconds: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "content_type",
            "content_id",
            name="uq_reading_history_user_content",
        ),
        Index("idx_reading_history_user_read_at", "user_id", "last_read_at"),
    )

    def __repr__(self) -> str:
        return f"<ReadingHistory user={self.user_id} {self.content_type}:{self.content_id}>"


class DailyReadingStat(Base, UUIDMixin, TimestampMixin):
    """Per-user, per-calendar-day reading totals."""

    __tablename__ = "daily_reading_stats"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Column is "date"; the attribute name avoids shadowing datetime.date
    stat_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    total_duration_seconds: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    books_read: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    books_finished: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    pages_read: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    notes_created: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    highlights_created: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Breakdowns: category -> seconds, "content_type:content_id" -> seconds
    category_durations: Mapped[dict] = mapped_column(JSONType, default=dict)
    book_durations: Mapped[dict] = mapped_column(JSONType, default=dict)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_stats_user_date"),
    )

    def __repr__(self) -> str:
        return f"<DailyReadingStat user={self.user_id} {self.stat_date} {self.total_duration_seconds}s>"


class ReadingMilestone(Base, UUIDMixin):
    """One-time cumulative threshold achievement. Append-only."""

    __tablename__ = "reading_milestones"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    milestone_type: Mapped[str] = mapped_column(String(30), nullable=False)
    milestone_value: Mapped[int] = mapped_column(Integer, nullable=False)

    # Related content, when the milestone is about a specific item
    content_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    content_title: Mapped[str | None] = mapped_column(String(500), nullable=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    achieved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        # Uniqueness is the idempotency guard for concurrent evaluation
        UniqueConstraint(
            "user_id",
            "milestone_type",
            "milestone_value",
            name="uq_milestone_user_type_value",
        ),
        Index("idx_reading_milestones_user_achieved", "user_id", "achieved_at"),
    )

    def __repr__(self) -> str:
        return f"<ReadingMilestone {self.milestone_type}={self.milestone_value} user={self.user_id}>"
