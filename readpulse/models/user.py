"""User model with the reading aggregate fields."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readpulse.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """User account model.

    Profile CRUD lives in the account service; this table is read here for
    display data and carries the lifetime reading aggregate.
    """

    __tablename__ = "users"

    # Core fields
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Roles and status
    roles: Mapped[list[str]] = mapped_column(
        JSONType,
        default=lambda: ["user"],
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default="active",
        server_default="active",
    )  # active, suspended, deleted

    # Reading aggregate (seconds / days / counts)
    total_reading_duration: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_reading_days: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    current_streak_days: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    max_streak_days: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_reading_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    books_read_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    books_finished_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.email})>"

    @property
    def is_admin(self) -> bool:
        """Check if user has admin privileges."""
        return any(role in (self.roles or []) for role in ["admin", "super_admin"])

    @property
    def total_reading_hours(self) -> int:
        """Whole hours of accumulated reading."""
        return (self.total_reading_duration or 0) // 3600
