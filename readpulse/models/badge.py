"""Badge catalog and award models."""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from readpulse.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from readpulse.models.user import User


class Badge(Base, UUIDMixin):
    """Threshold-based badge definition."""

    __tablename__ = "badges"

    category: Mapped[str] = mapped_column(String(50), nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    requirement: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Qualification rule
    condition_type: Mapped[str] = mapped_column(String(30), nullable=False)
    condition_value: Mapped[int] = mapped_column(Integer, nullable=False)

    # Display
    icon_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Denormalized award counter
    earned_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_badges_category_level", "category", "level"),
    )

    def __repr__(self) -> str:
        return f"<Badge {self.category}/{self.level} {self.name}>"


class UserBadge(Base):
    """Award of a badge to a user. Immutable once created."""

    __tablename__ = "user_badges"

    # Composite primary key doubles as the award-once guard
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    badge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("badges.id", ondelete="CASCADE"),
        primary_key=True,
    )

    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    badge: Mapped["Badge"] = relationship("Badge")
    user: Mapped["User"] = relationship("User", backref="badges")

    def __repr__(self) -> str:
        return f"<UserBadge user={self.user_id} badge={self.badge_id}>"
