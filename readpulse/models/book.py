"""Content catalog models read by the ranking engine."""

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from readpulse.models.base import Base, TimestampMixin, UUIDMixin


class ContentType(str, Enum):
    """Kinds of readable content."""

    EBOOK = "ebook"
    MAGAZINE = "magazine"
    AUDIOBOOK = "audiobook"


CONTENT_TYPES = [content_type.value for content_type in ContentType]


class Book(Base, UUIDMixin, TimestampMixin):
    """Catalog entry for an ebook, magazine issue or audiobook."""

    __tablename__ = "books"

    content_type: Mapped[str] = mapped_column(String(20), nullable=False, default="ebook")

    # Metadata
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    publication_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Ratings imported from an external catalog (Goodreads, Douban)
    external_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    external_ratings_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    __table_args__ = (
        Index("idx_books_content_type", "content_type"),
        Index("idx_books_publication_date", "publication_date"),
        CheckConstraint(
            "content_type IN ('ebook', 'magazine', 'audiobook')",
            name="check_book_content_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Book {self.title[:30]} ({self.id})>"


class BookStats(Base, UUIDMixin):
    """Engagement counters per content item, maintained by the catalog service."""

    __tablename__ = "book_stats"

    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    total_readers: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    finished_readers: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Internal rating aggregate
    average_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("content_type", "content_id", name="uq_book_stats_content"),
        Index("idx_book_stats_readers", "total_readers"),
    )

    def __repr__(self) -> str:
        return f"<BookStats {self.content_type}:{self.content_id} readers={self.total_readers}>"


class ShelfEntry(Base, UUIDMixin):
    """A content item on a user's bookshelf."""

    __tablename__ = "shelf_entries"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="want_to_read")

    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "content_type", "content_id", name="uq_shelf_user_content"),
        Index("idx_shelf_entries_added_at", "added_at"),
    )

    def __repr__(self) -> str:
        return f"<ShelfEntry user={self.user_id} {self.content_type}:{self.content_id}>"
