"""Content ranking schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class RankingType(str, Enum):
    """Independently scored content leaderboards."""

    TRENDING = "trending"
    TOP_RATED = "top_rated"
    MOST_READ = "most_read"
    NEW_RELEASES = "new_releases"
    POPULAR_THIS_WEEK = "popular_this_week"
    HIDDEN_GEMS = "hidden_gems"


class RankedBook(BaseModel):
    """One ranked content item."""

    rank: int = Field(ge=1)
    content_type: str
    content_id: UUID
    title: str
    author: str | None = None
    cover_url: str | None = None
    score: float
    rating: float | None = None
    rating_count: int | None = None
    reader_count: int | None = None
    recent_readers: int | None = None


class RankingResult(BaseModel):
    """A cached ranking slot, replaced wholesale on each computation."""

    type: RankingType
    books: list[RankedBook]
    computed_at: datetime
    next_update: datetime


class RankingListResponse(BaseModel):
    """Every computed slot keyed by type."""

    rankings: dict[str, RankingResult]
