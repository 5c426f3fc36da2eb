"""Reading session schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from readpulse.models.book import ContentType
from readpulse.schemas.badge import EarnedBadgeResponse


class SessionStart(BaseModel):
    """Request to start a reading session."""

    content_id: UUID
    content_type: ContentType = ContentType.EBOOK
    position: str | None = Field(default=None, description="CFI, page number or byte offset")
    chapter_index: int | None = Field(default=None, ge=0)
    device_type: str | None = Field(default=None, max_length=20, description="ios, android, web")
    device_id: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "content_id": "4f6c1f7e-2a55-4bb8-9f44-5b8c0f7e2d11",
                "content_type": "ebook",
                "position": "epubcfi(/6/4!/4/2/1:0)",
                "chapter_index": 0,
                "device_type": "ios",
            }
        }
    )


class HeartbeatRequest(BaseModel):
    """Periodic progress report for an active session."""

    current_position: str | None = None
    chapter_index: int | None = Field(default=None, ge=0)
    pages_read: int = Field(default=0, ge=0, description="Pages read since the last report")


class EndSessionRequest(BaseModel):
    """Request to end a reading session."""

    end_position: str | None = None
    chapter_index: int | None = Field(default=None, ge=0)
    pages_read: int = Field(default=0, ge=0, description="Pages read since the last report")
    finished: bool = Field(default=False, description="Reader reached the end of the content")


class SessionResponse(BaseModel):
    """Reading session record."""

    id: UUID
    user_id: UUID
    content_id: UUID
    content_type: str
    start_time: datetime
    end_time: datetime | None = None
    duration_seconds: int
    start_position: str | None = None
    end_position: str | None = None
    start_chapter: int | None = None
    end_chapter: int | None = None
    pages_read: int
    device_type: str | None = None
    is_active: bool
    is_paused: bool
    paused_at: datetime | None = None
    total_paused_seconds: int

    model_config = ConfigDict(from_attributes=True)


class HeartbeatResponse(BaseModel):
    """Live session and daily totals."""

    session_id: UUID
    duration_seconds: int
    today_duration: int
    total_content_duration: int
    is_paused: bool


class PauseStateResponse(BaseModel):
    """Pause/resume outcome."""

    session_id: UUID
    is_paused: bool
    total_paused_seconds: int


class MilestoneAchieved(BaseModel):
    """A milestone first crossed by this session."""

    type: str
    value: int
    title: str


class EndSessionResponse(BaseModel):
    """Final session totals and anything newly achieved."""

    session_id: UUID
    duration_seconds: int
    total_content_duration: int
    today_duration: int
    milestones_achieved: list[MilestoneAchieved] = Field(default_factory=list)
    badges_earned: list[EarnedBadgeResponse] = Field(default_factory=list)


class TodayDurationResponse(BaseModel):
    """Seconds read today (UTC)."""

    day: date
    duration_seconds: int


class ReadingHistoryResponse(BaseModel):
    """Where the reader left off in one item and how long they have spent on it."""

    content_id: UUID
    content_type: str
    last_position: str | None = None
    last_chapter: int | None = None
    total_duration_seconds: int
    last_read_at: datetime

    model_config = ConfigDict(from_attributes=True)
