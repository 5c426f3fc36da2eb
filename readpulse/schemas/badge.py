"""Badge schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BadgeResponse(BaseModel):
    """Catalog entry."""

    id: UUID
    category: str
    level: int
    name: str
    description: str | None = None
    requirement: str | None = None
    condition_type: str
    condition_value: int
    icon_url: str | None = None
    background_color: str | None = None
    earned_count: int

    model_config = ConfigDict(from_attributes=True)


class EarnedBadgeResponse(BaseModel):
    """A badge the user holds."""

    id: UUID
    category: str
    level: int
    name: str
    description: str | None = None
    requirement: str | None = None
    icon_url: str | None = None
    background_color: str | None = None
    earned_at: datetime
    earned_count: int


class BadgeProgress(BaseModel):
    """Progress toward a badge not yet earned."""

    current: int
    target: int
    percentage: float = Field(ge=0, le=100)
    remaining: str


class InProgressBadge(BaseModel):
    """Catalog entry paired with the user's progress."""

    badge: BadgeResponse
    progress: BadgeProgress


class CategorySummary(BaseModel):
    """Earned versus total badges in a category."""

    earned: int
    total: int


class UserBadgesResponse(BaseModel):
    """A user's badge shelf."""

    earned: list[EarnedBadgeResponse]
    in_progress: list[InProgressBadge]
    categories: dict[str, CategorySummary]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "earned": [],
                "in_progress": [
                    {
                        "badge": {
                            "id": "0d4f2a51-7c3b-4b7e-9a0e-3b1f1a2c9d10",
                            "category": "reading_streak",
                            "level": 1,
                            "name": "7-Day Streak",
                            "condition_type": "streak_days",
                            "condition_value": 7,
                            "earned_count": 12,
                        },
                        "progress": {
                            "current": 3,
                            "target": 7,
                            "percentage": 42.9,
                            "remaining": "4 more days to earn",
                        },
                    }
                ],
                "categories": {"reading_streak": {"earned": 0, "total": 6}},
            }
        }
    )


class BadgeCheckResponse(BaseModel):
    """Badges awarded by an explicit check."""

    newly_earned: list[EarnedBadgeResponse]
