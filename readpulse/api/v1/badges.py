"""Badge catalog and award endpoints."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter

from readpulse.api.v1.deps import CurrentUser, DBSession, ServiceClock
from readpulse.schemas.badge import BadgeCheckResponse, BadgeResponse, UserBadgesResponse
from readpulse.services.badge_service import BadgeService

router = APIRouter()


@router.get(
    "",
    summary="Badge catalog",
    description="Active badges grouped by category, ordered by level.",
)
async def get_all_badges(db: DBSession) -> dict[str, list[dict[str, Any]]]:
    """Get the badge catalog."""
    service = BadgeService(db)
    return await service.get_all_badges()


@router.get(
    "/me",
    response_model=UserBadgesResponse,
    summary="My badges",
    description="Earned badges, progress toward the rest and per-category counts.",
)
async def get_my_badges(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> UserBadgesResponse:
    """Get the caller's badges."""
    service = BadgeService(db, clock)
    return await service.get_user_badges(current_user.id)


@router.post(
    "/check",
    response_model=BadgeCheckResponse,
    summary="Check for new badges",
)
async def check_badges(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> BadgeCheckResponse:
    """Award every badge the caller now qualifies for."""
    service = BadgeService(db, clock)
    return BadgeCheckResponse(newly_earned=await service.check_and_award_badges(current_user.id))


@router.get(
    "/{badge_id}",
    response_model=BadgeResponse,
    summary="Get badge",
)
async def get_badge(badge_id: UUID, db: DBSession) -> BadgeResponse:
    """Get one badge."""
    service = BadgeService(db)
    return await service.get_badge(badge_id)
