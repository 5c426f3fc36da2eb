"""Reading session API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from readpulse.api.v1.deps import CurrentUser, DBSession, ServiceClock
from readpulse.config import settings
from readpulse.rate_limiter import limiter
from readpulse.schemas.session import (
    EndSessionRequest,
    EndSessionResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    PauseStateResponse,
    ReadingHistoryResponse,
    SessionResponse,
    SessionStart,
    TodayDurationResponse,
)
from readpulse.services.session_service import SessionService

router = APIRouter()


@router.post(
    "/sessions/start",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start reading session",
    description="Start a session for a content item. Any session still active for you is closed first.",
)
async def start_session(
    data: SessionStart,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> SessionResponse:
    """Start a reading session."""
    service = SessionService(db, clock)
    return await service.start_session(
        current_user.id,
        data.content_id,
        data.content_type,
        position=data.position,
        chapter=data.chapter_index,
        device_type=data.device_type,
        device_id=data.device_id,
    )


@router.get(
    "/sessions/active",
    response_model=SessionResponse | None,
    summary="Get active session",
)
async def get_active_session(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> SessionResponse | None:
    """Get the caller's active session, if any."""
    service = SessionService(db, clock)
    return await service.get_active_session(current_user.id)


@router.post(
    "/sessions/{session_id}/heartbeat",
    response_model=HeartbeatResponse,
    summary="Session heartbeat",
    description="Report progress. Nothing is recorded while the session is paused.",
)
@limiter.limit(settings.rate_limit_heartbeat)
async def heartbeat(
    request: Request,
    session_id: UUID,
    data: HeartbeatRequest,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> HeartbeatResponse:
    """Record progress for an active session."""
    service = SessionService(db, clock)
    return await service.heartbeat(
        session_id,
        position=data.current_position,
        chapter=data.chapter_index,
        pages_read_delta=data.pages_read,
        user_id=current_user.id,
    )


@router.post(
    "/sessions/{session_id}/pause",
    response_model=PauseStateResponse,
    summary="Pause session",
)
async def pause_session(
    session_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> PauseStateResponse:
    """Pause a running session."""
    service = SessionService(db, clock)
    return await service.pause_session(session_id, user_id=current_user.id)


@router.post(
    "/sessions/{session_id}/resume",
    response_model=PauseStateResponse,
    summary="Resume session",
)
async def resume_session(
    session_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> PauseStateResponse:
    """Resume a paused session."""
    service = SessionService(db, clock)
    return await service.resume_session(session_id, user_id=current_user.id)


@router.post(
    "/sessions/{session_id}/end",
    response_model=EndSessionResponse,
    summary="End session",
    description="Finalize a session and return any milestones and badges it unlocked.",
)
async def end_session(
    session_id: UUID,
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
    data: EndSessionRequest | None = None,
) -> EndSessionResponse:
    """End a reading session."""
    data = data or EndSessionRequest()
    service = SessionService(db, clock)
    return await service.end_session(
        session_id,
        end_position=data.end_position,
        chapter=data.chapter_index,
        pages_read_delta=data.pages_read,
        finished=data.finished,
        user_id=current_user.id,
    )


@router.get(
    "/today",
    response_model=TodayDurationResponse,
    summary="Today's reading time",
)
async def get_today(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
) -> TodayDurationResponse:
    """Seconds read today (UTC)."""
    service = SessionService(db, clock)
    return await service.get_today(current_user.id)


@router.get(
    "/history",
    response_model=list[ReadingHistoryResponse],
    summary="Reading history",
    description="Last position and accumulated time per item, most recently read first.",
)
async def get_reading_history(
    current_user: CurrentUser,
    db: DBSession,
    clock: ServiceClock,
    limit: int = Query(default=20, ge=1, le=100),
) -> list[ReadingHistoryResponse]:
    """The caller's reading history."""
    service = SessionService(db, clock)
    return await service.get_reading_history(current_user.id, limit=limit)
