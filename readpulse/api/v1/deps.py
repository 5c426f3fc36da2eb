"""Shared API dependencies for authentication, time and the ranking engine."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.core.clock import Clock, utcnow
from readpulse.core.security import verify_access_token
from readpulse.db.session import async_session_factory, get_db
from readpulse.models.user import User
from readpulse.repositories.user_repo import UserRepository
from readpulse.services.ranking_service import RankingEngine

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    bearer: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Get the current authenticated user from the bearer JWT."""
    if bearer:
        payload = verify_access_token(bearer.credentials)
        if payload:
            user_id = payload.get("sub")
            if user_id:
                user = await UserRepository(db).get_by_id(user_id)
                if user and user.status == "active":
                    return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_clock() -> Clock:
    """Time source for the services; overridden in tests."""
    return utcnow


def get_ranking_engine(request: Request, clock: Clock = Depends(get_clock)) -> RankingEngine:
    """Ranking engine reading the cache constructed at startup."""
    return RankingEngine(async_session_factory, request.app.state.ranking_cache, clock)


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DBSession = Annotated[AsyncSession, Depends(get_db)]
ServiceClock = Annotated[Clock, Depends(get_clock)]
Rankings = Annotated[RankingEngine, Depends(get_ranking_engine)]
