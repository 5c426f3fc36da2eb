"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

# Tests never talk to Redis; settings are read at import time
os.environ.setdefault("REDIS_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from readpulse.api.v1.deps import get_clock, get_ranking_engine
from readpulse.cache.ranking_cache import InMemoryRankingCache
from readpulse.core.security import create_access_token
from readpulse.db.session import get_db
from readpulse.main import app
from readpulse.models.base import Base
from readpulse.models.user import User
from readpulse.services.ranking_service import RankingEngine

# In-memory SQLite by default; point at PostgreSQL with TEST_DATABASE_URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


class FrozenClock:
    """Controllable time source."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at Wednesday 2026-03-11 10:00 UTC."""
    return FrozenClock(datetime(2026, 3, 11, 10, 0, tzinfo=UTC))


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def ranking_cache() -> InMemoryRankingCache:
    return InMemoryRankingCache()


@pytest.fixture
def ranking_engine(session_factory, ranking_cache, clock) -> RankingEngine:
    return RankingEngine(session_factory, ranking_cache, clock)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    clock: FrozenClock,
    ranking_engine: RankingEngine,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database, clock and ranking overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_ranking_engine] = lambda: ranking_engine

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session: AsyncSession):
    """Create users with optional aggregate values."""

    async def create(username: str, **fields) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            display_name=username.title(),
            roles=["user"],
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return create


@pytest_asyncio.fixture
async def test_user(user_factory) -> User:
    """Create a test user."""
    return await user_factory("reader")


@pytest_asyncio.fixture
async def other_user(user_factory) -> User:
    """Create a second user."""
    return await user_factory("friend")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Create authentication headers for test user."""
    token = create_access_token(subject=str(test_user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def authenticated_client(
    client: AsyncClient,
    auth_headers: dict[str, str],
) -> AsyncClient:
    """Create authenticated test client."""
    client.headers.update(auth_headers)
    return client
