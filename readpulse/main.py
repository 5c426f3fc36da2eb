"""FastAPI application entry point."""

import asyncio
import contextlib
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DBAPIError, IntegrityError

from readpulse.api.v1.router import api_router
from readpulse.cache.ranking_cache import InMemoryRankingCache, create_ranking_cache
from readpulse.cache.redis_client import RedisCache
from readpulse.config import settings
from readpulse.db.session import async_session_factory, close_db, init_db
from readpulse.rate_limiter import limiter
from readpulse.services.ranking_service import RankingEngine, refresh_rankings_periodically

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "Health", "description": "API availability and component status."},
    {
        "name": "Reading",
        "description": (
            "Reading sessions. One active session per user; starting a new one closes the old one. "
            "Send a heartbeat every 30-60 seconds while reading and end the session when the reader leaves."
        ),
    },
    {
        "name": "Reading Stats",
        "description": "Week, month, year, lifetime and calendar views, milestones and the weekly leaderboard.",
    },
    {"name": "Badges", "description": "Badge catalog, earned badges and progress toward the rest."},
    {
        "name": "Rankings",
        "description": (
            "Precomputed content rankings. Trending refreshes hourly, popular every 6 hours, the rest daily."
        ),
    },
]


def _error_body(code: str, message: str, request: Request) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "requestId": request.headers.get("X-Request-ID"),
        }
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting ReadPulse API", version=settings.app_version, env=settings.environment)
    await init_db()

    # Rankings are shared with the worker through Redis when it is reachable
    app.state.ranking_cache = await create_ranking_cache()

    # A process-local cache has no worker writing to it
    refresh_task = None
    if isinstance(app.state.ranking_cache, InMemoryRankingCache):
        engine = RankingEngine(async_session_factory, app.state.ranking_cache)
        refresh_task = asyncio.create_task(
            refresh_rankings_periodically(engine, settings.ranking_local_refresh_seconds)
        )

    yield

    logger.info("Shutting down ReadPulse API")
    if refresh_task:
        refresh_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresh_task
    await RedisCache.close()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Reading sessions, statistics, milestones, badges and content rankings.",
        openapi_tags=OPENAPI_TAGS,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.ranking_cache = InMemoryRankingCache()

    # Rate limiter state and exception handler
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> Response:
        """Add unique request ID to each request for tracing."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        """Log all incoming requests."""
        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        response = await call_next(request)

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response

    # Store failures
    @app.exception_handler(DBAPIError)
    async def database_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
        """Translate store errors into 409 for constraint conflicts, 503 otherwise."""
        if isinstance(exc, IntegrityError):
            logger.warning("Integrity conflict", error=str(exc.orig))
            return JSONResponse(
                status_code=409,
                content=_error_body("CONFLICT", "The request conflicts with existing data", request),
            )

        logger.error("Database unavailable", error=str(exc.orig))
        return JSONResponse(
            status_code=503,
            content=_error_body("UPSTREAM_UNAVAILABLE", "database is unavailable", request),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.exception("Unhandled exception", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred", request),
        )

    # Include API router
    app.include_router(api_router, prefix="/v1")

    return app


app = create_app()
