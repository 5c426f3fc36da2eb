"""Main API v1 router combining all endpoint routers."""

from fastapi import APIRouter

from readpulse.api.v1 import badges, health, rankings, sessions, stats

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, tags=["Health"])

# Reading sessions
api_router.include_router(sessions.router, prefix="/reading", tags=["Reading"])

# Statistics, milestones and leaderboard
api_router.include_router(stats.router, prefix="/reading-stats", tags=["Reading Stats"])

# Badges
api_router.include_router(badges.router, prefix="/badges", tags=["Badges"])

# Content rankings
api_router.include_router(rankings.router, prefix="/rankings", tags=["Rankings"])
