"""Core utilities package."""

from readpulse.core.clock import ensure_utc, utcnow
from readpulse.core.exceptions import (
    AlreadyExistsError,
    APIError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    UpstreamUnavailableError,
    ValidationError,
)
from readpulse.core.security import create_access_token, verify_access_token

__all__ = [
    "create_access_token",
    "verify_access_token",
    "utcnow",
    "ensure_utc",
    "APIError",
    "NotFoundError",
    "InvalidStateError",
    "AlreadyExistsError",
    "UnauthorizedError",
    "UpstreamUnavailableError",
    "ValidationError",
]
