"""Dialect-aware INSERT ... ON CONFLICT construction.

PostgreSQL (production) and SQLite (tests) both support ON CONFLICT with the
same SQLAlchemy API, but through different ``insert`` constructs.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, table: Any):
    """Return an ON CONFLICT capable insert for the session's dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on dialect '{dialect}'")
