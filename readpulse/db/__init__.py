"""Database package."""

from readpulse.db.session import async_session_factory, close_db, get_db, init_db

__all__ = ["get_db", "init_db", "close_db", "async_session_factory"]
