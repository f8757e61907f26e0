"""Database module for SQLAlchemy models and session management."""

from app.database.base import Base, async_session_maker, engine, get_async_session
from app.database.client import DatabaseClient, close_database, db_client, init_database
from app.database.models import Property, Reservation

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "get_async_session",
    "DatabaseClient",
    "db_client",
    "init_database",
    "close_database",
    "Property",
    "Reservation",
]
