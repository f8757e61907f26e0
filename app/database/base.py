"""SQLAlchemy declarative base, engine and session factory."""

from collections.abc import AsyncGenerator
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _engine_options(database_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.database_echo, "future": True}
    if database_url.startswith("sqlite"):
        return options
    options["pool_size"] = settings.database_pool_size
    options["max_overflow"] = settings.database_max_overflow
    if "+asyncpg" in database_url:
        # Disable prepared statement cache for PgBouncer compatibility
        options["connect_args"] = {"statement_cache_size": 0}
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Create async session factory
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
