"""Database client with connection and schema management."""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.database.base import Base, engine
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DatabaseClient:
    """Relational store client used at startup and by the health check."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self._connected = False

    async def connect(self) -> bool:
        """Test database connection."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            self._connected = False
            LOGGER.error("Database connection failed", exc_info=True)
            raise

        self._connected = True
        LOGGER.info("Database connection successful")
        return True

    async def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()
        self._connected = False
        LOGGER.info("Database connection closed")

    async def create_tables(self) -> None:
        """Create missing tables without touching existing ones."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        LOGGER.info("Database tables created/verified successfully")

    async def drop_tables(self) -> None:
        """Drop all tables. Deletes all data."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        LOGGER.warning("All database tables dropped")

    async def auto_migrate(self, drop_existing: bool = False) -> None:
        """Bring the schema up to date.

        Args:
            drop_existing: Drop existing tables first (data loss!)
        """
        LOGGER.info("Starting auto-migration", extra={"drop_existing": drop_existing})
        if drop_existing:
            await self.drop_tables()
        await self.create_tables()
        LOGGER.info("Auto-migration completed successfully")

    async def health_check(self) -> Dict[str, Any]:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                value = await conn.scalar(text("SELECT 1"))
        except Exception as e:
            self._connected = False
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "connected": False, "error": str(e)}

        self._connected = True
        return {
            "status": "healthy",
            "connected": True,
            "database": self.engine.dialect.name,
            "latency_test": "passed" if value == 1 else "failed",
        }

    @property
    def is_connected(self) -> bool:
        return self._connected


db_client = DatabaseClient(engine)


async def init_database(auto_migrate: bool = True, drop_existing: bool = False) -> None:
    """Connect to the store and optionally create missing tables."""
    await db_client.connect()
    if auto_migrate:
        await db_client.auto_migrate(drop_existing=drop_existing)


async def close_database() -> None:
    await db_client.disconnect()
