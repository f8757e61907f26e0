"""Generic repository with serialised access to a shared AsyncSession."""

import asyncio
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.logging import get_logger

# Define a generic type for SQLAlchemy models
ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)

_SESSION_LOCK_KEY = "repository_lock"


def session_lock(session: AsyncSession) -> asyncio.Lock:
    """Lock shared by every repository bound to the same session.

    AsyncSession does not support concurrent operations, so concurrent
    coroutines must take turns.
    """
    return session.info.setdefault(_SESSION_LOCK_KEY, asyncio.Lock())


class BaseRepository(Generic[ModelType]):
    """Base repository implementing common read/create operations."""

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.lock = session_lock(session)
        self.logger = LOGGER

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get a record by its ID."""
        async with self.lock:
            try:
                result = await self.session.execute(
                    select(self.model).where(self.model.id == id)
                )
                return result.scalar_one_or_none()
            except SQLAlchemyError as e:
                self.logger.error(
                    f"Error retrieving {self.model.__name__} by ID {id}: {str(e)}",
                    exc_info=True,
                )
                raise

    async def get_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = "id",
    ) -> List[ModelType]:
        """Get all records matching simple equality filters.

        Args:
            filters: Dictionary of field_name: value to filter by
            order_by: Column to sort by

        Returns:
            List of records
        """
        query = select(self.model)
        for field_name, value in (filters or {}).items():
            if hasattr(self.model, field_name):
                query = query.where(getattr(self.model, field_name) == value)
        if order_by and hasattr(self.model, order_by):
            query = query.order_by(getattr(self.model, order_by))

        async with self.lock:
            try:
                result = await self.session.execute(query)
                return list(result.scalars().all())
            except SQLAlchemyError as e:
                self.logger.error(
                    f"Error retrieving all {self.model.__name__}: {str(e)}",
                    exc_info=True,
                )
                raise

    async def create(self, **kwargs) -> ModelType:
        """Insert and commit a new record; rolls back on failure."""
        async with self.lock:
            instance = self.model(**kwargs)
            self.session.add(instance)
            try:
                await self.session.flush()
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                self.logger.error(
                    f"Error creating {self.model.__name__}: {str(e)}",
                    exc_info=True,
                )
                raise
            return instance
