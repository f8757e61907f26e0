"""Read-only access to the property catalog."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Property
from app.repositories.base_repository import BaseRepository
from app.services.ingestion.models import PropertyRecord
from app.utils.exceptions import ReservationStoreError


def to_property_record(row: Property) -> PropertyRecord:
    return PropertyRecord(
        id=row.id,
        name=row.name,
        cleaning_cost=row.cleaning_cost,
        check_in_fee=row.check_in_fee,
        commission=row.commission,
        team_payment=row.team_payment,
    )


class PropertyRepository(BaseRepository[Property]):
    """Property catalog consumed by the property resolver and fee defaults."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Property)

    async def list_properties(self) -> List[PropertyRecord]:
        """All active properties, ordered by id."""
        try:
            rows = await self.get_all(filters={"active": True})
        except SQLAlchemyError as e:
            raise ReservationStoreError(f"Failed to load property catalog: {e}") from e
        return [to_property_record(row) for row in rows]

    async def get_property(self, property_id: int) -> Optional[PropertyRecord]:
        row = await self.get_by_id(property_id)
        return to_property_record(row) if row else None
