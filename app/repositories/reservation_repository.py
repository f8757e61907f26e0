"""Reservation store used for duplicate detection and auto-persist."""

from typing import Any, Dict, List, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Reservation
from app.repositories.base_repository import BaseRepository
from app.schemas.reservation import ReservationCreate
from app.services.ingestion.models import ExistingReservation
from app.utils.exceptions import InvalidReservationError, ReservationStoreError


def to_existing_reservation(row: Reservation) -> ExistingReservation:
    return ExistingReservation(
        id=row.id,
        property_id=row.property_id,
        guest_name=row.guest_name,
        check_in_date=row.check_in_date,
        check_out_date=row.check_out_date,
        status=row.status,
        total_amount=row.total_amount,
        net_amount=row.net_amount,
    )


class ReservationRepository(BaseRepository[Reservation]):
    """Reads existing reservations per property and inserts new ones."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Reservation)

    async def list_reservations_for_property(self, property_id: int) -> List[ExistingReservation]:
        """Existing reservations of a property, ordered by check-in date."""
        try:
            rows = await self.get_all(
                filters={"property_id": property_id},
                order_by="check_in_date",
            )
        except SQLAlchemyError as e:
            raise ReservationStoreError(
                f"Failed to load reservations for property {property_id}: {e}"
            ) from e
        return [to_existing_reservation(row) for row in rows]

    async def create_reservation(
        self,
        data: Union[ReservationCreate, Dict[str, Any]],
    ) -> ExistingReservation:
        """Validate and insert a reservation.

        Args:
            data: Insert payload, validated against ``ReservationCreate``

        Returns:
            The stored reservation

        Raises:
            InvalidReservationError: If the payload fails schema validation
            ReservationStoreError: If the insert fails
        """
        try:
            payload = (
                data if isinstance(data, ReservationCreate) else ReservationCreate.model_validate(data)
            )
        except ValidationError as e:
            messages = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidReservationError(f"Invalid reservation payload: {messages}") from e

        try:
            row = await self.create(**payload.model_dump())
        except SQLAlchemyError as e:
            raise ReservationStoreError(f"Failed to save reservation: {e}") from e

        self.logger.info(
            "Reservation created",
            extra={"reservation_id": row.id, "property_id": row.property_id},
        )
        return to_existing_reservation(row)
