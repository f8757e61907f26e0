"""Repository layer modules."""

from app.repositories.property_repository import PropertyRepository
from app.repositories.reservation_repository import ReservationRepository

__all__ = [
    "PropertyRepository",
    "ReservationRepository",
]
