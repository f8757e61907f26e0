from .reservation import ReservationCreate

__all__ = [
    "ReservationCreate",
]
