"""Pydantic request models for reservation ingestion endpoints."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class SaveReservationsRequest(BaseModel):
    """Request model for saving reviewed reservations.

    Attributes:
        reservations: Reservation payloads as previously returned by the
            processing endpoints, possibly edited by an operator
    """

    reservations: List[Dict[str, Any]] = Field(
        ...,
        min_length=1,
        description="Reservations to save",
    )
