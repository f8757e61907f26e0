"""Reservation insert schema enforced before anything reaches the store."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReservationCreate(BaseModel):
    """Payload accepted by ``ReservationRepository.create_reservation``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    property_id: int = Field(..., gt=0, description="Owning property")
    guest_name: str = Field(..., min_length=1, max_length=255, description="Guest full name")
    guest_email: Optional[str] = Field(None, max_length=255, description="Guest email")
    guest_phone: Optional[str] = Field(None, max_length=64, description="Guest phone")
    check_in_date: date = Field(..., description="Arrival date")
    check_out_date: date = Field(..., description="Departure date")
    num_guests: int = Field(default=1, ge=1, description="Number of guests")
    total_amount: Decimal = Field(..., ge=0, description="Total stay price")
    status: str = Field(default="confirmed", description="Reservation status")
    platform: str = Field(default="Other", description="Booking platform")
    platform_fee: Decimal = Field(default=Decimal("0"), ge=0)
    cleaning_fee: Decimal = Field(default=Decimal("0"), ge=0)
    check_in_fee: Decimal = Field(default=Decimal("0"), ge=0)
    commission_fee: Decimal = Field(default=Decimal("0"), ge=0)
    team_payment: Decimal = Field(default=Decimal("0"), ge=0)
    net_amount: Decimal = Field(default=Decimal("0"))
    notes: Optional[str] = Field(None, description="Free-text notes")
    source: Optional[str] = Field(None, max_length=255, description="Originating file")

    @model_validator(mode="after")
    def check_date_order(self) -> "ReservationCreate":
        if self.check_in_date > self.check_out_date:
            raise ValueError("check_in_date must be on or before check_out_date")
        return self
