"""SQLAlchemy models for the property catalog and reservation store."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database.base import Base

MONEY = Numeric(12, 2)


class Property(Base):
    """Rental property with its default fee schedule."""

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    cleaning_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    check_in_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    # Percentage of the reservation total
    commission: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    team_payment: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation", back_populates="property", cascade="all, delete-orphan"
    )


class Reservation(Base):
    """Stored reservation."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guest_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    num_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="confirmed"
    )  # confirmed | pending | cancelled | completed
    platform: Mapped[str] = mapped_column(String(64), nullable=False, default="Other")
    platform_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    cleaning_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    check_in_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    commission_fee: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    team_payment: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    net_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    property: Mapped["Property"] = relationship("Property", back_populates="reservations")
