"""Derived monetary fields for a candidate, from its property's fee schedule."""

from decimal import ROUND_HALF_UP, Decimal

from app.services.ingestion.models import CandidateReservation, PropertyRecord

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_property_fees(candidate: CandidateReservation, property_record: PropertyRecord) -> None:
    """Fill commission, fees and net amount in place.

    Fees the candidate already carries are kept; missing ones come from the
    property defaults. Commission is the property's percentage of the total.
    """
    total = _money(candidate.total_amount)

    if candidate.cleaning_fee is None:
        candidate.cleaning_fee = property_record.cleaning_cost
    if candidate.check_in_fee is None:
        candidate.check_in_fee = property_record.check_in_fee
    if candidate.team_payment is None:
        candidate.team_payment = property_record.team_payment

    candidate.cleaning_fee = _money(candidate.cleaning_fee)
    candidate.check_in_fee = _money(candidate.check_in_fee)
    candidate.team_payment = _money(candidate.team_payment)
    candidate.platform_fee = _money(candidate.platform_fee)
    candidate.commission = _money(total * Decimal(property_record.commission) / Decimal(100))

    candidate.net_amount = total - (
        candidate.cleaning_fee
        + candidate.check_in_fee
        + candidate.commission
        + candidate.team_payment
        + candidate.platform_fee
    )
