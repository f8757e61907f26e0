"""Field-level validation of candidate reservations."""

from decimal import Decimal

from app.config import settings
from app.services.ingestion.field_normalization import parse_iso_date
from app.services.ingestion.models import CandidateReservation, ValidationResult

MIN_GUEST_NAME_LENGTH = 3
MIN_GUEST_COUNT = 1


class ReservationValidator:
    """Checks required fields, date ordering, stay length and numeric bounds.

    Every rule is evaluated independently. Stay length beyond ``max_stay_nights``
    is a warning only; all other failures are errors and make the candidate
    invalid.
    """

    def __init__(
        self,
        max_stay_nights: int = settings.max_stay_nights,
        max_guest_count: int = settings.max_guest_count,
    ):
        self.max_stay_nights = max_stay_nights
        self.max_guest_count = max_guest_count

    def validate(self, candidate: CandidateReservation) -> ValidationResult:
        """Validate a candidate.

        Args:
            candidate: Candidate reservation

        Returns:
            ValidationResult; ``is_valid`` is True when ``errors`` is empty
        """
        result = ValidationResult()

        guest_name = (candidate.guest_name or "").strip()
        if len(guest_name) < MIN_GUEST_NAME_LENGTH:
            result.errors.append(
                f"Guest name must have at least {MIN_GUEST_NAME_LENGTH} characters"
            )

        check_in = parse_iso_date(candidate.check_in_date)
        check_out = parse_iso_date(candidate.check_out_date)
        if check_in is None:
            result.errors.append(f"Invalid check-in date: '{candidate.check_in_date}'")
        if check_out is None:
            result.errors.append(f"Invalid check-out date: '{candidate.check_out_date}'")

        if check_in is not None and check_out is not None:
            if check_in > check_out:
                result.errors.append("Check-in date must be on or before check-out date")
            elif (check_out - check_in).days > self.max_stay_nights:
                result.warnings.append(
                    f"Stay of {(check_out - check_in).days} nights exceeds "
                    f"{self.max_stay_nights} nights"
                )

        guest_count = candidate.guest_count
        if (
            isinstance(guest_count, bool)
            or not isinstance(guest_count, int)
            or not MIN_GUEST_COUNT <= guest_count <= self.max_guest_count
        ):
            result.errors.append(
                f"Guest count must be between {MIN_GUEST_COUNT} and "
                f"{self.max_guest_count} (got {guest_count})"
            )

        try:
            total_amount = Decimal(str(candidate.total_amount))
        except ArithmeticError:
            total_amount = Decimal("0")
        if not total_amount.is_finite() or total_amount <= 0:
            result.errors.append("Total amount must be a positive number")

        return result
