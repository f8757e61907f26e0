"""Duplicate detection against existing reservations of the same property.

Date-range overlap on the same property decides a duplicate. Guest-name
similarity is computed with rapidfuzz and reported alongside the match, but
never overrides the overlap decision.
"""

from datetime import date
from typing import Optional, Sequence

from rapidfuzz import fuzz, utils

from app.services.ingestion.field_normalization import parse_iso_date
from app.services.ingestion.models import (
    CandidateReservation,
    DuplicateMatch,
    ExistingReservation,
)


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Whether two inclusive date ranges share at least one day."""
    return b_start <= a_end and b_end >= a_start


def name_similarity(first: str, second: str) -> float:
    """Order-insensitive similarity (0-100) of two guest names."""
    return fuzz.token_sort_ratio(first or "", second or "", processor=utils.default_process)


def find_duplicate(
    candidate: CandidateReservation,
    existing: Sequence[ExistingReservation],
) -> Optional[ExistingReservation]:
    """First existing reservation on the same property whose stay overlaps.

    Candidates without a resolved property or with unparseable dates never
    match anything.
    """
    if candidate.property_id is None:
        return None
    check_in = parse_iso_date(candidate.check_in_date)
    check_out = parse_iso_date(candidate.check_out_date)
    if check_in is None or check_out is None:
        return None

    for reservation in existing:
        if reservation.property_id != candidate.property_id:
            continue
        if overlaps(check_in, check_out, reservation.check_in_date, reservation.check_out_date):
            return reservation
    return None


class DuplicateDetector:
    """Wraps ``find_duplicate`` and attaches the guest-name similarity."""

    def check(
        self,
        candidate: CandidateReservation,
        existing: Sequence[ExistingReservation],
    ) -> Optional[DuplicateMatch]:
        duplicate = find_duplicate(candidate, existing)
        if duplicate is None:
            return None
        return DuplicateMatch(
            existing=duplicate,
            name_similarity=name_similarity(candidate.guest_name, duplicate.guest_name),
        )
