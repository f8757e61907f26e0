"""Domain types shared by the reservation ingestion pipeline.

These are plain dataclasses rather than ORM rows: candidates are ephemeral
and only become store records through ``ReservationRepository``.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class DocumentType(str, Enum):
    """Kind of booking document, detected once per file."""

    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"
    CONTROL_FILE = "control-file"
    UNKNOWN = "unknown"


class ReservationOutcome(str, Enum):
    """Terminal state of a candidate after batch processing."""

    PERSISTED = "persisted"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    UNRESOLVED = "unresolved"
    SAVE_FAILED = "save_failed"


@dataclass
class RawDocument:
    """Uploaded file awaiting text extraction.

    Attributes:
        content: Binary content, if held in memory
        media_type: Declared media type
        filename: Original filename
        path: Temporary file path, used when no in-memory buffer is available
    """
    content: Optional[bytes]
    media_type: str
    filename: str
    path: Optional[Path] = None


@dataclass
class ExtractedText:
    """Plain text produced by the text extractor."""
    text: str
    source_page: int = 1
    pages: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PropertyRecord:
    """Read-only view of a catalog property and its default fee schedule."""
    id: int
    name: str
    cleaning_cost: Decimal = Decimal("0")
    check_in_fee: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    team_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class ExistingReservation:
    """Read-only view of a stored reservation used for duplicate detection."""
    id: int
    property_id: int
    guest_name: str
    check_in_date: date
    check_out_date: date
    status: str = "confirmed"
    total_amount: Decimal = Decimal("0")
    net_amount: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "propertyId": self.property_id,
            "guestName": self.guest_name,
            "checkInDate": self.check_in_date.isoformat(),
            "checkOutDate": self.check_out_date.isoformat(),
            "status": self.status,
            "totalAmount": str(self.total_amount),
            "netAmount": str(self.net_amount),
        }



def _money_str(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None

@dataclass
class CandidateReservation:
    """Unpersisted booking record extracted from a document (schema v1.4).

    Dates stay ISO strings: the model may return unparseable values and those
    must be kept for review rather than dropped.
    """
    check_in_date: str
    check_out_date: str
    guest_name: str
    nights: int = 0
    guest_count: int = 1
    country: str = ""
    country_inferred: bool = False
    platform: str = "Other"
    phone: str = ""
    notes: str = ""
    timezone_source: str = ""
    reservation_id: str = ""
    confidence: float = 0.8
    source_page: int = 1
    needs_review: bool = False

    property_name: str = ""
    total_amount: Decimal = Decimal("0")
    email: str = ""

    # Derived monetary fields, filled from the resolved property's defaults
    platform_fee: Decimal = Decimal("0")
    cleaning_fee: Optional[Decimal] = None
    check_in_fee: Optional[Decimal] = None
    commission: Decimal = Decimal("0")
    team_payment: Optional[Decimal] = None
    net_amount: Decimal = Decimal("0")

    # Pipeline enrichment
    property_id: Optional[int] = None
    property_match_score: float = 0.0
    source_file: str = ""
    document_type: DocumentType = DocumentType.UNKNOWN
    status: Optional[ReservationOutcome] = None
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    duplicate_of: Optional[ExistingReservation] = None
    saved_reservation_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire payload, including legacy camelCase aliases."""
        return {
            "check_in_date": self.check_in_date,
            "check_out_date": self.check_out_date,
            "nights": self.nights,
            "guest_name": self.guest_name,
            "guest_count": self.guest_count,
            "country": self.country,
            "country_inferred": self.country_inferred,
            "platform": self.platform,
            "phone": self.phone,
            "notes": self.notes,
            "timezone_source": self.timezone_source,
            "reservation_id": self.reservation_id,
            "confidence": self.confidence,
            "source_page": self.source_page,
            "needs_review": self.needs_review,
            "property_name": self.property_name,
            "total_amount": str(self.total_amount),
            "email": self.email,
            "platform_fee": str(self.platform_fee),
            "cleaning_fee": _money_str(self.cleaning_fee),
            "check_in_fee": _money_str(self.check_in_fee),
            "commission": str(self.commission),
            "team_payment": _money_str(self.team_payment),
            "net_amount": str(self.net_amount),
            "property_id": self.property_id,
            "property_match_score": self.property_match_score,
            "source_file": self.source_file,
            "document_type": self.document_type.value,
            "status": self.status.value if self.status else None,
            "validation_errors": list(self.validation_errors),
            "validation_warnings": list(self.validation_warnings),
            "duplicate_of": self.duplicate_of.to_dict() if self.duplicate_of else None,
            "saved_reservation_id": self.saved_reservation_id,
            # Legacy aliases
            "guestName": self.guest_name,
            "propertyName": self.property_name,
            "checkInDate": self.check_in_date,
            "checkOutDate": self.check_out_date,
            "totalAmount": float(self.total_amount),
            "guestCount": self.guest_count,
            "documentType": self.document_type.value,
            "source": self.source_file,
        }


@dataclass
class PropertyMatch:
    """Catalog property selected for an extracted name, with its score (0-100)."""
    property: PropertyRecord
    score: float


@dataclass
class ValidationResult:
    """Outcome of field-level validation.

    Warnings are recorded for operators but never make a candidate invalid.
    """
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class DuplicateMatch:
    """Existing reservation that overlaps a candidate on the same property."""
    existing: ExistingReservation
    name_similarity: float


@dataclass
class ItemOutcome:
    """Per-candidate result of the resolve/validate/dedup/persist stage."""
    candidate: CandidateReservation
    outcome: ReservationOutcome
    errors: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.candidate.guest_name or "unknown"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "guestName": self.label,
            "outcome": self.outcome.value,
            "errors": list(self.errors),
            "propertyId": self.candidate.property_id,
            "reservationId": self.candidate.saved_reservation_id,
            "duplicateOf": (
                self.candidate.duplicate_of.to_dict() if self.candidate.duplicate_of else None
            ),
        }


@dataclass
class FileResult:
    """Per-file outcome within a batch."""
    filename: str
    type: DocumentType
    reservations: int
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "filename": self.filename,
            "type": self.type.value,
            "reservations": self.reservations,
            "success": self.success,
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class FileProcessingResult:
    """Result of extracting candidates from a single file."""
    success: bool
    type: DocumentType
    reservations: List[CandidateReservation] = field(default_factory=list)
    extracted_text: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchSummary:
    """Counts shown to operators after a batch."""
    valid: int = 0
    duplicates: int = 0
    invalid: int = 0
    needs_review: int = 0
    saved: int = 0
    failed: int = 0
    total: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: List[ItemOutcome]) -> "BatchSummary":
        """Aggregate item outcomes into counts."""
        summary = cls(total=len(outcomes))
        for item in outcomes:
            if item.outcome == ReservationOutcome.DUPLICATE:
                summary.duplicates += 1
            elif item.outcome in (ReservationOutcome.INVALID, ReservationOutcome.UNRESOLVED):
                summary.invalid += 1
            else:
                summary.valid += 1

            if item.outcome == ReservationOutcome.PERSISTED:
                summary.saved += 1
            elif item.outcome == ReservationOutcome.SAVE_FAILED:
                summary.failed += 1

            if item.candidate.needs_review:
                summary.needs_review += 1
        return summary

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return {
            "valid": self.valid,
            "duplicates": self.duplicates,
            "invalid": self.invalid,
            "needsReview": self.needs_review,
            "saved": self.saved,
            "failed": self.failed,
            "total": self.total,
        }


@dataclass
class BatchResult:
    """Aggregate result of processing many files."""
    reservations: List[CandidateReservation] = field(default_factory=list)
    file_results: List[FileResult] = field(default_factory=list)
    outcomes: List[ItemOutcome] = field(default_factory=list)
    saved_count: int = 0
    save_errors: List[str] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)
    message: str = ""

    @property
    def success(self) -> bool:
        return bool(self.reservations)

    @property
    def total_reservations(self) -> int:
        return len(self.reservations)
