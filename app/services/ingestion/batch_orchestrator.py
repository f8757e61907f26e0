"""Batch orchestration of the reservation ingestion pipeline.

Files are processed one after another; a failing file becomes a per-file
error entry and never stops its siblings. Candidates from all files are then
resolved, priced, validated, checked for duplicates and persisted. Candidates
sharing a property are persisted sequentially so each duplicate check sees
the reservations saved before it; different properties run concurrently.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.config import settings
from app.repositories.property_repository import PropertyRepository
from app.repositories.reservation_repository import ReservationRepository
from app.services.ingestion.document_classifier import classify_document
from app.services.ingestion.duplicate_detector import DuplicateDetector
from app.services.ingestion.fee_calculator import apply_property_fees
from app.services.ingestion.field_normalization import coerce_int, coerce_str, parse_iso_date
from app.services.ingestion.models import (
    BatchResult,
    BatchSummary,
    CandidateReservation,
    DocumentType,
    ExistingReservation,
    FileProcessingResult,
    FileResult,
    ItemOutcome,
    PropertyMatch,
    PropertyRecord,
    RawDocument,
    ReservationOutcome,
)
from app.services.ingestion.property_resolver import PropertyResolver
from app.services.ingestion.reservation_extractor import (
    ReservationExtractor,
    coerce_candidate,
    has_required_fields,
)
from app.services.ingestion.reservation_validator import ReservationValidator
from app.services.ingestion.text_extractor import TextExtractor
from app.utils.exceptions import (
    ConfigurationError,
    ReservationIngestError,
    ReservationStoreError,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

NO_TEXT_ERROR = "Could not extract text from file"
PROPERTY_NOT_FOUND = "Property not found"
NO_RESERVATIONS_MESSAGE = "No reservations could be extracted from the uploaded files"
MISSING_FIELDS_ERROR = "Missing guest name, check-in date or check-out date"
AMOUNT_OUT_OF_RANGE_ERROR = "Total amount is out of range"

OCR_SOURCE = "ocr"


class BatchOrchestrator:
    """Drives extraction and persistence across one or many uploaded files.

    Attributes:
        text_extractor: PDF/image text extractor
        reservation_extractor: Model-backed structured extractor
        property_repository: Property catalog
        reservation_repository: Reservation store
        resolver: Property name resolver
        validator: Field-level validator
        detector: Duplicate detector
        persist_concurrency: Property groups persisted at the same time
        name_similarity_threshold: Duplicate guest-name similarity below which
            a warning is attached
    """

    def __init__(
        self,
        text_extractor: TextExtractor,
        reservation_extractor: Optional[ReservationExtractor],
        property_repository: PropertyRepository,
        reservation_repository: ReservationRepository,
        resolver: Optional[PropertyResolver] = None,
        validator: Optional[ReservationValidator] = None,
        detector: Optional[DuplicateDetector] = None,
        persist_concurrency: int = settings.persist_concurrency,
        name_similarity_threshold: float = settings.duplicate_name_similarity_threshold,
    ):
        self.text_extractor = text_extractor
        self.reservation_extractor = reservation_extractor
        self.property_repository = property_repository
        self.reservation_repository = reservation_repository
        self.resolver = resolver or PropertyResolver()
        self.validator = validator or ReservationValidator()
        self.detector = detector or DuplicateDetector()
        self.persist_concurrency = max(1, persist_concurrency)
        self.name_similarity_threshold = name_similarity_threshold

    async def process_file(self, document: RawDocument) -> FileProcessingResult:
        """Extract text, classify and extract candidates from one file.

        Every failure is returned as an unsuccessful result, never raised.

        Args:
            document: Uploaded document

        Returns:
            FileProcessingResult; candidates are tagged with the filename and
            detected document type
        """
        document_type = DocumentType.UNKNOWN
        try:
            extracted = await self.text_extractor.extract(document)
            text = extracted.text.strip()
            if not text:
                return FileProcessingResult(success=False, type=document_type, error=NO_TEXT_ERROR)

            if self.reservation_extractor is None:
                raise ConfigurationError(
                    "Reservation extraction requires a configured Gemini client"
                )

            document_type = classify_document(text)
            candidates = await self.reservation_extractor.extract_reservations(text, document_type)
        except ReservationIngestError as e:
            LOGGER.warning(
                "File processing failed",
                extra={"file_name": document.filename, "error": str(e)},
            )
            return FileProcessingResult(success=False, type=document_type, error=str(e))

        for candidate in candidates:
            candidate.source_file = document.filename
            candidate.document_type = document_type

        LOGGER.info(
            "File processed",
            extra={
                "file_name": document.filename,
                "document_type": document_type.value,
                "reservations": len(candidates),
            },
        )
        return FileProcessingResult(
            success=True,
            type=document_type,
            reservations=candidates,
            extracted_text=extracted.text,
        )

    async def process_batch(self, documents: Sequence[RawDocument]) -> BatchResult:
        """Process files in order and auto-persist the resulting candidates.

        Args:
            documents: Uploaded documents

        Returns:
            BatchResult with one file entry per document; ``success`` is False
            when no file yielded a candidate
        """
        result = BatchResult()

        for document in documents:
            try:
                processed = await self.process_file(document)
            except Exception as e:
                LOGGER.error(
                    "Unexpected error while processing file",
                    exc_info=True,
                    extra={"file_name": document.filename},
                )
                processed = FileProcessingResult(
                    success=False, type=DocumentType.UNKNOWN, error=str(e)
                )

            result.file_results.append(
                FileResult(
                    filename=document.filename,
                    type=processed.type,
                    reservations=len(processed.reservations),
                    success=processed.success,
                    error=processed.error,
                )
            )
            result.reservations.extend(processed.reservations)

        if not result.reservations:
            result.message = NO_RESERVATIONS_MESSAGE
            LOGGER.warning(
                "Batch produced no reservations",
                extra={"files": len(documents)},
            )
            return result

        outcomes, saved_count, save_errors = await self.persist_candidates(result.reservations)
        result.outcomes = outcomes
        result.saved_count = saved_count
        result.save_errors = save_errors
        result.summary = BatchSummary.from_outcomes(outcomes)
        result.message = (
            f"{result.total_reservations} reservation(s) processed and "
            f"{saved_count} saved successfully"
        )

        LOGGER.info(
            "Batch completed",
            extra={"files": len(documents), **result.summary.to_dict()},
        )
        return result

    async def persist_candidates(
        self,
        candidates: Sequence[CandidateReservation],
    ) -> Tuple[List[ItemOutcome], int, List[str]]:
        """Resolve, price, validate, deduplicate and persist candidates.

        Only resolved, valid and non-duplicate candidates are written.

        Args:
            candidates: Candidates in extraction order

        Returns:
            (per-item outcomes in input order, saved count, save errors)
        """
        outcomes: List[Optional[ItemOutcome]] = [None] * len(candidates)

        try:
            catalog = await self.property_repository.list_properties()
        except ReservationStoreError as e:
            LOGGER.error("Property catalog unavailable", extra={"error": str(e)})
            for index, candidate in enumerate(candidates):
                outcomes[index] = self._finish(candidate, ReservationOutcome.SAVE_FAILED, [str(e)])
            return self._collect(outcomes)

        groups: Dict[int, List[int]] = {}
        for index, candidate in enumerate(candidates):
            prepared = self._prepare(candidate, catalog)
            if prepared is not None:
                outcomes[index] = prepared
                continue
            groups.setdefault(candidate.property_id, []).append(index)

        semaphore = asyncio.Semaphore(self.persist_concurrency)

        async def persist_group(property_id: int, indexes: List[int]) -> None:
            async with semaphore:
                try:
                    existing = await self.reservation_repository.list_reservations_for_property(
                        property_id
                    )
                except ReservationStoreError as e:
                    for index in indexes:
                        outcomes[index] = self._finish(
                            candidates[index], ReservationOutcome.SAVE_FAILED, [str(e)]
                        )
                    return
                for index in indexes:
                    outcomes[index] = await self._persist_one(candidates[index], existing)

        await asyncio.gather(
            *(persist_group(property_id, indexes) for property_id, indexes in groups.items())
        )
        return self._collect(outcomes)

    async def save_reviewed(
        self,
        records: Sequence[Dict[str, Any]],
    ) -> Tuple[List[ItemOutcome], int, List[str]]:
        """Persist reservations an operator has reviewed.

        Records are coerced exactly like model output. A client-supplied
        property id takes precedence over name resolution.

        Args:
            records: Reservation payloads previously returned by the service

        Returns:
            (outcomes, saved count, save errors), as ``persist_candidates``
        """
        candidates: List[CandidateReservation] = []
        rejected: List[str] = []
        for raw in records:
            if not has_required_fields(raw):
                label = coerce_str(raw.get("guest_name") or raw.get("guestName")) or "unknown"
                rejected.append(f"{label}: {MISSING_FIELDS_ERROR}")
                continue
            candidate = coerce_candidate(raw)
            candidate.property_id = (
                coerce_int(raw.get("property_id") or raw.get("propertyId"), 0) or None
            )
            candidate.source_file = coerce_str(raw.get("source_file") or raw.get("source"))
            candidates.append(candidate)

        if not candidates:
            return [], 0, rejected

        outcomes, saved_count, save_errors = await self.persist_candidates(candidates)
        return outcomes, saved_count, rejected + save_errors

    def _prepare(
        self,
        candidate: CandidateReservation,
        catalog: Sequence[PropertyRecord],
    ) -> Optional[ItemOutcome]:
        """Resolve, price and validate a candidate.

        Returns a terminal outcome when the candidate cannot be persisted,
        or None when it is ready for the duplicate check.
        """
        match = self._match_property(candidate, catalog)
        if match is None:
            return self._finish(candidate, ReservationOutcome.UNRESOLVED, [PROPERTY_NOT_FOUND])

        candidate.property_id = match.property.id
        candidate.property_match_score = match.score
        try:
            apply_property_fees(candidate, match.property)
        except ArithmeticError:
            LOGGER.warning(
                "Reservation amounts could not be priced",
                extra={"guest_name": candidate.guest_name, "total_amount": str(candidate.total_amount)},
            )
            candidate.validation_errors = [AMOUNT_OUT_OF_RANGE_ERROR]
            return self._finish(candidate, ReservationOutcome.INVALID, [AMOUNT_OUT_OF_RANGE_ERROR])

        validation = self.validator.validate(candidate)
        candidate.validation_errors = list(validation.errors)
        candidate.validation_warnings.extend(validation.warnings)
        if not validation.is_valid:
            return self._finish(candidate, ReservationOutcome.INVALID, list(validation.errors))
        return None

    def _match_property(
        self,
        candidate: CandidateReservation,
        catalog: Sequence[PropertyRecord],
    ) -> Optional[PropertyMatch]:
        if candidate.property_id is not None:
            for record in catalog:
                if record.id == candidate.property_id:
                    return PropertyMatch(property=record, score=100.0)
        return self.resolver.best_match(candidate.property_name, catalog)

    async def _persist_one(
        self,
        candidate: CandidateReservation,
        existing: List[ExistingReservation],
    ) -> ItemOutcome:
        duplicate = self.detector.check(candidate, existing)
        if duplicate is not None:
            candidate.duplicate_of = duplicate.existing
            if duplicate.name_similarity < self.name_similarity_threshold:
                candidate.needs_review = True
                candidate.validation_warnings.append(
                    f"Guest name differs from overlapping reservation #{duplicate.existing.id} "
                    f"(similarity {duplicate.name_similarity:.0f}); possible double booking"
                )
            return self._finish(
                candidate,
                ReservationOutcome.DUPLICATE,
                [
                    f"Overlaps reservation #{duplicate.existing.id} "
                    f"({duplicate.existing.check_in_date.isoformat()} to "
                    f"{duplicate.existing.check_out_date.isoformat()}, "
                    f"total {duplicate.existing.total_amount})"
                ],
            )

        try:
            stored = await self.reservation_repository.create_reservation(
                self._to_payload(candidate)
            )
        except ReservationStoreError as e:
            LOGGER.warning(
                "Reservation save failed",
                extra={"guest_name": candidate.guest_name, "error": str(e)},
            )
            return self._finish(candidate, ReservationOutcome.SAVE_FAILED, [str(e)])

        existing.append(stored)
        candidate.saved_reservation_id = stored.id
        return self._finish(candidate, ReservationOutcome.PERSISTED)

    @staticmethod
    def _to_payload(candidate: CandidateReservation) -> Dict[str, Any]:
        """Insert payload; schema validation happens in the repository."""
        return dict(
            property_id=candidate.property_id,
            guest_name=candidate.guest_name,
            guest_email=candidate.email or None,
            guest_phone=candidate.phone or None,
            check_in_date=parse_iso_date(candidate.check_in_date),
            check_out_date=parse_iso_date(candidate.check_out_date),
            num_guests=candidate.guest_count,
            total_amount=candidate.total_amount,
            status="pending" if candidate.needs_review else "confirmed",
            platform=candidate.platform,
            platform_fee=candidate.platform_fee,
            cleaning_fee=candidate.cleaning_fee,
            check_in_fee=candidate.check_in_fee,
            commission_fee=candidate.commission,
            team_payment=candidate.team_payment,
            net_amount=candidate.net_amount,
            notes=candidate.notes or None,
            source=candidate.source_file or OCR_SOURCE,
        )

    @staticmethod
    def _finish(
        candidate: CandidateReservation,
        outcome: ReservationOutcome,
        errors: Optional[List[str]] = None,
    ) -> ItemOutcome:
        candidate.status = outcome
        return ItemOutcome(candidate=candidate, outcome=outcome, errors=errors or [])

    @staticmethod
    def _collect(
        outcomes: List[Optional[ItemOutcome]],
    ) -> Tuple[List[ItemOutcome], int, List[str]]:
        """Saved count and operator-facing save errors, in input order."""
        items = [item for item in outcomes if item is not None]
        saved_count = sum(1 for item in items if item.outcome == ReservationOutcome.PERSISTED)
        save_errors = [
            f"{item.label}: {'; '.join(item.errors)}"
            for item in items
            if item.outcome
            in (
                ReservationOutcome.UNRESOLVED,
                ReservationOutcome.INVALID,
                ReservationOutcome.SAVE_FAILED,
            )
        ]
        return items, saved_count, save_errors
