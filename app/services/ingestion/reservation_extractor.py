"""Structured reservation extraction with a generative model.

The model is asked for a sentinel-terminated JSON array following a fixed
schema. Nothing in the response is trusted: every object is coerced field by
field and re-checked before it becomes a ``CandidateReservation``.
"""

import json
from typing import Any, Dict, List

from app.config import settings
from app.core.gemini_client import GeminiClient
from app.prompts.reservation_prompts import (
    DOCUMENT_TYPE_HINTS,
    KNOWN_PLATFORMS,
    PROMPT_VERSION,
    RESERVATION_EXTRACTION_PROMPT,
    RESERVATION_SCHEMA_FIELDS,
    SCHEMA_VERSION,
)
from app.services.ingestion.field_normalization import (
    coerce_bool,
    coerce_decimal,
    coerce_float,
    coerce_int,
    coerce_str,
    compute_reservation_id,
    infer_country,
    normalize_date,
    normalize_phone,
    normalize_platform,
    parse_iso_date,
)
from app.services.ingestion.models import CandidateReservation, DocumentType
from app.utils.exceptions import APIClientError, APITimeoutError
from app.utils.json_parser import parse_json_array
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_FIELDS = ("guest_name", "check_in_date", "check_out_date")

# Keys accepted for each field, in lookup order: schema key, legacy camelCase, Portuguese.
FIELD_ALIASES: Dict[str, tuple] = {
    "check_in_date": ("check_in_date", "checkInDate", "check_in", "data_entrada"),
    "check_out_date": ("check_out_date", "checkOutDate", "check_out", "data_saida"),
    "nights": ("nights", "noites"),
    "guest_name": ("guest_name", "guestName", "nome"),
    "guest_count": ("guest_count", "guestCount", "hospedes"),
    "country": ("country", "pais"),
    "country_inferred": ("country_inferred", "countryInferred", "pais_inferido"),
    "platform": ("platform", "site"),
    "phone": ("phone", "guestPhone", "telefone"),
    "notes": ("notes", "observacoes"),
    "timezone_source": ("timezone_source", "timezoneSource"),
    "reservation_id": ("reservation_id", "reservationId", "id_reserva"),
    "confidence": ("confidence", "confianca"),
    "source_page": ("source_page", "sourcePage", "pagina"),
    "needs_review": ("needs_review", "needsReview"),
    "property_name": ("property_name", "propertyName", "propriedade"),
    "total_amount": ("total_amount", "totalAmount", "valor_total"),
    "email": ("email", "guestEmail"),
}


def _pick(raw: Dict[str, Any], field_name: str) -> Any:
    """Return the first non-empty value among a field's accepted keys."""
    for key in FIELD_ALIASES[field_name]:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def has_required_fields(raw: Dict[str, Any]) -> bool:
    """Whether an object carries the three fields no reservation can lack."""
    return all(coerce_str(_pick(raw, name)) for name in REQUIRED_FIELDS)


def coerce_candidate(
    raw: Dict[str, Any],
    review_confidence_threshold: float = settings.review_confidence_threshold,
) -> CandidateReservation:
    """Build a candidate from an untyped model object.

    Numbers fall back to defaults when they cannot be parsed, booleans use
    truthy coercion and strings default to empty. Dates, platform and phone
    are normalised, and ``needs_review`` is forced on whenever the record
    fails a post-hoc check the model was asked to perform itself.

    Args:
        raw: One object from the parsed model response
        review_confidence_threshold: Confidence below which review is forced

    Returns:
        CandidateReservation
    """
    guest_name = coerce_str(_pick(raw, "guest_name"))
    check_in_date = normalize_date(_pick(raw, "check_in_date"))
    check_out_date = normalize_date(_pick(raw, "check_out_date"))
    platform = normalize_platform(_pick(raw, "platform"))
    phone = normalize_phone(_pick(raw, "phone"))
    confidence = min(max(coerce_float(_pick(raw, "confidence"), 0.8), 0.0), 1.0)
    needs_review = coerce_bool(_pick(raw, "needs_review"))

    nights = max(coerce_int(_pick(raw, "nights"), 0), 0)
    check_in = parse_iso_date(check_in_date)
    check_out = parse_iso_date(check_out_date)
    if check_in is None or check_out is None:
        needs_review = True
    elif check_in > check_out:
        needs_review = True
    else:
        nights = (check_out - check_in).days

    if not phone:
        needs_review = True
    if confidence < review_confidence_threshold:
        needs_review = True

    country = coerce_str(_pick(raw, "country"))
    country_inferred = coerce_bool(_pick(raw, "country_inferred"))
    if not country and phone:
        inferred = infer_country(phone)
        if inferred:
            country = inferred
            country_inferred = True

    reservation_id = coerce_str(_pick(raw, "reservation_id"))
    if not reservation_id:
        reservation_id = compute_reservation_id(guest_name, check_in_date, platform)

    return CandidateReservation(
        check_in_date=check_in_date,
        check_out_date=check_out_date,
        guest_name=guest_name,
        nights=nights,
        guest_count=coerce_int(_pick(raw, "guest_count"), 1),
        country=country,
        country_inferred=country_inferred,
        platform=platform,
        phone=phone,
        notes=coerce_str(_pick(raw, "notes")),
        timezone_source=coerce_str(_pick(raw, "timezone_source")),
        reservation_id=reservation_id,
        confidence=confidence,
        source_page=coerce_int(_pick(raw, "source_page"), 1),
        needs_review=needs_review,
        property_name=coerce_str(_pick(raw, "property_name")),
        total_amount=coerce_decimal(_pick(raw, "total_amount")),
        email=coerce_str(_pick(raw, "email")),
    )


class ReservationExtractor:
    """Turns document text into candidate reservations via the Gemini model.

    Attributes:
        llm_client: Shared Gemini client
        sentinel: Marker line terminating the model's JSON payload
        review_confidence_threshold: Confidence below which review is forced
    """

    def __init__(
        self,
        llm_client: GeminiClient,
        sentinel: str = settings.extraction_sentinel,
        review_confidence_threshold: float = settings.review_confidence_threshold,
    ):
        self.llm_client = llm_client
        self.sentinel = sentinel
        self.review_confidence_threshold = review_confidence_threshold

    def build_prompt(self, text: str, document_type: DocumentType) -> str:
        """Render the versioned extraction prompt for one document."""
        schema = json.dumps(dict(RESERVATION_SCHEMA_FIELDS), indent=2, ensure_ascii=False)
        hint = DOCUMENT_TYPE_HINTS.get(
            document_type.value, DOCUMENT_TYPE_HINTS[DocumentType.UNKNOWN.value]
        )
        return RESERVATION_EXTRACTION_PROMPT.format(
            prompt_version=PROMPT_VERSION,
            schema_version=SCHEMA_VERSION,
            confidence_threshold=self.review_confidence_threshold,
            sentinel=self.sentinel,
            schema=schema,
            document_hint=hint,
            platforms=", ".join(KNOWN_PLATFORMS),
            text=text,
        )

    async def extract_reservations(
        self,
        text: str,
        document_type: DocumentType = DocumentType.UNKNOWN,
    ) -> List[CandidateReservation]:
        """Extract candidate reservations from document text.

        Malformed output and model errors yield an empty list. A model
        timeout is re-raised so the caller can report it against the file.

        Args:
            text: Raw document text
            document_type: Classified type, used as a prompt hint

        Returns:
            Candidates carrying guest name, check-in and check-out dates

        Raises:
            APITimeoutError: If the model call timed out
        """
        prompt = self.build_prompt(text, document_type)

        LOGGER.info(
            "Requesting reservation extraction",
            extra={
                "document_type": document_type.value,
                "text_length": len(text),
                "prompt_version": PROMPT_VERSION,
            },
        )

        try:
            response = await self.llm_client.generate_content(prompt)
        except APITimeoutError:
            raise
        except APIClientError as e:
            LOGGER.error(f"Reservation extraction call failed: {e}")
            return []

        records = parse_json_array(response, self.sentinel)
        if records is None:
            LOGGER.warning(
                "Model response is not a JSON array",
                extra={"response": (response or "")[:500]},
            )
            return []

        candidates: List[CandidateReservation] = []
        dropped = 0
        for raw in records:
            if not isinstance(raw, dict) or not has_required_fields(raw):
                dropped += 1
                continue
            candidates.append(coerce_candidate(raw, self.review_confidence_threshold))

        LOGGER.info(
            "Reservation extraction completed",
            extra={
                "parsed": len(records),
                "candidates": len(candidates),
                "dropped": dropped,
                "needs_review": sum(1 for c in candidates if c.needs_review),
            },
        )
        return candidates
