"""Unit tests for structured reservation extraction."""

import hashlib
import json
from decimal import Decimal

import pytest

from app.prompts.reservation_prompts import PROMPT_VERSION, SCHEMA_VERSION
from app.services.ingestion.models import DocumentType
from app.services.ingestion.reservation_extractor import (
    ReservationExtractor,
    coerce_candidate,
    has_required_fields,
)
from app.utils.exceptions import APIClientError, APITimeoutError


def model_response(records, preamble="", trailer="") -> str:
    """Render records the way the model answers: JSON array then sentinel."""
    return f"{preamble}{json.dumps(records)}\nEND_OF_JSON\n{trailer}"


class TestBuildPrompt:
    """Tests for prompt construction."""

    def test_prompt_embeds_schema_text_and_sentinel(self, mock_llm_client):
        """Test that the prompt carries versions, schema keys, document text and sentinel."""
        extractor = ReservationExtractor(mock_llm_client)

        prompt = extractor.build_prompt("Guest: Maria Santos", DocumentType.CONTROL_FILE)

        assert f"v{PROMPT_VERSION}" in prompt
        assert f"schema_version: {SCHEMA_VERSION}" in prompt
        assert "END_OF_JSON" in prompt
        assert "Guest: Maria Santos" in prompt
        assert "CONTROL FILE" in prompt
        assert prompt.index('"check_in_date"') < prompt.index('"needs_review"')

    def test_prompt_tolerates_braces_in_document_text(self, mock_llm_client):
        """Test that document text containing braces is embedded verbatim."""
        extractor = ReservationExtractor(mock_llm_client)

        prompt = extractor.build_prompt("total {EUR} 450", DocumentType.UNKNOWN)

        assert "total {EUR} 450" in prompt


class TestExtractReservations:
    """Tests for the model call, cleanup and candidate filtering."""

    @pytest.mark.asyncio
    async def test_booking_pdf_dates_are_normalised(self, mock_llm_client):
        """Test the single-PDF scenario: DD/MM/YYYY dates become ISO and nights are derived."""
        mock_llm_client.generate_content.return_value = model_response(
            [
                {
                    "check_in_date": "10/06/2025",
                    "check_out_date": "15/06/2025",
                    "guest_name": "Maria Santos",
                    "property_name": "Aroeira I",
                    "phone": "+351 912 345 678",
                    "platform": "airbnb",
                    "total_amount": 450,
                    "confidence": 0.92,
                }
            ]
        )
        extractor = ReservationExtractor(mock_llm_client)

        candidates = await extractor.extract_reservations(
            "Check-in: 10/06/2025\nCheck-out: 15/06/2025\nAroeira I\nMaria Santos",
            DocumentType.CHECK_IN,
        )

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.check_in_date == "2025-06-10"
        assert candidate.check_out_date == "2025-06-15"
        assert candidate.nights == 5
        assert candidate.guest_name == "Maria Santos"
        assert candidate.property_name == "Aroeira I"
        assert candidate.platform == "Airbnb"
        assert candidate.phone == "+351 912345678"
        assert candidate.country == "Portugal"
        assert candidate.country_inferred is True
        assert candidate.total_amount == Decimal("450")
        assert candidate.needs_review is False

    @pytest.mark.asyncio
    async def test_commentary_around_array_is_ignored(self, mock_llm_client):
        """Test that fenced output with commentary before and after still parses."""
        records = [
            {
                "check_in_date": "2025-07-01",
                "check_out_date": "2025-07-04",
                "guest_name": "John Smith",
                "phone": "+44 7700 900123",
            }
        ]
        mock_llm_client.generate_content.return_value = (
            "Here you go:\n```json\n" + json.dumps(records) + "\n```\nEND_OF_JSON\nThanks!"
        )
        extractor = ReservationExtractor(mock_llm_client)

        candidates = await extractor.extract_reservations("text", DocumentType.UNKNOWN)

        assert [c.guest_name for c in candidates] == ["John Smith"]

    @pytest.mark.asyncio
    async def test_records_missing_required_fields_are_dropped(self, mock_llm_client):
        """Test that only objects with guest name and both dates survive."""
        mock_llm_client.generate_content.return_value = model_response(
            [
                {"check_in_date": "2025-06-01", "check_out_date": "2025-06-03"},
                {"guest_name": "No Dates"},
                {"guest_name": "Only In", "check_in_date": "2025-06-01"},
                {"guest_name": "", "check_in_date": "2025-06-01", "check_out_date": "2025-06-02"},
                {"guest_name": "Kept", "check_in_date": "2025-06-01", "check_out_date": "2025-06-02"},
                "not an object",
            ]
        )
        extractor = ReservationExtractor(mock_llm_client)

        candidates = await extractor.extract_reservations("text", DocumentType.UNKNOWN)

        assert [c.guest_name for c in candidates] == ["Kept"]

    @pytest.mark.asyncio
    async def test_sparse_record_gets_typed_defaults(self, mock_llm_client):
        """Test that a record with only the required fields is kept with defaults."""
        mock_llm_client.generate_content.return_value = model_response(
            [{"guest_name": "Ana Costa", "check_in_date": "2025-06-01", "check_out_date": "2025-06-04"}]
        )
        extractor = ReservationExtractor(mock_llm_client)

        (candidate,) = await extractor.extract_reservations("text", DocumentType.UNKNOWN)

        assert candidate.guest_count == 1
        assert candidate.confidence == 0.8
        assert candidate.source_page == 1
        assert candidate.platform == "Other"
        assert candidate.notes == ""
        assert candidate.country == ""
        assert candidate.country_inferred is False
        assert candidate.total_amount == Decimal("0")
        # No phone is a critical gap
        assert candidate.needs_review is True

    @pytest.mark.asyncio
    async def test_malformed_output_returns_empty_list(self, mock_llm_client):
        """Test that unparseable model output degrades to no candidates."""
        mock_llm_client.generate_content.return_value = "Sorry, I cannot help with that."
        extractor = ReservationExtractor(mock_llm_client)

        assert await extractor.extract_reservations("text", DocumentType.UNKNOWN) == []

    @pytest.mark.asyncio
    async def test_model_error_returns_empty_list(self, mock_llm_client):
        """Test that a model failure degrades to no candidates."""
        mock_llm_client.generate_content.side_effect = APIClientError("503 from upstream")
        extractor = ReservationExtractor(mock_llm_client)

        assert await extractor.extract_reservations("text", DocumentType.UNKNOWN) == []

    @pytest.mark.asyncio
    async def test_model_timeout_propagates(self, mock_llm_client):
        """Test that a timeout is re-raised for file-level reporting."""
        mock_llm_client.generate_content.side_effect = APITimeoutError("timed out")
        extractor = ReservationExtractor(mock_llm_client)

        with pytest.raises(APITimeoutError):
            await extractor.extract_reservations("text", DocumentType.UNKNOWN)


class TestCoerceCandidate:
    """Tests for field coercion and post-hoc review rules."""

    def test_reversed_dates_force_review(self):
        """Test that check-in after check-out always sets needs_review."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-15",
                "check_out_date": "2025-06-10",
                "phone": "+351 912345678",
                "nights": 5,
                "needs_review": False,
                "confidence": 0.99,
            }
        )

        assert candidate.needs_review is True
        assert candidate.nights == 5

    def test_unparseable_date_forces_review_and_is_kept(self):
        """Test that an unknown date notation is kept verbatim for review."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "early June",
                "check_out_date": "2025-06-10",
                "phone": "+351 912345678",
            }
        )

        assert candidate.check_in_date == "early June"
        assert candidate.needs_review is True

    def test_low_confidence_forces_review(self):
        """Test that confidence below the threshold sets needs_review."""
        raw = {
            "guest_name": "Maria Santos",
            "check_in_date": "2025-06-10",
            "check_out_date": "2025-06-12",
            "phone": "+351 912345678",
            "confidence": "0.2",
        }

        assert coerce_candidate(raw).needs_review is True
        assert coerce_candidate({**raw, "confidence": 0.9}).needs_review is False

    def test_numeric_and_boolean_coercion(self):
        """Test that strings are coerced to numbers and booleans with fallbacks."""
        candidate = coerce_candidate(
            {
                "guest_name": "Rui Almeida",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-12",
                "guest_count": "3",
                "source_page": "two",
                "country_inferred": "yes",
                "total_amount": "€ 1.234,50",
                "country": "Spain",
            }
        )

        assert candidate.guest_count == 3
        assert candidate.source_page == 1
        assert candidate.country_inferred is True
        assert candidate.total_amount == Decimal("1234.50")
        assert candidate.country == "Spain"

    def test_portuguese_and_camel_case_keys_are_accepted(self):
        """Test alias keys used by older prompts and clients."""
        candidate = coerce_candidate(
            {
                "nome": "Joana Reis",
                "data_entrada": "01-08-2025",
                "checkOutDate": "2025-08-03",
                "telefone": "0034 612 345 678",
                "site": "Booking",
                "hospedes": 4,
            }
        )

        assert candidate.guest_name == "Joana Reis"
        assert candidate.check_in_date == "2025-08-01"
        assert candidate.check_out_date == "2025-08-03"
        assert candidate.phone == "+34 612345678"
        assert candidate.country == "Spain"
        assert candidate.platform == "Booking.com"
        assert candidate.guest_count == 4

    def test_reservation_id_is_content_hash(self):
        """Test that a missing reservation id is derived from name, check-in and platform."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-15",
                "platform": "Vrbo",
            }
        )

        expected = hashlib.sha1("Maria Santos2025-06-10Vrbo".encode("utf-8")).hexdigest()
        assert candidate.reservation_id == expected

    def test_unknown_platform_maps_to_other(self):
        """Test that platforms outside the known set become Other."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-15",
                "platform": "Expedia",
            }
        )

        assert candidate.platform == "Other"

    def test_has_required_fields(self):
        """Test the required-field predicate."""
        assert has_required_fields(
            {"guest_name": "A", "check_in_date": "2025-01-01", "check_out_date": "2025-01-02"}
        )
        assert not has_required_fields({"guest_name": "A", "check_in_date": "2025-01-01"})
        assert not has_required_fields(
            {"guest_name": "   ", "check_in_date": "2025-01-01", "check_out_date": "2025-01-02"}
        )

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "inf", "NaN"])
    def test_non_finite_numbers_fall_back_to_defaults(self, value):
        """Test that non-finite numbers coerce to the field defaults."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-15",
                "phone": "+351 912345678",
                "guest_count": value,
                "source_page": value,
                "confidence": value,
                "total_amount": value,
            }
        )

        assert candidate.guest_count == 1
        assert candidate.source_page == 1
        assert candidate.confidence == 0.8
        assert candidate.total_amount == Decimal("0")

    def test_nan_confidence_is_not_trusted(self):
        """Test that a NaN confidence takes the default and never bypasses the review check."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-15",
                "phone": "+351 912345678",
                "confidence": float("nan"),
            },
            review_confidence_threshold=0.9,
        )

        assert candidate.confidence == 0.8
        assert candidate.needs_review is True


class TestNonFiniteModelOutput:
    """Tests for JSON numbers that decode to infinity or NaN."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["1e999", "Infinity", "NaN", "-Infinity"])
    async def test_extraction_survives_non_finite_numbers(self, mock_llm_client, literal):
        """Test that a non-finite guest count or total still yields a candidate."""
        mock_llm_client.generate_content.return_value = (
            '[{"guest_name": "Maria Santos", "check_in_date": "2025-06-10", '
            f'"check_out_date": "2025-06-15", "guest_count": {literal}, '
            f'"total_amount": {literal}, "nights": {literal}}}]\nEND_OF_JSON'
        )
        extractor = ReservationExtractor(mock_llm_client)

        candidates = await extractor.extract_reservations("text", DocumentType.CHECK_IN)

        assert len(candidates) == 1
        assert candidates[0].guest_count == 1
        assert candidates[0].nights == 5
        assert candidates[0].total_amount == Decimal("0")

    def test_overflowing_count_string(self):
        """Test that a count too large for a float falls back to the default."""
        candidate = coerce_candidate(
            {
                "guest_name": "Maria Santos",
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-15",
                "guest_count": "1e999",
            }
        )

        assert candidate.guest_count == 1
