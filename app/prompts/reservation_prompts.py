# Prompts for booking-document reservation extraction.
# - RESERVATION_EXTRACTION_PROMPT is filled with str.format; the schema block is
#   rendered separately so the template itself holds no literal braces.
# - Bump PROMPT_VERSION whenever the wording changes; SCHEMA_VERSION only when
#   the field list changes.

PROMPT_VERSION = "4.2"
SCHEMA_VERSION = "1.4"

# Fixed key order of every emitted record, with the placeholder value shown to the model.
RESERVATION_SCHEMA_FIELDS = (
    ("check_in_date", "YYYY-MM-DD"),
    ("check_out_date", "YYYY-MM-DD"),
    ("nights", 0),
    ("guest_name", ""),
    ("guest_count", 0),
    ("country", ""),
    ("country_inferred", False),
    ("platform", ""),
    ("phone", ""),
    ("notes", ""),
    ("timezone_source", ""),
    ("reservation_id", ""),
    ("confidence", 0.0),
    ("source_page", 0),
    ("needs_review", False),
    ("property_name", ""),
    ("total_amount", 0.0),
    ("email", ""),
)

KNOWN_PLATFORMS = ("Airbnb", "Booking.com", "Vrbo", "Direct", "Owner")

DOCUMENT_TYPE_HINTS = {
    "check-in": (
        "This document lists ARRIVALS. Every row is a guest checking in; the check-out "
        "date is usually printed on the same row or derivable from the number of nights."
    ),
    "check-out": (
        "This document lists DEPARTURES. Every row is a guest checking out; look for the "
        "matching arrival date on the same row before leaving check_in_date empty."
    ),
    "control-file": (
        "This is a CONTROL FILE: a table of many reservations for one property. The "
        "property name usually appears once in the header; copy it into every record."
    ),
    "unknown": (
        "The document type is unknown. It may be a single booking confirmation or a list."
    ),
}

IMAGE_TRANSCRIPTION_PROMPT = (
    "Transcribe all visible text in this image verbatim. Preserve the reading "
    "order and line breaks of the original layout. Do not summarise, translate "
    "or add commentary."
)

RESERVATION_EXTRACTION_PROMPT = r"""# RESERVATION EXTRACTOR - v{prompt_version} (schema_version: {schema_version})

Persona: You are an ultra-reliable OCR + parsing engine for short-term rental bookings.

ROLE: Receive ANY booking document (image transcription, PDF text or plain text) and
return a structured stream of JSON records following the schema below, applying
smart consolidation, deduplication, confidence scoring and validation of critical fields.

PARAMETERS:
- mode = "json"
- debug = false
- confidence_threshold = {confidence_threshold}

SENTINEL: When you finish, write {sentinel} alone on the last line. Write nothing after it.

OUTPUT: Answer ONLY with a valid UTF-8 JSON array of records, then the sentinel line.

SCHEMA (fixed key order):
{schema}

DOCUMENT CONTEXT:
{document_hint}

PROCESSING STAGES:

STAGE 1 - PRE-OCR: Assume orientation and language (PT, EN, ES, FR, DE) were detected and
the text was binarised. Ignore repeated page headers and footers.

STAGE 2 - SEGMENTATION: Start a new fragment when you find (date AND name) OR
(date AND price/guests). Use a 120-character window to join lines broken by the layout.

STAGE 2.1 - CONSOLIDATION: Merge fragments sharing at least 2 of: similar name,
booking reference, phone, overlapping dates. If a cluster only has an arrival or only a
departure, keep it with needs_review=true.

STAGE 3 - FIELD MAPPING & NORMALISATION:
- Dates: DD/MM/YYYY, DD-MM-YYYY, "10 Jun 2025" ... -> YYYY-MM-DD
- nights: from the dates when missing
- guest_count: adults + children + infants
- country: explicit label; if empty but the phone has a valid international prefix,
  fill it and set country_inferred=true
- phone: mandatory; normalise to +<country code> <national number>
- platform: one of {platforms}; otherwise "Other"
- reservation_id: SHA-1 of (guest_name + check_in_date + platform)
- property_name: the accommodation / property / unit name exactly as printed
- total_amount: total price of the stay as a bare number, no currency symbol
- confidence: weighted mean of OCR quality, pattern hits and fusion

STAGE 4 - VALIDATION:
- check_in_date <= check_out_date, otherwise needs_review=true
- phone == "" -> needs_review=true (critical field)
- confidence < {confidence_threshold} -> needs_review=true
- Strict duplicates: drop. Soft duplicates: merge with needs_review=true

DOCUMENT TEXT:
{text}

EXTRACT ALL RESERVATIONS FOUND:"""
