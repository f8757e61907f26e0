import json
import re
from typing import Any, List, Optional

from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_SENTINEL = "END_OF_JSON"

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
_DEBUG_PREAMBLE_PATTERN = re.compile(r"^---[\s\S]*?(?=\[)", re.MULTILINE)


def clean_model_response(text: str, sentinel: str = DEFAULT_SENTINEL) -> str:
    """Isolate the JSON array inside a sentinel-terminated model response.

    Handles:
    - Anything at or after the sentinel line (trailing commentary)
    - Markdown code fences (```json ... ```)
    - A leading ``---`` debug block
    - Commentary before the first ``[`` or after the last ``]``

    Args:
        text: Raw model response
        sentinel: Marker that terminates the meaningful payload

    Returns:
        The cleaned text, ideally a bare JSON array
    """
    if not text:
        return ""

    cleaned = text
    if sentinel:
        pattern = re.compile(rf"^[ \t]*{re.escape(sentinel)}[ \t]*$", re.MULTILINE)
        cleaned = pattern.split(text, maxsplit=1)[0]
    cleaned = _CODE_FENCE_PATTERN.sub("", cleaned)
    cleaned = _DEBUG_PREAMBLE_PATTERN.sub("", cleaned)

    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start >= 0 and end > start:
        cleaned = cleaned[start:end + 1]

    return cleaned.strip()


def parse_json_array(text: str, sentinel: str = DEFAULT_SENTINEL) -> Optional[List[Any]]:
    """Parse the JSON array from a model response.

    A single top-level object is wrapped in a list, since models sometimes
    drop the enclosing brackets when only one record is found.

    Args:
        text: Raw model response
        sentinel: Marker that terminates the meaningful payload

    Returns:
        Parsed list, or None if the response holds no parseable JSON
    """
    cleaned = clean_model_response(text, sentinel)
    if not cleaned:
        return None

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, trying first object")
        parsed = _parse_first_value(cleaned)
        if parsed is None:
            LOGGER.error("Failed to parse model JSON", extra={"response": text[:500]})
            return None

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]

    LOGGER.warning(f"Model JSON is a {type(parsed).__name__}, expected an array")
    return None


def _parse_first_value(text: str) -> Any:
    """Decode the first complete JSON value found in text, if any."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(text):
        if char not in "[{":
            continue
        try:
            value, _ = decoder.raw_decode(text, index)
            return value
        except json.JSONDecodeError:
            continue
    return None
