"""Coercion and normalisation of untyped model output.

Every value coming back from the model passes through one of these helpers
before it reaches a ``CandidateReservation``; none of them raise.
"""

import hashlib
import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from app.prompts.reservation_prompts import KNOWN_PLATFORMS

DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y/%m/%d",
    "%d/%m/%y",
)

TRUTHY_STRINGS = frozenset({"true", "1", "yes", "y", "sim", "s"})

OTHER_PLATFORM = "Other"

_PLATFORM_ALIASES = {
    "airbnb": "Airbnb",
    "booking": "Booking.com",
    "booking.com": "Booking.com",
    "bookingcom": "Booking.com",
    "vrbo": "Vrbo",
    "homeaway": "Vrbo",
    "direct": "Direct",
    "direto": "Direct",
    "directo": "Direct",
    "owner": "Owner",
    "proprietario": "Owner",
    "proprietário": "Owner",
}

# International dialling prefixes used to infer a guest's country.
COUNTRY_CALLING_CODES = {
    "1": "United States",
    "31": "Netherlands",
    "32": "Belgium",
    "33": "France",
    "34": "Spain",
    "39": "Italy",
    "41": "Switzerland",
    "43": "Austria",
    "44": "United Kingdom",
    "45": "Denmark",
    "46": "Sweden",
    "47": "Norway",
    "48": "Poland",
    "49": "Germany",
    "55": "Brazil",
    "61": "Australia",
    "351": "Portugal",
    "352": "Luxembourg",
    "353": "Ireland",
    "358": "Finland",
}

_EXPLICIT_PHONE_PATTERN = re.compile(r"^\+(\d{1,4})[\s\-./]+(.+)$")


def coerce_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def coerce_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


def coerce_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Parse a monetary amount, accepting currency symbols and EU separators."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (Decimal, int, float)):
        amount = Decimal(str(value))
        return amount if amount.is_finite() else default

    text = re.sub(r"[^\d,.\-]", "", str(value))
    if not text:
        return default
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        return default
    return amount if amount.is_finite() else default


def parse_iso_date(value: Any) -> Optional[date]:
    """Parse a YYYY-MM-DD string into a real calendar date."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def normalize_date(value: Any) -> str:
    """Convert any supported date notation to YYYY-MM-DD.

    Unparseable values are returned stripped but otherwise untouched so the
    validator can report them.
    """
    text = coerce_str(value)
    if not text:
        return ""
    for date_format in DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).date().isoformat()
        except ValueError:
            continue
    return text


def normalize_platform(value: Any) -> str:
    text = coerce_str(value)
    if not text:
        return OTHER_PLATFORM
    if text in KNOWN_PLATFORMS:
        return text
    return _PLATFORM_ALIASES.get(text.lower(), OTHER_PLATFORM)


def split_calling_code(digits: str) -> Optional[Tuple[str, str]]:
    """Split digits into (calling code, national number) by longest known prefix."""
    for length in (3, 2, 1):
        prefix = digits[:length]
        if prefix in COUNTRY_CALLING_CODES and len(digits) > length:
            return prefix, digits[length:]
    return None


def normalize_phone(value: Any) -> str:
    """Normalise a phone number to ``+<country code> <national number>``.

    Numbers without an international prefix are returned as bare digits,
    since their country code cannot be known.
    """
    text = coerce_str(value)
    if not text:
        return ""

    if text.startswith("00"):
        text = "+" + text[2:]

    if not text.startswith("+"):
        return re.sub(r"\D", "", text)

    explicit = _EXPLICIT_PHONE_PATTERN.match(text)
    if explicit:
        code = explicit.group(1)
        national = re.sub(r"\D", "", explicit.group(2))
        if code in COUNTRY_CALLING_CODES and national:
            return f"+{code} {national}"

    digits = re.sub(r"\D", "", text)
    split = split_calling_code(digits)
    if split:
        return f"+{split[0]} {split[1]}"
    return f"+{digits}"


def infer_country(phone: str) -> Optional[str]:
    """Country implied by a normalised phone number's calling code, if known."""
    if not phone.startswith("+"):
        return None
    code = phone[1:].split(" ", 1)[0]
    if " " not in phone:
        split = split_calling_code(code)
        code = split[0] if split else code
    return COUNTRY_CALLING_CODES.get(code)


def compute_reservation_id(guest_name: str, check_in_date: str, platform: str) -> str:
    """Content-derived identifier used to correlate the same booking across files."""
    key_input = f"{guest_name}{check_in_date}{platform}"
    return hashlib.sha1(key_input.encode("utf-8")).hexdigest()
