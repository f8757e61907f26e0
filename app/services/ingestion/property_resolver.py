"""Fuzzy resolution of extracted property names against the live catalog.

Scores range 0-100 and are tiered:

- variant families (a base name followed by I/II/III or 1/2/3): exact variant
  100, bare base name against the first variant 80, other family members 60
- exact normalised equality: 100
- containment: 70 x (shorter length / longer length)
- token overlap: 40 x (common tokens / max token count)
"""

import re
import unicodedata
from typing import Iterable, List, Optional, Sequence

from app.config import settings
from app.services.ingestion.models import PropertyMatch, PropertyRecord
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

EXACT_SCORE = 100.0
DEFAULT_VARIANT_SCORE = 80.0
FAMILY_SCORE = 60.0
CONTAINMENT_WEIGHT = 70.0
TOKEN_OVERLAP_WEIGHT = 40.0

# Catalog rows used as check-in/check-out placeholders, never real properties.
EXCLUDED_NAME_MARKERS = ("check in", "check out", "checkin", "checkout")

ROMAN_VARIANTS = {"i": "1", "ii": "2", "iii": "3", "iv": "4", "v": "5"}

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def normalize_property_name(name: Optional[str]) -> str:
    """Lowercase, strip diacritics and collapse punctuation/whitespace.

    ``normalize_property_name(normalize_property_name(x))`` always equals
    ``normalize_property_name(x)``.
    """
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALPHANUMERIC.sub(" ", stripped).strip()


def _variant_of(normalized: str, base: str) -> Optional[str]:
    """Return the variant suffix following ``base``, as a digit string.

    Returns an empty string when the base is present without a variant and
    None when the name does not belong to the family at all.
    """
    tokens = normalized.split()
    if base not in tokens:
        return None
    index = tokens.index(base)
    if index + 1 >= len(tokens):
        return ""
    suffix = tokens[index + 1]
    if suffix.isdigit():
        return str(int(suffix))
    return ROMAN_VARIANTS.get(suffix, "")


class PropertyResolver:
    """Maps free-text property names to catalog entries.

    Attributes:
        threshold: A match is accepted only when its score is strictly greater
        variant_families: Normalised base names that come in numbered variants
    """

    def __init__(
        self,
        threshold: float = settings.property_match_threshold,
        variant_families: Iterable[str] = tuple(settings.property_variant_families),
    ):
        self.threshold = threshold
        self.variant_families = [normalize_property_name(base) for base in variant_families]

    def score(self, extracted_name: str, catalog_name: str) -> float:
        """Similarity score (0-100) between an extracted name and a catalog name."""
        search = normalize_property_name(extracted_name)
        candidate = normalize_property_name(catalog_name)
        if not search or not candidate:
            return 0.0
        if search == candidate:
            return EXACT_SCORE

        for base in self.variant_families:
            search_variant = _variant_of(search, base)
            catalog_variant = _variant_of(candidate, base)
            if search_variant is None or catalog_variant is None:
                continue
            if search_variant and search_variant == catalog_variant:
                return EXACT_SCORE
            if not search_variant and catalog_variant == "1":
                return DEFAULT_VARIANT_SCORE
            return FAMILY_SCORE

        if search in candidate or candidate in search:
            shorter, longer = sorted((len(search), len(candidate)))
            return CONTAINMENT_WEIGHT * shorter / longer

        search_tokens = set(search.split())
        candidate_tokens = set(candidate.split())
        common = search_tokens & candidate_tokens
        if not common:
            return 0.0
        return TOKEN_OVERLAP_WEIGHT * len(common) / max(len(search_tokens), len(candidate_tokens))

    def best_match(
        self,
        extracted_name: str,
        catalog: Sequence[PropertyRecord],
    ) -> Optional[PropertyMatch]:
        """Highest-scoring catalog entry above the acceptance threshold.

        An exact normalised match wins immediately; ties otherwise keep the
        earlier catalog entry.

        Args:
            extracted_name: Property name as printed in the document
            catalog: Live property catalog

        Returns:
            PropertyMatch, or None if nothing scores above the threshold
        """
        normalized = normalize_property_name(extracted_name)
        if not normalized:
            return None

        best: Optional[PropertyMatch] = None
        for record in self._eligible(catalog):
            if normalize_property_name(record.name) == normalized:
                return PropertyMatch(property=record, score=EXACT_SCORE)

            record_score = self.score(extracted_name, record.name)
            if best is None or record_score > best.score:
                best = PropertyMatch(property=record, score=record_score)

        if best is None or best.score <= self.threshold:
            LOGGER.info(
                "No catalog property matched",
                extra={
                    "property_name": extracted_name,
                    "best_score": best.score if best else 0.0,
                },
            )
            return None

        LOGGER.debug(
            "Resolved property",
            extra={
                "property_name": extracted_name,
                "property_id": best.property.id,
                "score": best.score,
            },
        )
        return best

    def resolve(
        self,
        extracted_name: str,
        catalog: Sequence[PropertyRecord],
    ) -> Optional[PropertyRecord]:
        """Catalog entry for an extracted name, or None when unresolved."""
        match = self.best_match(extracted_name, catalog)
        return match.property if match else None

    @staticmethod
    def _eligible(catalog: Sequence[PropertyRecord]) -> List[PropertyRecord]:
        eligible = []
        for record in catalog:
            normalized = normalize_property_name(record.name)
            if any(marker in normalized for marker in EXCLUDED_NAME_MARKERS):
                continue
            eligible.append(record)
        return eligible
