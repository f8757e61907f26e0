"""Unit tests for fuzzy property name resolution."""

import pytest

from app.services.ingestion.models import PropertyRecord
from app.services.ingestion.property_resolver import (
    PropertyResolver,
    normalize_property_name,
)


class TestNormalizePropertyName:
    """Tests for property name normalisation."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Aroeira I", "aroeira i"),
            ("  Nazaré   T2 ", "nazare t2"),
            ("São João - Apt. 3", "sao joao apt 3"),
            ("CASA_DOS_BARCOS", "casa dos barcos"),
            ("", ""),
        ],
    )
    def test_normalisation(self, name, expected):
        """Test lowercasing, diacritic stripping and punctuation collapsing."""
        assert normalize_property_name(name) == expected

    @pytest.mark.parametrize(
        "name",
        ["Aroeira I", "Nazaré T2", "São João - Apt. 3", "Ç!!ç  --  Ümlaut", "already normal"],
    )
    def test_normalisation_is_idempotent(self, name):
        """Test that normalising twice equals normalising once."""
        once = normalize_property_name(name)

        assert normalize_property_name(once) == once


class TestPropertyResolver:
    """Tests for catalog matching."""

    @pytest.fixture
    def resolver(self):
        """Create resolver with the Aroeira variant family."""
        return PropertyResolver(threshold=40.0, variant_families=["aroeira"])

    def test_exact_variant_match_scores_100(self, resolver, property_catalog):
        """Test that 'Aroeira I' resolves to the catalog entry of the same name."""
        match = resolver.best_match("Aroeira I", property_catalog)

        assert match.property.name == "Aroeira I"
        assert match.score == 100.0

    def test_bare_family_name_picks_first_variant(self, resolver, property_catalog):
        """Test that 'aroeira' without a suffix resolves to variant I with score 80."""
        match = resolver.best_match("aroeira", property_catalog)

        assert match.property.name == "Aroeira I"
        assert match.score == 80.0

    def test_digit_and_roman_variants_are_equivalent(self, resolver, property_catalog):
        """Test that 'Aroeira 3' matches 'Aroeira III'."""
        match = resolver.best_match("Aroeira 3", property_catalog)

        assert match.property.name == "Aroeira III"
        assert match.score == 100.0

    def test_other_family_members_score_60(self, resolver):
        """Test the same-family partial score."""
        assert resolver.score("Aroeira II", "Aroeira I") == 60.0
        assert resolver.score("aroeira", "Aroeira II") == 60.0

    def test_accent_and_case_insensitive_exact_match(self, resolver, property_catalog):
        """Test that 'NAZARE t2' is an exact match for 'Nazaré T2'."""
        match = resolver.best_match("NAZARE t2", property_catalog)

        assert match.property.id == 5
        assert match.score == 100.0

    def test_exact_match_beats_partial_matches(self, resolver):
        """Test that an exact match is chosen over containment or token overlap."""
        catalog = [
            PropertyRecord(id=1, name="Casa dos Barcos Grande"),
            PropertyRecord(id=2, name="Barcos"),
            PropertyRecord(id=3, name="Casa dos Barcos"),
        ]

        match = resolver.best_match("casa dos barcos", catalog)

        assert match.property.id == 3
        assert match.score == 100.0

    def test_containment_score(self, resolver):
        """Test the 70 x length-ratio containment score."""
        score = resolver.score("Casa dos Barcos", "Casa dos Barcos Grande")

        assert score == pytest.approx(70.0 * len("casa dos barcos") / len("casa dos barcos grande"))

    def test_token_overlap_score(self, resolver):
        """Test the 40 x token-ratio fallback score."""
        assert resolver.score("Vila Mar Azul", "Azul Vila") == pytest.approx(40.0 * 2 / 3)

    def test_weak_match_is_unresolved(self, resolver, property_catalog):
        """Test that nothing above the threshold yields None."""
        assert resolver.resolve("Quinta do Lago", property_catalog) is None

    def test_check_in_catalog_entries_are_skipped(self, resolver, property_catalog):
        """Test that placeholder check-in/check-out rows never match."""
        assert resolver.resolve("Check-in Lisboa", property_catalog) is None

    def test_empty_name_is_unresolved(self, resolver, property_catalog):
        """Test that an empty extracted name resolves to nothing."""
        assert resolver.best_match("", property_catalog) is None

    def test_resolve_returns_property_record(self, resolver, property_catalog):
        """Test that resolve returns the catalog record."""
        record = resolver.resolve("Casa dos Barcos", property_catalog)

        assert record == property_catalog[3]
