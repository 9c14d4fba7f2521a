# -*- coding: utf-8 -*-
"""Tests for teaching statement parsing."""

import re

import pytest

from perfume_extractor.errors import LearningError
from perfume_extractor.parsing.constants import (
    AttributeKind,
    Concentration,
    DispenserType,
    Gender,
    Unit,
)
from perfume_extractor.parsing.teaching import (
    parse_teaching_statement,
    resolve_attribute,
    size_rule_name,
    size_rule_pattern,
)


class TestCanonicalForm:
    """Test PATTERN -> Attribute=Value statements."""

    def test_quoted_pattern(self):
        statement = parse_teaching_statement("'INTENSE' -> Concentration=Parfum")

        assert statement.patterns == ("INTENSE",)
        assert statement.attribute == AttributeKind.CONCENTRATION
        assert statement.value == Concentration.PARFUM

    def test_unquoted_multi_word_pattern(self):
        """Patterns are uppercased and may contain spaces."""
        statement = parse_teaching_statement("pour homme -> Gender=Male")

        assert statement.patterns == ("POUR HOMME",)
        assert statement.value == Gender.MALE

    @pytest.mark.parametrize("arrow", ["->", "→", "=>"])
    def test_arrow_variants(self, arrow):
        statement = parse_teaching_statement(f"'VAPO' {arrow} Type=Spray")
        assert statement.attribute == AttributeKind.DISPENSER_TYPE
        assert statement.value == DispenserType.SPRAY

    def test_value_synonyms(self):
        """Value words are matched against their synonyms."""
        assert parse_teaching_statement("'LUI' -> Gender=Men").value == Gender.MALE
        assert parse_teaching_statement("'EXT' -> Concentration=Extrait").value == Concentration.PARFUM

    def test_size_statement(self):
        """Size statements carry the unit they denote."""
        statement = parse_teaching_statement("'FL.OZ' -> Size=oz")

        assert statement.attribute == AttributeKind.SIZE
        assert statement.value == Unit.OZ
        assert statement.patterns == ("FL.OZ",)

    def test_brand_statement(self):
        statement = parse_teaching_statement("'CH' -> Brand=1")
        assert statement.attribute == AttributeKind.BRAND
        assert statement.value == 1


class TestLegacyPhrasing:
    """Test free-text statements with quoted patterns."""

    def test_when_you_see(self):
        statement = parse_teaching_statement("When you see 'INTENSE' it means Concentration=Parfum")

        assert statement.patterns == ("INTENSE",)
        assert statement.value == Concentration.PARFUM

    def test_several_patterns(self):
        """Every quoted pattern is taught."""
        statement = parse_teaching_statement("Brand names like 'CH' or 'C.H.' refer to Brand=1")

        assert statement.patterns == ("CH", "C.H.")
        assert statement.value == 1


class TestFailures:
    """Test statements that cannot be understood."""

    def test_empty(self):
        with pytest.raises(LearningError, match="Empty"):
            parse_teaching_statement("   ")

    def test_no_assignment(self):
        """Free text without Attribute=Value is rejected with the statement kept."""
        with pytest.raises(LearningError) as exc_info:
            parse_teaching_statement("nonsense")
        assert exc_info.value.statement == "nonsense"

    def test_unknown_attribute(self):
        with pytest.raises(LearningError, match="Unknown attribute"):
            parse_teaching_statement("'RED' -> Color=Red")

    def test_unknown_value(self):
        with pytest.raises(LearningError, match="Unknown gender value"):
            parse_teaching_statement("'X' -> Gender=Robot")

    @pytest.mark.parametrize("value", ["abc", "0"])
    def test_brand_needs_positive_id(self, value):
        with pytest.raises(LearningError, match="positive integer"):
            parse_teaching_statement(f"'CH' -> Brand={value}")

    def test_resolve_attribute_aliases(self):
        assert resolve_attribute("dispenser type") == AttributeKind.DISPENSER_TYPE
        assert resolve_attribute("Units") == AttributeKind.UNIT


class TestSizeRules:
    """Test the rule generated for a taught size notation."""

    def test_rule_name(self):
        assert size_rule_name("FL.OZ") == "learned_size_fl_oz"

    def test_pattern_matches_number_and_unit(self):
        match = re.search(size_rule_pattern("FL.OZ"), "DIOR 3.4 FL.OZ SPRAY")

        assert match.group(1) == "3.4"
        assert match.group(2) == "FL.OZ"

    def test_pattern_is_literal(self):
        """Regex metacharacters in the notation are escaped."""
        assert re.search(size_rule_pattern("FL.OZ"), "3.4 FLXOZ") is None

    def test_pattern_needs_unit_boundary(self):
        assert re.search(size_rule_pattern("ML"), "30MLX") is None
