# -*- coding: utf-8 -*-
"""Tests for the console resolver with scripted input."""

import pytest

from perfume_extractor.parsing.constants import Concentration, Unit
from perfume_extractor.parsing.runtime import TeachingOutcome
from perfume_extractor.pipeline.console_resolver import ConsoleResolver
from perfume_extractor.pipeline.models import InteractiveContext, ProductRecord
from perfume_extractor.pipeline.resolver import (
    LEAVE_EMPTY,
    BrandCandidate,
    ConcentrationCandidate,
    SizeCandidate,
    SizeInfo,
)

BRANDS = [BrandCandidate(1, "CHANEL", 0.91, "similar name")]


def scripted(*answers):
    """input() replacement returning the given answers in order."""
    remaining = list(answers)

    def _input(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return _input


@pytest.fixture
def context():
    return InteractiveContext(
        row_number=2,
        field_name="Brand",
        original_text="CHANL",
        current_record=ProductRecord(code="2002"),
        confidence=0.3,
        raw_row_text='2002,"No 5",CHANL,EDP',
    )


def make_resolver(*answers, enabled=True):
    printed = []
    resolver = ConsoleResolver(
        enabled=enabled, input_func=scripted(*answers), output_func=printed.append
    )
    return resolver, printed


class TestBrandMenu:
    """Test the brand menu."""

    def test_pick_candidate(self, context):
        resolver, printed = make_resolver("1")
        assert resolver.resolve_brand(context, BRANDS) == 1
        assert any("CHANEL (ID: 1)" in line for line in printed)

    def test_zero_leaves_empty(self, context):
        resolver, _ = make_resolver("0")
        assert resolver.resolve_brand(context, BRANDS) is LEAVE_EMPTY

    def test_blank_keeps_detected(self, context):
        resolver, _ = make_resolver("")
        assert resolver.resolve_brand(context, BRANDS) is None

    def test_manual_entry(self, context):
        """The last option asks for an id."""
        resolver, _ = make_resolver("2", "17")
        assert resolver.resolve_brand(context, BRANDS) == 17

    def test_manual_entry_rejects_non_positive(self, context):
        resolver, _ = make_resolver("2", "-3")
        assert resolver.resolve_brand(context, BRANDS) is None

    def test_end_of_input(self, context):
        """Closed stdin counts as a blank answer."""
        resolver, _ = make_resolver()
        assert resolver.resolve_brand(context, BRANDS) is None


class TestOtherMenus:
    """Test concentration, size and general menus."""

    def test_concentration_candidates(self, context):
        candidates = [ConcentrationCandidate(Concentration.EDP, "EDP", 0.5, "keyword in text")]
        resolver, _ = make_resolver("1")
        assert resolver.resolve_concentration(context, candidates) == Concentration.EDP

    def test_concentration_without_candidates(self, context):
        """Every concentration is offered when nothing was found."""
        resolver, printed = make_resolver("3")
        assert resolver.resolve_concentration(context, []) == Concentration.PARFUM
        assert "No concentration found in the text. Choose one:" in printed

    def test_size_candidate(self, context):
        size = SizeInfo("100", Unit.ML)
        resolver, _ = make_resolver("1")
        assert resolver.resolve_size(context, [SizeCandidate(size, "100ML", 0.9, "detected")]) == size

    def test_manual_size(self, context):
        """Without candidates the size is entered by hand."""
        resolver, _ = make_resolver("3.40", "2")
        assert resolver.resolve_size(context, []) == SizeInfo("3.4", Unit.OZ)

    def test_manual_size_skipped(self, context):
        resolver, _ = make_resolver("")
        assert resolver.resolve_size(context, []) is None

    def test_manual_size_exponent_refused(self, context):
        """Scientific notation is not accepted as a size."""
        resolver, _ = make_resolver("1e999999999")
        assert resolver.resolve_size(context, []) is None

    @pytest.mark.parametrize("answer, expected", [("2", 1), ("0", None), ("9", None), ("x", None)])
    def test_general(self, context, answer, expected):
        """Answers are 1-based on screen and 0-based in the result."""
        resolver, _ = make_resolver(answer)
        assert resolver.resolve_general(context, "Which name?", ["BLEU", "BLEU DE CHANEL"]) == expected


class TestLearningPrompts:
    """Test should_learn, statement collection and reporting."""

    @pytest.mark.parametrize("answer, expected", [("y", True), ("YES", True), ("n", False), ("", False)])
    def test_should_learn(self, context, answer, expected):
        resolver, printed = make_resolver(answer)
        assert resolver.should_learn(context, "CHANL NO 5", "nothing detected") is expected
        assert "Original row (2): 2002 | No 5 | CHANL | EDP" in printed

    def test_disabled_never_prompts(self, context):
        resolver, printed = make_resolver(enabled=False)

        assert not resolver.should_consult(context)
        assert not resolver.should_learn(context, "CHANL", "nothing detected")
        assert printed == []

    def test_collect_until_blank(self, context):
        resolver, _ = make_resolver("'CH' -> Brand=1", "POUR HOMME -> Gender=Male", "", "ignored")
        assert resolver.collect_teaching_statements(context, "CH") == [
            "'CH' -> Brand=1",
            "POUR HOMME -> Gender=Male",
        ]

    def test_report_learning(self, context):
        resolver, printed = make_resolver()
        outcomes = [
            TeachingOutcome("'CH' -> Brand=1", applied=["brand mapping CH -> 1"]),
            TeachingOutcome("nonsense", error="Expected PATTERN -> Attribute=Value"),
        ]

        resolver.report_learning(context, outcomes)

        assert "Learned brand mapping CH -> 1" in printed
        assert any(line.startswith("Could not learn 'nonsense'") for line in printed)
