# -*- coding: utf-8 -*-
"""Deterministic attribute extraction from perfume descriptions.

Pipeline for one description:
1. Normalize (uppercase, trim)
2. Strip ignore patterns and collapse whitespace
3. Evaluate pattern rules in ascending priority; first success per field wins
4. Token dictionary fallback for attributes still unset

Example:
    "ADP BLU MEDITERRANEO MIRTO DI PANAREA 30ML EDT SPRAY 29.6ml"
    -> concentration=Parfum, size=30, unit=ml, type=Spray
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.constants import (
    AttributeKind,
    Concentration,
    DispenserType,
    Gender,
    Unit,
)
from perfume_extractor.parsing.rules import (
    PatternRule,
    RuleSet,
    compile_pattern,
    extract_group_problem,
)
from perfume_extractor.utils.data_cleaning import format_decimal, normalize_whitespace

logger = logging.getLogger(__name__)

SOURCE_RULE = "rule"
SOURCE_DICTIONARY = "dictionary"

# ParsedAttributes field -> ProductRecord field
RECORD_FIELDS = {
    "concentration": "concentration",
    "dispenser_type": "dispenser_type",
    "gender": "gender",
    "size_value": "size",
    "size_unit": "unit",
    "brand_id": "brand_id",
    "extracted_name": "name",
}

# Attribute kind -> ParsedAttributes field it fills
_ATTRIBUTE_FIELDS = {
    AttributeKind.CONCENTRATION: "concentration",
    AttributeKind.DISPENSER_TYPE: "dispenser_type",
    AttributeKind.GENDER: "gender",
    AttributeKind.SIZE: "size_value",
    AttributeKind.UNIT: "size_unit",
    AttributeKind.BRAND: "brand_id",
    AttributeKind.NAME: "extracted_name",
}

_FALLBACK_ORDER = (
    AttributeKind.CONCENTRATION,
    AttributeKind.DISPENSER_TYPE,
    AttributeKind.GENDER,
)


@dataclass(frozen=True)
class ParsedAttributes:
    """What one description revealed. Unset fields mean "no evidence"."""

    concentration: Optional[Concentration] = None
    dispenser_type: Optional[DispenserType] = None
    gender: Optional[Gender] = None
    size_value: Optional[str] = None
    size_unit: Optional[Unit] = None
    brand_id: Optional[int] = None
    brand_name: Optional[str] = None
    extracted_name: Optional[str] = None
    matched_rules: Tuple[str, ...] = ()
    original_text: str = ""
    cleaned_text: str = ""
    sources: Dict[str, str] = field(default_factory=dict)

    def has_matches(self) -> bool:
        return any(getattr(self, name) is not None for name in RECORD_FIELDS)

    def source_of(self, field_name: str) -> Optional[str]:
        """'rule', 'dictionary' or None for a field of this object."""
        return self.sources.get(field_name)

    def summary(self) -> str:
        parts = []
        if self.brand_id is not None:
            parts.append(f"brand={self.brand_id}")
        if self.extracted_name:
            parts.append(f"name={self.extracted_name}")
        if self.concentration is not None:
            parts.append(f"concentration={self.concentration.value}")
        if self.size_value is not None:
            unit = self.size_unit.value if self.size_unit else ""
            parts.append(f"size={self.size_value}{unit}")
        if self.dispenser_type is not None:
            parts.append(f"type={self.dispenser_type.value}")
        if self.gender is not None:
            parts.append(f"gender={self.gender.value}")
        return ", ".join(parts) if parts else "nothing detected"


class _ParseState:
    """Mutable accumulator used while one description is parsed."""

    def __init__(self):
        self.values: Dict[str, object] = {}
        self.sources: Dict[str, str] = {}
        self.matched: List[str] = []

    def is_set(self, name: str) -> bool:
        return self.values.get(name) is not None

    def set(self, name: str, value, source: str) -> None:
        self.values[name] = value
        self.sources[name] = source


class Extractor:
    """Compiled form of a RuleSet.

    Construction compiles every rule and ignore pattern; a RuleSet that
    does not compile is rejected up front rather than per description.
    """

    def __init__(self, rule_set: RuleSet):
        """Compile a RuleSet.

        Args:
            rule_set: Snapshot to compile

        Raises:
            ConfigurationError: If any rule or ignore pattern is invalid
        """
        self.rule_set = rule_set
        self._ignore = [compile_pattern(p) for p in rule_set.ignore_patterns]

        ordered = sorted(enumerate(rule_set.rules), key=lambda pair: (pair[1].priority, pair[0]))
        self._rules: List[Tuple[re.Pattern, PatternRule]] = []
        self.matchers: Dict[AttributeKind, List[Tuple[re.Pattern, PatternRule]]] = {}
        for _, rule in ordered:
            compiled = compile_pattern(rule.pattern, rule.case_sensitive)
            problem = extract_group_problem(rule, compiled)
            if problem:
                raise ConfigurationError(problem)
            self._rules.append((compiled, rule))
            self.matchers.setdefault(rule.attribute, []).append((compiled, rule))

        # Longest key (in words) per dictionary bounds the fallback phrase scan
        self._max_words: Dict[AttributeKind, int] = {
            kind: max((len(k.split()) for k in rule_set.dictionary(kind)), default=1)
            for kind in (*_FALLBACK_ORDER, AttributeKind.UNIT)
        }
        self._max_words[AttributeKind.BRAND] = max(
            (len(k.split()) for k in rule_set.brand_name_to_id), default=1
        )

        logger.debug(
            f"Extractor compiled {len(self._rules)} rules, {len(self._ignore)} ignore patterns"
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, text: str) -> str:
        """Uppercase, strip ignore patterns and collapse whitespace."""
        normalized = (text or "").upper().strip()
        for pattern in self._ignore:
            normalized = pattern.sub(" ", normalized)
        return normalize_whitespace(normalized)

    def parse_description(self, text: str) -> ParsedAttributes:
        """Extract attributes from one description.

        Args:
            text: Free-form catalog description

        Returns:
            ParsedAttributes; empty for blank input
        """
        if not text or not text.strip():
            return ParsedAttributes(original_text=text or "")

        cleaned = self.normalize(text)
        state = _ParseState()

        for compiled, rule in self._rules:
            target = _ATTRIBUTE_FIELDS[rule.attribute]
            if state.is_set(target):
                continue
            for match in compiled.finditer(cleaned):
                if self._apply_match(rule, match, state):
                    state.matched.append(rule.name)
                    break
                if rule.stop_on_match:
                    break

        self._dictionary_fallback(cleaned, state)

        return ParsedAttributes(
            matched_rules=tuple(state.matched),
            original_text=text,
            cleaned_text=cleaned,
            sources=dict(state.sources),
            **state.values,
        )

    def parse_and_apply(self, record, text: str, overwrite: bool = False) -> ParsedAttributes:
        """Parse a description and copy what it found onto a record.

        Args:
            record: Object with ProductRecord fields (None = unset)
            text: Description to parse
            overwrite: Replace fields that are already set

        Returns:
            The ParsedAttributes that were applied
        """
        parsed = self.parse_description(text)
        for parsed_field, record_field in RECORD_FIELDS.items():
            value = getattr(parsed, parsed_field)
            if value is None:
                continue
            if overwrite or getattr(record, record_field) is None:
                setattr(record, record_field, value)
        return parsed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _group(match: re.Match, rule: PatternRule, position: int) -> Optional[str]:
        if len(rule.extract_groups) <= position:
            return None
        value = match.group(rule.extract_groups[position])
        if value is None:
            return None
        value = value.strip()
        return value or None

    def _apply_match(self, rule: PatternRule, match: re.Match, state: _ParseState) -> bool:
        rs = self.rule_set
        first = self._group(match, rule, 0)
        if first is None:
            return False

        kind = rule.attribute
        if kind == AttributeKind.SIZE:
            magnitude = format_decimal(first)
            if magnitude is None:
                return False
            state.set("size_value", magnitude, SOURCE_RULE)
            unit = rs.lookup(AttributeKind.UNIT, self._group(match, rule, 1))
            if unit is not None and not state.is_set("size_unit"):
                state.set("size_unit", unit, SOURCE_RULE)
            return True

        if kind in (AttributeKind.CONCENTRATION, AttributeKind.DISPENSER_TYPE, AttributeKind.GENDER):
            value = rs.lookup(kind, first)
            if value is None:
                return False
            state.set(_ATTRIBUTE_FIELDS[kind], value, SOURCE_RULE)
            return True

        if kind == AttributeKind.BRAND:
            brand_id = rs.lookup_brand(first)
            if brand_id is None:
                return False
            state.set("brand_id", brand_id, SOURCE_RULE)
            state.set("brand_name", first, SOURCE_RULE)
            return True

        if kind == AttributeKind.NAME:
            state.set("extracted_name", first, SOURCE_RULE)
            brand_id = rs.lookup_product_brand(first)
            if brand_id is not None and not state.is_set("brand_id"):
                state.set("brand_id", brand_id, SOURCE_RULE)
            return True

        return False

    @staticmethod
    def _scan(tokens: List[str], lookup, max_words: int):
        """First dictionary hit scanning left to right, longest phrase first."""
        for start in range(len(tokens)):
            for width in range(min(max_words, len(tokens) - start), 0, -1):
                phrase = " ".join(tokens[start:start + width])
                value = lookup(phrase)
                if value is not None:
                    return phrase, value
        return None, None

    def _dictionary_fallback(self, cleaned: str, state: _ParseState) -> None:
        rs = self.rule_set
        tokens = cleaned.split()

        for kind in _FALLBACK_ORDER:
            target = _ATTRIBUTE_FIELDS[kind]
            if state.is_set(target):
                continue
            _, value = self._scan(
                tokens, lambda p, k=kind: rs.lookup(k, p), self._max_words[kind]
            )
            if value is not None:
                state.set(target, value, SOURCE_DICTIONARY)

        if not state.is_set("brand_id"):
            phrase, brand_id = self._scan(tokens, rs.lookup_brand, self._max_words[AttributeKind.BRAND])
            if brand_id is not None:
                state.set("brand_id", brand_id, SOURCE_DICTIONARY)
                state.set("brand_name", phrase, SOURCE_DICTIONARY)

        # A unit on its own is not evidence of anything
        if state.is_set("size_value") and not state.is_set("size_unit"):
            _, unit = self._scan(
                tokens, lambda p: rs.lookup(AttributeKind.UNIT, p), self._max_words[AttributeKind.UNIT]
            )
            if unit is not None:
                state.set("size_unit", unit, SOURCE_DICTIONARY)
