# -*- coding: utf-8 -*-
"""Operator teaching statements.

Canonical form::

    PATTERN -> Attribute=Value        (arrow may also be "→" or "=>")

    'INTENSE' -> Concentration=Parfum
    POUR HOMME -> Gender=Male
    'FL.OZ' -> Size=oz

The older free-text phrasing is accepted as long as it quotes the
pattern(s) and names one ``Attribute=Value`` pair::

    When you see 'INTENSE' it means Concentration=Parfum
    Brand names like 'CH' or 'C.H.' refer to Brand=1
"""

import re
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from perfume_extractor.errors import LearningError
from perfume_extractor.parsing.constants import (
    AttributeKind,
    Concentration,
    DispenserType,
    Gender,
    Unit,
)

_CANONICAL = re.compile(
    r"^\s*(?P<pattern>'[^']+'|\"[^\"]+\"|.+?)\s*(?:->|→|=>)\s*"
    r"(?P<attribute>[A-Za-z_ ]+?)\s*=\s*(?P<value>.+?)\s*$"
)
_QUOTED = re.compile(r"'([^']+)'|\"([^\"]+)\"")
_ASSIGNMENT = re.compile(r"([A-Za-z_]+)\s*=\s*([\w.\-]+)")

ATTRIBUTE_ALIASES: Dict[str, AttributeKind] = {
    "GENDER": AttributeKind.GENDER,
    "CONCENTRATION": AttributeKind.CONCENTRATION,
    "TYPE": AttributeKind.DISPENSER_TYPE,
    "DISPENSER": AttributeKind.DISPENSER_TYPE,
    "DISPENSER_TYPE": AttributeKind.DISPENSER_TYPE,
    "DISPENSERTYPE": AttributeKind.DISPENSER_TYPE,
    "BRAND": AttributeKind.BRAND,
    "UNIT": AttributeKind.UNIT,
    "UNITS": AttributeKind.UNIT,
    "SIZE": AttributeKind.SIZE,
}

GENDER_WORDS = {
    Gender.MALE: ("MALE", "MAN", "MEN", "M"),
    Gender.FEMALE: ("FEMALE", "WOMAN", "WOMEN", "W", "F"),
    Gender.UNISEX: ("UNISEX", "U"),
}

CONCENTRATION_WORDS = {
    Concentration.EDT: ("EDT", "TOILETTE"),
    Concentration.EDP: ("EDP",),
    Concentration.PARFUM: ("PARFUM", "INTENSE", "ELIXIR", "EXTRAIT"),
    Concentration.EDC: ("EDC", "COLOGNE"),
    Concentration.EDF: ("EDF", "FRAICHE"),
}

TYPE_WORDS = {
    DispenserType.SPRAY: ("SPRAY", "ATOMIZER", "VAPORISATEUR"),
    DispenserType.SPLASH: ("SPLASH",),
    DispenserType.OIL: ("OIL",),
    DispenserType.SOLID: ("SOLID",),
    DispenserType.ROLLETTE: ("ROLLETTE", "ROLL-ON"),
    DispenserType.COLOGNE: ("COLOGNE",),
}

UNIT_WORDS = {
    Unit.ML: ("ML", "MILLILITER", "MILLILITERS"),
    Unit.OZ: ("OZ", "OUNCE", "OUNCES"),
    Unit.G: ("G", "GRAM", "GRAMS"),
}

_VALUE_WORDS = {
    AttributeKind.GENDER: GENDER_WORDS,
    AttributeKind.CONCENTRATION: CONCENTRATION_WORDS,
    AttributeKind.DISPENSER_TYPE: TYPE_WORDS,
    AttributeKind.UNIT: UNIT_WORDS,
    AttributeKind.SIZE: UNIT_WORDS,
}


@dataclass(frozen=True)
class TeachingStatement:
    """One parsed lesson: these patterns mean attribute=value."""

    patterns: Tuple[str, ...]
    attribute: AttributeKind
    value: Union[Concentration, DispenserType, Gender, Unit, int]
    text: str = ""


def resolve_attribute(word: str) -> AttributeKind:
    key = re.sub(r"\s+", "_", word.strip()).upper()
    if key not in ATTRIBUTE_ALIASES:
        raise LearningError(f"Unknown attribute '{word}'")
    return ATTRIBUTE_ALIASES[key]


def resolve_value(attribute: AttributeKind, word: str):
    """Translate the operator's value word into a typed value.

    Raises:
        LearningError: If the word is not recognised for this attribute
    """
    text = word.strip().strip("'\"").upper()
    if attribute == AttributeKind.BRAND:
        match = re.match(r"^(\d+)", text)
        if not match or int(match.group(1)) <= 0:
            raise LearningError(f"Brand must be a positive integer id, got '{word}'")
        return int(match.group(1))

    for value, words in _VALUE_WORDS[attribute].items():
        if text in words:
            return value
    raise LearningError(f"Unknown {attribute.value} value '{word}'")


def _unquote(pattern: str) -> str:
    pattern = pattern.strip()
    if len(pattern) >= 2 and pattern[0] == pattern[-1] and pattern[0] in "'\"":
        pattern = pattern[1:-1]
    return pattern.strip()


def parse_teaching_statement(text: str) -> TeachingStatement:
    """Parse one teaching statement.

    Args:
        text: Statement in canonical or legacy phrasing

    Returns:
        TeachingStatement with uppercase patterns

    Raises:
        LearningError: If the statement cannot be understood
    """
    if not text or not text.strip():
        raise LearningError("Empty teaching statement", text or "")

    match = _CANONICAL.match(text)
    if match:
        patterns: Tuple[str, ...] = (_unquote(match.group("pattern")),)
        attribute_word, value_word = match.group("attribute"), match.group("value")
    else:
        assignment = _ASSIGNMENT.search(text)
        quoted = [a or b for a, b in _QUOTED.findall(text)]
        if not assignment or not quoted:
            raise LearningError(
                "Expected PATTERN -> Attribute=Value, e.g. 'INTENSE' -> Concentration=Parfum",
                text,
            )
        patterns = tuple(p.strip() for p in quoted)
        attribute_word, value_word = assignment.group(1), assignment.group(2)

    patterns = tuple(p.upper() for p in patterns if p)
    if not patterns:
        raise LearningError("Teaching statement has no pattern", text)

    try:
        attribute = resolve_attribute(attribute_word)
        value = resolve_value(attribute, value_word)
    except LearningError as e:
        raise LearningError(str(e), text) from e

    return TeachingStatement(patterns=patterns, attribute=attribute, value=value, text=text)


def size_rule_name(pattern: str) -> str:
    slug = re.sub(r"[^A-Z0-9]+", "_", pattern.upper()).strip("_").lower()
    return f"learned_size_{slug or 'unit'}"


def size_rule_pattern(pattern: str) -> str:
    """Regex for a number followed by the literal unit notation."""
    return rf"(\d+(?:\.\d+)?)\s*({re.escape(pattern.upper())})(?![A-Z0-9])"
