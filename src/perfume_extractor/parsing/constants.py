# -*- coding: utf-8 -*-
"""Enumerations and built-in recognition defaults for perfume descriptions.

The default dictionaries, rules and ignore patterns below seed a fresh
rule file. Once the rule file exists it is the single source of truth;
these constants are only read again on reset.
"""

from enum import Enum
from typing import Dict, List, Tuple


class Concentration(Enum):
    """Fragrance concentration."""

    EDT = "EDT"
    EDP = "EDP"
    PARFUM = "Parfum"
    EDC = "EDC"
    EDF = "EDF"


class DispenserType(Enum):
    """How the fragrance is dispensed."""

    SPRAY = "Spray"
    COLOGNE = "Cologne"
    ROLLETTE = "Rollette"
    SPLASH = "Splash"
    SOLID = "Solid"
    OIL = "Oil"


class Gender(Enum):
    UNISEX = "Unisex"
    MALE = "Male"
    FEMALE = "Female"


class Unit(Enum):
    ML = "ml"
    OZ = "oz"
    G = "g"


class AttributeKind(Enum):
    """Attributes a rule can target or a dictionary can resolve."""

    CONCENTRATION = "concentration"
    DISPENSER_TYPE = "type"
    GENDER = "gender"
    SIZE = "size"
    UNIT = "unit"
    BRAND = "brand"
    NAME = "name"


class ColumnField(Enum):
    """Targets of a file schema's column mapping."""

    CODE = "code"
    NAME = "name"
    BRAND = "brand"
    CONCENTRATION = "concentration"
    DISPENSER_TYPE = "type"
    GENDER = "gender"
    SIZE = "size"
    UNITS = "units"
    LI_FREE = "li_free"
    COUNTRY_OF_ORIGIN = "country_of_origin"
    REMARKS = "remarks"


# Attribute kinds backed by a token dictionary, and the enum each resolves to
DICTIONARY_KINDS = {
    AttributeKind.CONCENTRATION: Concentration,
    AttributeKind.DISPENSER_TYPE: DispenserType,
    AttributeKind.GENDER: Gender,
    AttributeKind.UNIT: Unit,
}

RULE_TARGETS = (
    AttributeKind.CONCENTRATION,
    AttributeKind.DISPENSER_TYPE,
    AttributeKind.GENDER,
    AttributeKind.SIZE,
    AttributeKind.BRAND,
    AttributeKind.NAME,
)

# JSON keys of the persisted dictionaries
DICTIONARY_KEYS = {
    AttributeKind.CONCENTRATION: "concentration_dictionary",
    AttributeKind.DISPENSER_TYPE: "type_dictionary",
    AttributeKind.UNIT: "units_dictionary",
    AttributeKind.GENDER: "gender_dictionary",
}

# ============================================================================
# DEFAULT DICTIONARIES
# ============================================================================

DEFAULT_CONCENTRATIONS: Dict[str, Concentration] = {
    "EDT": Concentration.EDT,
    "EDP": Concentration.EDP,
    "EDC": Concentration.EDC,
    "EDF": Concentration.EDF,
    "ADP": Concentration.PARFUM,
    "PARFUM": Concentration.PARFUM,
    "COLOGNE": Concentration.EDC,
    "EAU DE TOILETTE": Concentration.EDT,
    "EAU DE PARFUM": Concentration.EDP,
    "EAU DE COLOGNE": Concentration.EDC,
    "EAU DE FRAICHE": Concentration.EDF,
    "PARFUM INTENSE": Concentration.PARFUM,
    "ELIXIR": Concentration.PARFUM,
}

DEFAULT_TYPES: Dict[str, DispenserType] = {
    "SPRAY": DispenserType.SPRAY,
    "SP": DispenserType.SPRAY,
    "COLOGNE": DispenserType.COLOGNE,
    "SPLASH": DispenserType.SPLASH,
    "FL": DispenserType.SPLASH,
    "OIL": DispenserType.OIL,
    "SOLID": DispenserType.SOLID,
    "ROLLETTE": DispenserType.ROLLETTE,
    "ROLL-ON": DispenserType.ROLLETTE,
}

DEFAULT_UNITS: Dict[str, Unit] = {
    "ML": Unit.ML,
    "MILLILITER": Unit.ML,
    "MILLILITERS": Unit.ML,
    "OZ": Unit.OZ,
    "FL OZ": Unit.OZ,
    "FLUID OUNCE": Unit.OZ,
    "FLUID OUNCES": Unit.OZ,
    "G": Unit.G,
    "GRAM": Unit.G,
    "GRAMS": Unit.G,
}

DEFAULT_GENDERS: Dict[str, Gender] = {
    "M": Gender.MALE,
    "MALE": Gender.MALE,
    "MEN": Gender.MALE,
    "MAN": Gender.MALE,
    "W": Gender.FEMALE,
    "F": Gender.FEMALE,
    "FEMALE": Gender.FEMALE,
    "WOMEN": Gender.FEMALE,
    "WOMAN": Gender.FEMALE,
    "U": Gender.UNISEX,
    "UNISEX": Gender.UNISEX,
}

# ============================================================================
# DEFAULT RULES AND IGNORE PATTERNS
# ============================================================================

# (name, pattern, attribute, priority, extract_groups, description)
DEFAULT_RULES: List[Tuple[str, str, AttributeKind, int, List[int], str]] = [
    (
        "ExtractSizeWithUnits",
        r"(\d+(?:\.\d+)?)\s*(ML|OZ|G)\b",
        AttributeKind.SIZE,
        1,
        [1, 2],
        "Size followed by a unit, e.g. 30ML or 3.4 OZ",
    ),
    (
        "ExtractConcentration",
        r"\b(EAU DE PARFUM|EAU DE TOILETTE|EAU DE COLOGNE|EAU DE FRAICHE|EDT|EDP|EDC|EDF|ADP|PARFUM)\b",
        AttributeKind.CONCENTRATION,
        2,
        [1],
        "Concentration keyword or phrase",
    ),
    (
        "ExtractType",
        r"\b(SPRAY|SP|COLOGNE|SPLASH|FL|OIL|SOLID|ROLLETTE|ROLL-ON)\b",
        AttributeKind.DISPENSER_TYPE,
        3,
        [1],
        "Dispenser keyword",
    ),
    (
        "ExtractBrandAtStart",
        r"^(\w+)\s+",
        AttributeKind.BRAND,
        4,
        [1],
        "First word of the description looked up as a brand",
    ),
]

# Stripped from the normalized text before any rule runs
DEFAULT_IGNORE_PATTERNS: List[str] = [
    r"\b\d+\.\d+ML\b",
    r"\b\d+\.\d+OZ\b",
    r"^\d+$",
    r"\bNEW\b",
    r"\bORIGINAL\b",
    r"\bAUTHENTIC\b",
    r"\bTESTER\b",
]

DEFAULT_RULE_PRIORITY = 10

# ============================================================================
# INTERACTIVE CONFIDENCE LEVELS
# ============================================================================

CONFIDENCE_DIRECT = 0.9
CONFIDENCE_RULE = 0.8
CONFIDENCE_DICTIONARY = 0.5
CONFIDENCE_NONE = 0.3
DEFAULT_CONFIDENCE_THRESHOLD = 0.7
