"""Attribute extraction: enumerations, rule sets, rule storage and the extractor."""

from .config_store import ConfigStore, RuleSetStatistics
from .constants import (
    AttributeKind,
    ColumnField,
    Concentration,
    DispenserType,
    Gender,
    Unit,
)
from .extractor import Extractor, ParsedAttributes
from .rules import PatternRule, RuleSet, default_rule_set

__all__ = [
    "AttributeKind",
    "ColumnField",
    "Concentration",
    "ConfigStore",
    "DispenserType",
    "Extractor",
    "Gender",
    "ParsedAttributes",
    "PatternRule",
    "RuleSet",
    "RuleSetStatistics",
    "Unit",
    "default_rule_set",
]
