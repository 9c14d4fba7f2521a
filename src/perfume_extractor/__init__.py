"""Configurable attribute extraction for perfume catalogs."""

from perfume_extractor.errors import ConfigurationError, LearningError
from perfume_extractor.parsing import (
    AttributeKind,
    ColumnField,
    Concentration,
    ConfigStore,
    DispenserType,
    Extractor,
    Gender,
    ParsedAttributes,
    PatternRule,
    RuleSet,
    Unit,
    default_rule_set,
)
from perfume_extractor.parsing.runtime import RuntimeRuleManager
from perfume_extractor.pipeline.converter import RowConverter
from perfume_extractor.pipeline.models import (
    ConversionResult,
    FileSchema,
    ProductRecord,
    load_schema,
)
from perfume_extractor.pipeline.resolver import LEAVE_EMPTY, InteractiveResolver

__version__ = "0.1.0"

__all__ = [
    "AttributeKind",
    "ColumnField",
    "Concentration",
    "ConfigStore",
    "ConfigurationError",
    "ConversionResult",
    "DispenserType",
    "Extractor",
    "FileSchema",
    "Gender",
    "InteractiveResolver",
    "LEAVE_EMPTY",
    "LearningError",
    "ParsedAttributes",
    "PatternRule",
    "ProductRecord",
    "RowConverter",
    "RuleSet",
    "RuntimeRuleManager",
    "Unit",
    "default_rule_set",
    "load_schema",
]
