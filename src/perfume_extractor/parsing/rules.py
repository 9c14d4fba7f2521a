# -*- coding: utf-8 -*-
"""RuleSet snapshot: dictionaries, brand maps, pattern rules and ignore patterns.

A RuleSet is immutable. Every ``with_*``/``without_*`` method returns a new
snapshot; the ConfigStore swaps its reference and persists the new one.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.constants import (
    DEFAULT_CONCENTRATIONS,
    DEFAULT_GENDERS,
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_RULE_PRIORITY,
    DEFAULT_RULES,
    DEFAULT_TYPES,
    DEFAULT_UNITS,
    DICTIONARY_KEYS,
    DICTIONARY_KINDS,
    RULE_TARGETS,
    AttributeKind,
)


def compile_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern:
    """Compile a rule or ignore pattern.

    Args:
        pattern: Regular expression source
        case_sensitive: When False the pattern is compiled with IGNORECASE

    Returns:
        Compiled pattern

    Raises:
        ConfigurationError: If the pattern is empty or does not compile
    """
    if not isinstance(pattern, str):
        raise ConfigurationError(f"Regex pattern must be a string, got {pattern!r}")
    if not pattern:
        raise ConfigurationError("Empty regex pattern")
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ConfigurationError(f"Invalid regex pattern '{pattern}': {e}") from e


def extract_group_problem(rule: "PatternRule", compiled: re.Pattern) -> Optional[str]:
    """Describe an extract group the compiled pattern cannot provide, if any."""
    for group in rule.extract_groups:
        if group < 0 or group > compiled.groups:
            return (
                f"Rule '{rule.name}' extracts group {group} "
                f"but its pattern has groups 0-{compiled.groups}"
            )
    return None


def _section(data: Dict[str, Any], key: str, expected: type):
    """A top-level section of the rule file, checked for its JSON shape."""
    value = data.get(key)
    if value is None:
        return expected()
    if not isinstance(value, expected):
        kind = "object" if expected is dict else "array"
        raise ConfigurationError(f"'{key}' must be a JSON {kind}, got {type(value).__name__}")
    return value


def coerce_enum(enum_cls: Type[Enum], value: Any) -> Enum:
    """Turn a stored string (value or member name) into an enum member."""
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value.lower(), member.name.lower()):
            return member
    raise ConfigurationError(f"Unknown {enum_cls.__name__} value: '{value}'")


@dataclass(frozen=True)
class PatternRule:
    """A named regex that extracts one attribute from a description."""

    name: str
    pattern: str
    attribute: AttributeKind
    extract_groups: Tuple[int, ...] = (1,)
    priority: int = DEFAULT_RULE_PRIORITY
    stop_on_match: bool = False
    description: str = ""
    case_sensitive: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "attribute": self.attribute.value,
            "priority": self.priority,
            "extract_groups": list(self.extract_groups),
            "stop_on_match": self.stop_on_match,
            "description": self.description,
            "case_sensitive": self.case_sensitive,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternRule":
        """Build a rule from its persisted form.

        Raises:
            ConfigurationError: If a required key is missing or the attribute is unknown
        """
        try:
            attribute = AttributeKind(data["attribute"])
            return cls(
                name=str(data["name"]),
                pattern=str(data["pattern"]),
                attribute=attribute,
                extract_groups=tuple(int(g) for g in data.get("extract_groups", [1])),
                priority=int(data.get("priority", DEFAULT_RULE_PRIORITY)),
                stop_on_match=bool(data.get("stop_on_match", False)),
                description=str(data.get("description", "")),
                case_sensitive=bool(data.get("case_sensitive", False)),
            )
        except KeyError as e:
            raise ConfigurationError(f"Parsing rule missing key {e}: {data}") from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid parsing rule {data}: {e}") from e


@dataclass(frozen=True)
class RuleSet:
    """Everything the Extractor needs to recognise attributes.

    Dictionary keys are stored normalized (uppercase unless case_sensitive).
    Rules are kept in ascending priority order; equal priorities keep their
    insertion order.
    """

    dictionaries: Dict[AttributeKind, Dict[str, Enum]] = field(default_factory=dict)
    brand_name_to_id: Dict[str, int] = field(default_factory=dict)
    product_name_to_id: Dict[str, int] = field(default_factory=dict)
    rules: Tuple[PatternRule, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()
    case_sensitive: bool = False

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def normalize_key(self, token: str) -> str:
        token = str(token).strip()
        return token if self.case_sensitive else token.upper()

    def dictionary(self, kind: AttributeKind) -> Dict[str, Enum]:
        if kind not in DICTIONARY_KINDS:
            raise ValueError(f"No dictionary for attribute '{kind.value}'")
        return self.dictionaries.get(kind, {})

    def lookup(self, kind: AttributeKind, token: str) -> Optional[Enum]:
        if token is None:
            return None
        return self.dictionary(kind).get(self.normalize_key(token))

    def lookup_brand(self, token: str) -> Optional[int]:
        if token is None:
            return None
        return self.brand_name_to_id.get(self.normalize_key(token))

    def lookup_product_brand(self, product_name: str) -> Optional[int]:
        if product_name is None:
            return None
        return self.product_name_to_id.get(self.normalize_key(product_name))

    def rule(self, name: str) -> Optional[PatternRule]:
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    # ------------------------------------------------------------------
    # Copy-on-write mutations
    # ------------------------------------------------------------------

    def with_dictionary_entry(self, kind: AttributeKind, token: str, value: Any) -> "RuleSet":
        enum_cls = DICTIONARY_KINDS.get(kind)
        if enum_cls is None:
            raise ValueError(f"No dictionary for attribute '{kind.value}'")
        if not str(token).strip():
            raise ValueError("Dictionary token must not be empty")
        dictionaries = {k: dict(v) for k, v in self.dictionaries.items()}
        dictionaries.setdefault(kind, {})[self.normalize_key(token)] = coerce_enum(enum_cls, value)
        return replace(self, dictionaries=dictionaries)

    def without_dictionary_entry(self, kind: AttributeKind, token: str) -> "RuleSet":
        dictionaries = {k: dict(v) for k, v in self.dictionaries.items()}
        dictionaries.get(kind, {}).pop(self.normalize_key(token), None)
        return replace(self, dictionaries=dictionaries)

    def with_brand(self, brand_name: str, brand_id: int) -> "RuleSet":
        if not str(brand_name).strip():
            raise ValueError("Brand name must not be empty")
        brands = dict(self.brand_name_to_id)
        brands[self.normalize_key(brand_name)] = int(brand_id)
        return replace(self, brand_name_to_id=brands)

    def without_brand(self, brand_name: str) -> "RuleSet":
        brands = dict(self.brand_name_to_id)
        brands.pop(self.normalize_key(brand_name), None)
        return replace(self, brand_name_to_id=brands)

    def with_product_name(self, product_name: str, brand_id: int) -> "RuleSet":
        if not str(product_name).strip():
            raise ValueError("Product name must not be empty")
        products = dict(self.product_name_to_id)
        products[self.normalize_key(product_name)] = int(brand_id)
        return replace(self, product_name_to_id=products)

    def without_product_name(self, product_name: str) -> "RuleSet":
        products = dict(self.product_name_to_id)
        products.pop(self.normalize_key(product_name), None)
        return replace(self, product_name_to_id=products)

    def with_rule(self, rule: PatternRule) -> "RuleSet":
        """Add a rule, replacing any rule of the same name.

        The new rule is placed after every existing rule whose priority is
        lower than or equal to its own.
        """
        rules = [r for r in self.rules if r.name != rule.name]
        position = len(rules)
        for i, existing in enumerate(rules):
            if existing.priority > rule.priority:
                position = i
                break
        rules.insert(position, rule)
        return replace(self, rules=tuple(rules))

    def without_rule(self, name: str) -> "RuleSet":
        return replace(self, rules=tuple(r for r in self.rules if r.name != name))

    def with_ignore_pattern(self, pattern: str) -> "RuleSet":
        if pattern in self.ignore_patterns:
            return self
        return replace(self, ignore_patterns=self.ignore_patterns + (pattern,))

    def without_ignore_pattern(self, pattern: str) -> "RuleSet":
        return replace(
            self, ignore_patterns=tuple(p for p in self.ignore_patterns if p != pattern)
        )

    # ------------------------------------------------------------------
    # Persistence form
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for kind, key in DICTIONARY_KEYS.items():
            data[key] = {token: value.value for token, value in self.dictionary(kind).items()}
        data["brand_name_to_id"] = dict(self.brand_name_to_id)
        data["product_name_to_brand_id"] = dict(self.product_name_to_id)
        data["parsing_rules"] = [rule.to_dict() for rule in self.rules]
        data["ignore_patterns"] = list(self.ignore_patterns)
        data["case_sensitive"] = self.case_sensitive
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuleSet":
        """Rebuild a RuleSet from its persisted form.

        Rule order is taken as stored.

        Raises:
            ConfigurationError: If the document is not a mapping or holds unknown values
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Rule file must contain a JSON object")

        case_sensitive = bool(data.get("case_sensitive", False))

        def norm(token: str) -> str:
            token = str(token).strip()
            return token if case_sensitive else token.upper()

        dictionaries: Dict[AttributeKind, Dict[str, Enum]] = {}
        for kind, key in DICTIONARY_KEYS.items():
            enum_cls = DICTIONARY_KINDS[kind]
            raw = _section(data, key, dict)
            dictionaries[kind] = {norm(t): coerce_enum(enum_cls, v) for t, v in raw.items()}

        try:
            brands = {norm(k): int(v) for k, v in _section(data, "brand_name_to_id", dict).items()}
            products = {
                norm(k): int(v)
                for k, v in _section(data, "product_name_to_brand_id", dict).items()
            }
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Brand ids must be integers: {e}") from e

        rules = tuple(PatternRule.from_dict(r) for r in _section(data, "parsing_rules", list))
        for rule in rules:
            if rule.attribute not in RULE_TARGETS:
                raise ConfigurationError(
                    f"Rule '{rule.name}' targets unsupported attribute '{rule.attribute.value}'"
                )

        ignore_patterns = _section(data, "ignore_patterns", list)
        for pattern in ignore_patterns:
            if not isinstance(pattern, str):
                raise ConfigurationError(f"Ignore patterns must be strings, got {pattern!r}")

        return cls(
            dictionaries=dictionaries,
            brand_name_to_id=brands,
            product_name_to_id=products,
            rules=rules,
            ignore_patterns=tuple(ignore_patterns),
            case_sensitive=case_sensitive,
        )


def default_rule_set() -> RuleSet:
    """Built-in dictionaries, rules and ignore patterns."""
    rule_set = RuleSet(
        dictionaries={
            AttributeKind.CONCENTRATION: dict(DEFAULT_CONCENTRATIONS),
            AttributeKind.DISPENSER_TYPE: dict(DEFAULT_TYPES),
            AttributeKind.UNIT: dict(DEFAULT_UNITS),
            AttributeKind.GENDER: dict(DEFAULT_GENDERS),
        },
        ignore_patterns=tuple(DEFAULT_IGNORE_PATTERNS),
    )
    for name, pattern, attribute, priority, groups, description in DEFAULT_RULES:
        rule_set = rule_set.with_rule(
            PatternRule(
                name=name,
                pattern=pattern,
                attribute=attribute,
                extract_groups=tuple(groups),
                priority=priority,
                description=description,
            )
        )
    return rule_set

