# -*- coding: utf-8 -*-
"""Runtime façade over ConfigStore and Extractor.

Each mutator persists through the ConfigStore and then rebuilds the
Extractor, so the compiled rules always reflect the rule file. This is the
only path through which interactive teaching changes the rules.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from perfume_extractor.errors import LearningError
from perfume_extractor.parsing.config_store import ConfigStore, RuleSetStatistics
from perfume_extractor.parsing.constants import (
    DEFAULT_RULE_PRIORITY,
    DICTIONARY_KINDS,
    AttributeKind,
    Concentration,
    DispenserType,
    Gender,
)
from perfume_extractor.parsing.extractor import Extractor, ParsedAttributes
from perfume_extractor.parsing.rules import PatternRule, RuleSet
from perfume_extractor.parsing.teaching import (
    TeachingStatement,
    parse_teaching_statement,
    size_rule_name,
    size_rule_pattern,
)
from perfume_extractor.pipeline.models import ProductRecord

logger = logging.getLogger(__name__)


@dataclass
class ParsingComparison:
    """Before/after view of applying one description to an empty record."""

    original_text: str
    parsed: ParsedAttributes
    original_record: ProductRecord
    updated_record: ProductRecord

    @property
    def found_matches(self) -> bool:
        return self.parsed.has_matches()

    def changes(self) -> List[str]:
        changes = []
        for name in ProductRecord.field_names():
            before = getattr(self.original_record, name)
            after = getattr(self.updated_record, name)
            if before != after:
                shown = after.value if isinstance(after, Enum) else after
                changes.append(f"{name}: {shown}")
        return changes

    def summary(self) -> str:
        changes = self.changes()
        return ", ".join(changes) if changes else "No changes detected"


@dataclass
class LearningExample:
    """A description together with what it should have produced."""

    description: str
    concentration: Optional[Concentration] = None
    dispenser_type: Optional[DispenserType] = None
    gender: Optional[Gender] = None
    brand_id: Optional[int] = None


@dataclass
class TeachingOutcome:
    """Result of applying one teaching statement."""

    statement: str
    applied: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class RuntimeRuleManager:
    """Mutate rules at runtime and keep the Extractor in sync.

    Usage:
        manager = RuntimeRuleManager(ConfigStore(path))
        manager.add_brand_mapping("CHANEL", 1)
        manager.test_parsing("CHANEL NO 5 100ML EDP")
    """

    def __init__(self, store: ConfigStore):
        self.store = store
        self._extractor = Extractor(store.rule_set)

    @property
    def extractor(self) -> Extractor:
        return self._extractor

    @property
    def rule_set(self) -> RuleSet:
        return self.store.rule_set

    def refresh(self) -> None:
        """Recompile the Extractor from the store's current snapshot."""
        self._extractor = Extractor(self.store.rule_set)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def add_dictionary_entry(self, kind: AttributeKind, token: str, value) -> None:
        self.store.add_dictionary_entry(kind, token, value)
        self.refresh()

    def remove_dictionary_entry(self, kind: AttributeKind, token: str) -> None:
        self.store.remove_dictionary_entry(kind, token)
        self.refresh()

    def add_brand_mapping(self, brand_name: str, brand_id: int) -> None:
        self.store.add_brand_mapping(brand_name, brand_id)
        self.refresh()

    def remove_brand_mapping(self, brand_name: str) -> None:
        self.store.remove_brand_mapping(brand_name)
        self.refresh()

    def add_brand_mappings(self, brands: Iterable[Tuple[str, int]]) -> int:
        """Add (name, id) pairs, e.g. from a brand master table.

        Returns:
            Number of mappings added
        """
        count = 0
        for name, brand_id in brands:
            if name and str(name).strip():
                self.store.add_brand_mapping(name, brand_id)
                count += 1
        self.refresh()
        logger.info(f"Added {count} brand mappings")
        return count

    def add_product_name_mapping(self, product_name: str, brand_id: int) -> None:
        self.store.add_product_name_mapping(product_name, brand_id)
        self.refresh()

    def remove_product_name_mapping(self, product_name: str) -> None:
        self.store.remove_product_name_mapping(product_name)
        self.refresh()

    def add_product_name_mappings(self, products: Iterable[Tuple[str, int]]) -> int:
        count = 0
        for name, brand_id in products:
            if name and str(name).strip():
                self.store.add_product_name_mapping(name, brand_id)
                count += 1
        self.refresh()
        logger.info(f"Added {count} product name mappings")
        return count

    def add_rule(
        self,
        name: str,
        pattern: str,
        attribute: AttributeKind,
        priority: int = DEFAULT_RULE_PRIORITY,
        extract_groups: Optional[List[int]] = None,
        stop_on_match: bool = False,
        description: str = "",
    ) -> PatternRule:
        """Add or replace a parsing rule; effective for the next parse.

        Raises:
            ConfigurationError: If the pattern is invalid or cannot be persisted
        """
        rule = PatternRule(
            name=name,
            pattern=pattern,
            attribute=attribute,
            extract_groups=tuple(extract_groups or [1]),
            priority=priority,
            stop_on_match=stop_on_match,
            description=description,
        )
        self.store.add_rule(rule)
        self.refresh()
        return rule

    def remove_rule(self, name: str) -> None:
        self.store.remove_rule(name)
        self.refresh()

    def add_ignore_pattern(self, pattern: str) -> None:
        self.store.add_ignore_pattern(pattern)
        self.refresh()

    def import_from(self, path: Union[str, Path]) -> None:
        self.store.import_from(path)
        self.refresh()

    def export_to(self, path: Union[str, Path]) -> Path:
        return self.store.export_to(path)

    def reset_to_default(self) -> None:
        self.store.reset_to_default()
        self.refresh()

    def create_backup(self, backup_path: Optional[Union[str, Path]] = None) -> Path:
        return self.store.create_backup(backup_path)

    def validate(self) -> List[str]:
        return self.store.validate()

    def statistics(self) -> RuleSetStatistics:
        return self.store.statistics()

    # ------------------------------------------------------------------
    # Testing helpers
    # ------------------------------------------------------------------

    def test_parsing(self, text: str) -> ParsedAttributes:
        return self._extractor.parse_description(text)

    def compare_parsing(self, text: str, record: Optional[ProductRecord] = None) -> ParsingComparison:
        """Show what a description would change on a record.

        Args:
            text: Description to parse
            record: Starting record; an empty one when omitted

        Returns:
            ParsingComparison with untouched and updated copies
        """
        original = record if record is not None else ProductRecord()
        updated = copy.deepcopy(original)
        parsed = self._extractor.parse_and_apply(updated, text, overwrite=False)
        return ParsingComparison(
            original_text=text,
            parsed=parsed,
            original_record=copy.deepcopy(original),
            updated_record=updated,
        )

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def apply_teaching(self, statement: TeachingStatement) -> List[str]:
        """Persist one parsed teaching statement.

        Returns:
            Human-readable descriptions of what was added
        """
        applied = []
        attribute = statement.attribute
        for pattern in statement.patterns:
            if attribute == AttributeKind.BRAND:
                self.store.add_brand_mapping(pattern, statement.value)
                applied.append(f"brand mapping {pattern} -> {statement.value}")
            elif attribute == AttributeKind.SIZE:
                rule = PatternRule(
                    name=size_rule_name(pattern),
                    pattern=size_rule_pattern(pattern),
                    attribute=AttributeKind.SIZE,
                    extract_groups=(1, 2),
                    priority=DEFAULT_RULE_PRIORITY,
                    description=f"Learned size notation '{pattern}'",
                )
                self.store.add_rule(rule)
                self.store.add_dictionary_entry(AttributeKind.UNIT, pattern, statement.value)
                applied.append(f"size rule {rule.name} ({pattern} = {statement.value.value})")
            elif attribute in DICTIONARY_KINDS:
                self.store.add_dictionary_entry(attribute, pattern, statement.value)
                applied.append(f"{attribute.value} mapping {pattern} -> {statement.value.value}")
            else:
                raise LearningError(f"Cannot learn attribute '{attribute.value}'", statement.text)
        self.refresh()
        return applied

    def learn(self, text: str) -> TeachingOutcome:
        """Parse and apply one teaching statement.

        Unparseable statements are reported in the outcome instead of raised.
        ConfigurationError (a failed persist) still propagates.
        """
        try:
            statement = parse_teaching_statement(text)
            applied = self.apply_teaching(statement)
        except LearningError as e:
            logger.warning(f"Could not learn from '{text}': {e}")
            return TeachingOutcome(statement=text, error=str(e))

        for change in applied:
            logger.info(f"Learned {change}")
        return TeachingOutcome(statement=text, applied=applied)

    def learn_from_examples(self, examples: Iterable[LearningExample]) -> int:
        """Map unrecognised words to the attributes an example says it has.

        For each expected attribute the parse missed, the first word longer
        than two characters that is not already in that dictionary is mapped.

        Returns:
            Number of mappings added
        """
        added = 0
        targets = (
            ("concentration", AttributeKind.CONCENTRATION),
            ("dispenser_type", AttributeKind.DISPENSER_TYPE),
            ("gender", AttributeKind.GENDER),
        )
        for example in examples:
            parsed = self._extractor.parse_description(example.description)
            words = self._extractor.normalize(example.description).split()

            for attr, kind in targets:
                expected = getattr(example, attr)
                if expected is None or getattr(parsed, attr) is not None:
                    continue
                known = self.rule_set.dictionary(kind)
                word = next((w for w in words if len(w) > 2 and w not in known), None)
                if word:
                    self.store.add_dictionary_entry(kind, word, expected)
                    added += 1

            if example.brand_id is not None and parsed.brand_id is None and words:
                self.store.add_brand_mapping(words[0], example.brand_id)
                added += 1

            self.refresh()

        logger.info(f"Learned {added} mappings from examples")
        return added
