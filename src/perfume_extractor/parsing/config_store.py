# -*- coding: utf-8 -*-
"""Persistent owner of the current RuleSet.

The store reads and writes a single JSON rule file. Every mutator builds a
new RuleSet snapshot, swaps the store's reference and persists immediately,
so the file on disk always matches what the Extractor is compiled from.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.constants import DICTIONARY_KINDS, AttributeKind
from perfume_extractor.parsing.rules import (
    PatternRule,
    RuleSet,
    compile_pattern,
    default_rule_set,
    extract_group_problem,
)
from perfume_extractor.utils import ensure_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleSetStatistics:
    """Entry counts of a RuleSet."""

    concentration_mappings: int
    type_mappings: int
    gender_mappings: int
    unit_mappings: int
    brand_mappings: int
    product_name_mappings: int
    parsing_rules: int
    ignore_patterns: int
    case_sensitive: bool

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class ConfigStore:
    """Load, persist and mutate the RuleSet backing the Extractor.

    Usage:
        store = ConfigStore(Path("config/product-parser-rules.json"))
        store.add_brand_mapping("CHANEL", 1)
        rule_set = store.rule_set
    """

    def __init__(self, path: Union[str, Path]):
        """Open the rule file, creating it from defaults when absent.

        Args:
            path: Location of the JSON rule file

        Raises:
            ConfigurationError: If the file exists but cannot be parsed
        """
        self.path = Path(path)
        self._rule_set = self.load()

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> RuleSet:
        """Read the rule file from disk.

        Returns:
            The loaded RuleSet. When the file does not exist the built-in
            defaults are returned and written to ``self.path``.

        Raises:
            ConfigurationError: On malformed JSON, unknown values or invalid patterns
        """
        if not self.path.exists():
            logger.info(f"Rule file not found, creating default: {self.path}")
            rule_set = default_rule_set()
            self._write(rule_set, self.path)
            return rule_set

        rule_set = self._read(self.path)
        logger.debug(
            f"Loaded {len(rule_set.rules)} rules and "
            f"{len(rule_set.brand_name_to_id)} brand mappings from {self.path}"
        )
        return rule_set

    def save(self) -> None:
        """Persist the current RuleSet.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        self._write(self._rule_set, self.path)

    def replace(self, rule_set: RuleSet) -> None:
        """Persist a new snapshot, then make it current.

        Raises:
            ConfigurationError: If a pattern is invalid or the write fails;
                the previous snapshot stays current in that case
        """
        self._check_patterns(rule_set)
        self._write(rule_set, self.path)
        self._rule_set = rule_set

    @staticmethod
    def _read(path: Path) -> RuleSet:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Malformed rule file {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read rule file {path}: {e}") from e

        rule_set = RuleSet.from_dict(data)
        ConfigStore._check_patterns(rule_set)
        return rule_set

    @staticmethod
    def _write(rule_set: RuleSet, path: Path) -> None:
        # Write beside the target and swap, so a failed write never truncates it
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            ensure_dir(path.parent)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(rule_set.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ConfigurationError(f"Failed to save rule file {path}: {e}") from e

    @staticmethod
    def _check_patterns(rule_set: RuleSet) -> None:
        for rule in rule_set.rules:
            compiled = compile_pattern(rule.pattern, rule.case_sensitive)
            problem = extract_group_problem(rule, compiled)
            if problem:
                raise ConfigurationError(problem)
        for pattern in rule_set.ignore_patterns:
            compile_pattern(pattern)

    # ------------------------------------------------------------------
    # Export / import / reset / backup
    # ------------------------------------------------------------------

    def export_to(self, path: Union[str, Path]) -> Path:
        """Write the current RuleSet to another file."""
        path = Path(path)
        self._write(self._rule_set, path)
        logger.info(f"Exported rules to {path}")
        return path

    def import_from(self, path: Union[str, Path]) -> RuleSet:
        """Replace the current RuleSet with the contents of another file.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Rule file to import not found: {path}")
        rule_set = self._read(path)
        self.replace(rule_set)
        logger.info(f"Imported rules from {path}")
        return rule_set

    def reset_to_default(self) -> RuleSet:
        self.replace(default_rule_set())
        logger.info("Rules reset to built-in defaults")
        return self._rule_set

    def create_backup(self, backup_path: Optional[Union[str, Path]] = None) -> Path:
        """Copy the rule file aside.

        Args:
            backup_path: Destination; defaults to ``<file>.backup.<timestamp>``

        Returns:
            Path of the backup
        """
        if backup_path is None:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            backup_path = self.path.with_name(f"{self.path.name}.backup.{stamp}")
        backup_path = Path(backup_path)

        if not self.path.exists():
            self.save()
        try:
            ensure_dir(backup_path.parent)
            shutil.copy2(self.path, backup_path)
        except OSError as e:
            raise ConfigurationError(f"Failed to create backup {backup_path}: {e}") from e

        logger.info(f"Backed up rules to {backup_path}")
        return backup_path

    # ------------------------------------------------------------------
    # Mutators (each persists immediately)
    # ------------------------------------------------------------------

    def add_dictionary_entry(self, kind: AttributeKind, token: str, value: Union[Enum, str]) -> None:
        if kind not in DICTIONARY_KINDS:
            raise ValueError(f"No dictionary for attribute '{kind.value}'")
        self.replace(self._rule_set.with_dictionary_entry(kind, token, value))
        logger.debug(f"Added {kind.value} mapping {token} -> {value}")

    def remove_dictionary_entry(self, kind: AttributeKind, token: str) -> None:
        self.replace(self._rule_set.without_dictionary_entry(kind, token))

    def add_brand_mapping(self, brand_name: str, brand_id: int) -> None:
        self.replace(self._rule_set.with_brand(brand_name, brand_id))
        logger.debug(f"Added brand mapping {brand_name} -> {brand_id}")

    def remove_brand_mapping(self, brand_name: str) -> None:
        self.replace(self._rule_set.without_brand(brand_name))

    def add_product_name_mapping(self, product_name: str, brand_id: int) -> None:
        self.replace(self._rule_set.with_product_name(product_name, brand_id))

    def remove_product_name_mapping(self, product_name: str) -> None:
        self.replace(self._rule_set.without_product_name(product_name))

    def add_rule(self, rule: PatternRule) -> None:
        """Add or replace a parsing rule.

        Raises:
            ConfigurationError: If the pattern does not compile or lacks an extracted group
        """
        compile_pattern(rule.pattern, rule.case_sensitive)
        self.replace(self._rule_set.with_rule(rule))
        logger.debug(f"Added rule '{rule.name}' ({rule.attribute.value}, priority {rule.priority})")

    def remove_rule(self, name: str) -> None:
        self.replace(self._rule_set.without_rule(name))

    def add_ignore_pattern(self, pattern: str) -> None:
        compile_pattern(pattern)
        self.replace(self._rule_set.with_ignore_pattern(pattern))

    def remove_ignore_pattern(self, pattern: str) -> None:
        self.replace(self._rule_set.without_ignore_pattern(pattern))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """Check the current RuleSet for problems.

        Returns:
            Human-readable problem descriptions; empty when the rules are usable
        """
        problems = []
        for i, rule in enumerate(self._rule_set.rules, start=1):
            label = rule.name or f"#{i}"
            if not rule.name.strip():
                problems.append(f"Rule #{i} has an empty name")
            if not rule.pattern.strip():
                problems.append(f"Rule '{label}' has an empty pattern")
                continue
            try:
                compiled = compile_pattern(rule.pattern, rule.case_sensitive)
            except ConfigurationError as e:
                problems.append(f"Rule '{label}': {e}")
                continue
            if not rule.extract_groups:
                problems.append(f"Rule '{label}' has no extract groups")
                continue
            group_problem = extract_group_problem(rule, compiled)
            if group_problem:
                problems.append(group_problem)

        for pattern in self._rule_set.ignore_patterns:
            try:
                compile_pattern(pattern)
            except ConfigurationError as e:
                problems.append(f"Ignore pattern: {e}")

        return problems

    def statistics(self) -> RuleSetStatistics:
        rs = self._rule_set
        return RuleSetStatistics(
            concentration_mappings=len(rs.dictionary(AttributeKind.CONCENTRATION)),
            type_mappings=len(rs.dictionary(AttributeKind.DISPENSER_TYPE)),
            gender_mappings=len(rs.dictionary(AttributeKind.GENDER)),
            unit_mappings=len(rs.dictionary(AttributeKind.UNIT)),
            brand_mappings=len(rs.brand_name_to_id),
            product_name_mappings=len(rs.product_name_to_id),
            parsing_rules=len(rs.rules),
            ignore_patterns=len(rs.ignore_patterns),
            case_sensitive=rs.case_sensitive,
        )
