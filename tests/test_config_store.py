# -*- coding: utf-8 -*-
"""Tests for ConfigStore persistence and mutators."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import pytest

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.config_store import ConfigStore
from perfume_extractor.parsing.constants import AttributeKind, Concentration
from perfume_extractor.parsing.rules import PatternRule, default_rule_set


@pytest.fixture
def temp_dir():
    """Create temporary directory for rule files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def rules_path(temp_dir):
    return temp_dir / "config" / "rules.json"


@pytest.fixture
def store(rules_path):
    return ConfigStore(rules_path)


class TestLoad:
    """Test loading and default creation."""

    def test_missing_file_creates_default(self, rules_path):
        """A missing rule file is created from the defaults."""
        store = ConfigStore(rules_path)

        assert rules_path.exists()
        assert store.rule_set == default_rule_set()

    def test_malformed_json(self, temp_dir):
        """Malformed JSON raises ConfigurationError."""
        path = temp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Malformed rule file"):
            ConfigStore(path)

    def test_invalid_regex_in_file(self, temp_dir):
        """A rule file with an invalid pattern is rejected at load."""
        path = temp_dir / "bad_regex.json"
        data = default_rule_set().to_dict()
        data["parsing_rules"].append(
            {"name": "Broken", "pattern": "([", "attribute": "brand"}
        )
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid regex"):
            ConfigStore(path)

    @pytest.mark.parametrize(
        "section, value",
        [
            ("brand_name_to_id", ["CHANEL"]),
            ("gender_dictionary", ["M"]),
            ("ignore_patterns", [5]),
            ("ignore_patterns", "SAMPLE"),
            ("parsing_rules", {"name": "Brand"}),
        ],
    )
    def test_wrong_section_shape(self, temp_dir, section, value):
        """A section with the wrong JSON type is a ConfigurationError."""
        path = temp_dir / "shape.json"
        path.write_text(json.dumps({section: value}), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigStore(path)

    def test_negative_group_in_file(self, temp_dir):
        """A stored rule with a negative extract group is rejected at load."""
        path = temp_dir / "negative.json"
        data = default_rule_set().to_dict()
        data["parsing_rules"].append(
            {"name": "Neg", "pattern": r"(\w+)", "attribute": "name", "extract_groups": [-5]}
        )
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Neg"):
            ConfigStore(path)


class TestPersistence:
    """Test that every mutation is persisted immediately."""

    def test_save_then_load_is_equal(self, store, rules_path):
        """Reloading reproduces the same RuleSet including rule order."""
        store.add_brand_mapping("CHANEL", 1)
        store.add_product_name_mapping("Bleu de Chanel", 1)
        store.add_rule(PatternRule("Zeta", r"(\w+)$", AttributeKind.NAME, priority=10))
        store.add_rule(PatternRule("Alpha", r"^(\w+)", AttributeKind.NAME, priority=10))

        reloaded = ConfigStore(rules_path).rule_set

        assert reloaded == store.rule_set
        assert [r.name for r in reloaded.rules][-2:] == ["Zeta", "Alpha"]

    def test_dictionary_entry_persisted(self, store, rules_path):
        """Dictionary additions survive a reload."""
        store.add_dictionary_entry(AttributeKind.CONCENTRATION, "EXTRAIT", Concentration.PARFUM)

        reloaded = ConfigStore(rules_path).rule_set
        assert reloaded.lookup(AttributeKind.CONCENTRATION, "extrait") == Concentration.PARFUM

    def test_remove_brand_persisted(self, store, rules_path):
        """Removals are persisted too."""
        store.add_brand_mapping("DIOR", 2)
        store.remove_brand_mapping("dior")

        assert ConfigStore(rules_path).rule_set.lookup_brand("DIOR") is None

    def test_remove_rule_persisted(self, store, rules_path):
        """A removed rule is gone from the file."""
        store.add_rule(PatternRule("Extra", r"^(\w+)", AttributeKind.NAME))
        store.remove_rule("Extra")

        reloaded = ConfigStore(rules_path).rule_set
        assert reloaded.rule("Extra") is None
        assert len(reloaded.rules) == 4

    def test_remove_dictionary_entry_persisted(self, store, rules_path):
        store.remove_dictionary_entry(AttributeKind.CONCENTRATION, "edt")

        reloaded = ConfigStore(rules_path).rule_set
        assert reloaded.lookup(AttributeKind.CONCENTRATION, "EDT") is None
        assert reloaded.lookup(AttributeKind.CONCENTRATION, "EDP") == Concentration.EDP

    def test_add_rule_invalid_pattern(self, store, rules_path):
        """An invalid rule is rejected and the file is unchanged."""
        before = rules_path.read_text(encoding="utf-8")

        with pytest.raises(ConfigurationError):
            store.add_rule(PatternRule("Broken", "(", AttributeKind.BRAND))

        assert rules_path.read_text(encoding="utf-8") == before
        assert store.rule_set.rule("Broken") is None

    def test_failed_persist_raises(self, store):
        """A write failure is a ConfigurationError and keeps the old snapshot."""
        with patch(
            "perfume_extractor.parsing.config_store.json.dump",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(ConfigurationError, match="Failed to save"):
                store.add_brand_mapping("DIOR", 2)

        assert store.rule_set.lookup_brand("DIOR") is None


class TestMaintenance:
    """Test export, import, reset and backup."""

    def test_export_and_import(self, store, temp_dir):
        """Exported rules can be imported into another store."""
        store.add_brand_mapping("CHANEL", 1)
        exported = store.export_to(temp_dir / "export.json")

        other = ConfigStore(temp_dir / "other.json")
        other.import_from(exported)

        assert other.rule_set == store.rule_set
        assert ConfigStore(temp_dir / "other.json").rule_set.lookup_brand("CHANEL") == 1

    def test_import_missing_file(self, store, temp_dir):
        """Importing a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            store.import_from(temp_dir / "missing.json")

    def test_reset_to_default(self, store):
        """Reset discards added mappings."""
        store.add_brand_mapping("CHANEL", 1)
        store.reset_to_default()
        assert store.rule_set == default_rule_set()

    def test_create_backup(self, store, rules_path):
        """Backups are timestamped copies of the rule file."""
        backup = store.create_backup()

        assert backup.exists()
        assert backup.name.startswith(f"{rules_path.name}.backup.")
        assert backup.read_text(encoding="utf-8") == rules_path.read_text(encoding="utf-8")


class TestInspection:
    """Test validate() and statistics()."""

    def test_default_rules_valid(self, store):
        """The built-in rules have no problems."""
        assert store.validate() == []

    @pytest.mark.parametrize("groups", [(2,), (-5,)])
    def test_group_out_of_range_rejected(self, store, rules_path, groups):
        """A rule extracting a group its pattern lacks is rejected unsaved."""
        before = rules_path.read_text(encoding="utf-8")

        with pytest.raises(ConfigurationError, match="BadGroup"):
            store.add_rule(
                PatternRule("BadGroup", r"(\w+)", AttributeKind.BRAND, extract_groups=groups)
            )

        assert rules_path.read_text(encoding="utf-8") == before
        assert store.rule_set.rule("BadGroup") is None
        assert store.validate() == []

    def test_empty_extract_groups_reported(self, store):
        """A rule without extract groups is reported."""
        store.add_rule(PatternRule("NoGroups", r"(\w+)", AttributeKind.BRAND, extract_groups=()))
        assert any("NoGroups" in p for p in store.validate())

    def test_statistics(self, store):
        """Statistics count every kind of entry."""
        store.add_brand_mapping("CHANEL", 1)
        stats = store.statistics()

        assert stats.parsing_rules == 4
        assert stats.brand_mappings == 1
        assert stats.concentration_mappings == 13
        assert stats.to_dict()["ignore_patterns"] == 7
