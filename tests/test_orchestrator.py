# -*- coding: utf-8 -*-
"""Tests for the command-line entry point."""

import csv
from pathlib import Path
from tempfile import TemporaryDirectory

import pandas as pd
import pytest

from perfume_extractor.parsing.config_store import ConfigStore
from perfume_extractor.parsing.constants import AttributeKind, Gender
from perfume_extractor.pipeline.orchestrator import run

SCHEMA_TOML = """
format_name = "Mini"
expected_column_count = 4
description_columns = [3]

[column_mapping]
0 = "code"
1 = "name"
2 = "brand"
"""


@pytest.fixture
def workspace():
    """Temporary settings file, rule file location and schema."""
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "extractor.toml").write_text(
            '[paths]\nrules_file = "rules.json"\noutput_dir = "out"\n'
            'default_schema = "mini.toml"\n',
            encoding="utf-8",
        )
        (root / "mini.toml").write_text(SCHEMA_TOML, encoding="utf-8")
        yield root


def cli(workspace, *args):
    return run(["--config", str(workspace / "extractor.toml"), *args])


def write_catalog(path, rows):
    with open(path, "w", encoding="utf-8", newline="") as f:
        csv.writer(f).writerows(rows)
    return path


class TestConvertCommand:
    """Test `convert`."""

    def test_convert_writes_products(self, workspace):
        cli(workspace, "rules", "add-brand", "CHANEL", "1")
        catalog = write_catalog(
            workspace / "stock.csv",
            [
                ["code", "name", "brand", "description"],
                ["1001", "No 5", "CHANEL", "CHANEL NO 5 100ML EDP SPRAY FOR WOMEN"],
            ],
        )

        status = cli(workspace, "convert", str(catalog))

        products = pd.read_csv(workspace / "out" / "stock_products.csv", dtype=str)
        assert status == 0
        assert products.loc[0, "code"] == "1001"
        assert products.loc[0, "concentration"] == "EDP"
        assert products.loc[0, "gender"] == "Female"
        assert not (workspace / "out" / "stock_errors.csv").exists()

    def test_convert_with_errors(self, workspace):
        """Rows that fail validation go to the errors file; exit status is 1."""
        catalog = write_catalog(
            workspace / "stock.csv",
            [["code", "name", "brand", "description"], ["1001", "", "UNKNOWN", ""]],
        )
        output = workspace / "elsewhere"

        status = cli(workspace, "convert", str(catalog), "--output", str(output))

        errors = pd.read_csv(output / "stock_errors.csv", dtype=str)
        assert status == 1
        assert set(errors["message"]) == {"Product name is required", "Valid brand ID is required"}

    def test_convert_to_xlsx(self, workspace):
        """--format xlsx writes one workbook with Products and Errors sheets."""
        catalog = write_catalog(
            workspace / "stock.csv",
            [["code", "name", "brand", "description"], ["1001", "", "UNKNOWN", ""]],
        )

        cli(workspace, "convert", str(catalog), "--format", "xlsx")

        sheets = pd.read_excel(workspace / "out" / "stock_products.xlsx", sheet_name=None)
        assert list(sheets) == ["Products", "Errors"]
        assert len(sheets["Errors"]) == 2

    def test_missing_catalog(self, workspace):
        assert cli(workspace, "convert", str(workspace / "missing.csv")) == 1

    def test_invalid_schema(self, workspace):
        """A schema error aborts with status 1."""
        bad = workspace / "bad.toml"
        bad.write_text('[column_mapping]\n1 = "name"\n', encoding="utf-8")
        catalog = write_catalog(workspace / "stock.csv", [["code"], ["1001"]])

        assert cli(workspace, "convert", str(catalog), "--schema", str(bad)) == 1


class TestParseCommand:
    """Test `parse`."""

    def test_parse_prints_detection(self, workspace, capsys):
        status = cli(workspace, "parse", "ADP", "BLU", "MEDITERRANEO", "30ML", "EDT", "SPRAY")

        out = capsys.readouterr().out
        assert status == 0
        assert "concentration=Parfum" in out
        assert "ExtractSizeWithUnits" in out

    def test_parse_nothing_found(self, workspace):
        assert cli(workspace, "parse", "LOREM") == 1


class TestRulesCommand:
    """Test `rules` maintenance actions."""

    def test_teach_persists(self, workspace, capsys):
        status = cli(workspace, "rules", "teach", "'POUR HOMME' -> Gender=Male")

        rule_set = ConfigStore(workspace / "rules.json").rule_set
        assert status == 0
        assert rule_set.lookup(AttributeKind.GENDER, "POUR HOMME") == Gender.MALE
        assert "Learned gender mapping POUR HOMME -> Male" in capsys.readouterr().out

    def test_teach_failure(self, workspace):
        assert cli(workspace, "rules", "teach", "nonsense") == 1

    def test_stats_and_validate(self, workspace, capsys):
        assert cli(workspace, "rules", "stats") == 0
        assert "parsing_rules: 4" in capsys.readouterr().out
        assert cli(workspace, "rules", "validate") == 0

    def test_export_needs_path(self, workspace):
        assert cli(workspace, "rules", "export") == 1

    def test_export_import(self, workspace):
        cli(workspace, "rules", "add-brand", "DIOR", "2")
        exported = workspace / "export.json"

        assert cli(workspace, "rules", "export", str(exported)) == 0
        assert cli(workspace, "rules", "reset") == 0
        assert ConfigStore(workspace / "rules.json").rule_set.lookup_brand("DIOR") is None

        assert cli(workspace, "rules", "import", str(exported)) == 0
        assert ConfigStore(workspace / "rules.json").rule_set.lookup_brand("DIOR") == 2

    def test_add_brand_needs_id(self, workspace):
        assert cli(workspace, "rules", "add-brand", "DIOR") == 1

    def test_broken_rule_file(self, workspace):
        (workspace / "rules.json").write_text("{oops", encoding="utf-8")
        assert cli(workspace, "rules", "stats") == 1
