# -*- coding: utf-8 -*-
"""Tests for Settings loading."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from perfume_extractor.utils import get_workspace_root
from perfume_extractor.utils.settings import Settings


@pytest.fixture
def temp_dir():
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestSettings:
    """Test settings file handling."""

    def test_relative_paths_resolved_from_file(self, temp_dir):
        path = temp_dir / "extractor.toml"
        path.write_text(
            '[paths]\nrules_file = "rules/custom.json"\noutput_dir = "/tmp/out"\n'
            "[interactive]\nenabled = true\nconfidence_threshold = 0.5\n"
            '[logging]\nlevel = "debug"\n',
            encoding="utf-8",
        )

        settings = Settings(path)

        assert settings.rules_file == temp_dir / "rules" / "custom.json"
        assert settings.output_dir == Path("/tmp/out")
        assert settings.default_schema is None
        assert settings.interactive_enabled is True
        assert settings.confidence_threshold == 0.5
        assert settings.log_level == "DEBUG"

    def test_defaults_for_empty_file(self, temp_dir):
        path = temp_dir / "extractor.toml"
        path.write_text("", encoding="utf-8")

        settings = Settings(path)

        assert settings.rules_file == temp_dir / "config" / "product-parser-rules.json"
        assert settings.interactive_enabled is False
        assert settings.confidence_threshold == 0.7
        assert settings.log_level == "INFO"

    def test_explicit_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            Settings(temp_dir / "missing.toml")

    def test_workspace_settings(self):
        """The shipped extractor.toml points at the shipped schema."""
        settings = Settings()
        assert settings.default_schema == get_workspace_root() / "schemas" / "stock_list.toml"
