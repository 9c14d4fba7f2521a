# -*- coding: utf-8 -*-
"""Project settings read from extractor.toml.

Usage:
    settings = Settings()
    store = ConfigStore(settings.rules_file)
"""

import logging
from pathlib import Path
from typing import Optional

import tomllib

from perfume_extractor.parsing.constants import DEFAULT_CONFIDENCE_THRESHOLD
from perfume_extractor.utils import get_workspace_root

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "extractor.toml"


class Settings:
    """Paths, interactive options and log level.

    Relative paths are resolved against the directory holding the settings
    file (the workspace root when no file is present).
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Load settings.

        Args:
            config_path: Path to a settings file. If None, uses extractor.toml
                at the workspace root and falls back to built-in defaults
                when it is missing.

        Raises:
            FileNotFoundError: If an explicit config_path does not exist.
        """
        if config_path is None:
            config_path = get_workspace_root() / DEFAULT_SETTINGS_FILE
            explicit = False
        else:
            config_path = Path(config_path)
            explicit = True

        if config_path.exists():
            with open(config_path, "rb") as f:
                self._config = tomllib.load(f)
            logger.debug(f"Loaded settings from {config_path}")
        elif explicit:
            raise FileNotFoundError(f"Settings file not found: {config_path}")
        else:
            self._config = {}

        self.base_dir = config_path.parent
        paths = self._config.get("paths", {})
        interactive = self._config.get("interactive", {})

        self.rules_file = self._resolve(paths.get("rules_file", "config/product-parser-rules.json"))
        self.output_dir = self._resolve(paths.get("output_dir", "data/output"))
        self.default_schema = (
            self._resolve(paths["default_schema"]) if paths.get("default_schema") else None
        )
        self.interactive_enabled = bool(interactive.get("enabled", False))
        self.confidence_threshold = float(
            interactive.get("confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD)
        )
        self.log_level = str(self._config.get("logging", {}).get("level", "INFO")).upper()

    def _resolve(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self.base_dir / path
