# -*- coding: utf-8 -*-
"""Records, file schemas and conversion results for the row pipeline."""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import toml

from perfume_extractor.errors import ConfigurationError
from perfume_extractor.parsing.constants import (
    ColumnField,
    Concentration,
    DispenserType,
    Gender,
    Unit,
)

logger = logging.getLogger(__name__)


@dataclass
class ProductRecord:
    """One structured catalog product. ``None`` means the field is unset."""

    code: Optional[str] = None
    name: Optional[str] = None
    brand_id: Optional[int] = None
    concentration: Optional[Concentration] = None
    dispenser_type: Optional[DispenserType] = None
    gender: Optional[Gender] = None
    size: Optional[str] = None
    unit: Optional[Unit] = None
    country_of_origin: Optional[str] = None
    li_free: Optional[bool] = None
    remarks: Optional[str] = None
    original_source_text: Optional[str] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, Any]:
        """Flat dict with enum members replaced by their values."""
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return data


class RecordSink(ABC):
    """Destination for records that passed validation."""

    @abstractmethod
    def accept(self, record: ProductRecord) -> None:
        """Take one finished record."""


@dataclass
class RowIssue:
    """A problem found while converting one row."""

    row: int
    field: str
    message: str
    raw_line: str = ""
    value: str = ""

    def __str__(self) -> str:
        return f"Row {self.row} [{self.field}]: {self.message}"


@dataclass
class InteractiveContext:
    """Everything a resolver sees at one decision point."""

    row_number: int
    field_name: str
    original_text: str
    current_record: ProductRecord
    confidence: float
    raw_row_text: str = ""


@dataclass
class ConversionResult:
    """Outcome of converting one file."""

    source: str = ""
    lines_processed: int = 0
    empty_lines: int = 0
    records: List[ProductRecord] = field(default_factory=list)
    errors: List[RowIssue] = field(default_factory=list)
    interactive_decisions: int = 0
    learned_rules: int = 0
    learning_failures: List[RowIssue] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def summary(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "lines_processed": self.lines_processed,
            "empty_lines": self.empty_lines,
            "valid_records": len(self.records),
            "errors": len(self.errors),
            "interactive_decisions": self.interactive_decisions,
            "learned_rules": self.learned_rules,
            "learning_failures": len(self.learning_failures),
        }

    def records_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [r.to_dict() for r in self.records], columns=ProductRecord.field_names()
        )

    def errors_dataframe(self) -> pd.DataFrame:
        columns = ["row", "field", "message", "value", "raw_line"]
        issues = self.errors + self.learning_failures
        return pd.DataFrame([asdict(issue) for issue in issues], columns=columns)

    def log_summary(self) -> None:
        """Log a conversion summary."""
        logger.info("=" * 70)
        logger.info(f"CONVERSION SUMMARY: {self.source}")
        logger.info("=" * 70)
        for key, value in self.summary().items():
            if key != "source":
                logger.info(f"  {key}: {value}")
        for issue in self.errors[:10]:
            logger.info(f"  {issue}")
        if len(self.errors) > 10:
            logger.info(f"  ... {len(self.errors) - 10} more errors")
        logger.info("=" * 70)


@dataclass
class FileSchema:
    """Layout of one tabular catalog format.

    Rows are 1-based (``title_row`` 0 means no title row, ``last_data_row``
    -1 means end of file). Column indices are 0-based cell positions.
    """

    column_mapping: Dict[int, ColumnField]
    title_row: int = 1
    first_data_row: int = 2
    last_data_row: int = -1
    has_inner_titles: bool = False
    expected_column_count: int = 0
    description_columns: List[int] = field(default_factory=list)
    ignored_columns: List[int] = field(default_factory=list)
    format_name: str = "Default"

    def validate(self) -> None:
        """Check the schema for consistency.

        Raises:
            ConfigurationError: On inconsistent row bounds or column mapping
        """
        if self.title_row < 0:
            raise ConfigurationError(f"title_row ({self.title_row}) must be 0 or positive")
        if self.first_data_row < 1 or self.first_data_row <= self.title_row:
            raise ConfigurationError(
                f"first_data_row ({self.first_data_row}) must be greater than "
                f"title_row ({self.title_row})"
            )
        if self.last_data_row != -1 and self.last_data_row < self.first_data_row:
            raise ConfigurationError(
                f"last_data_row ({self.last_data_row}) must be -1 or at least "
                f"first_data_row ({self.first_data_row})"
            )
        if not self.column_mapping:
            raise ConfigurationError("column_mapping cannot be empty")
        if ColumnField.CODE not in self.column_mapping.values():
            raise ConfigurationError("column_mapping must include a 'code' column")
        targets = list(self.column_mapping.values())
        duplicates = {t.value for t in targets if targets.count(t) > 1}
        if duplicates:
            raise ConfigurationError(f"Fields mapped more than once: {sorted(duplicates)}")
        if any(i < 0 for i in self.column_mapping):
            raise ConfigurationError("Column indices must be 0 or positive")
        if self.has_inner_titles and self.expected_column_count <= 0:
            raise ConfigurationError(
                "expected_column_count is required when has_inner_titles is set"
            )

    @classmethod
    def default(cls) -> "FileSchema":
        """13-column stock list: mapped columns 0-8, description in column 10."""
        return cls(
            column_mapping={
                0: ColumnField.CODE,
                1: ColumnField.NAME,
                2: ColumnField.BRAND,
                3: ColumnField.CONCENTRATION,
                4: ColumnField.DISPENSER_TYPE,
                5: ColumnField.GENDER,
                6: ColumnField.SIZE,
                7: ColumnField.LI_FREE,
                8: ColumnField.COUNTRY_OF_ORIGIN,
            },
            title_row=1,
            first_data_row=2,
            expected_column_count=13,
            description_columns=[10],
            ignored_columns=[11, 12],
            format_name="StockList",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileSchema":
        """Build a schema from a parsed TOML document.

        Raises:
            ConfigurationError: On unknown fields or non-integer indices
        """
        try:
            mapping = {
                int(column): ColumnField(str(target).lower())
                for column, target in (data.get("column_mapping") or {}).items()
            }
            schema = cls(
                column_mapping=mapping,
                title_row=int(data.get("title_row", 1)),
                first_data_row=int(data.get("first_data_row", 2)),
                last_data_row=int(data.get("last_data_row", -1)),
                has_inner_titles=bool(data.get("has_inner_titles", False)),
                expected_column_count=int(data.get("expected_column_count", 0)),
                description_columns=[int(c) for c in data.get("description_columns", [])],
                ignored_columns=[int(c) for c in data.get("ignored_columns", [])],
                format_name=str(data.get("format_name", "Default")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid file schema: {e}") from e
        schema.validate()
        return schema


def load_schema(path: Union[str, Path]) -> FileSchema:
    """Read a FileSchema from a TOML file.

    Args:
        path: Schema file, e.g. schemas/stock_list.toml

    Returns:
        Validated FileSchema

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the schema is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    try:
        data = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"Malformed schema file {path}: {e}") from e
    schema = FileSchema.from_dict(data)
    logger.debug(f"Loaded schema '{schema.format_name}' from {path}")
    return schema
