# -*- coding: utf-8 -*-
"""Tabular row source for catalog files.

CSV files are read with the csv module so that every line keeps its own
cell count (recurring title rows are detected by a mismatching count).
Excel workbooks (.xlsx, .xlsm) are read with pandas/openpyxl. pandas pads every
row to the sheet width, so trailing empty cells are dropped to give each row
the width of its last populated cell, as a CSV line has.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pandas as pd

from perfume_extractor.utils.data_cleaning import clean_field

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xlsm")


@dataclass
class SourceRow:
    """One row of cell strings with its 1-based position."""

    index: int
    cells: List[str]

    @property
    def has_data(self) -> bool:
        return any(cell.strip() for cell in self.cells)

    @property
    def raw_text(self) -> str:
        return ",".join(self.cells)

    def cell(self, column: int) -> str:
        """Cell at a 0-based column, or "" when the row is shorter."""
        if 0 <= column < len(self.cells):
            return self.cells[column]
        return ""


@dataclass
class TabularSource:
    """Rows of one catalog file, addressed 1-based."""

    path: Path
    rows: List[List[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def get_row(self, index: int) -> Optional[SourceRow]:
        if index < 1 or index > len(self.rows):
            return None
        return SourceRow(index=index, cells=self.rows[index - 1])

    def __iter__(self) -> Iterator[SourceRow]:
        for i in range(1, len(self.rows) + 1):
            yield SourceRow(index=i, cells=self.rows[i - 1])


def _read_csv(path: Path) -> List[List[str]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return [[cell.strip() for cell in row] for row in csv.reader(f)]


def _read_excel(path: Path) -> List[List[str]]:
    df = pd.read_excel(
        path, sheet_name=0, header=None, dtype=str, keep_default_na=False, engine="openpyxl"
    )
    rows = []
    for values in df.itertuples(index=False):
        cells = [clean_field(value) for value in values]
        # Blank rows keep their width and count as empty lines
        while len(cells) > 1 and not cells[-1] and any(cells):
            cells.pop()
        rows.append(cells)
    return rows


def read_tabular_file(file_path: Union[str, Path]) -> TabularSource:
    """Read a CSV or Excel catalog into memory.

    Args:
        file_path: .csv, .xlsx or .xlsm file; other extensions are read as CSV

    Returns:
        TabularSource with every cell as a stripped string

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")

    if path.suffix.lower() in EXCEL_EXTENSIONS:
        rows = _read_excel(path)
    else:
        rows = _read_csv(path)

    logger.info(f"Read {len(rows)} rows from {path.name}")
    return TabularSource(path=path, rows=rows)
