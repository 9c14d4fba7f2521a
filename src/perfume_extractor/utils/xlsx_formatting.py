# -*- coding: utf-8 -*-
"""XLSX output for conversion results.

One workbook per converted file with a "Products" sheet and, when the
conversion reported problems, an "Errors" sheet.
"""

import logging
from pathlib import Path

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from perfume_extractor.utils import ensure_dir

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
DEFAULT_COLUMN_WIDTH = 20
WIDE_COLUMNS = {"name": 40, "original_source_text": 60, "message": 50, "raw_line": 60}


def _write_sheet(worksheet, df: pd.DataFrame) -> None:
    """Write a DataFrame with a styled header row."""
    for col_idx, column in enumerate(df.columns, start=1):
        cell = worksheet.cell(row=1, column=col_idx, value=column)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center", vertical="center")
        letter = cell.column_letter
        worksheet.column_dimensions[letter].width = WIDE_COLUMNS.get(column, DEFAULT_COLUMN_WIDTH)

    for row_idx, row in enumerate(df.itertuples(index=False), start=2):
        for col_idx, value in enumerate(row, start=1):
            if value is None or (not isinstance(value, str) and pd.isna(value)):
                value = ""
            worksheet.cell(row=row_idx, column=col_idx, value=value)

    worksheet.freeze_panes = "A2"


def write_result_xlsx(result, output_path: Path) -> Path:
    """Write records (and errors, if any) of a ConversionResult to one workbook.

    Args:
        result: ConversionResult to export
        output_path: Destination .xlsx file

    Returns:
        output_path
    """
    ensure_dir(output_path.parent)

    workbook = Workbook()
    products = workbook.active
    products.title = "Products"
    _write_sheet(products, result.records_dataframe())

    if result.errors or result.learning_failures:
        _write_sheet(workbook.create_sheet("Errors"), result.errors_dataframe())

    workbook.save(output_path)
    logger.info(f"Saved {output_path}")
    return output_path
