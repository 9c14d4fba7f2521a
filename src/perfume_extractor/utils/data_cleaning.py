# -*- coding: utf-8 -*-
"""Cell cleaning utilities shared by the row converter and the extractor.

Catalog cells arrive as raw strings (or NaN from Excel). These helpers
normalize them before they are mapped onto a ProductRecord.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

OVERLOADED_CODE_MIN_LENGTH = 20
NUMERIC_CODE_MIN_DIGITS = 6

_NUMERIC_PREFIX = re.compile(r"^\s*(\d+(?:[.,]\d+)?)")
_EXCEL_FLOAT_SUFFIX = re.compile(r"^(\d+)\.0+$")
_PLAIN_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def clean_field(value) -> str:
    """Strip a raw cell value; None and NaN become an empty string."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def strip_quotes(value: str) -> str:
    return clean_field(value).replace('"', "").replace("'", "").strip()


def clean_product_name(value: str) -> str:
    """Remove quotes and collapse repeated whitespace in a product name.

    Args:
        value: Raw name cell

    Returns:
        Cleaned name, e.g. '"BLEU  DE  CHANEL"' -> 'BLEU DE CHANEL'
    """
    return normalize_whitespace(strip_quotes(value))


def format_decimal(value) -> Optional[str]:
    """Format a decimal magnitude without forced trailing zeros.

    Args:
        value: Number or numeric string ("30", "1.70", "29,6")

    Returns:
        Canonical string ("30", "1.7", "29.6"), or None when not numeric
    """
    if value is None:
        return None
    text = str(value).strip().replace(",", ".")
    # Plain notation only; exponents such as 1e999999999 are rejected
    if not _PLAIN_DECIMAL.fullmatch(text):
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    normalized = number.normalize()
    # normalize() turns 100 into 1E+2
    return f"{normalized:f}"


def extract_numeric_prefix(value: str) -> Optional[str]:
    """Return the leading number of a size cell, formatted.

    Examples:
        "100 ml" -> "100", "3.4oz" -> "3.4", "Unknown" -> None
    """
    text = clean_field(value)
    if not text or text.lower() == "unknown":
        return None
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return None
    return format_decimal(match.group(1))


def extract_unit_token(value: str) -> Optional[str]:
    """Return the non-numeric remainder of a size cell in uppercase.

    Examples:
        "100 ml" -> "ML", "3.4 fl oz" -> "FL OZ", "100" -> None
    """
    text = clean_field(value)
    remainder = normalize_whitespace(re.sub(r"[\d.,]+", " ", text)).upper()
    return remainder or None


def parse_li_free(value: str) -> bool:
    """Lithium-free flag: true when the cell says "free" or "none"."""
    text = clean_field(value).lower()
    return "free" in text or text == "none"


def clean_country_name(value: str) -> Optional[str]:
    text = normalize_whitespace(clean_field(value))
    return text or None


def clean_code(value: str) -> str:
    """Strip quotes and the ``.0`` suffix Excel adds to numeric codes."""
    code = strip_quotes(value)
    match = _EXCEL_FLOAT_SUFFIX.match(code)
    if match:
        code = match.group(1)
    return code


def is_overloaded_code(code: str) -> bool:
    """A code cell that also carries a description (e.g. 'BARCODE NAME 100ML EDT')."""
    return " " in code and len(code) > OVERLOADED_CODE_MIN_LENGTH


def split_code_column(value: str) -> Tuple[str, Optional[str]]:
    """Split an overloaded code cell into a code and the text to analyse.

    The code is the first all-digit word with at least six digits, or the
    first word when there is none.

    Args:
        value: Raw code cell

    Returns:
        (code, description) where description is None for a plain code
    """
    code = clean_code(value)
    if not is_overloaded_code(code):
        return code, None

    words = code.split()
    numeric = [w for w in words if w.isdigit() and len(w) >= NUMERIC_CODE_MIN_DIGITS]
    chosen = numeric[0] if numeric else words[0]
    logger.debug(f"Split overloaded code '{code}' -> '{chosen}'")
    return chosen, code


def code_candidates(value: str) -> List[str]:
    """Possible codes for an overloaded cell: numeric word, first word, whole text."""
    code = clean_code(value)
    words = code.split()
    options = [w for w in words if w.isdigit() and len(w) >= NUMERIC_CODE_MIN_DIGITS][:1]
    if words:
        options.append(words[0])
    options.append(code)

    unique = []
    for option in options:
        if option and option not in unique:
            unique.append(option)
    return unique
