# -*- coding: utf-8 -*-
"""Validation of converted product records.

Each check returns human-readable messages; an empty list means the
record can be handed to the record sink.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List

from perfume_extractor.pipeline.models import ProductRecord

logger = logging.getLogger(__name__)

MAX_CODE_LENGTH = 100
MAX_NAME_LENGTH = 200


def _check_code(record: ProductRecord) -> List[str]:
    if record.code is None or not record.code.strip():
        return ["Product code is required"]
    if len(record.code) > MAX_CODE_LENGTH:
        return [f"Product code cannot exceed {MAX_CODE_LENGTH} characters"]
    return []


def _check_name(record: ProductRecord) -> List[str]:
    if record.name is None or not record.name.strip():
        return ["Product name is required"]
    if len(record.name) > MAX_NAME_LENGTH:
        return [f"Product name cannot exceed {MAX_NAME_LENGTH} characters"]
    return []


def _check_brand(record: ProductRecord) -> List[str]:
    brand_id = record.brand_id
    if not isinstance(brand_id, int) or isinstance(brand_id, bool) or brand_id <= 0:
        return ["Valid brand ID is required"]
    return []


def _check_size(record: ProductRecord) -> List[str]:
    if record.size is None:
        return []
    try:
        value = Decimal(record.size)
    except (InvalidOperation, TypeError):
        return [f"Size must be a number, got '{record.size}'"]
    if not value.is_finite() or value <= 0:
        return [f"Size must be a positive number, got '{record.size}'"]
    return []


def validate_record(record: ProductRecord) -> List[str]:
    """Run every record check.

    Args:
        record: Record built from one row

    Returns:
        List of validation messages (empty when valid)
    """
    errors = []
    errors.extend(_check_code(record))
    errors.extend(_check_name(record))
    errors.extend(_check_brand(record))
    errors.extend(_check_size(record))
    return errors


def is_valid_record(record: ProductRecord) -> bool:
    return not validate_record(record)
