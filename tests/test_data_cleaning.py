# -*- coding: utf-8 -*-
"""Tests for cell cleaning helpers."""

import pytest

from perfume_extractor.utils.data_cleaning import (
    clean_code,
    clean_country_name,
    clean_field,
    clean_product_name,
    code_candidates,
    extract_numeric_prefix,
    extract_unit_token,
    format_decimal,
    is_overloaded_code,
    parse_li_free,
    split_code_column,
)


class TestCleanField:
    """Test raw cell normalization."""

    def test_none_and_nan(self):
        assert clean_field(None) == ""
        assert clean_field(float("nan")) == ""

    def test_strips(self):
        assert clean_field("  EDT ") == "EDT"
        assert clean_field(100) == "100"

    def test_product_name(self):
        assert clean_product_name('"Bleu   de  Chanel"') == "Bleu de Chanel"

    def test_country(self):
        assert clean_country_name("  France ") == "France"
        assert clean_country_name("   ") is None


class TestNumbers:
    """Test size parsing helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("30", "30"),
            ("1.70", "1.7"),
            ("29,6", "29.6"),
            ("100", "100"),
            ("abc", None),
            ("", None),
            ("1e999999999", None),
            ("Infinity", None),
        ],
    )
    def test_format_decimal(self, value, expected):
        assert format_decimal(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [("100 ml", "100"), ("3.4oz", "3.4"), ("Unknown", None), ("ml", None)],
    )
    def test_numeric_prefix(self, value, expected):
        assert extract_numeric_prefix(value) == expected

    def test_unit_token(self):
        assert extract_unit_token("100 ml") == "ML"
        assert extract_unit_token("3.4 fl oz") == "FL OZ"
        assert extract_unit_token("100") is None


class TestFlags:
    """Test the lithium-free flag."""

    @pytest.mark.parametrize(
        "value, expected",
        [("Li-free", True), ("FREE", True), ("none", True), ("Contains Li", False), ("", False)],
    )
    def test_li_free(self, value, expected):
        assert parse_li_free(value) is expected


class TestCodes:
    """Test code cleanup and overloaded code cells."""

    def test_excel_float_suffix(self):
        assert clean_code("3348901250153.0") == "3348901250153"
        assert clean_code("'A-100'") == "A-100"

    def test_plain_code_not_overloaded(self):
        assert not is_overloaded_code("3348901250153")
        assert split_code_column("3348901250153") == ("3348901250153", None)

    def test_split_prefers_numeric_word(self):
        code, text = split_code_column("SAUVAGE 3348901250153 EDT 100ML")
        assert code == "3348901250153"
        assert text == "SAUVAGE 3348901250153 EDT 100ML"

    def test_split_falls_back_to_first_word(self):
        code, _ = split_code_column("DIOR-SAUV EAU DE TOILETTE 100ML")
        assert code == "DIOR-SAUV"

    def test_code_candidates(self):
        assert code_candidates("SAUVAGE 3348901250153 EDT 100ML") == [
            "3348901250153",
            "SAUVAGE",
            "SAUVAGE 3348901250153 EDT 100ML",
        ]
