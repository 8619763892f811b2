"""
Unit tests for product code utilities.
"""

import pytest

from utils.code_utils import (
    normalize_code,
    numeric_core,
    has_digits,
    strip_trailing_letters,
    normalize_header,
)


SAMPLE_INPUTS = [
    "",
    "0",
    "0000",
    "abc",
    "8610401992",
    "8610100024N",
    "861-040 n",
    "  SKU-000123A  ",
    "12ab34CD",
    "Ñandú 7",
    "__--..",
    "R 1,250.00",
]


# ===================
# NORMALIZE
# ===================

class TestNormalizeCode:
    """Tests for normalize_code."""

    def test_uppercases_and_strips_punctuation(self):
        assert normalize_code("861-040 n") == "861040N"

    def test_strips_whitespace(self):
        assert normalize_code(" ab.12 ") == "AB12"

    def test_none_returns_empty(self):
        assert normalize_code(None) == ""

    def test_only_punctuation_returns_empty(self):
        assert normalize_code("--_ .") == ""

    def test_non_ascii_letters_removed(self):
        assert normalize_code("Ñ12") == "12"

    @pytest.mark.parametrize("value", SAMPLE_INPUTS)
    def test_idempotent(self, value):
        once = normalize_code(value)
        assert normalize_code(once) == once


# ===================
# NUMERIC CORE
# ===================

class TestNumericCore:
    """Tests for numeric_core."""

    def test_strips_letters_and_leading_zeros(self):
        assert numeric_core("SKU-000123A") == "123"

    def test_all_zero_returns_zero(self):
        assert numeric_core("0000") == "0"

    def test_no_digits_returns_zero(self):
        assert numeric_core("ABC") == "0"

    def test_none_returns_zero(self):
        assert numeric_core(None) == "0"

    def test_interior_zeros_kept(self):
        assert numeric_core("00-1002") == "1002"

    @pytest.mark.parametrize("value", SAMPLE_INPUTS)
    def test_idempotent(self, value):
        once = numeric_core(value)
        assert numeric_core(once) == once


class TestHasDigits:
    """Tests for has_digits."""

    def test_code_with_digits(self):
        assert has_digits("AB1") is True

    def test_letters_only(self):
        assert has_digits("ABC") is False

    def test_none(self):
        assert has_digits(None) is False


# ===================
# TRAILING LETTERS
# ===================

class TestStripTrailingLetters:
    """Tests for strip_trailing_letters."""

    def test_single_suffix(self):
        assert strip_trailing_letters("8610100024N") == "8610100024"

    def test_multi_letter_suffix(self):
        assert strip_trailing_letters("8610100024AB") == "8610100024"

    def test_no_suffix_unchanged(self):
        assert strip_trailing_letters("8610100024") == "8610100024"

    def test_interior_letters_kept(self):
        assert strip_trailing_letters("AB12CD") == "AB12"

    def test_all_letters_returns_empty(self):
        assert strip_trailing_letters("ABC") == ""

    def test_empty(self):
        assert strip_trailing_letters("") == ""

    @pytest.mark.parametrize("value", SAMPLE_INPUTS)
    def test_idempotent(self, value):
        once = strip_trailing_letters(normalize_code(value))
        assert strip_trailing_letters(once) == once


# ===================
# HEADERS
# ===================

class TestNormalizeHeader:
    """Tests for normalize_header."""

    def test_price_header(self):
        assert normalize_header("PRICE-A INCL") == "PRICEAINCL"

    def test_mixed_case_header(self):
        assert normalize_header("On Hand Stock") == "ONHANDSTOCK"

    def test_accents_folded(self):
        assert normalize_header("Descripción") == "DESCRIPCION"

    def test_none_returns_empty(self):
        assert normalize_header(None) == ""

    def test_numeric_header(self):
        assert normalize_header(12.0) == "120"
