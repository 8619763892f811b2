"""
Product code utilities.

Listing codes are typed by hand and photo filenames are named by whoever took
the photos, so the same product shows up as "861-040", "861040 ", "861040n".
These helpers reduce both sides to comparable keys.

All functions are pure and idempotent.
"""

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_NON_DIGIT = re.compile(r"\D")
_TRAILING_LETTERS = re.compile(r"[A-Za-z]+$")


def normalize_code(code: Optional[str]) -> str:
    """
    Reduce a code to uppercase alphanumerics.

    "861-040 n" → "861040N"
    " ab.12 "   → "AB12"

    Args:
        code: Raw code from a listing cell or filename fragment

    Returns:
        Normalized code, or "" when nothing alphanumeric remains
    """
    if code is None:
        return ""
    return _NON_ALNUM.sub("", str(code).upper())


def numeric_core(code: Optional[str]) -> str:
    """
    Digits-only reduction of a code with leading zeros stripped.

    "SKU-000123A" → "123"
    "0000"        → "0"
    "ABC"         → "0"
    """
    digits = _NON_DIGIT.sub("", str(code)) if code is not None else ""
    return digits.lstrip("0") or "0"


def has_digits(code: Optional[str]) -> bool:
    """True if the code carries at least one digit."""
    return code is not None and any(c.isdigit() for c in str(code))


def strip_trailing_letters(code: Optional[str]) -> str:
    """
    Remove a trailing run of letters from a normalized code.

    "8610100024N"  → "8610100024"
    "8610100024AB" → "8610100024"
    "ABC"          → ""
    """
    if not code:
        return ""
    return _TRAILING_LETTERS.sub("", code)


def normalize_header(header) -> str:
    """
    Normalize a header cell for alias lookup.

    Accents are folded before stripping so "Descripción" keeps its letters.

    "PRICE-A INCL"  → "PRICEAINCL"
    "On Hand Stock" → "ONHANDSTOCK"
    "Descripción"   → "DESCRIPCION"
    """
    if header is None:
        return ""
    text = unicodedata.normalize("NFD", str(header))
    text = "".join(c for c in text if unicodedata.category(c) != "Mn")
    return normalize_code(text)
