"""
Shared helpers.
"""

from utils.code_utils import (
    normalize_code,
    numeric_core,
    has_digits,
    strip_trailing_letters,
    normalize_header,
)

__all__ = [
    "normalize_code",
    "numeric_core",
    "has_digits",
    "strip_trailing_letters",
    "normalize_header",
]
