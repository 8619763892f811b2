"""
Photo filename parser.

Photos are named by product code, optionally followed by metadata after a
dash, and may depict several products joined with underscores:

    8610401992.jpg          → ["8610401992"]
    8610401992-front.jpg    → ["8610401992"]
    861040_861041.jpg       → ["861040", "861041"]
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from utils.code_utils import normalize_code

_EXTENSION = re.compile(r"\.[^/.]+$")
_PATH_SEPARATORS = re.compile(r"[\\/]")


@dataclass(frozen=True)
class PhotoAsset:
    """Uploaded photo. The engine only holds references; bytes belong to the caller."""
    filename: str
    content: Optional[bytes] = field(default=None, repr=False, compare=False)
    content_type: Optional[str] = field(default=None, compare=False)


def strip_extension(filename: str) -> str:
    """Drop any directory part and the final extension."""
    name = _PATH_SEPARATORS.split(filename or "")[-1]
    return _EXTENSION.sub("", name)


def extract_candidates(filename: str) -> list[str]:
    """
    Derive candidate product codes from a photo filename.

    Args:
        filename: Photo filename, with or without extension

    Returns:
        Normalized candidate codes in filename order, empties and repeats removed
    """
    segment = strip_extension(filename).split("-", 1)[0]
    pieces = segment.split("_") if "_" in segment else [segment]

    candidates = []
    for piece in pieces:
        code = normalize_code(piece)
        if code and code not in candidates:
            candidates.append(code)
    return candidates
