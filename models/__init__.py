"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.catalogue import (
    MatchedItemResponse,
    CoercionIssueResponse,
    ListingSummary,
    MatchingSummary,
    CatalogueResponse,
)

__all__ = [
    "BaseSchema",
    "MatchedItemResponse",
    "CoercionIssueResponse",
    "ListingSummary",
    "MatchingSummary",
    "CatalogueResponse",
]
