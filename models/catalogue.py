"""
Catalogue API schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from models.base import BaseSchema


class MatchedItemResponse(BaseSchema):
    """One catalogue entry. Unknown price/stock are empty strings."""
    code: str
    description: str = ""
    price: str = ""
    stock: str = ""
    photos: list[str] = Field(default_factory=list)


class CoercionIssueResponse(BaseModel):
    row: int
    field: str
    value: str


class ListingSummary(BaseModel):
    """How the listing file was read."""
    record_count: int
    total_rows: int
    header_row: int = Field(..., description="1-based row holding the headers")
    header_detected: bool
    columns: dict[str, Optional[str]]
    missing_optional_columns: list[str] = Field(default_factory=list)
    skipped_empty_rows: int = 0
    skipped_empty_code: int = 0
    stock_defaulted: int = 0
    coercion_issues: list[CoercionIssueResponse] = Field(default_factory=list)
    coercion_issue_count: int = 0


class MatchingSummary(BaseModel):
    """Counters from the matching run."""
    mode: str
    require_photo: bool
    total_records: int
    total_photos: int
    items_emitted: int
    matched_records: int
    unmatched_records: int
    matched_photos: int
    unmatched_photo_count: int
    unmatched_photos: list[str] = Field(default_factory=list)
    skipped_empty_codes: int = 0
    duplicate_codes: list[str] = Field(default_factory=list)
    stock_defaulted: int = 0
    strategy_hits: dict[str, int] = Field(default_factory=dict)
    ambiguous_numeric_cores: dict[str, list[str]] = Field(default_factory=dict)
    match_rate_pct: float = 0.0


class CatalogueResponse(BaseModel):
    """Response for a catalogue match request."""
    items: list[MatchedItemResponse]
    item_count: int
    items_with_photos: int
    items_without_photos: int
    filtered_out_by_stock: int
    listing: ListingSummary
    matching: MatchingSummary
