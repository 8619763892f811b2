"""
Listing parser for supplier price/stock files.

Parses a tabular listing (CSV/TSV or Excel) into ListingRecord objects.
Supplier files vary a lot: title rows above the header, different header
wording ("CODE" vs "Stock Code"), different delimiters, price columns with
currency letters. The parser locates the header row, resolves columns through
ordered alias lists, and keeps rows even when a numeric cell is malformed.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from io import BytesIO
from typing import Optional
import re
import structlog

import pandas as pd

from config import settings as app_settings
from config.settings import Settings
from exceptions import ListingParseError, ListingMissingColumnsError
from utils.code_utils import normalize_header, normalize_code

logger = structlog.get_logger(__name__)


# ===================
# CONSTANTS
# ===================

DELIMITER_CANDIDATES = ["\t", ",", ";", "|"]

# Tokens that mark a header row (searched in the concatenated normalized row)
CODE_HEADER_TOKENS = ["CODE", "ITEMCODE", "STOCKCODE", "PRODUCTCODE", "SKU"]
DESCRIPTION_HEADER_TOKENS = ["DESCRIPTION", "DESC", "PRODUCTNAME", "NAME"]

LISTING_FIELDS = ("code", "description", "price", "stock")
REQUIRED_FIELDS = ("code",)

TEXT_ENCODINGS = ["utf-8-sig", "cp1252", "latin-1"]

ALWAYS_INCLUDE_STOCK = Decimal("999999999")

# Currency symbols, thousands separators and spacing in numeric cells
_NUMERIC_NOISE = re.compile(r"[$€£¥,\s]")
# Currency code or letter before or after the amount ("R", "ZAR", "USD")
_CURRENCY_AFFIX = re.compile(r"^[A-Za-z]{1,3}|[A-Za-z]{1,3}$")

PRICE_QUANTUM = Decimal("0.01")


class MissingStockPolicy(str, Enum):
    """What a missing or malformed stock cell counts as."""
    ZERO = "zero"                      # No stock: dropped by any positive minimum
    ALWAYS_INCLUDE = "always_include"  # Unknown stock never filters a row out

    @property
    def sentinel(self) -> Decimal:
        if self == MissingStockPolicy.ALWAYS_INCLUDE:
            return ALWAYS_INCLUDE_STOCK
        return Decimal("0")


# ===================
# DATA CLASSES
# ===================

@dataclass
class ColumnAliases:
    """
    Ordered header aliases per logical field.

    Aliases are compared against normalized header cells (uppercase,
    alphanumeric only). The first alias present in the header wins, so order
    expresses precedence.
    """
    code: list[str] = field(default_factory=list)
    description: list[str] = field(default_factory=list)
    price: list[str] = field(default_factory=list)
    stock: list[str] = field(default_factory=list)

    def __post_init__(self):
        for name in LISTING_FIELDS:
            setattr(self, name, _dedupe([normalize_header(a) for a in getattr(self, name)]))

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ColumnAliases":
        """Build alias tables from configuration."""
        settings = settings or app_settings
        return cls(
            code=list(settings.listing_code_aliases),
            description=list(settings.listing_description_aliases),
            price=list(settings.listing_price_aliases),
            stock=list(settings.listing_stock_aliases),
        )

    def for_field(self, name: str) -> list[str]:
        if name not in LISTING_FIELDS:
            raise ValueError(f"Unknown listing field: {name}")
        return getattr(self, name)

    def extend(self, name: str, aliases: list[str]) -> "ColumnAliases":
        """Append supplier-specific aliases after the existing ones."""
        current = self.for_field(name)
        setattr(self, name, _dedupe(current + [normalize_header(a) for a in aliases]))
        return self


@dataclass(frozen=True)
class ListingRecord:
    """One listing row, keyed by product code."""
    code: str
    description: str = ""
    price: Optional[Decimal] = None
    stock: Decimal = Decimal("0")
    stock_defaulted: bool = False
    row: int = 0

    @property
    def normalized_code(self) -> str:
        return normalize_code(self.code)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "description": self.description,
            "price": str(self.price) if self.price is not None else "",
            "stock": str(self.stock),
            "stock_defaulted": self.stock_defaulted,
            "row": self.row,
        }


@dataclass
class FieldCoercionIssue:
    """A price/stock cell that did not parse as a number. The row was kept."""
    row: int
    field: str
    value: str


@dataclass
class ListingParseResult:
    """Result of parsing a listing file."""
    records: list[ListingRecord] = field(default_factory=list)
    issues: list[FieldCoercionIssue] = field(default_factory=list)

    header_row: int = 0
    header_detected: bool = False
    delimiter: Optional[str] = None
    columns: dict[str, Optional[int]] = field(default_factory=dict)
    found_columns: list[str] = field(default_factory=list)

    # Statistics
    total_rows: int = 0
    skipped_empty_rows: int = 0
    skipped_empty_code: int = 0

    @property
    def stock_defaulted_count(self) -> int:
        return sum(1 for r in self.records if r.stock_defaulted)

    @property
    def missing_optional_columns(self) -> list[str]:
        return [name for name, idx in self.columns.items() if idx is None]

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "record_count": len(self.records),
            "total_rows": self.total_rows,
            "header_row": self.header_row + 1,
            "header_detected": self.header_detected,
            "columns": {
                name: (self.found_columns[idx] if idx is not None else None)
                for name, idx in self.columns.items()
            },
            "missing_optional_columns": self.missing_optional_columns,
            "skipped_empty_rows": self.skipped_empty_rows,
            "skipped_empty_code": self.skipped_empty_code,
            "stock_defaulted": self.stock_defaulted_count,
            "coercion_issues": [
                {"row": i.row, "field": i.field, "value": i.value}
                for i in self.issues[:50]
            ],
            "coercion_issue_count": len(self.issues),
        }


# ===================
# MAIN PARSER
# ===================

class ListingParser:
    """
    Parses supplier listings into ListingRecord objects.

    Usage:
        parser = ListingParser()
        result = parser.parse(file_bytes, "prices.xlsx")
        for record in result.records:
            ...
    """

    def __init__(
        self,
        aliases: Optional[ColumnAliases] = None,
        header_scan_rows: Optional[int] = None,
        delimiter_sample_lines: Optional[int] = None,
    ):
        self.aliases = aliases or ColumnAliases.from_settings()
        self.header_scan_rows = header_scan_rows or app_settings.header_scan_rows
        self.delimiter_sample_lines = delimiter_sample_lines or app_settings.delimiter_sample_lines

    def parse(
        self,
        file_bytes: bytes,
        filename: str,
        missing_stock: MissingStockPolicy = MissingStockPolicy.ZERO,
        require_header: bool = False,
    ) -> ListingParseResult:
        """
        Parse a listing file.

        Args:
            file_bytes: Raw file content
            filename: Original filename; ".csv" selects delimited text, anything
                      else is read as a spreadsheet
            missing_stock: Policy for missing or malformed stock cells
            require_header: Fail instead of falling back to row 0 when no row
                            carries both code and description headers

        Returns:
            ListingParseResult with records, coercion issues and statistics

        Raises:
            ListingParseError: If the file is empty, unreadable or has no data rows
            ListingMissingColumnsError: If no product code column is found
        """
        missing_stock = MissingStockPolicy(missing_stock)
        is_csv = (filename or "").lower().endswith(".csv")

        logger.info(
            "parsing_listing_file",
            filename=filename,
            size=len(file_bytes) if file_bytes else 0,
            file_kind="delimited" if is_csv else "spreadsheet",
        )

        if not file_bytes:
            raise ListingParseError(
                message="Listing file is empty",
                details={"filename": filename}
            )

        result = ListingParseResult()

        if is_csv:
            rows, result.delimiter = self._load_delimited(file_bytes)
        else:
            rows = self._load_spreadsheet(file_bytes, filename)

        result.total_rows = len(rows)
        if len(rows) < 2:
            raise ListingParseError(
                message="Listing file is empty or has no data rows",
                details={"filename": filename, "rows": len(rows)}
            )

        header_index = find_header_row(
            rows,
            scan_rows=self.header_scan_rows,
            code_tokens=_dedupe(CODE_HEADER_TOKENS + self.aliases.code),
            description_tokens=_dedupe(DESCRIPTION_HEADER_TOKENS + self.aliases.description),
        )
        if header_index is None:
            if require_header:
                raise ListingParseError(
                    message="Could not find a header row with CODE and DESCRIPTION columns",
                    details={"filename": filename, "rows_scanned": min(len(rows), self.header_scan_rows)}
                )
            logger.warning("listing_header_not_found", filename=filename, fallback_row=0)
            header_index = 0
        else:
            result.header_detected = True

        result.header_row = header_index
        result.found_columns = [normalize_header(c) for c in rows[header_index]]
        result.columns = resolve_columns(result.found_columns, self.aliases)

        missing = [name for name in REQUIRED_FIELDS if result.columns.get(name) is None]
        if missing:
            found = [c for c in result.found_columns if c]
            logger.error("listing_missing_columns", filename=filename, missing=missing, found=found)
            raise ListingMissingColumnsError(
                missing=[name.upper() for name in missing],
                found_columns=found,
            )

        logger.debug(
            "listing_header_detected",
            header_row=header_index,
            detected=result.header_detected,
            columns=result.columns,
        )

        self._extract_records(rows, header_index, missing_stock, result)

        logger.info(
            "listing_parsed",
            filename=filename,
            total_rows=result.total_rows,
            record_count=len(result.records),
            skipped_empty_rows=result.skipped_empty_rows,
            skipped_empty_code=result.skipped_empty_code,
            stock_defaulted=result.stock_defaulted_count,
            coercion_issues=len(result.issues),
            missing_optional_columns=result.missing_optional_columns,
        )

        return result

    def _extract_records(
        self,
        rows: list[list],
        header_index: int,
        missing_stock: MissingStockPolicy,
        result: ListingParseResult,
    ) -> None:
        """Turn data rows below the header into records."""
        code_col = result.columns["code"]
        desc_col = result.columns.get("description")
        price_col = result.columns.get("price")
        stock_col = result.columns.get("stock")

        for idx in range(header_index + 1, len(rows)):
            row = rows[idx]
            row_num = idx + 1  # 1-indexed file row

            # Skip empty rows
            if all(_is_blank(cell) for cell in row):
                result.skipped_empty_rows += 1
                continue

            code = _cell_text(_cell(row, code_col))
            if not code:
                result.skipped_empty_code += 1
                continue

            description = _cell_text(_cell(row, desc_col)) if desc_col is not None else ""

            price = None
            if price_col is not None:
                raw_price = _cell(row, price_col)
                price = _quantize_price(parse_decimal(raw_price))
                if price is None and not _is_blank(raw_price):
                    result.issues.append(FieldCoercionIssue(row=row_num, field="price", value=str(raw_price)[:50]))

            stock = None
            if stock_col is not None:
                raw_stock = _cell(row, stock_col)
                stock = parse_decimal(raw_stock)
                if stock is None and not _is_blank(raw_stock):
                    result.issues.append(FieldCoercionIssue(row=row_num, field="stock", value=str(raw_stock)[:50]))

            result.records.append(ListingRecord(
                code=code,
                description=description,
                price=price,
                stock=stock if stock is not None else missing_stock.sentinel,
                stock_defaulted=stock is None,
                row=row_num,
            ))

        if result.issues:
            logger.debug("listing_coercion_issues", count=len(result.issues), first=result.issues[0].row)

    def _load_delimited(self, file_bytes: bytes) -> tuple[list[list], str]:
        """Decode text, detect the delimiter and split every line."""
        text = _decode_text(file_bytes)
        lines = text.splitlines()
        delimiter = detect_delimiter(lines, sample_lines=self.delimiter_sample_lines)

        logger.debug("delimiter_detected", delimiter=repr(delimiter), lines=len(lines))

        return [split_delimited_line(line, delimiter) for line in lines], delimiter

    def _load_spreadsheet(self, file_bytes: bytes, filename: str) -> list[list]:
        """Load the first sheet of an Excel workbook as raw rows."""
        last_error = None

        # openpyxl handles .xlsx, xlrd handles legacy .xls
        for engine in ["openpyxl", "xlrd"]:
            try:
                df = pd.read_excel(
                    BytesIO(file_bytes),
                    sheet_name=0,
                    header=None,
                    dtype=object,
                    engine=engine,
                )
            except Exception as e:
                last_error = e
                continue

            logger.debug("spreadsheet_loaded", engine=engine, rows=len(df), columns=len(df.columns))
            df = df.astype(object).where(pd.notna(df), None)
            return df.values.tolist()

        logger.error("listing_read_failed", filename=filename, error=str(last_error))
        raise ListingParseError(
            message="Failed to read listing file",
            details={"filename": filename, "original_error": str(last_error)}
        )


# ===================
# PARSING STEPS
# ===================

def detect_delimiter(lines: list[str], sample_lines: int = 5) -> str:
    """
    Pick the delimiter that splits a representative line into the most fields.

    The representative line is the longest of the first few non-empty lines.
    Ties go to the earlier candidate (tab, comma, semicolon, pipe).
    """
    sample = [line for line in lines if line.strip()][:sample_lines]
    if not sample:
        return DELIMITER_CANDIDATES[0]

    line = max(sample, key=len)

    best = DELIMITER_CANDIDATES[0]
    best_count = 0
    for candidate in DELIMITER_CANDIDATES:
        count = len(split_delimited_line(line, candidate))
        if count > best_count:
            best, best_count = candidate, count
    return best


def split_delimited_line(line: str, delimiter: str) -> list[str]:
    """
    Split one line on the delimiter, honouring double quotes.

    A quote toggles quoted mode; delimiters inside quotes are literal.
    Quote characters are dropped and every field is trimmed.
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def find_header_row(
    rows: list[list],
    scan_rows: int = 20,
    code_tokens: Optional[list[str]] = None,
    description_tokens: Optional[list[str]] = None,
) -> Optional[int]:
    """
    Find the first row that looks like a header.

    A header row contains a code-like and a description-like token once every
    cell is normalized and the row is concatenated.

    Returns:
        Row index, or None if none of the first scan_rows rows qualifies
    """
    code_tokens = code_tokens or CODE_HEADER_TOKENS
    description_tokens = description_tokens or DESCRIPTION_HEADER_TOKENS

    for idx, row in enumerate(rows[:scan_rows]):
        if not row:
            continue
        joined = ",".join(normalize_header(cell) for cell in row if not _is_blank(cell))
        if any(t in joined for t in code_tokens) and any(t in joined for t in description_tokens):
            return idx
    return None


def resolve_columns(headers: list[str], aliases: ColumnAliases) -> dict[str, Optional[int]]:
    """Map each logical field to a column index using its ordered aliases."""
    result = {}

    for name in LISTING_FIELDS:
        result[name] = None
        for alias in aliases.for_field(name):
            if alias in headers:
                result[name] = headers.index(alias)
                break

    return result


def parse_decimal(value) -> Optional[Decimal]:
    """
    Parse a price/stock cell.

    Numbers from spreadsheets convert directly, as does text that is already
    a valid number ("1E3", "-3"). Other text has currency symbols, thousands
    separators and a leading or trailing currency code stripped first
    ("R 1,234.50" → 1234.50). Anything that still fails returns None.
    """
    if _is_blank(value) or isinstance(value, bool):
        return None

    text = str(value).strip()
    try:
        result = Decimal(text)
    except InvalidOperation:
        if isinstance(value, (int, float, Decimal)):
            return None
        result = _parse_currency_text(text)
        if result is None:
            return None

    return result if result.is_finite() else None


def _parse_currency_text(text: str) -> Optional[Decimal]:
    cleaned = _CURRENCY_AFFIX.sub("", _NUMERIC_NOISE.sub("", text))
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def _quantize_price(price: Optional[Decimal]) -> Optional[Decimal]:
    """Round a price to cents; None if the value is too large to represent."""
    if price is None:
        return None
    try:
        return price.quantize(PRICE_QUANTUM)
    except InvalidOperation:
        return None


def parse_listing_file(
    file_bytes: bytes,
    filename: str,
    missing_stock: MissingStockPolicy = MissingStockPolicy.ZERO,
    require_header: bool = False,
    aliases: Optional[ColumnAliases] = None,
) -> ListingParseResult:
    """Parse a listing file with default parser settings."""
    return ListingParser(aliases=aliases).parse(
        file_bytes,
        filename,
        missing_stock=missing_stock,
        require_header=require_header,
    )


# ===================
# HELPER FUNCTIONS
# ===================

def _decode_text(file_bytes: bytes) -> str:
    """Decode text, trying UTF-8 first and falling back to Windows/Latin encodings."""
    for encoding in TEXT_ENCODINGS:
        try:
            return file_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ListingParseError(message="Could not decode listing file")


def _cell(row: list, idx: Optional[int]):
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_text(value) -> str:
    """Cell as trimmed text. Integral floats lose their ".0" (Excel stores codes as numbers)."""
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _dedupe(values: list[str]) -> list[str]:
    """Drop empties and repeats, keeping first occurrence."""
    return [v for v in dict.fromkeys(values) if v]
