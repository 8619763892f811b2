"""
Photo matching service.

Joins listing records to product photos by code. Photo filenames and listing
codes are typed by different people, so a chain of progressively looser
strategies is tried per candidate code:

1. exact            - candidate equals a listing code
2. base_code        - candidate equals a listing code minus its letter suffix
                      (photo "8610100024" → listing "8610100024N")
3. suffix_stripped  - candidate minus its letter suffix equals a listing code
                      (photo "8610100024B" → listing "8610100024")
4. numeric_core     - digits only, leading zeros dropped (NUMERIC_CORE mode only)

The first strategy that hits wins. All codes are compared in normalized form.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional
import structlog

from config import settings
from parsers.listing_parser import ListingRecord
from parsers.photo_parser import PhotoAsset, extract_candidates
from utils.code_utils import numeric_core, has_digits, strip_trailing_letters

logger = structlog.get_logger(__name__)


class MatchMode(str, Enum):
    """Strategy chain used by the engine."""
    STRICT = "strict"
    NUMERIC_CORE = "numeric_core"  # Coarser; unrelated codes may share a numeric core


# ===================
# DATA CLASSES
# ===================

@dataclass(frozen=True)
class MatchedItem:
    """A listing record joined with its photos, in the order photos were supplied."""
    code: str
    description: str = ""
    price: Optional[Decimal] = None
    stock: Decimal = Decimal("0")
    stock_defaulted: bool = False
    photos: tuple[PhotoAsset, ...] = ()

    @classmethod
    def from_record(cls, record: ListingRecord, photos: tuple[PhotoAsset, ...] = ()) -> "MatchedItem":
        return cls(
            code=record.code,
            description=record.description,
            price=record.price,
            stock=record.stock,
            stock_defaulted=record.stock_defaulted,
            photos=tuple(photos),
        )

    @property
    def has_photos(self) -> bool:
        return len(self.photos) > 0

    @property
    def photo_filenames(self) -> list[str]:
        return [p.filename for p in self.photos]

    def to_dict(self) -> dict:
        """Convert to dictionary for API response. Unknown values render as ""."""
        return {
            "code": self.code,
            "description": self.description,
            "price": str(self.price) if self.price is not None else "",
            "stock": "" if self.stock_defaulted else str(self.stock),
            "photos": self.photo_filenames,
        }


@dataclass
class ListingIndex:
    """Lookup maps from reduced codes to the winning normalized listing code."""
    by_code: dict[str, str] = field(default_factory=dict)
    by_base: dict[str, str] = field(default_factory=dict)
    by_numeric_core: dict[str, str] = field(default_factory=dict)
    numeric_collisions: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def build(cls, records: list[ListingRecord]) -> "ListingIndex":
        """Index records in input order; the first record to claim a key keeps it."""
        index = cls()
        for record in records:
            code = record.normalized_code
            if not code:
                continue

            index.by_code.setdefault(code, code)

            base = strip_trailing_letters(code)
            if base:
                index.by_base.setdefault(base, code)

            if has_digits(code):
                core = numeric_core(code)
                owner = index.by_numeric_core.setdefault(core, code)
                if owner != code:
                    codes = index.numeric_collisions.setdefault(core, [owner])
                    if code not in codes:
                        codes.append(code)
        return index


@dataclass
class MatchDiagnostics:
    """
    Counters for one matching run.

    Pass an instance to MatchingEngine.match() to observe a run; the engine
    fills it in and also logs a summary.
    """
    mode: str = MatchMode.STRICT.value
    require_photo: bool = True
    total_records: int = 0
    total_photos: int = 0
    items_emitted: int = 0
    matched_records: int = 0
    unmatched_records: int = 0
    matched_photos: int = 0
    unmatched_photos: list[str] = field(default_factory=list)
    skipped_empty_codes: int = 0
    duplicate_codes: list[str] = field(default_factory=list)
    stock_defaulted: int = 0
    strategy_hits: Counter = field(default_factory=Counter)
    ambiguous_numeric_cores: dict[str, list[str]] = field(default_factory=dict)

    @property
    def match_rate(self) -> float:
        """Percentage of distinct listing codes that got at least one photo."""
        considered = self.matched_records + self.unmatched_records
        if considered == 0:
            return 0.0
        return (self.matched_records / considered) * 100

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "require_photo": self.require_photo,
            "total_records": self.total_records,
            "total_photos": self.total_photos,
            "items_emitted": self.items_emitted,
            "matched_records": self.matched_records,
            "unmatched_records": self.unmatched_records,
            "matched_photos": self.matched_photos,
            "unmatched_photo_count": len(self.unmatched_photos),
            "unmatched_photos": self.unmatched_photos[:50],
            "skipped_empty_codes": self.skipped_empty_codes,
            "duplicate_codes": self.duplicate_codes[:50],
            "stock_defaulted": self.stock_defaulted,
            "strategy_hits": dict(self.strategy_hits),
            "ambiguous_numeric_cores": self.ambiguous_numeric_cores,
            "match_rate_pct": round(self.match_rate, 1),
        }


# ===================
# STRATEGIES
# ===================

Strategy = Callable[[str, ListingIndex], Optional[str]]


def exact_match(candidate: str, index: ListingIndex) -> Optional[str]:
    return index.by_code.get(candidate)


def base_code_match(candidate: str, index: ListingIndex) -> Optional[str]:
    """Photo uses the clean code, listing carries a letter suffix."""
    return index.by_base.get(candidate)


def suffix_stripped_match(candidate: str, index: ListingIndex) -> Optional[str]:
    """Photo carries a letter suffix, listing uses the clean code."""
    stripped = strip_trailing_letters(candidate)
    if not stripped:
        return None
    return index.by_code.get(stripped)


def numeric_core_match(candidate: str, index: ListingIndex) -> Optional[str]:
    if not has_digits(candidate):
        return None
    return index.by_numeric_core.get(numeric_core(candidate))


STRICT_CHAIN: list[tuple[str, Strategy]] = [
    ("exact", exact_match),
    ("base_code", base_code_match),
    ("suffix_stripped", suffix_stripped_match),
]

STRATEGY_CHAINS: dict[MatchMode, list[tuple[str, Strategy]]] = {
    MatchMode.STRICT: STRICT_CHAIN,
    MatchMode.NUMERIC_CORE: STRICT_CHAIN + [("numeric_core", numeric_core_match)],
}


# ===================
# ENGINE
# ===================

class MatchingEngine:
    """
    Matches photos to listing records.

    Usage:
        engine = MatchingEngine(require_photo=False)
        diagnostics = MatchDiagnostics()
        items = engine.match(photos, records, diagnostics)
    """

    def __init__(
        self,
        mode: Optional[MatchMode] = None,
        require_photo: Optional[bool] = None,
        strategies: Optional[list[tuple[str, Strategy]]] = None,
    ):
        self.mode = MatchMode(mode or settings.match_mode)
        self.require_photo = settings.require_photo if require_photo is None else require_photo
        self.strategies = strategies or STRATEGY_CHAINS[self.mode]

    def resolve(self, candidate: str, index: ListingIndex) -> Optional[tuple[str, str]]:
        """
        Run the strategy chain for one candidate code.

        Returns:
            (winning listing code, strategy name), or None if nothing matched
        """
        for name, strategy in self.strategies:
            key = strategy(candidate, index)
            if key:
                return key, name
        return None

    def match(
        self,
        photos: list[PhotoAsset],
        records: list[ListingRecord],
        diagnostics: Optional[MatchDiagnostics] = None,
    ) -> list[MatchedItem]:
        """
        Join photos to listing records.

        Args:
            photos: Photos in the order they were supplied
            records: Listing records (already stock-filtered)
            diagnostics: Optional sink for run counters

        Returns:
            MatchedItem list in listing order. With require_photo only records
            that received at least one photo are included.
        """
        diagnostics = diagnostics if diagnostics is not None else MatchDiagnostics()
        diagnostics.mode = self.mode.value
        diagnostics.require_photo = self.require_photo
        diagnostics.total_records = len(records)
        diagnostics.total_photos = len(photos)

        index = ListingIndex.build(records)
        photos_by_code = self._assign_photos(photos, index, diagnostics)

        items = []
        seen = set()

        for record in records:
            code = record.normalized_code
            if not code:
                diagnostics.skipped_empty_codes += 1
                continue

            # Later rows repeating a code never receive photos
            if code in seen:
                diagnostics.duplicate_codes.append(record.code)
                if not self.require_photo:
                    items.append(MatchedItem.from_record(record))
                continue
            seen.add(code)

            matched_photos = tuple(photos_by_code.get(code, ()))
            if matched_photos:
                diagnostics.matched_records += 1
            else:
                diagnostics.unmatched_records += 1

            if matched_photos or not self.require_photo:
                items.append(MatchedItem.from_record(record, matched_photos))

        diagnostics.items_emitted = len(items)
        diagnostics.stock_defaulted = sum(1 for item in items if item.stock_defaulted)

        logger.info(
            "photo_match_completed",
            mode=self.mode.value,
            require_photo=self.require_photo,
            total_records=diagnostics.total_records,
            total_photos=diagnostics.total_photos,
            items=diagnostics.items_emitted,
            matched_records=diagnostics.matched_records,
            unmatched_records=diagnostics.unmatched_records,
            matched_photos=diagnostics.matched_photos,
            unmatched_photos=len(diagnostics.unmatched_photos),
            duplicate_codes=len(diagnostics.duplicate_codes),
            strategy_hits=dict(diagnostics.strategy_hits),
            match_rate=f"{diagnostics.match_rate:.1f}%",
        )

        return items

    def _assign_photos(
        self,
        photos: list[PhotoAsset],
        index: ListingIndex,
        diagnostics: MatchDiagnostics,
    ) -> dict[str, list[PhotoAsset]]:
        """Resolve every photo's candidates and group photos by winning listing code."""
        photos_by_code: dict[str, list[PhotoAsset]] = {}

        for photo in photos:
            matched_codes = []

            for candidate in extract_candidates(photo.filename):
                resolved = self.resolve(candidate, index)
                if resolved is None:
                    continue

                code, strategy = resolved
                diagnostics.strategy_hits[strategy] += 1

                if strategy == "numeric_core":
                    self._flag_collision(candidate, photo, index, diagnostics)

                if code not in matched_codes:
                    matched_codes.append(code)

            for code in matched_codes:
                photos_by_code.setdefault(code, []).append(photo)

            if matched_codes:
                diagnostics.matched_photos += 1
            else:
                diagnostics.unmatched_photos.append(photo.filename)

        return photos_by_code

    def _flag_collision(
        self,
        candidate: str,
        photo: PhotoAsset,
        index: ListingIndex,
        diagnostics: MatchDiagnostics,
    ) -> None:
        """Report a numeric-core match that had more than one listing code to choose from."""
        core = numeric_core(candidate)
        codes = index.numeric_collisions.get(core)
        if not codes:
            return

        diagnostics.ambiguous_numeric_cores[core] = list(codes)
        logger.warning(
            "numeric_core_collision",
            photo=photo.filename,
            numeric_core=core,
            listing_codes=codes,
            chosen=codes[0],
        )
