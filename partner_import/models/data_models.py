"""Core data models for the partner feed import."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class FetchStatus(Enum):
    """Outcome of a feed download."""
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


class TransactionType(Enum):
    """Direction of a stock transaction."""
    RECEIVE = "receive"
    SELL = "sell"


@dataclass
class Partner:
    """External supplier whose feed is imported."""
    id: str
    name: str
    unique_id: Optional[str] = None
    import_url: str = ""
    published: bool = True


@dataclass
class FetchResult:
    """Result of downloading a partner feed."""
    url: str
    status: FetchStatus
    content: bytes = b""
    status_code: Optional[int] = None
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status is FetchStatus.OK


@dataclass
class RawStockRow:
    """One physical stock line as it appears in the feed."""
    stock_id: str
    city: str
    address: str
    price: float
    available: Union[int, str]  # raw text when not a number
    active: int = 0
    pickup: int = 0


@dataclass
class RegionStock:
    """Stock rows grouped under one feed region, fanned out to canonical codes."""
    region_codes: Tuple[str, ...]
    rows: List[RawStockRow] = field(default_factory=list)


@dataclass
class FeedEntry:
    """One <product> block of the feed."""
    sku: str
    title: str
    regions: List[RegionStock] = field(default_factory=list)

    def rows_by_region(self) -> Dict[str, List[RawStockRow]]:
        """Group stock rows by canonical region code, preserving feed order."""
        grouped: Dict[str, List[RawStockRow]] = {}
        for region in self.regions:
            for code in region.region_codes:
                grouped.setdefault(code, []).extend(region.rows)
        return grouped


@dataclass
class ParseResult:
    """Parsed feed entries plus per-row parse errors."""
    entries: List[FeedEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class SkuMatch:
    """Internal catalog identity of a feed SKU."""
    variation_id: int
    product_id: int
    product_title: str
    size: str = ""


@dataclass
class DesiredStock:
    """A stock location a store should reference."""
    stock_id: str  # Format: "{partner_id}_{stock_id}"
    name: str      # Format: "{city}, {address}"


@dataclass
class DesiredStore:
    """Per-region store state the catalog should converge to."""
    region_code: str
    store_id: str  # Format: "{partner_id}_{region_code}"
    title: str
    city: str = ""
    stock_ids: List[str] = field(default_factory=list)


@dataclass
class DesiredVariation:
    """One SKU's desired state within one region."""
    feed_sku: str
    sku: str  # Format: "{partner_id}_{region_code}_{feed_sku}"
    variation_id: int
    product_id: int
    size: str
    price: float
    quantities: Dict[str, Union[int, str]] = field(default_factory=dict)


@dataclass
class NormalizedFeed:
    """Canonical desired state assembled from a parsed feed."""
    stores: Dict[str, DesiredStore] = field(default_factory=dict)
    stocks: Dict[str, DesiredStock] = field(default_factory=dict)
    products: Dict[int, str] = field(default_factory=dict)
    # region_code -> product_id -> feed sku -> variation
    variations: Dict[str, Dict[int, Dict[str, DesiredVariation]]] = field(default_factory=dict)

    def region_variations(self, region_code: str) -> Dict[int, Dict[str, DesiredVariation]]:
        return self.variations.get(region_code, {})


@dataclass
class NormalizationResult:
    """Normalized feed plus errors found while validating rows."""
    feed: NormalizedFeed
    errors: List[str] = field(default_factory=list)


@dataclass
class StockTransaction:
    """Signed inventory mutation emitted by the stock synchronizer."""
    variation_id: int
    location_id: int
    type: TransactionType
    quantity: int
    note: str


@dataclass
class RegionResult:
    """Accounting for one reconciled region."""
    region_code: str
    store_id: Optional[int] = None
    products_before: List[int] = field(default_factory=list)
    processed_products: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def created(self) -> int:
        return len(set(self.processed_products) - set(self.products_before))

    @property
    def updated(self) -> int:
        return len(set(self.processed_products) & set(self.products_before))

    @property
    def deleted(self) -> int:
        return len(set(self.products_before) - set(self.processed_products))


@dataclass
class ImportStatistics:
    """Run summary persisted on the partner record."""
    date: str  # UTC, format: "YYYY-MM-DDTHH:MM:SS"
    regions_count: int = 0
    duration: int = 0
    count: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)
    created: int = 0
    deleted: int = 0
