"""Feed processing module: parsing, normalization and statistics."""

from .aggregator import StatisticsAggregator
from .normalizer import FeedNormalizer, derive_sku, derive_stock_id, derive_store_id
from .parser import parse_feed, parse_price

__all__ = [
    "FeedNormalizer",
    "StatisticsAggregator",
    "derive_sku",
    "derive_stock_id",
    "derive_store_id",
    "parse_feed",
    "parse_price",
]
