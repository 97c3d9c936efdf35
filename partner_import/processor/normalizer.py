"""Feed normalizer: parsed feed entries to the desired catalog state.

Maps feed SKUs to internal catalog identities, validates stock rows and derives
the store, stock location and variation ids the reconciler converges to.
All derived ids are pure functions of the partner unique id and feed values,
so repeated imports address the same catalog entities.
"""

import math
import threading
from typing import Dict, List, Optional

from partner_import.catalog.interfaces import SkuResolver
from partner_import.models.data_models import (
    DesiredStock,
    DesiredStore,
    DesiredVariation,
    FeedEntry,
    NormalizationResult,
    NormalizedFeed,
    Partner,
    RawStockRow,
    SkuMatch,
)


def derive_store_id(partner_id: str, region_code: str) -> str:
    return f"{partner_id}_{region_code}"


def derive_stock_id(partner_id: str, stock_id: str) -> str:
    return f"{partner_id}_{stock_id.replace(' ', '_')}"


def derive_sku(partner_id: str, region_code: str, sku: str) -> str:
    return f"{partner_id}_{region_code}_{sku}"


def validate_row(row: RawStockRow, sku: str, region_code: str) -> List[str]:
    """
    Collect validation problems of a stock row.

    A row needs city, address and stock_id, a positive price and a
    non-negative availability. Non-numeric availability is left for the
    reconciler, which reports it and zeroes the stock level.

    Returns:
        One message per problem; empty when the row is usable
    """
    prefix = f"SKU {sku} in region {region_code}"
    errors = []
    for name in ("city", "address", "stock_id"):
        if not getattr(row, name):
            errors.append(f"{prefix}: missing required parameter {name}")
    if not math.isfinite(row.price) or row.price <= 0:
        errors.append(f"{prefix}: invalid parameter price")
    if isinstance(row.available, int) and row.available < 0:
        errors.append(f"{prefix}: invalid parameter available")
    return errors


def _merge_quantity(current, added):
    """Availability of a stock location listed by more than one row."""
    if isinstance(current, int) and isinstance(added, int):
        return max(current, added)
    # a malformed value wins so the reconciler can report it
    return added if not isinstance(added, int) else current


class FeedNormalizer:
    """
    Builds the desired catalog state from parsed feed entries.

    When several valid rows of one SKU fall into the same region, the highest
    availability per stock location and the highest price are used, so the
    result does not depend on row order.
    """

    def __init__(self, resolver: SkuResolver):
        """
        Initialize normalizer.

        Args:
            resolver: Looks up the internal variation of a feed SKU
        """
        self.resolver = resolver
        self._cache: Dict[str, Optional[SkuMatch]] = {}
        self._lock = threading.Lock()

    def resolve(self, sku: str) -> Optional[SkuMatch]:
        """Resolve a feed SKU once per normalizer instance."""
        with self._lock:
            if sku not in self._cache:
                self._cache[sku] = self.resolver.resolve(sku)
            return self._cache[sku]

    def normalize(self, entries: List[FeedEntry], partner: Partner) -> NormalizationResult:
        """
        Normalize parsed entries for one partner.

        Args:
            entries: Parsed feed entries in feed order
            partner: Partner owning the feed; needs a unique id

        Returns:
            NormalizationResult with desired stores, stocks and variations
        """
        result = NormalizationResult(feed=NormalizedFeed())
        partner_id = partner.unique_id

        if not partner_id:
            result.errors.append("Partner has no unique identifier configured")
            return result

        if not entries:
            result.errors.append("Invalid feed format: no products found")

        for entry in entries:
            match = self.resolve(entry.sku)
            if match is None:
                continue
            self._normalize_entry(entry, match, partner, result)

        return result

    def _normalize_entry(
        self,
        entry: FeedEntry,
        match: SkuMatch,
        partner: Partner,
        result: NormalizationResult
    ) -> None:
        feed = result.feed
        feed.products[match.product_id] = match.product_title
        partner_id = partner.unique_id

        valid_rows = 0
        for region_code, rows in entry.rows_by_region().items():
            variation: Optional[DesiredVariation] = None

            for row in rows:
                row_errors = validate_row(row, entry.sku, region_code)
                if row_errors:
                    result.errors.extend(row_errors)
                    continue
                valid_rows += 1

                store = feed.stores.get(region_code)
                if store is None:
                    store = DesiredStore(
                        region_code=region_code,
                        store_id=derive_store_id(partner_id, region_code),
                        title=f"{partner.name} {region_code}",
                        city=row.city,
                    )
                    feed.stores[region_code] = store

                stock_id = derive_stock_id(partner_id, row.stock_id)
                if stock_id not in feed.stocks:
                    feed.stocks[stock_id] = DesiredStock(
                        stock_id=stock_id,
                        name=f"{row.city}, {row.address}",
                    )
                if stock_id not in store.stock_ids:
                    store.stock_ids.append(stock_id)

                if variation is None:
                    variation = (
                        feed.variations
                        .setdefault(region_code, {})
                        .setdefault(match.product_id, {})
                        .setdefault(entry.sku, DesiredVariation(
                            feed_sku=entry.sku,
                            sku=derive_sku(partner_id, region_code, entry.sku),
                            variation_id=match.variation_id,
                            product_id=match.product_id,
                            size=match.size,
                            price=row.price,
                        ))
                    )
                variation.price = max(variation.price, row.price)
                if stock_id in variation.quantities:
                    variation.quantities[stock_id] = _merge_quantity(
                        variation.quantities[stock_id], row.available
                    )
                else:
                    variation.quantities[stock_id] = row.available

        if not valid_rows:
            result.errors.append(f"Could not parse feed data for SKU {entry.sku}")
