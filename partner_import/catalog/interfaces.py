"""Collaborator interfaces consumed by the import engine.

The engine never talks to a database or a shop backend directly; the host
process passes implementations of these protocols in. All lookups bypass
access checks: the import runs in a trusted batch context.
"""

from typing import List, Optional, Protocol, Sequence

from partner_import.models.catalog import (
    AttributeValue,
    CatalogProduct,
    CatalogVariation,
    Order,
    OrderItem,
    RegionRef,
    StockLocation,
    Store,
)
from partner_import.models.data_models import FetchResult, ImportStatistics, Partner, SkuMatch


class FeedSource(Protocol):
    """Downloads partner feeds."""

    async def fetch(self, url: str) -> FetchResult:
        ...


class SkuResolver(Protocol):
    """Maps a partner SKU to the internal variation and product."""

    def resolve(self, sku: str) -> Optional[SkuMatch]:
        ...


class TaxonomyLookup(Protocol):
    """Region taxonomy keyed by ISO code."""

    def lookup_region(self, iso_code: str) -> Optional[RegionRef]:
        ...


class CatalogStorage(Protocol):
    """Persistence of stores, stock locations, products and variations."""

    def find_store(self, unique_id: str) -> Optional[Store]:
        ...

    def find_partner_stores(self, partner_id: str) -> List[Store]:
        ...

    def save_store(self, store: Store) -> Store:
        ...

    def find_stock_location(self, unique_id: str) -> Optional[StockLocation]:
        ...

    def save_stock_location(self, location: StockLocation) -> StockLocation:
        ...

    def find_product(self, store_id: int, related_product_id: int) -> Optional[CatalogProduct]:
        ...

    def find_store_products(self, store_id: int, published_only: bool = True) -> List[CatalogProduct]:
        ...

    def save_product(self, product: CatalogProduct) -> CatalogProduct:
        ...

    def load_variations(self, product: CatalogProduct) -> List[CatalogVariation]:
        ...

    def save_variation(self, variation: CatalogVariation) -> CatalogVariation:
        ...

    def delete_variation(self, variation: CatalogVariation) -> None:
        ...

    def load_attribute_values(self, attribute: str) -> List[AttributeValue]:
        ...

    def save_attribute_value(self, value: AttributeValue) -> AttributeValue:
        ...


class StockService(Protocol):
    """Relative inventory mutation; there is no absolute set operation."""

    def current_level(self, variation: CatalogVariation, locations: Sequence[StockLocation]) -> int:
        ...

    def receive(self, variation: CatalogVariation, location: StockLocation, quantity: int, note: str) -> None:
        ...

    def sell(self, variation: CatalogVariation, location: StockLocation, quantity: int, note: str) -> None:
        ...


class CartService(Protocol):
    """Draft shopping carts of a store."""

    def find_draft_carts(self, store: Store) -> List[Order]:
        ...

    def remove_item(self, order: Order, item: OrderItem) -> None:
        ...


class StatisticsSink(Protocol):
    """Partner record receiving the run statistics."""

    def save_statistics(self, partner: Partner, statistics: ImportStatistics) -> None:
        ...

    def unpublish_partner(self, partner: Partner) -> None:
        ...
