"""Catalog reconciler: converges one partner store to the desired feed state."""

import threading
from typing import Dict, List, Optional, Union

from partner_import.catalog.attributes import SizeAttributeCache
from partner_import.catalog.interfaces import CatalogStorage, TaxonomyLookup
from partner_import.catalog.locations import StockLocationCache
from partner_import.catalog.stock import StockLevelSynchronizer
from partner_import.models.catalog import CatalogProduct, CatalogVariation, StockLocation, Store
from partner_import.models.config import StoreDefaults
from partner_import.models.data_models import (
    DesiredStore,
    DesiredVariation,
    NormalizedFeed,
    Partner,
    RegionResult,
)


class ReconcileStopped(Exception):
    """Raised inside a region when the import run was asked to stop."""


def is_valid_quantity(qty: Union[int, float, str, None]) -> bool:
    """True for non-negative numbers; bools and strings are rejected."""
    if isinstance(qty, bool) or not isinstance(qty, (int, float)):
        return False
    return qty >= 0


def unpublish_store_products(storage: CatalogStorage, store: Store) -> List[CatalogProduct]:
    """
    Unpublish every published product of ``store``.

    Returns:
        The products that were published before the call
    """
    products = storage.find_store_products(store.id, published_only=True)
    for product in products:
        product.published = False
        storage.save_product(product)
    return products


class CatalogReconciler:
    """
    Applies one region of a normalized feed to the catalog.

    Every product of the store is unpublished first and only products that
    receive at least one variation from the feed are published again, so
    products the partner stopped sending end up unpublished, never deleted.
    Variations the partner stopped sending are deleted.
    """

    def __init__(
        self,
        storage: CatalogStorage,
        taxonomy: TaxonomyLookup,
        stock_sync: StockLevelSynchronizer,
        sizes: Optional[SizeAttributeCache] = None,
        locations: Optional[StockLocationCache] = None,
        currency: str = "RUB",
        store_defaults: Optional[StoreDefaults] = None,
        stop: Optional[threading.Event] = None
    ):
        """
        Initialize reconciler.

        Args:
            storage: Catalog persistence collaborator
            taxonomy: Region lookup by ISO code
            stock_sync: Turns target quantities into stock transactions
            sizes: Shared size attribute cache; one is created when omitted
            locations: Shared stock location cache; one is created when omitted
            currency: Currency of variation prices
            store_defaults: Values for stores created by the import
            stop: Set to abandon regions and products not started yet
        """
        self.storage = storage
        self.taxonomy = taxonomy
        self.stock_sync = stock_sync
        self.sizes = sizes or SizeAttributeCache(storage)
        self.locations = locations or StockLocationCache(storage)
        self.currency = currency
        self.store_defaults = store_defaults or StoreDefaults()
        self.stop = stop or threading.Event()

    def reconcile_region(
        self,
        partner: Partner,
        desired: DesiredStore,
        feed: NormalizedFeed
    ) -> RegionResult:
        """
        Reconcile the store of one region.

        Args:
            partner: Partner owning the store
            desired: Desired store state for the region
            feed: Whole normalized feed (stock names, product titles, variations)

        Returns:
            RegionResult with products published before and after the run.
            An unknown region leaves the store untouched and reports an error.

        Raises:
            ReconcileStopped: The stop event was set before the store or one
                of its products was touched
        """
        result = RegionResult(region_code=desired.region_code)
        self._check_stop(desired.region_code)

        region = self.taxonomy.lookup_region(desired.region_code)
        if region is None:
            result.errors.append(f"Invalid region format {desired.region_code}")
            return result

        store = self.storage.find_store(desired.store_id)
        if store is None:
            store = self._new_store(desired)

        locations = {
            stock_id: self.locations.get_or_create(stock_id, feed.stocks[stock_id].name)
            for stock_id in desired.stock_ids
        }
        store.region_id = region.id
        store.partner_id = partner.id
        store.stock_location_ids = [location.id for location in locations.values()]
        store.allocation_location_id = store.stock_location_ids[0] if store.stock_location_ids else None
        store = self.storage.save_store(store)
        result.store_id = store.id

        result.products_before = [p.id for p in unpublish_store_products(self.storage, store)]

        for product_id, variations in feed.region_variations(desired.region_code).items():
            self._check_stop(desired.region_code)
            product = self._import_product(
                store, product_id, feed.products.get(product_id, ""), variations, locations, result
            )
            if product.published:
                result.processed_products.append(product.id)

        return result

    def _check_stop(self, region_code: str) -> None:
        if self.stop.is_set():
            raise ReconcileStopped(f"Region {region_code} stopped before completion")

    def _new_store(self, desired: DesiredStore) -> Store:
        defaults = self.store_defaults
        return Store(
            unique_id=desired.store_id,
            name=desired.title,
            store_type=defaults.store_type,
            currency=self.currency,
            timezone=defaults.timezone,
            address={
                "country_code": defaults.country_code,
                "address_line1": desired.city,
                "locality": desired.city,
                "administrative_area": "",
                "postal_code": "",
            },
        )

    def _import_product(
        self,
        store: Store,
        product_id: int,
        title: str,
        variations: Dict[str, DesiredVariation],
        locations: Dict[str, StockLocation],
        result: RegionResult
    ) -> CatalogProduct:
        product = self.storage.find_product(store.id, product_id)
        existing: Dict[str, CatalogVariation] = {}
        if product is None:
            product = self.storage.save_product(
                CatalogProduct(title=title, store_id=store.id, related_product_id=product_id)
            )
        else:
            for variation in self.storage.load_variations(product):
                existing[variation.sku] = variation
            if title:
                product.title = title

        reused = set()
        applied: List[CatalogVariation] = []
        for desired in variations.values():
            variation = existing.get(desired.sku)
            if variation is None:
                variation = CatalogVariation(sku=desired.sku)
            else:
                reused.add(variation.id)

            variation.price = desired.price
            variation.currency = self.currency
            variation.published = True
            variation.related_variation_id = desired.variation_id
            variation.product_id = product.id
            if desired.size:
                variation.size_id = self.sizes.get_or_create(desired.size).id
            variation = self.storage.save_variation(variation)
            applied.append(variation)

            self._sync_stock(variation, desired, locations, result)

        if applied:
            product.variation_ids = [variation.id for variation in applied]
            product.published = True
        else:
            product.variation_ids = []
            product.published = False
        product = self.storage.save_product(product)

        for variation in existing.values():
            if variation.id not in reused:
                self.storage.delete_variation(variation)

        return product

    def _sync_stock(
        self,
        variation: CatalogVariation,
        desired: DesiredVariation,
        locations: Dict[str, StockLocation],
        result: RegionResult
    ) -> None:
        for stock_id, qty in desired.quantities.items():
            location = locations.get(stock_id)
            if location is None:
                continue
            if is_valid_quantity(qty):
                self.stock_sync.reconcile(variation, location, int(qty))
            else:
                self.stock_sync.reconcile(variation, location, 0)
                result.errors.append(
                    f'Invalid stock quantity format: "{qty}" for SKU {desired.feed_sku}'
                )
