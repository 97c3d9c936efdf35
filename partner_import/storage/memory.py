"""In-memory implementation of every import collaborator.

Used by the CLI host (with a JSON snapshot on disk) and by the tests. Entities
are copied on the way in and out, so callers observe persistence semantics:
changes count only after the matching ``save_*`` call.
"""

import copy
import json
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

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
from partner_import.models.data_models import (
    ImportStatistics,
    Partner,
    SkuMatch,
    StockTransaction,
    TransactionType,
)


class InMemoryCatalog:
    """Catalog, stock, taxonomy, SKU, cart and statistics backend in one object."""

    def __init__(self):
        self._lock = threading.RLock()
        self._counters: Dict[str, int] = {}
        self.stores: Dict[int, Store] = {}
        self.locations: Dict[int, StockLocation] = {}
        self.products: Dict[int, CatalogProduct] = {}
        self.variations: Dict[int, CatalogVariation] = {}
        self.attribute_values: Dict[int, AttributeValue] = {}
        self.regions: Dict[str, RegionRef] = {}
        self.sku_matches: Dict[str, SkuMatch] = {}
        self.stock_levels: Dict[Tuple[int, int], int] = {}
        self.transactions: List[StockTransaction] = []
        self.orders: Dict[int, Order] = {}
        self.partner_statistics: Dict[str, ImportStatistics] = {}
        self.unpublished_partners: Set[str] = set()

    def _next_id(self, kind: str) -> int:
        self._counters[kind] = self._counters.get(kind, 0) + 1
        return self._counters[kind]

    # Setup helpers

    def add_region(self, iso_code: str, name: str = "") -> RegionRef:
        with self._lock:
            region = RegionRef(id=self._next_id("region"), iso_code=iso_code, name=name)
            self.regions[iso_code] = region
            return region

    def add_sku(self, sku: str, variation_id: int, product_id: int, product_title: str, size: str = "") -> None:
        with self._lock:
            self.sku_matches[sku] = SkuMatch(
                variation_id=variation_id,
                product_id=product_id,
                product_title=product_title,
                size=size,
            )

    def add_order(self, store_id: int, items: List[OrderItem], state: str = "draft") -> Order:
        with self._lock:
            order = Order(id=self._next_id("order"), store_id=store_id, items=list(items), state=state)
            self.orders[order.id] = order
            return copy.deepcopy(order)

    def stock_level(self, variation_id: int, location_id: int) -> int:
        with self._lock:
            return self.stock_levels.get((variation_id, location_id), 0)

    # SkuResolver / TaxonomyLookup

    def resolve(self, sku: str) -> Optional[SkuMatch]:
        with self._lock:
            return copy.deepcopy(self.sku_matches.get(sku))

    def lookup_region(self, iso_code: str) -> Optional[RegionRef]:
        with self._lock:
            return copy.deepcopy(self.regions.get(iso_code))

    # CatalogStorage

    def find_store(self, unique_id: str) -> Optional[Store]:
        with self._lock:
            for store in self.stores.values():
                if store.unique_id == unique_id:
                    return copy.deepcopy(store)
            return None

    def find_partner_stores(self, partner_id: str) -> List[Store]:
        with self._lock:
            return [copy.deepcopy(s) for s in self.stores.values() if s.partner_id == partner_id]

    def save_store(self, store: Store) -> Store:
        return self._save(self.stores, "store", store)

    def find_stock_location(self, unique_id: str) -> Optional[StockLocation]:
        with self._lock:
            for location in self.locations.values():
                if location.unique_id == unique_id:
                    return copy.deepcopy(location)
            return None

    def save_stock_location(self, location: StockLocation) -> StockLocation:
        return self._save(self.locations, "location", location)

    def find_product(self, store_id: int, related_product_id: int) -> Optional[CatalogProduct]:
        with self._lock:
            for product in self.products.values():
                if product.store_id == store_id and product.related_product_id == related_product_id:
                    return copy.deepcopy(product)
            return None

    def find_store_products(self, store_id: int, published_only: bool = True) -> List[CatalogProduct]:
        with self._lock:
            return [
                copy.deepcopy(p) for p in self.products.values()
                if p.store_id == store_id and (p.published or not published_only)
            ]

    def save_product(self, product: CatalogProduct) -> CatalogProduct:
        return self._save(self.products, "product", product)

    def load_variations(self, product: CatalogProduct) -> List[CatalogVariation]:
        with self._lock:
            return [copy.deepcopy(v) for v in self.variations.values() if v.product_id == product.id]

    def save_variation(self, variation: CatalogVariation) -> CatalogVariation:
        return self._save(self.variations, "variation", variation)

    def delete_variation(self, variation: CatalogVariation) -> None:
        with self._lock:
            self.variations.pop(variation.id, None)
            for product in self.products.values():
                if variation.id in product.variation_ids:
                    product.variation_ids.remove(variation.id)

    def load_attribute_values(self, attribute: str) -> List[AttributeValue]:
        with self._lock:
            return [copy.deepcopy(v) for v in self.attribute_values.values() if v.attribute == attribute]

    def save_attribute_value(self, value: AttributeValue) -> AttributeValue:
        return self._save(self.attribute_values, "attribute_value", value)

    def _save(self, table: Dict[int, object], kind: str, entity):
        with self._lock:
            entity = copy.deepcopy(entity)
            if entity.id is None:
                entity.id = self._next_id(kind)
            table[entity.id] = entity
            return copy.deepcopy(entity)

    # StockService

    def current_level(self, variation: CatalogVariation, locations: Sequence[StockLocation]) -> int:
        with self._lock:
            return sum(self.stock_levels.get((variation.id, loc.id), 0) for loc in locations)

    def receive(self, variation: CatalogVariation, location: StockLocation, quantity: int, note: str) -> None:
        self._transact(variation, location, TransactionType.RECEIVE, quantity, note)

    def sell(self, variation: CatalogVariation, location: StockLocation, quantity: int, note: str) -> None:
        self._transact(variation, location, TransactionType.SELL, quantity, note)

    def _transact(self, variation, location, kind: TransactionType, quantity: int, note: str) -> None:
        with self._lock:
            key = (variation.id, location.id)
            sign = 1 if kind is TransactionType.RECEIVE else -1
            self.stock_levels[key] = self.stock_levels.get(key, 0) + sign * quantity
            self.transactions.append(StockTransaction(
                variation_id=variation.id,
                location_id=location.id,
                type=kind,
                quantity=quantity,
                note=note,
            ))

    # CartService

    def find_draft_carts(self, store: Store) -> List[Order]:
        with self._lock:
            carts = [
                copy.deepcopy(o) for o in self.orders.values()
                if o.store_id == store.id and o.state == "draft" and o.cart
            ]
            return sorted(carts, key=lambda o: o.id, reverse=True)

    def remove_item(self, order: Order, item: OrderItem) -> None:
        with self._lock:
            order.items = [i for i in order.items if i.id != item.id]
            stored = self.orders.get(order.id)
            if stored is not None:
                stored.items = [i for i in stored.items if i.id != item.id]

    # StatisticsSink

    def save_statistics(self, partner: Partner, statistics: ImportStatistics) -> None:
        with self._lock:
            self.partner_statistics[partner.id] = copy.deepcopy(statistics)

    def unpublish_partner(self, partner: Partner) -> None:
        with self._lock:
            partner.published = False
            self.unpublished_partners.add(partner.id)

    # Snapshot

    def to_dict(self) -> Dict:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "stores": [asdict(s) for s in self.stores.values()],
                "stock_locations": [asdict(l) for l in self.locations.values()],
                "products": [asdict(p) for p in self.products.values()],
                "variations": [asdict(v) for v in self.variations.values()],
                "attribute_values": [asdict(v) for v in self.attribute_values.values()],
                "regions": [asdict(r) for r in self.regions.values()],
                "skus": {sku: asdict(m) for sku, m in self.sku_matches.items()},
                "stock_levels": [
                    {"variation_id": v, "location_id": l, "quantity": q}
                    for (v, l), q in self.stock_levels.items()
                ],
                "orders": [asdict(o) for o in self.orders.values()],
                "statistics": {pid: asdict(s) for pid, s in self.partner_statistics.items()},
                "unpublished_partners": sorted(self.unpublished_partners),
            }

    @classmethod
    def from_dict(cls, data: Dict) -> "InMemoryCatalog":
        catalog = cls()
        catalog.stores = {s["id"]: Store(**s) for s in data.get("stores", [])}
        catalog.locations = {l["id"]: StockLocation(**l) for l in data.get("stock_locations", [])}
        catalog.products = {p["id"]: CatalogProduct(**p) for p in data.get("products", [])}
        catalog.variations = {v["id"]: CatalogVariation(**v) for v in data.get("variations", [])}
        catalog.attribute_values = {v["id"]: AttributeValue(**v) for v in data.get("attribute_values", [])}
        catalog.regions = {r["iso_code"]: RegionRef(**r) for r in data.get("regions", [])}
        catalog.sku_matches = {sku: SkuMatch(**m) for sku, m in data.get("skus", {}).items()}
        catalog.stock_levels = {
            (row["variation_id"], row["location_id"]): row["quantity"]
            for row in data.get("stock_levels", [])
        }
        for raw in data.get("orders", []):
            raw = dict(raw)
            items = [OrderItem(**item) for item in raw.pop("items", [])]
            catalog.orders[raw["id"]] = Order(items=items, **raw)
        catalog.partner_statistics = {
            pid: ImportStatistics(**s) for pid, s in data.get("statistics", {}).items()
        }
        catalog.unpublished_partners = set(data.get("unpublished_partners", []))

        counters = data.get("counters", {})
        for kind, table in (
            ("store", catalog.stores),
            ("location", catalog.locations),
            ("product", catalog.products),
            ("variation", catalog.variations),
            ("attribute_value", catalog.attribute_values),
            ("order", catalog.orders),
        ):
            counters[kind] = max([counters.get(kind, 0), *table.keys()])
        counters["region"] = max([counters.get("region", 0), *(r.id for r in catalog.regions.values())])
        catalog._counters = counters
        return catalog

    @classmethod
    def load(cls, path: Union[str, Path]) -> "InMemoryCatalog":
        """Load a snapshot; a missing file gives an empty catalog."""
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

    def dump(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
