"""Partner deactivation: unpublish a partner's catalog and clean up carts."""

import time
from datetime import datetime, timezone
from typing import Optional, Set

from partner_import.catalog.interfaces import CartService, CatalogStorage, StatisticsSink
from partner_import.catalog.reconciler import unpublish_store_products
from partner_import.models.catalog import Order
from partner_import.models.data_models import ImportStatistics, Partner
from partner_import.monitoring.logger import StructuredLogger


def utc_timestamp() -> str:
    """Current UTC time in the statistics date format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


class DeactivationEngine:
    """
    Takes a partner off the shop in one pass.

    Every published product of every partner store is unpublished and counted
    as deleted. Draft carts of those stores lose the items of deactivated
    products, together with zero-priced kit extras bundled with them.
    """

    def __init__(
        self,
        storage: CatalogStorage,
        carts: CartService,
        sink: StatisticsSink,
        logger: Optional[StructuredLogger] = None
    ):
        self.storage = storage
        self.carts = carts
        self.sink = sink
        self.logger = logger

    def disable_partner(self, partner: Partner, message: str = "") -> ImportStatistics:
        """
        Deactivate ``partner``.

        Args:
            partner: Partner to disable
            message: Reason, stored as the only error entry of the statistics

        Returns:
            Statistics persisted on the partner record
        """
        start = time.monotonic()
        statistics = ImportStatistics(date=utc_timestamp())
        if message:
            statistics.errors.append(message)

        stores = self.storage.find_partner_stores(partner.id)
        removed_items = 0
        for store in stores:
            products = unpublish_store_products(self.storage, store)
            statistics.deleted += len(products)
            if not products:
                continue

            deactivated = {product.id for product in products}
            for order in self.carts.find_draft_carts(store):
                removed_items += self.purge_cart(order, deactivated)

        statistics.duration = int(time.monotonic() - start)
        self.sink.save_statistics(partner, statistics)
        self.sink.unpublish_partner(partner)

        if self.logger:
            self.logger.partner_disabled(
                partner=partner.name,
                stores=len(stores),
                deleted=statistics.deleted,
                cart_items_removed=removed_items,
            )
        return statistics

    def purge_cart(self, order: Order, deactivated: Set[int]) -> int:
        """
        Remove deactivated products from a cart order.

        The first pass removes items whose product was deactivated and
        remembers their kit ids. The second pass removes remaining
        zero-priced items of those kits.

        Returns:
            Number of items removed
        """
        touched_kits = set()
        removed_ids = set()
        for item in list(order.items):
            if item.product_id is None or item.product_id not in deactivated:
                continue
            if item.kit_id is not None:
                touched_kits.add(item.kit_id)
            self.carts.remove_item(order, item)
            removed_ids.add(item.id)

        if touched_kits:
            for item in list(order.items):
                if item.id in removed_ids:
                    continue
                if item.kit_id in touched_kits and not item.unit_price > 0:
                    self.carts.remove_item(order, item)
                    removed_ids.add(item.id)
        return len(removed_ids)
