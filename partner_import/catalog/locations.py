"""Shared cache of stock locations keyed by derived id."""

import threading
from typing import Dict

from partner_import.catalog.interfaces import CatalogStorage
from partner_import.models.catalog import StockLocation


class StockLocationCache:
    """
    Stock locations of one import run keyed by derived stock id.

    Merged regions reference the same warehouses, so lookup, creation and
    renaming of a location happen under one lock. Two regions reconciled in
    parallel therefore resolve a derived id to the same location.
    """

    def __init__(self, storage: CatalogStorage):
        self.storage = storage
        self._locations: Dict[str, StockLocation] = {}
        self._lock = threading.Lock()

    def get_or_create(self, stock_id: str, name: str) -> StockLocation:
        """
        Location for ``stock_id``, created or renamed to ``name`` as needed.

        Args:
            stock_id: Derived stock id
            name: Display name, "{city}, {address}"

        Returns:
            The persisted location
        """
        with self._lock:
            location = self._locations.get(stock_id)
            if location is None:
                location = self.storage.find_stock_location(stock_id)
            if location is None:
                location = self.storage.save_stock_location(StockLocation(unique_id=stock_id, name=name))
            elif location.name != name:
                location.name = name
                location = self.storage.save_stock_location(location)
            self._locations[stock_id] = location
            return location
