"""Shared cache of size attribute values."""

import threading
from typing import Dict, Optional

from partner_import.catalog.interfaces import CatalogStorage
from partner_import.models.catalog import AttributeValue


SIZE_ATTRIBUTE = "size"


class SizeAttributeCache:
    """
    Lazily loaded size attribute values keyed by name.

    Lookups and creation happen under one lock, so regions reconciled in
    parallel never create two values with the same name.
    """

    def __init__(self, storage: CatalogStorage, attribute: str = SIZE_ATTRIBUTE):
        self.storage = storage
        self.attribute = attribute
        self._values: Optional[Dict[str, AttributeValue]] = None
        self._lock = threading.Lock()

    def get_or_create(self, name: str) -> AttributeValue:
        with self._lock:
            if self._values is None:
                self._values = {
                    value.name: value
                    for value in self.storage.load_attribute_values(self.attribute)
                }
            value = self._values.get(name)
            if value is None:
                value = self.storage.save_attribute_value(
                    AttributeValue(attribute=self.attribute, name=name)
                )
                self._values[name] = value
            return value
