"""Catalog reconciliation: stores, products, variations and stock levels."""

from .attributes import SizeAttributeCache
from .deactivation import DeactivationEngine
from .locations import StockLocationCache
from .reconciler import CatalogReconciler
from .stock import StockLevelSynchronizer

__all__ = [
    "CatalogReconciler",
    "DeactivationEngine",
    "SizeAttributeCache",
    "StockLevelSynchronizer",
    "StockLocationCache",
]
