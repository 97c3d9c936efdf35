"""Stock level synchronizer.

The stock service only knows relative mutations, so "set the level to N" is
expressed as the difference between N and the current level. Running the same
sync twice emits no second transaction.
"""

from typing import Optional

from partner_import.catalog.interfaces import StockService
from partner_import.models.catalog import CatalogVariation, StockLocation
from partner_import.models.data_models import StockTransaction, TransactionType
from partner_import.monitoring.logger import StructuredLogger


RECEIVE_NOTE = "Partner import: add stock level"
SELL_NOTE = "Partner import: remove stock level"


class StockLevelSynchronizer:
    """Converts absolute stock targets into signed stock transactions."""

    def __init__(self, stock_service: StockService, logger: Optional[StructuredLogger] = None):
        self.stock_service = stock_service
        self.logger = logger

    def reconcile(
        self,
        variation: CatalogVariation,
        location: StockLocation,
        target_qty: int
    ) -> Optional[StockTransaction]:
        """
        Bring the stock of ``variation`` at ``location`` to ``target_qty``.

        Args:
            variation: Persisted catalog variation
            location: Persisted stock location
            target_qty: Desired absolute quantity

        Returns:
            The transaction emitted, or None when the level already matches
        """
        current = self.stock_service.current_level(variation, [location])
        delta = target_qty - current

        if delta > 0:
            self.stock_service.receive(variation, location, delta, RECEIVE_NOTE)
            transaction = StockTransaction(
                variation_id=variation.id,
                location_id=location.id,
                type=TransactionType.RECEIVE,
                quantity=delta,
                note=RECEIVE_NOTE,
            )
        elif delta < 0:
            self.stock_service.sell(variation, location, -delta, SELL_NOTE)
            transaction = StockTransaction(
                variation_id=variation.id,
                location_id=location.id,
                type=TransactionType.SELL,
                quantity=-delta,
                note=SELL_NOTE,
            )
        else:
            return None

        if self.logger:
            self.logger.stock_transaction(
                sku=variation.sku,
                location=location.id,
                kind=transaction.type.value,
                quantity=transaction.quantity,
            )
        return transaction
