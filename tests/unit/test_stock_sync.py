"""Unit tests for the stock level synchronizer."""

from unittest.mock import Mock

import pytest

from partner_import.catalog.stock import RECEIVE_NOTE, SELL_NOTE, StockLevelSynchronizer
from partner_import.models.catalog import CatalogVariation, StockLocation
from partner_import.models.data_models import TransactionType


@pytest.fixture
def variation():
    return CatalogVariation(sku="P7_RU-77_SKU-1", id=1)


@pytest.fixture
def location():
    return StockLocation(unique_id="P7_Warehouse_1", name="Moscow, Tverskaya 1", id=2)


@pytest.fixture
def stock_service():
    service = Mock()
    service.current_level.return_value = 5
    return service


class TestStockLevelSynchronizer:

    def test_receive_difference(self, stock_service, variation, location):
        transaction = StockLevelSynchronizer(stock_service).reconcile(variation, location, 8)

        stock_service.current_level.assert_called_once_with(variation, [location])
        stock_service.receive.assert_called_once_with(variation, location, 3, RECEIVE_NOTE)
        stock_service.sell.assert_not_called()
        assert transaction.type is TransactionType.RECEIVE
        assert transaction.quantity == 3
        assert transaction.variation_id == 1
        assert transaction.location_id == 2

    def test_sell_difference(self, stock_service, variation, location):
        transaction = StockLevelSynchronizer(stock_service).reconcile(variation, location, 2)

        stock_service.sell.assert_called_once_with(variation, location, 3, SELL_NOTE)
        stock_service.receive.assert_not_called()
        assert transaction.type is TransactionType.SELL
        assert transaction.quantity == 3

    def test_no_change(self, stock_service, variation, location):
        transaction = StockLevelSynchronizer(stock_service).reconcile(variation, location, 5)

        assert transaction is None
        stock_service.receive.assert_not_called()
        stock_service.sell.assert_not_called()

    def test_zero_target_sells_everything(self, stock_service, variation, location):
        transaction = StockLevelSynchronizer(stock_service).reconcile(variation, location, 0)
        assert transaction.quantity == 5

    def test_transactions_are_logged(self, stock_service, variation, location):
        logger = Mock()
        StockLevelSynchronizer(stock_service, logger=logger).reconcile(variation, location, 8)

        logger.stock_transaction.assert_called_once_with(
            sku="P7_RU-77_SKU-1", location=2, kind="receive", quantity=3
        )

    def test_second_sync_is_a_no_op(self, catalog, variation, location):
        sync = StockLevelSynchronizer(catalog)

        assert sync.reconcile(variation, location, 7) is not None
        assert sync.reconcile(variation, location, 7) is None
        assert catalog.stock_level(1, 2) == 7
        assert len(catalog.transactions) == 1
