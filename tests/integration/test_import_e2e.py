"""End-to-end imports against the mock partner feed server."""

from unittest.mock import AsyncMock

import httpx
import pytest

from partner_import.fetcher import AsyncHTTPClient, FeedFetcher, RetryHandler
from partner_import.mock_servers import build_sample_feed, create_feed_app
from partner_import.models.catalog import OrderItem
from partner_import.pipeline.orchestrator import ImportOrchestrator
from tests.fixtures.sample_feeds import feed_product, sample_feed, stock_row


async def run_import(config, catalog, partner, app):
    """Import ``partner`` with its feed served by ``app`` over ASGI."""
    transport = httpx.ASGITransport(app=app)
    async with AsyncHTTPClient(transport=transport) as client:
        fetcher = FeedFetcher(client, RetryHandler(max_retries=5, jitter_max=0.0, sleep=AsyncMock()))
        orchestrator = ImportOrchestrator.from_backend(config, catalog, fetcher=fetcher)
        return await orchestrator.run(partner)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_full_import(sample_config, catalog, partner):
    app = create_feed_app({"acme": sample_feed()})

    statistics = await run_import(sample_config, catalog, partner, app)

    assert statistics.errors == []
    assert statistics.regions_count == 1
    assert statistics.count == 2
    assert statistics.created == 2

    store = catalog.find_store("P7_RU-77")
    location = catalog.find_stock_location("P7_Warehouse_1")
    levels = {
        v.sku: catalog.stock_level(v.id, location.id)
        for v in catalog.variations.values()
    }
    assert levels == {"P7_RU-77_SKU-1": 5, "P7_RU-77_SKU-3": 2, "P7_RU-77_SKU-2": 3}
    assert store.stock_location_ids == [location.id]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reimport_is_idempotent(sample_config, catalog, partner):
    app = create_feed_app({"acme": sample_feed()})

    await run_import(sample_config, catalog, partner, app)
    snapshot = catalog.to_dict()
    transactions = len(catalog.transactions)

    statistics = await run_import(sample_config, catalog, partner, app)

    assert len(catalog.transactions) == transactions
    assert statistics.created == 0
    assert statistics.updated == 2
    assert statistics.deleted == 0

    after = catalog.to_dict()
    for key in ("stores", "stock_locations", "products", "variations", "stock_levels"):
        assert after[key] == snapshot[key]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_feed_changes_converge(sample_config, catalog, partner):
    feeds = {"acme": sample_feed()}
    app = create_feed_app(feeds)
    await run_import(sample_config, catalog, partner, app)

    feeds["acme"] = build_sample_feed([
        feed_product("SKU-1", "Sneakers 42", {"RU-77": [stock_row(available=1)]}),
        feed_product("SKU-4", "Sandals", {"RU-77": [stock_row(available="abc")]}),
        feed_product("SKU-9", "Unknown", {"RU-XX": [stock_row()]}),
    ])
    statistics = await run_import(sample_config, catalog, partner, app)

    assert statistics.created == 1
    assert statistics.updated == 1
    assert statistics.deleted == 1
    assert statistics.errors == ['Invalid stock quantity format: "abc" for SKU SKU-4']

    store = catalog.find_store("P7_RU-77")
    assert catalog.find_product(store.id, 12).published is False
    assert {v.sku for v in catalog.variations.values()} == {"P7_RU-77_SKU-1", "P7_RU-77_SKU-2", "P7_RU-77_SKU-4"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unknown_region_reported(sample_config, catalog, partner):
    catalog.add_sku("SKU-9", variation_id=109, product_id=19, product_title="Scarf")
    feed = build_sample_feed([
        feed_product("SKU-9", "Scarf", {"RU-XX": [stock_row()], "RU-77": [stock_row()]}),
    ])

    statistics = await run_import(sample_config, catalog, partner, create_feed_app({"acme": feed}))

    assert statistics.errors == ["Invalid region format RU-XX"]
    assert statistics.regions_count == 1
    assert catalog.find_store("P7_RU-XX") is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_transient_server_errors_are_retried(sample_config, catalog, partner):
    app = create_feed_app({"acme": sample_feed()}, error_rate=0.3, random_seed=7)

    statistics = await run_import(sample_config, catalog, partner, app)

    assert statistics.errors == []
    assert statistics.count == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_missing_feed(sample_config, catalog, partner):
    app = create_feed_app({})

    statistics = await run_import(sample_config, catalog, partner, app)

    assert statistics.errors == ["Could not fetch feed XML."]
    assert catalog.stores == {}
    assert catalog.partner_statistics["acme"] == statistics


@pytest.mark.integration
@pytest.mark.asyncio
async def test_import_then_disable(sample_config, catalog, partner):
    await run_import(sample_config, catalog, partner, create_feed_app({"acme": sample_feed()}))
    store = catalog.find_store("P7_RU-77")
    sneakers = catalog.find_product(store.id, 11)
    order = catalog.add_order(store.id, [
        OrderItem(id=1, product_id=sneakers.id, unit_price=199.9, kit_id=1),
        OrderItem(id=2, product_id=500, unit_price=0.0, kit_id=1),
        OrderItem(id=3, product_id=501, unit_price=10.0),
    ])

    orchestrator = ImportOrchestrator.from_backend(sample_config, catalog)
    statistics = orchestrator.disable(partner, "Contract ended")

    assert statistics.deleted == 2
    assert catalog.find_store_products(store.id) == []
    assert [item.id for item in catalog.orders[order.id].items] == [3]
