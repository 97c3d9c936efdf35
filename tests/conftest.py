"""Pytest configuration and shared fixtures."""

import pytest

from partner_import.models.config import ImportConfig, PartnerConfig
from partner_import.models.data_models import Partner
from partner_import.storage import InMemoryCatalog


@pytest.fixture
def catalog():
    """Catalog backend with the regions and SKUs the sample feeds use."""
    backend = InMemoryCatalog()
    backend.add_region("RU-77", "Moscow")
    backend.add_region("RU-MOS", "Moscow Oblast")
    backend.add_region("RU-MOW", "Moscow")
    backend.add_region("RU-LEN", "Leningrad Oblast")
    backend.add_region("RU-SPE", "Saint Petersburg")

    backend.add_sku("SKU-1", variation_id=101, product_id=11, product_title="Sneakers", size="42")
    backend.add_sku("SKU-3", variation_id=103, product_id=11, product_title="Sneakers", size="43")
    backend.add_sku("SKU-2", variation_id=102, product_id=12, product_title="Boots")
    backend.add_sku("SKU-4", variation_id=104, product_id=13, product_title="Sandals", size="40")
    return backend


@pytest.fixture
def partner():
    """Published partner with a unique id."""
    return Partner(
        id="acme",
        name="Acme",
        unique_id="P7",
        import_url="http://feeds.test/feeds/acme.xml",
    )


@pytest.fixture
def sample_config():
    """Provide a sample configuration for testing."""
    return ImportConfig(
        max_retries=2,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter_max=0.0,
        connect_timeout=1.0,
        read_timeout=1.0,
        total_timeout=30.0,
        worker_pool_size=2,
        log_level="WARNING",
        partners=[
            PartnerConfig(
                id="acme",
                name="Acme",
                unique_id="P7",
                import_url="http://feeds.test/feeds/acme.xml",
            ),
        ],
    )
