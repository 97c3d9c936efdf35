"""Import orchestrator coordinating fetch, parse, normalize and reconcile."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from partner_import.catalog.attributes import SizeAttributeCache
from partner_import.catalog.deactivation import DeactivationEngine, utc_timestamp
from partner_import.catalog.interfaces import (
    CartService,
    CatalogStorage,
    FeedSource,
    SkuResolver,
    StatisticsSink,
    StockService,
    TaxonomyLookup,
)
from partner_import.catalog.locations import StockLocationCache
from partner_import.catalog.reconciler import CatalogReconciler, ReconcileStopped
from partner_import.catalog.stock import StockLevelSynchronizer
from partner_import.fetcher.feed_fetcher import FeedFetcher
from partner_import.fetcher.http_client import AsyncHTTPClient
from partner_import.fetcher.retry_handler import RetryHandler
from partner_import.models.config import ImportConfig
from partner_import.models.data_models import (
    DesiredStore,
    FetchResult,
    ImportStatistics,
    NormalizedFeed,
    Partner,
    RegionResult,
)
from partner_import.monitoring.logger import StructuredLogger
from partner_import.processor import FeedNormalizer, StatisticsAggregator, parse_feed


class ImportOrchestrator:
    """Runs partner imports and deactivations against injected collaborators."""

    def __init__(
        self,
        config: ImportConfig,
        storage: CatalogStorage,
        stock_service: StockService,
        taxonomy: TaxonomyLookup,
        resolver: SkuResolver,
        carts: CartService,
        sink: StatisticsSink,
        fetcher: Optional[FeedSource] = None,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Import configuration
            storage: Catalog persistence
            stock_service: Relative stock mutation service
            taxonomy: Region lookup by ISO code
            resolver: Feed SKU to internal variation lookup
            carts: Draft cart access, used by deactivation
            sink: Receives the statistics of every run
            fetcher: Feed source; an httpx based FeedFetcher when omitted
            logger: Structured logger; created from config when omitted
        """
        self.config = config
        self.storage = storage
        self.stock_service = stock_service
        self.taxonomy = taxonomy
        self.resolver = resolver
        self.carts = carts
        self.sink = sink
        self.fetcher = fetcher
        self.logger = logger or StructuredLogger(level=config.log_level)

    @classmethod
    def from_backend(cls, config: ImportConfig, backend, **kwargs) -> "ImportOrchestrator":
        """Build an orchestrator whose collaborators are all ``backend``."""
        return cls(
            config,
            storage=backend,
            stock_service=backend,
            taxonomy=backend,
            resolver=backend,
            carts=backend,
            sink=backend,
            **kwargs
        )

    async def run(self, partner: Partner) -> ImportStatistics:
        """
        Run one import for ``partner``: fetch → parse → normalize → reconcile.

        Never raises for feed or data problems: they end up in the
        statistics errors. Statistics are persisted exactly once, also when
        the run exceeds total_timeout. In that case regions not started yet
        are abandoned and the statistics are taken after the running ones
        have finished.

        Returns:
            Statistics of the run
        """
        aggregator = StatisticsAggregator(date=utc_timestamp())
        aggregator.start_timer()
        self.logger.log("import_start", partner=partner.name, url=partner.import_url)

        try:
            await asyncio.wait_for(
                self._run_import(partner, aggregator),
                timeout=self.config.total_timeout
            )
        except asyncio.TimeoutError:
            self.logger.log("import_timeout", partner=partner.name, timeout=self.config.total_timeout)
            aggregator.add_error(f"Import timed out after {self.config.total_timeout}s")

        aggregator.stop_timer()
        statistics = aggregator.get_statistics()
        self.sink.save_statistics(partner, statistics)
        self.logger.import_complete(
            partner=partner.name,
            duration=statistics.duration,
            errors=len(statistics.errors)
        )
        return statistics

    def disable(self, partner: Partner, message: str = "") -> ImportStatistics:
        """Unpublish everything ``partner`` offers; see DeactivationEngine."""
        engine = DeactivationEngine(self.storage, self.carts, self.sink, logger=self.logger)
        return engine.disable_partner(partner, message)

    async def _run_import(self, partner: Partner, aggregator: StatisticsAggregator) -> None:
        fetch_result = await self._fetch(partner)

        parsed = parse_feed(fetch_result.content, self.config.region_groups)
        aggregator.add_errors(parsed.errors)
        self.logger.feed_parsed(partner=partner.name, entries=len(parsed.entries), errors=len(parsed.errors))
        if not parsed.entries and parsed.errors:
            # empty or malformed feed, nothing to reconcile
            return

        normalized = FeedNormalizer(self.resolver).normalize(parsed.entries, partner)
        aggregator.add_errors(normalized.errors)
        feed = normalized.feed
        self.logger.feed_normalized(
            partner=partner.name,
            stores=len(feed.stores),
            stocks=len(feed.stocks),
            products=len(feed.products)
        )

        await self._reconcile_regions(partner, feed, aggregator)

    async def _fetch(self, partner: Partner) -> FetchResult:
        self.logger.fetch_start(partner=partner.name, url=partner.import_url)

        if self.fetcher is not None:
            result = await self.fetcher.fetch(partner.import_url)
        else:
            async with AsyncHTTPClient(
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout
            ) as http_client:
                fetcher = FeedFetcher(
                    http_client,
                    RetryHandler(
                        max_retries=self.config.max_retries,
                        base_delay=self.config.retry_base_delay,
                        max_delay=self.config.retry_max_delay,
                        jitter_max=self.config.retry_jitter_max,
                        retryable_status_codes=self.config.retryable_status_codes
                    ),
                    logger=self.logger
                )
                result = await fetcher.fetch(partner.import_url)

        if result.success:
            self.logger.fetch_success(
                partner=partner.name,
                size=len(result.content),
                elapsed_ms=result.duration * 1000
            )
        else:
            self.logger.log(
                "fetch_failed",
                partner=partner.name,
                status=result.status.value,
                code=result.status_code,
                error=result.error
            )
        return result

    async def _reconcile_regions(
        self,
        partner: Partner,
        feed: NormalizedFeed,
        aggregator: StatisticsAggregator
    ) -> None:
        if not feed.stores:
            return

        stop = threading.Event()
        reconciler = CatalogReconciler(
            self.storage,
            self.taxonomy,
            StockLevelSynchronizer(self.stock_service, logger=self.logger),
            sizes=SizeAttributeCache(self.storage),
            locations=StockLocationCache(self.storage),
            currency=self.config.currency,
            store_defaults=self.config.store_defaults,
            stop=stop
        )

        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=self.config.worker_pool_size)
        try:
            await asyncio.gather(*[
                loop.run_in_executor(
                    executor,
                    self._reconcile_region,
                    reconciler,
                    partner,
                    desired,
                    feed,
                    aggregator
                )
                for desired in feed.stores.values()
            ])
        except asyncio.CancelledError:
            stop.set()
            raise
        finally:
            # worker threads outlive cancellation, wait for them off the loop
            await loop.run_in_executor(None, lambda: executor.shutdown(wait=True, cancel_futures=True))

    def _reconcile_region(
        self,
        reconciler: CatalogReconciler,
        partner: Partner,
        desired: DesiredStore,
        feed: NormalizedFeed,
        aggregator: StatisticsAggregator
    ) -> RegionResult:
        """Reconcile one region in a worker thread and record its result."""
        start = time.monotonic()
        try:
            result = reconciler.reconcile_region(partner, desired, feed)
        except ReconcileStopped as e:
            self.logger.log("region_stopped", region=desired.region_code)
            result = RegionResult(region_code=desired.region_code, errors=[str(e)])
        except Exception as e:
            self.logger.region_failed(region=desired.region_code, error=repr(e))
            result = RegionResult(
                region_code=desired.region_code,
                errors=[f"Region {desired.region_code} failed: {e}"]
            )

        aggregator.add_region(result)
        self.logger.region_reconciled(
            region=desired.region_code,
            store=result.store_id,
            processed=len(result.processed_products),
            elapsed_ms=(time.monotonic() - start) * 1000
        )
        return result
