"""Structured logging for partner import monitoring."""

import json
import logging
from typing import Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "partner_import", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, partner, region, store, sku, status, attempt,
                      elapsed_ms, errors
        """
        log_data = {"event": event, **kwargs}
        self.logger.log(level, json.dumps(log_data, ensure_ascii=False, default=str))

    def fetch_start(self, partner: str, url: str) -> None:
        self.log("fetch_start", partner=partner, url=url)

    def fetch_success(self, partner: str, size: int, elapsed_ms: float) -> None:
        self.log("fetch_success", partner=partner, bytes=size, elapsed_ms=elapsed_ms)

    def fetch_error(self, url: str, status: Optional[int], error: str, attempt: int) -> None:
        self.log("fetch_error", logging.WARNING, url=url, status=status, error=error, attempt=attempt)

    def feed_parsed(self, partner: str, entries: int, errors: int) -> None:
        self.log("feed_parsed", partner=partner, entries=entries, errors=errors)

    def feed_normalized(self, partner: str, stores: int, stocks: int, products: int) -> None:
        self.log("feed_normalized", partner=partner, stores=stores, stocks=stocks, products=products)

    def region_reconciled(self, region: str, store: Optional[int], processed: int, elapsed_ms: float) -> None:
        self.log("region_reconciled", region=region, store=store, processed=processed, elapsed_ms=elapsed_ms)

    def region_failed(self, region: str, error: str) -> None:
        self.log("region_failed", logging.ERROR, region=region, error=error)

    def stock_transaction(self, sku: str, location: int, kind: str, quantity: int) -> None:
        self.log("stock_transaction", logging.DEBUG, sku=sku, location=location, kind=kind, quantity=quantity)

    def import_complete(self, partner: str, duration: int, errors: int) -> None:
        self.log("import_complete", partner=partner, duration=duration, errors=errors)

    def partner_disabled(self, partner: str, stores: int, deleted: int, cart_items_removed: int) -> None:
        self.log(
            "partner_disabled",
            partner=partner,
            stores=stores,
            deleted=deleted,
            cart_items_removed=cart_items_removed,
        )
