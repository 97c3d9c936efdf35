"""Thread-safe aggregator for import statistics."""

import threading
import time
from typing import Iterable

from partner_import.models.data_models import ImportStatistics, RegionResult


class StatisticsAggregator:
    """
    Thread-safe accumulator for one import run.

    Regions may be reconciled from worker threads; every mutation goes
    through the lock so counts and the error list stay consistent.
    """

    def __init__(self, date: str):
        self._lock = threading.Lock()
        self._statistics = ImportStatistics(date=date)
        self._start_time: float = 0.0
        self._end_time: float = 0.0

    def start_timer(self) -> None:
        """Start timing the import."""
        self._start_time = time.monotonic()

    def stop_timer(self) -> None:
        """Stop timing the import."""
        self._end_time = time.monotonic()

    def add_errors(self, errors: Iterable[str]) -> None:
        with self._lock:
            self._statistics.errors.extend(errors)

    def add_error(self, error: str) -> None:
        with self._lock:
            self._statistics.errors.append(error)

    def add_region(self, result: RegionResult) -> None:
        """
        Merge the accounting of one reconciled region.

        Args:
            result: Products published before and after the region run
        """
        with self._lock:
            stats = self._statistics
            stats.count += len(result.processed_products)
            stats.created += result.created
            stats.updated += result.updated
            stats.deleted += result.deleted
            if result.processed_products:
                stats.regions_count += 1
            stats.errors.extend(result.errors)

    def get_statistics(self) -> ImportStatistics:
        """
        Snapshot of the statistics.

        Duration is reported in whole seconds, as stored on the partner record.
        """
        with self._lock:
            end = self._end_time if self._end_time > 0 else time.monotonic()
            duration = int(end - self._start_time) if self._start_time > 0 else 0
            stats = self._statistics
            return ImportStatistics(
                date=stats.date,
                regions_count=stats.regions_count,
                duration=duration,
                count=stats.count,
                updated=stats.updated,
                errors=list(stats.errors),
                created=stats.created,
                deleted=stats.deleted,
            )
