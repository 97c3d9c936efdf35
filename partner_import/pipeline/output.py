"""JSON output formatter for import statistics.

Writes the statistics of one partner run in the shape stored on the partner
record, for operators and for scheduling hosts that collect run reports::

    {
        "partner": {"id": "acme", "name": "Acme"},
        "statistics": {
            "regions_count": 2,
            "duration": 3,
            "count": 14,
            "updated": 10,
            "date": "2026-10-19T08:00:00",
            "errors": ["Invalid region format RU-XX"],
            "created": 4,
            "deleted": 1
        }
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

from partner_import.models.data_models import ImportStatistics, Partner


STATISTICS_FIELDS = (
    "regions_count",
    "duration",
    "count",
    "updated",
    "date",
    "errors",
    "created",
    "deleted",
)


class JSONOutputFormatter:
    """Formats import statistics as JSON."""

    def format(self, partner: Partner, statistics: ImportStatistics) -> Dict[str, Any]:
        return {
            "partner": {"id": partner.id, "name": partner.name},
            "statistics": self.format_statistics(statistics),
        }

    def format_statistics(self, statistics: ImportStatistics) -> Dict[str, Any]:
        """Statistics fields in partner record order."""
        return {
            name: list(getattr(statistics, name)) if name == "errors" else getattr(statistics, name)
            for name in STATISTICS_FIELDS
        }

    def report_path(self, directory: Union[str, Path], partner: Partner) -> Path:
        return Path(directory) / f"{partner.id}_statistics.json"

    def save(
        self,
        partner: Partner,
        statistics: ImportStatistics,
        directory: Union[str, Path] = "out"
    ) -> Path:
        """
        Save formatted statistics to ``<directory>/<partner id>_statistics.json``.

        Creates the directory if it doesn't exist.

        Returns:
            Path of the written file
        """
        output_path = self.report_path(directory, partner)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.format(partner, statistics), f, indent=2, ensure_ascii=False)
        return output_path
