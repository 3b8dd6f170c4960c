"""JSON reporter for benchwatch.

This module provides JSON output for ingestion reports and series,
suitable for CI/CD pipelines and machine processing.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from benchwatch.benchmarks.codec import format_range

if TYPE_CHECKING:
    from benchwatch.core.types import HistoryEntry
    from benchwatch.regression.models import Report


class JSONReporter:
    """Reporter that outputs ingestion reports as JSON.

    Attributes:
        indent: JSON indentation level (None for compact).

    Example:
        >>> reporter = JSONReporter()
        >>> print(reporter.report(report))
        {
          "suite": "Benchmark",
          "commit": "e4af457a...",
          "should_fail": false,
          ...
        }
    """

    def __init__(self, indent: int | None = 2) -> None:
        """Initialize JSONReporter.

        Args:
            indent: JSON indentation level. Defaults to 2. Use None for compact output.
        """
        self.indent = indent

    def report(self, report: Report) -> str:
        """Generate the JSON text of a report."""
        return json.dumps(report.to_dict(), indent=self.indent, ensure_ascii=False)

    def report_to_file(self, report: Report, path: Path | str) -> None:
        """Write the JSON report to a file.

        Args:
            report: The report to write.
            path: Path to the output file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.report(report), encoding="utf-8")

    def series_to_dict(self, name: str, entries: tuple[HistoryEntry, ...] | list[HistoryEntry]) -> dict[str, Any]:
        """Convert a benchmark series to a dictionary."""
        return {
            "name": name,
            "entries": [
                {
                    "commit": entry.commit.id,
                    "collected_at": entry.collected_at.isoformat(),
                    "tool": entry.tool,
                    "value": entry.value,
                    "range": format_range(entry.error_margin),
                    "unit": entry.measurement.unit,
                }
                for entry in entries
            ],
        }

    def report_series(self, name: str, entries: tuple[HistoryEntry, ...] | list[HistoryEntry]) -> str:
        """Generate the JSON text of a benchmark series."""
        return json.dumps(self.series_to_dict(name, entries), indent=self.indent, ensure_ascii=False)
