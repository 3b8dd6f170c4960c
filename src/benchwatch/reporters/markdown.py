"""Markdown reporter for benchwatch.

This module renders ingestion reports as a pull request or commit comment
body, with a performance alert section when benchmarks regressed.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from benchwatch.reporters.console import VERDICT_STYLES, format_value

if TYPE_CHECKING:
    from benchwatch.regression.models import RegressionVerdict, Report


class MarkdownReporter:
    """Reporter that renders ingestion reports as Markdown.

    Attributes:
        threshold: Alert threshold shown in the alert text.
        include_table: Whether to append the full comparison table.

    Example:
        >>> body = MarkdownReporter(threshold=1.5).report(report)
    """

    def __init__(self, threshold: float | None = None, include_table: bool = True) -> None:
        self.threshold = threshold
        self.include_table = include_table

    def _commit_label(self, report: Report) -> str:
        commit = report.commit
        if commit.url:
            return f"[{commit.short_id}]({commit.url})"
        return f"`{commit.short_id}`"

    def _table(self, items: list[RegressionVerdict]) -> list[str]:
        lines = [
            "| Benchmark | Current | Baseline | Ratio | Verdict |",
            "|---|---:|---:|---:|---|",
        ]
        for item in items:
            marker, _ = VERDICT_STYLES[item.verdict]
            ratio = f"`{item.ratio:.2f}`" if item.ratio is not None else "-"
            lines.append(
                f"| `{item.name}` "
                f"| `{format_value(item.current_value, item.unit)}` "
                f"| `{format_value(item.baseline_value, item.unit)}` "
                f"| {ratio} "
                f"| {marker} {item.verdict.value} |"
            )
        return lines

    def report(self, report: Report) -> str:
        """Render a report as Markdown.

        Args:
            report: The report to render.

        Returns:
            Markdown text.
        """
        commit = self._commit_label(report)
        lines: list[str] = []

        if report.has_regressions:
            threshold = f" more than `{self.threshold:.2f}` times" if self.threshold is not None else ""
            lines += [
                "# :warning: **Performance Alert** :warning:",
                "",
                f"Possible performance regression was detected for benchmark suite **'{report.suite}'**.",
                f"Benchmark result of commit {commit} is{threshold} worse than the baseline.",
                "",
                *self._table(report.regressions),
                "",
            ]

        if self.include_table:
            lines += [
                f"## {report.suite}",
                "",
                f"Commit {commit} measured with `{report.tool}`.",
                "",
                *self._table(report.items),
                "",
            ]

        if not lines:
            lines = [f"No performance regressions for {commit}.", ""]
        return "\n".join(lines)

    def report_to_file(self, report: Report, path: Path | str) -> None:
        """Write the Markdown report to a file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.report(report), encoding="utf-8")
