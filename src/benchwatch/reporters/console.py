"""Console reporter for benchwatch.

This module provides terminal output for ingestion reports,
with a verdict table and colored status indicators.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from benchwatch.regression.models import Verdict

if TYPE_CHECKING:
    from benchwatch.core.types import HistoryEntry
    from benchwatch.regression.models import RegressionVerdict, Report


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    CYAN = "\033[36m"


# Marker and color per verdict
VERDICT_STYLES: dict[Verdict, tuple[str, str]] = {
    Verdict.REGRESSED: ("❌", Colors.RED),
    Verdict.IMPROVED: ("🚀", Colors.GREEN),
    Verdict.STABLE: ("✅", Colors.RESET),
    Verdict.INSUFFICIENT: ("➖", Colors.DIM),
}


def format_value(value: float | None, unit: str = "") -> str:
    """Format a measurement value with its unit."""
    if value is None:
        return "-"
    text = f"{value:,.0f}" if float(value).is_integer() else f"{value:,.4g}"
    return f"{text} {unit}".rstrip()


class ConsoleReporter:
    """Reporter that outputs ingestion reports to the terminal.

    Attributes:
        use_colors: Whether to use ANSI colors in output.
        output: Output stream (defaults to stdout).

    Example:
        >>> reporter = ConsoleReporter()
        >>> reporter.report(report)
        ┌──────────┬────────────────┬────────────────┬───────┬───────────┐
        │ Bench    │ Current        │ Baseline       │ Ratio │ Verdict   │
        ├──────────┼────────────────┼────────────────┼───────┼───────────┤
        │ fib_20   │ 151 ns/iter    │ 100 ns/iter    │ 1.51  │ ❌ regressed │
        └──────────┴────────────────┴────────────────┴───────┴───────────┘
    """

    def __init__(self, use_colors: bool = True, output: TextIO | None = None) -> None:
        """Initialize ConsoleReporter.

        Args:
            use_colors: Whether to use ANSI colors. Defaults to True.
            output: Output stream. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout
        self.use_colors = use_colors and _supports_color(self.output)

    def _color(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if self.use_colors and color != Colors.RESET:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _print(self, text: str = "") -> None:
        """Print text to output stream."""
        print(text, file=self.output)

    def _row(self, item: RegressionVerdict) -> tuple[list[str], str]:
        marker, color = VERDICT_STYLES[item.verdict]
        verdict = item.verdict.value
        if item.severity == "critical":
            verdict = f"{verdict} (critical)"
        cells = [
            item.name,
            format_value(item.current_value, item.unit),
            format_value(item.baseline_value, item.unit),
            f"{item.ratio:.2f}" if item.ratio is not None else "-",
            f"{marker} {verdict}",
        ]
        return cells, color

    def _print_table(self, headers: list[str], rows: list[tuple[list[str], str]]) -> None:
        widths = [len(h) for h in headers]
        for cells, _ in rows:
            widths = [max(w, len(c)) for w, c in zip(widths, cells)]

        def border(left: str, mid: str, right: str) -> str:
            return "  " + left + mid.join("─" * (w + 2) for w in widths) + right

        self._print(border("┌", "┬", "┐"))
        header = "│".join(f" {self._color(h.ljust(w), Colors.BOLD)} " for h, w in zip(headers, widths))
        self._print(f"  │{header}│")
        self._print(border("├", "┼", "┤"))
        for cells, color in rows:
            padded = [c.ljust(w) for c, w in zip(cells, widths)]
            padded[-1] = self._color(padded[-1], color)
            self._print("  │" + "│".join(f" {c} " for c in padded) + "│")
        self._print(border("└", "┴", "┘"))

    def report(self, report: Report) -> None:
        """Print an ingestion report.

        Args:
            report: The report to print.
        """
        self._print()
        self._print(self._color(f"  {report.suite} @ {report.commit.short_id} ({report.tool})", Colors.BOLD))
        if report.commit.message:
            self._print(self._color(f"  {report.commit.message.splitlines()[0]}", Colors.DIM))

        self._print_table(
            ["Benchmark", "Current", "Baseline", "Ratio", "Verdict"],
            [self._row(item) for item in report.items],
        )

        counts = (
            f"{report.count(Verdict.REGRESSED)} regressed, {report.count(Verdict.IMPROVED)} improved, "
            f"{report.count(Verdict.STABLE)} stable, {report.count(Verdict.INSUFFICIENT)} without baseline"
        )
        if report.should_fail:
            self._print(self._color(f"  ❌ {counts}", Colors.RED))
        elif report.has_regressions:
            self._print(self._color(f"  ⚠️  {counts}", Colors.YELLOW))
        else:
            self._print(self._color(f"  ✅ {counts}", Colors.GREEN))
        self._print()

    def report_series(self, name: str, entries: tuple[HistoryEntry, ...] | list[HistoryEntry]) -> None:
        """Print the recorded series of one benchmark, oldest first.

        Args:
            name: Benchmark name.
            entries: Series entries to print.
        """
        self._print()
        self._print(self._color(f"  {name} ({len(entries)} entries)", Colors.BOLD))
        if not entries:
            self._print(self._color("  No history recorded.", Colors.DIM))
            self._print()
            return

        rows = [
            (
                [
                    entry.collected_at.strftime("%Y-%m-%d %H:%M:%S"),
                    entry.commit.short_id,
                    format_value(entry.value, entry.measurement.unit),
                    f"± {format_value(entry.error_margin)}",
                ],
                Colors.RESET,
            )
            for entry in entries
        ]
        self._print_table(["Collected", "Commit", "Value", "Range"], rows)
        self._print()


def _supports_color(stream: TextIO) -> bool:
    """Check if the output stream supports ANSI colors.

    Args:
        stream: Output stream to check.

    Returns:
        True if colors are supported, False otherwise.
    """
    if not hasattr(stream, "isatty"):
        return False
    if not stream.isatty():
        return False

    # Check for common environment variables that disable color
    import os

    if os.environ.get("NO_COLOR"):
        return False

    return os.environ.get("TERM") != "dumb"
