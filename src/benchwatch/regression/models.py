"""Models for regression detection.

This module provides the verdict enum, the baseline a measurement is
compared against, per-benchmark verdicts and the ingestion report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from benchwatch.core.config import Direction
    from benchwatch.core.types import CommitRef


class Verdict(str, Enum):
    """Classification of a new measurement against its baseline."""

    INSUFFICIENT = "insufficient"
    STABLE = "stable"
    IMPROVED = "improved"
    REGRESSED = "regressed"


@dataclass(frozen=True)
class Baseline:
    """Comparison point selected from history.

    Attributes:
        value: Baseline value (mean over the window).
        error_margin: Combined error margin of the window.
        sample_count: Number of runs aggregated.
        commits: Commit ids of the aggregated runs, oldest first.
        unit: Unit of the aggregated measurements.
    """

    value: float
    error_margin: float
    sample_count: int = 1
    commits: tuple[str, ...] = ()
    unit: str = ""


@dataclass(frozen=True)
class RegressionVerdict:
    """Verdict for one benchmark of an ingested run.

    Attributes:
        name: Benchmark name.
        verdict: The classification.
        current_value: Value measured by the new run.
        baseline_value: Baseline value, None without a baseline.
        direction: Metric direction used for the comparison.
        unit: Measurement unit.
        ratio: How much worse the new value is (>1 = worse), None without
            a baseline or with a zero denominator.
        severity: "critical" for regressions beyond the fail threshold,
            "warning" for other regressions, None otherwise.
        baseline_error_margin: Combined error margin of the baseline.
        baseline_commits: Commits the baseline was drawn from.

    Example:
        >>> verdict.message
        'fib_20 regressed: 151 ns/iter vs 100 ns/iter (ratio 1.51)'
    """

    name: str
    verdict: Verdict
    current_value: float
    baseline_value: float | None
    direction: Direction
    unit: str = ""
    ratio: float | None = None
    severity: Literal["warning", "critical"] | None = None
    baseline_error_margin: float | None = None
    baseline_commits: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        """Human-readable verdict message."""
        unit = f" {self.unit}" if self.unit else ""
        if self.baseline_value is None:
            return f"{self.name}: {self.current_value:g}{unit} (no baseline)"
        ratio = f" (ratio {self.ratio:.2f})" if self.ratio is not None else ""
        return f"{self.name} {self.verdict.value}: {self.current_value:g}{unit} vs {self.baseline_value:g}{unit}{ratio}"

    def to_dict(self) -> dict[str, Any]:
        """Convert verdict to dictionary for serialization."""
        return {
            "name": self.name,
            "verdict": self.verdict.value,
            "current_value": self.current_value,
            "baseline_value": self.baseline_value,
            "baseline_error_margin": self.baseline_error_margin,
            "unit": self.unit,
            "direction": self.direction.value,
            "ratio": self.ratio,
            "severity": self.severity,
            "baseline_commits": list(self.baseline_commits),
        }


@dataclass
class Report:
    """Result of ingesting one run.

    Attributes:
        suite: Suite the run was recorded in.
        commit: Commit of the run.
        tool: Harness identifier of the run.
        items: One verdict per measurement, in run order.
        appended: Number of measurements appended to history.
        timestamp: When the report was produced.

    Example:
        >>> report = await pipeline.ingest(run)
        >>> if report.should_fail:
        ...     print(report.summary())
    """

    suite: str
    commit: CommitRef
    tool: str
    items: list[RegressionVerdict]
    appended: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def count(self, verdict: Verdict) -> int:
        """Count items with the given verdict."""
        return sum(1 for item in self.items if item.verdict is verdict)

    def get(self, name: str) -> RegressionVerdict | None:
        """Get the verdict for a benchmark name."""
        for item in self.items:
            if item.name == name:
                return item
        return None

    @property
    def regressions(self) -> list[RegressionVerdict]:
        """Items that regressed."""
        return [item for item in self.items if item.verdict is Verdict.REGRESSED]

    @property
    def improvements(self) -> list[RegressionVerdict]:
        """Items that improved."""
        return [item for item in self.items if item.verdict is Verdict.IMPROVED]

    @property
    def has_regressions(self) -> bool:
        """Check if any benchmark regressed."""
        return any(item.verdict is Verdict.REGRESSED for item in self.items)

    @property
    def should_fail(self) -> bool:
        """Check if any regression crossed the fail threshold."""
        return any(item.severity == "critical" for item in self.items)

    def summary(self) -> str:
        """Generate a human-readable summary.

        Returns:
            Multi-line summary string.
        """
        header = (
            f"{self.suite} @ {self.commit.short_id} ({self.tool}): "
            f"{self.count(Verdict.REGRESSED)} regressed, {self.count(Verdict.IMPROVED)} improved, "
            f"{self.count(Verdict.STABLE)} stable, {self.count(Verdict.INSUFFICIENT)} without baseline"
        )
        if not self.regressions:
            return f"{header}\nNo regressions detected."

        lines = [header, "", "Regressions:"]
        for item in self.regressions:
            marker = "[CRITICAL]" if item.severity == "critical" else "[WARNING]"
            lines.append(f"  {marker} {item.message}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary for serialization."""
        return {
            "suite": self.suite,
            "commit": self.commit.id,
            "tool": self.tool,
            "timestamp": self.timestamp.isoformat(),
            "appended": self.appended,
            "has_regressions": self.has_regressions,
            "should_fail": self.should_fail,
            "counts": {verdict.value: self.count(verdict) for verdict in Verdict},
            "items": [item.to_dict() for item in self.items],
        }
