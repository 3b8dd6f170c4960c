"""Baseline selection from benchmark history."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from benchwatch.core.config import BaselinePolicy, BaselineStrategy
from benchwatch.regression.models import Baseline

if TYPE_CHECKING:
    from collections.abc import Sequence

    from benchwatch.core.types import HistoryEntry


def aggregate(entries: Sequence[HistoryEntry]) -> Baseline:
    """Aggregate a window of entries into one baseline.

    The value is the window mean. The error margin combines the typical
    within-run spread with the spread of the window's values:
    ``sqrt(mean(margin**2) + pvariance(values))``. A single entry keeps its
    own margin.

    Args:
        entries: Non-empty window, oldest first.

    Returns:
        The aggregated baseline.
    """
    count = len(entries)
    values = [entry.value for entry in entries]
    mean = sum(values) / count
    within = sum(entry.error_margin**2 for entry in entries) / count
    between = sum((value - mean) ** 2 for value in values) / count
    return Baseline(
        value=mean,
        error_margin=math.sqrt(within + between),
        sample_count=count,
        commits=tuple(entry.commit.id for entry in entries),
        unit=entries[-1].measurement.unit,
    )


class BaselineSelector:
    """Select the comparison baseline for a point in a benchmark's series.

    Example:
        >>> selector = BaselineSelector(BaselinePolicy(strategy="window", window_size=5))
        >>> baseline = selector.select(series, position=len(series) - 1)
    """

    def __init__(self, policy: BaselinePolicy | None = None) -> None:
        self.policy = policy or BaselinePolicy()

    @property
    def window_size(self) -> int:
        """Number of prior entries the baseline is drawn from."""
        if self.policy.strategy is BaselineStrategy.PREVIOUS:
            return 1
        return self.policy.window_size

    def select(self, series: Sequence[HistoryEntry], position: int) -> Baseline | None:
        """Select the baseline for the entry at ``position``.

        Only entries before ``position`` are considered; the entry is never
        compared to itself.

        Args:
            series: The benchmark's series, oldest first.
            position: Index of the entry being judged.

        Returns:
            The baseline, or None when no earlier entry exists.

        Raises:
            IndexError: If ``position`` is outside the series.
        """
        if not 0 <= position < len(series):
            raise IndexError(f"Position {position} outside series of length {len(series)}")
        if position == 0:
            return None

        start = max(0, position - self.window_size)
        return aggregate(series[start:position])
