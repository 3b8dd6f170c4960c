"""Regression detector for benchmark measurements.

This module provides the RegressionDetector class, which classifies a new
measurement against its baseline with a relative, error-margin-aware
threshold.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from benchwatch.core.config import Direction, ThresholdPolicy
from benchwatch.regression.models import RegressionVerdict, Verdict

if TYPE_CHECKING:
    from benchwatch.core.types import Measurement
    from benchwatch.regression.models import Baseline


class RegressionDetector:
    """Detect regressions of a measurement against a baseline.

    The threshold is multiplicative so the same policy works for
    nanosecond and millisecond benchmarks alike. With ``error_margin_aware``
    the baseline's error margin widens the acceptance band before the
    threshold is applied.

    Attributes:
        policy: Threshold policy.

    Example:
        >>> detector = RegressionDetector(ThresholdPolicy(relative_threshold=1.5))
        >>> detector.detect(measurement, Baseline(value=100.0, error_margin=0.0)).verdict
        <Verdict.REGRESSED: 'regressed'>
    """

    def __init__(self, policy: ThresholdPolicy | None = None) -> None:
        """Initialize detector.

        Args:
            policy: Validated threshold policy. Defaults to ThresholdPolicy().
        """
        self.policy = policy or ThresholdPolicy()

    def _margin(self, baseline: Baseline) -> float:
        return baseline.error_margin if self.policy.error_margin_aware else 0.0

    def classify(self, value: float, baseline: Baseline, direction: Direction, threshold: float) -> Verdict:
        """Classify a value against a baseline for one threshold.

        Args:
            value: New value.
            baseline: Baseline to compare against.
            direction: Metric direction.
            threshold: Multiplicative threshold (> 1.0).

        Returns:
            REGRESSED, IMPROVED or STABLE.
        """
        if direction is Direction.HIGHER_IS_BETTER:
            effective = max(baseline.value - self._margin(baseline), 0.0)
            if value < effective / threshold:
                return Verdict.REGRESSED
            if value > baseline.value * threshold:
                return Verdict.IMPROVED
            return Verdict.STABLE

        effective = baseline.value + self._margin(baseline)
        if value > effective * threshold:
            return Verdict.REGRESSED
        if value < baseline.value / threshold:
            return Verdict.IMPROVED
        return Verdict.STABLE

    @staticmethod
    def ratio(value: float, baseline: Baseline, direction: Direction) -> float | None:
        """How much worse ``value`` is than the baseline (>1 = worse)."""
        if direction is Direction.HIGHER_IS_BETTER:
            return baseline.value / value if value != 0 else None
        return value / baseline.value if baseline.value != 0 else None

    def detect(
        self,
        measurement: Measurement,
        baseline: Baseline | None,
        direction: Direction = Direction.LOWER_IS_BETTER,
    ) -> RegressionVerdict:
        """Judge a measurement against its baseline.

        Args:
            measurement: The new measurement.
            baseline: Baseline selected from history, None for a first observation.
            direction: Metric direction.

        Returns:
            The verdict. A missing baseline yields INSUFFICIENT.
        """
        if baseline is None:
            return RegressionVerdict(
                name=measurement.name,
                verdict=Verdict.INSUFFICIENT,
                current_value=measurement.value,
                baseline_value=None,
                direction=direction,
                unit=measurement.unit,
            )

        verdict = self.classify(measurement.value, baseline, direction, self.policy.relative_threshold)
        severity = None
        if verdict is Verdict.REGRESSED:
            critical = self.classify(measurement.value, baseline, direction, self.policy.critical_threshold)
            severity = "critical" if critical is Verdict.REGRESSED else "warning"

        return RegressionVerdict(
            name=measurement.name,
            verdict=verdict,
            current_value=measurement.value,
            baseline_value=baseline.value,
            direction=direction,
            unit=measurement.unit,
            ratio=self.ratio(measurement.value, baseline, direction),
            severity=severity,
            baseline_error_margin=baseline.error_margin,
            baseline_commits=baseline.commits,
        )
