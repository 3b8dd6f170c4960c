"""Unit tests for baseline selection and regression detection."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from benchwatch.core.config import BaselinePolicy, BaselineStrategy, Direction, ThresholdPolicy
from benchwatch.core.types import CommitRef, HistoryEntry, Measurement
from benchwatch.regression import (
    Baseline,
    BaselineSelector,
    RegressionDetector,
    RegressionVerdict,
    Report,
    Verdict,
    aggregate,
)

BASE_TIME = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def make_series(values: list[float], margin: float = 0.0) -> list[HistoryEntry]:
    """Build a series with one entry per value."""
    return [
        HistoryEntry(
            commit=CommitRef(id=f"commit-{i}", timestamp=BASE_TIME + timedelta(minutes=i)),
            collected_at=BASE_TIME + timedelta(minutes=i),
            tool="cargo",
            measurement=Measurement(name="fib", value=value, error_margin=margin, unit="ns/iter"),
        )
        for i, value in enumerate(values)
    ]


def measure(value: float) -> Measurement:
    return Measurement(name="fib", value=value, unit="ns/iter")


# ============================================================================
# Baseline Selection Tests
# ============================================================================


class TestBaselineSelector:
    """Tests for BaselineSelector."""

    def test_first_entry_has_no_baseline(self) -> None:
        """The first observation is never compared to itself."""
        assert BaselineSelector().select(make_series([100]), 0) is None

    def test_previous_run(self) -> None:
        """The default policy uses the immediately preceding run."""
        series = make_series([100, 200, 300], margin=5)

        baseline = BaselineSelector().select(series, 2)

        assert baseline is not None
        assert baseline.value == 200
        assert baseline.error_margin == 5
        assert baseline.sample_count == 1
        assert baseline.commits == ("commit-1",)
        assert baseline.unit == "ns/iter"

    def test_previous_ignores_window_size(self) -> None:
        """The previous strategy uses one run whatever window_size says."""
        selector = BaselineSelector(BaselinePolicy(strategy=BaselineStrategy.PREVIOUS, window_size=5))
        assert selector.window_size == 1

    def test_window_excludes_new_entry(self) -> None:
        """The window covers the K entries before the judged position."""
        selector = BaselineSelector(BaselinePolicy(strategy=BaselineStrategy.WINDOW, window_size=3))
        series = make_series([10, 100, 110, 90, 5000])

        baseline = selector.select(series, 4)

        assert baseline is not None
        assert baseline.value == pytest.approx(100)
        assert baseline.sample_count == 3
        assert baseline.commits == ("commit-1", "commit-2", "commit-3")

    def test_window_shorter_history(self) -> None:
        """A short history uses whatever entries exist."""
        selector = BaselineSelector(BaselinePolicy(strategy=BaselineStrategy.WINDOW, window_size=10))

        baseline = selector.select(make_series([100, 200, 300]), 2)

        assert baseline is not None
        assert baseline.sample_count == 2
        assert baseline.value == 150

    def test_position_out_of_range(self) -> None:
        """Positions outside the series raise IndexError."""
        with pytest.raises(IndexError):
            BaselineSelector().select(make_series([1, 2]), 2)
        with pytest.raises(IndexError):
            BaselineSelector().select([], 0)


class TestAggregate:
    """Tests for window aggregation."""

    def test_single_entry_keeps_margin(self) -> None:
        """One entry aggregates to itself."""
        baseline = aggregate(make_series([100], margin=10))

        assert baseline.value == 100
        assert baseline.error_margin == 10

    def test_combined_margin(self) -> None:
        """Margins combine within-run and between-run spread."""
        baseline = aggregate(make_series([90, 110], margin=3))

        # mean(3^2) = 9, pvariance([90, 110]) = 100
        assert baseline.value == 100
        assert baseline.error_margin == pytest.approx(math.sqrt(109))


# ============================================================================
# Regression Detector Tests
# ============================================================================


class TestRegressionDetector:
    """Tests for RegressionDetector."""

    @pytest.fixture
    def detector(self) -> RegressionDetector:
        return RegressionDetector(ThresholdPolicy(relative_threshold=1.5))

    def test_no_baseline_is_insufficient(self, detector: RegressionDetector) -> None:
        """Without a baseline the verdict is insufficient."""
        result = detector.detect(measure(1_000_000), None)

        assert result.verdict is Verdict.INSUFFICIENT
        assert result.baseline_value is None
        assert result.ratio is None
        assert result.severity is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (151, Verdict.REGRESSED),
            (150, Verdict.STABLE),
            (149, Verdict.STABLE),
            (100, Verdict.STABLE),
            (67, Verdict.STABLE),
            (60, Verdict.IMPROVED),
        ],
    )
    def test_lower_is_better(self, detector: RegressionDetector, value: float, expected: Verdict) -> None:
        """Baseline 100, threshold 1.5, no margin."""
        baseline = Baseline(value=100, error_margin=0)

        assert detector.detect(measure(value), baseline).verdict is expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (164, Verdict.STABLE),
            (165, Verdict.STABLE),
            (166, Verdict.REGRESSED),
        ],
    )
    def test_error_margin_widens_band(self, detector: RegressionDetector, value: float, expected: Verdict) -> None:
        """Baseline 100 ± 10 accepts values up to 110 * 1.5."""
        baseline = Baseline(value=100, error_margin=10)

        assert detector.detect(measure(value), baseline).verdict is expected

    def test_error_margin_ignored_when_disabled(self) -> None:
        """error_margin_aware=False compares against the bare value."""
        detector = RegressionDetector(ThresholdPolicy(relative_threshold=1.5, error_margin_aware=False))
        baseline = Baseline(value=100, error_margin=10)

        assert detector.detect(measure(164), baseline).verdict is Verdict.REGRESSED

    def test_improvement_uses_bare_baseline(self, detector: RegressionDetector) -> None:
        """The improvement bound is baseline / threshold regardless of margin."""
        baseline = Baseline(value=100, error_margin=50)

        assert detector.detect(measure(66), baseline).verdict is Verdict.IMPROVED

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (66, Verdict.REGRESSED),
            (67, Verdict.STABLE),
            (150, Verdict.STABLE),
            (151, Verdict.IMPROVED),
        ],
    )
    def test_higher_is_better(self, detector: RegressionDetector, value: float, expected: Verdict) -> None:
        """Higher-is-better metrics mirror the comparison."""
        baseline = Baseline(value=100, error_margin=0)

        assert detector.detect(measure(value), baseline, Direction.HIGHER_IS_BETTER).verdict is expected

    def test_higher_is_better_margin(self, detector: RegressionDetector) -> None:
        """For higher-is-better the margin lowers the regression bound."""
        baseline = Baseline(value=100, error_margin=10)

        # 90 / 1.5 = 60
        assert detector.detect(measure(61), baseline, Direction.HIGHER_IS_BETTER).verdict is Verdict.STABLE
        assert detector.detect(measure(59), baseline, Direction.HIGHER_IS_BETTER).verdict is Verdict.REGRESSED

    def test_ratio(self, detector: RegressionDetector) -> None:
        """The ratio is above one when the value got worse."""
        baseline = Baseline(value=100, error_margin=0)

        assert detector.detect(measure(151), baseline).ratio == pytest.approx(1.51)
        assert detector.detect(measure(50), baseline, Direction.HIGHER_IS_BETTER).ratio == pytest.approx(2.0)

    def test_ratio_zero_baseline(self, detector: RegressionDetector) -> None:
        """A zero baseline has no ratio and still classifies."""
        result = detector.detect(measure(5), Baseline(value=0, error_margin=0))

        assert result.ratio is None
        assert result.verdict is Verdict.REGRESSED

    def test_scale_invariance(self, detector: RegressionDetector) -> None:
        """The same relative change gives the same verdict at any scale."""
        for scale in (1e-3, 1, 1e6):
            baseline = Baseline(value=100 * scale, error_margin=0)
            assert detector.detect(measure(151 * scale), baseline).verdict is Verdict.REGRESSED
            assert detector.detect(measure(149 * scale), baseline).verdict is Verdict.STABLE

    def test_severity_defaults_to_critical(self, detector: RegressionDetector) -> None:
        """Without a fail threshold every regression is critical."""
        result = detector.detect(measure(200), Baseline(value=100, error_margin=0))
        assert result.severity == "critical"

    def test_severity_with_fail_threshold(self) -> None:
        """Regressions below the fail threshold are warnings."""
        detector = RegressionDetector(ThresholdPolicy(relative_threshold=1.5, fail_threshold=2.0))
        baseline = Baseline(value=100, error_margin=0)

        assert detector.detect(measure(160), baseline).severity == "warning"
        assert detector.detect(measure(201), baseline).severity == "critical"
        assert detector.detect(measure(120), baseline).severity is None

    def test_carries_baseline_details(self, detector: RegressionDetector) -> None:
        """The verdict records what it was compared against."""
        baseline = Baseline(value=100, error_margin=4, sample_count=2, commits=("a", "b"), unit="ns/iter")

        result = detector.detect(measure(100), baseline)

        assert result.baseline_error_margin == 4
        assert result.baseline_commits == ("a", "b")
        assert result.unit == "ns/iter"
        assert result.direction is Direction.LOWER_IS_BETTER


# ============================================================================
# Report Tests
# ============================================================================


def make_verdict(name: str, verdict: Verdict, severity: str | None = None) -> RegressionVerdict:
    return RegressionVerdict(
        name=name,
        verdict=verdict,
        current_value=151,
        baseline_value=None if verdict is Verdict.INSUFFICIENT else 100,
        direction=Direction.LOWER_IS_BETTER,
        unit="ns/iter",
        ratio=None if verdict is Verdict.INSUFFICIENT else 1.51,
        severity=severity,  # type: ignore[arg-type]
    )


class TestReport:
    """Tests for Report."""

    @pytest.fixture
    def commit(self) -> CommitRef:
        return CommitRef(id="abcdef1234567890", timestamp=BASE_TIME)

    def test_empty_flags(self, commit: CommitRef) -> None:
        """A report without regressions does not fail."""
        report = Report(suite="Benchmark", commit=commit, tool="cargo", items=[make_verdict("a", Verdict.STABLE)])

        assert report.has_regressions is False
        assert report.should_fail is False
        assert "No regressions detected." in report.summary()

    def test_counts_and_lists(self, commit: CommitRef) -> None:
        """count(), regressions and improvements group items."""
        report = Report(
            suite="Benchmark",
            commit=commit,
            tool="cargo",
            items=[
                make_verdict("a", Verdict.REGRESSED, "warning"),
                make_verdict("b", Verdict.IMPROVED),
                make_verdict("c", Verdict.INSUFFICIENT),
                make_verdict("d", Verdict.STABLE),
            ],
        )

        assert report.count(Verdict.REGRESSED) == 1
        assert [item.name for item in report.regressions] == ["a"]
        assert [item.name for item in report.improvements] == ["b"]
        assert report.has_regressions is True
        assert report.should_fail is False
        assert report.get("c") is not None
        assert report.get("missing") is None

    def test_should_fail_on_critical(self, commit: CommitRef) -> None:
        """A critical regression fails the report."""
        report = Report(
            suite="Benchmark",
            commit=commit,
            tool="cargo",
            items=[make_verdict("a", Verdict.REGRESSED, "critical")],
        )

        assert report.should_fail is True
        summary = report.summary()
        assert "[CRITICAL] a regressed: 151 ns/iter vs 100 ns/iter (ratio 1.51)" in summary
        assert "abcdef1" in summary

    def test_to_dict(self, commit: CommitRef) -> None:
        """to_dict() is JSON friendly."""
        report = Report(
            suite="Benchmark",
            commit=commit,
            tool="cargo",
            items=[make_verdict("a", Verdict.REGRESSED, "critical"), make_verdict("b", Verdict.INSUFFICIENT)],
            appended=2,
        )

        data = report.to_dict()

        assert data["commit"] == "abcdef1234567890"
        assert data["appended"] == 2
        assert data["should_fail"] is True
        assert data["counts"] == {"insufficient": 1, "stable": 0, "improved": 0, "regressed": 1}
        assert data["items"][0]["verdict"] == "regressed"
        assert data["items"][0]["direction"] == "lower_is_better"
        assert data["items"][1]["baseline_value"] is None

    def test_message_without_baseline(self) -> None:
        """Insufficient verdicts say there is no baseline."""
        assert make_verdict("a", Verdict.INSUFFICIENT).message == "a: 151 ns/iter (no baseline)"
