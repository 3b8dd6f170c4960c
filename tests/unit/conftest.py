"""Shared fixtures for reporter and CLI tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from benchwatch.core.config import Direction
from benchwatch.core.types import CommitRef
from benchwatch.regression import RegressionVerdict, Report, Verdict


@pytest.fixture
def sample_report() -> Report:
    """A report with one verdict of each kind."""
    commit = CommitRef(
        id="e4af457a3bb7eb0b088724703ceb56042019dec2",
        timestamp=datetime(2020, 12, 3, 11, 2, 8, tzinfo=timezone.utc),
        message="Add correct access token\n\nLonger description",
        url="https://github.com/example/rune/commit/e4af457a3bb7eb0b088724703ceb56042019dec2",
    )
    items = [
        RegressionVerdict(
            name="fib_20",
            verdict=Verdict.REGRESSED,
            current_value=151,
            baseline_value=100,
            direction=Direction.LOWER_IS_BETTER,
            unit="ns/iter",
            ratio=1.51,
            severity="critical",
            baseline_error_margin=0,
            baseline_commits=("a" * 40,),
        ),
        RegressionVerdict(
            name="fib_15",
            verdict=Verdict.IMPROVED,
            current_value=50,
            baseline_value=100,
            direction=Direction.LOWER_IS_BETTER,
            unit="ns/iter",
            ratio=0.5,
            baseline_error_margin=0,
            baseline_commits=("a" * 40,),
        ),
        RegressionVerdict(
            name="fib_10",
            verdict=Verdict.STABLE,
            current_value=10,
            baseline_value=10,
            direction=Direction.LOWER_IS_BETTER,
            unit="ns/iter",
            ratio=1.0,
            baseline_error_margin=0,
            baseline_commits=("a" * 40,),
        ),
        RegressionVerdict(
            name="fib_5",
            verdict=Verdict.INSUFFICIENT,
            current_value=2.5,
            baseline_value=None,
            direction=Direction.LOWER_IS_BETTER,
            unit="ns/iter",
        ),
    ]
    return Report(suite="Benchmark", commit=commit, tool="cargo", items=items, appended=4)
