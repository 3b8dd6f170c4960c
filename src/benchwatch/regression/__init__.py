"""Regression detection module for benchwatch.

This module selects baselines from benchmark history and decides whether
a new measurement regressed, improved or stayed stable.

Example:
    >>> from benchwatch.regression import BaselineSelector, RegressionDetector
    >>>
    >>> baseline = BaselineSelector().select(series, position=len(series) - 1)
    >>> verdict = RegressionDetector(policy).detect(series[-1].measurement, baseline)
    >>> if verdict.verdict is Verdict.REGRESSED:
    ...     print(verdict.message)
"""

from __future__ import annotations

from benchwatch.regression.baseline import BaselineSelector, aggregate
from benchwatch.regression.detector import RegressionDetector
from benchwatch.regression.models import Baseline, RegressionVerdict, Report, Verdict

__all__ = [
    "Baseline",
    "BaselineSelector",
    "RegressionDetector",
    "RegressionVerdict",
    "Report",
    "Verdict",
    "aggregate",
]
