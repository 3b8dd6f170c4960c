"""Ingestion pipeline for benchmark runs.

This module provides IngestionPipeline, which validates a run, appends it
to the history store and judges every measurement against its baseline.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from benchwatch.core.config import DetectionConfig
from benchwatch.core.exceptions import InvalidRunError
from benchwatch.regression.baseline import BaselineSelector
from benchwatch.regression.detector import RegressionDetector
from benchwatch.regression.models import Report, Verdict

if TYPE_CHECKING:
    from benchwatch.benchmarks.history import HistoryStore, HistoryWriter
    from benchwatch.core.types import Measurement, Run
    from benchwatch.regression.models import RegressionVerdict

logger = logging.getLogger(__name__)


def validate_run(run: Run) -> None:
    """Check that a run can be ingested.

    Args:
        run: The run to check.

    Raises:
        InvalidRunError: If the run is empty, repeats a benchmark name, has
            a blank name or tool, or carries negative or non-finite numbers.
    """
    if not run.tool.strip():
        raise InvalidRunError("Run has no tool identifier")
    if not run.commit.id.strip():
        raise InvalidRunError("Run has no commit id")
    if not run.measurements:
        raise InvalidRunError(f"Run for commit {run.commit.short_id} has no measurements")

    seen: set[str] = set()
    for measurement in run.measurements:
        if not measurement.name.strip():
            raise InvalidRunError("Measurement with an empty name")
        if measurement.name in seen:
            raise InvalidRunError(f"Duplicate benchmark name in run: {measurement.name}")
        seen.add(measurement.name)

        if not math.isfinite(measurement.value) or measurement.value < 0:
            raise InvalidRunError(f"Invalid value for {measurement.name}: {measurement.value}")
        if not math.isfinite(measurement.error_margin) or measurement.error_margin < 0:
            raise InvalidRunError(f"Invalid error margin for {measurement.name}: {measurement.error_margin}")


class IngestionPipeline:
    """Record benchmark runs and report regressions.

    Append and baseline selection run under the store's write lock, so
    concurrent ingests are serialized and always compare against a
    consistent history.

    Attributes:
        store: History store the runs are appended to.
        config: Detection configuration.

    Example:
        >>> async with HistoryStore(JSONFileStore("dev/bench/data.js")) as store:
        ...     pipeline = IngestionPipeline(store, DetectionConfig.from_yaml("benchwatch.yaml"))
        ...     report = await pipeline.ingest(run)
        >>> print(report.summary())
    """

    def __init__(self, store: HistoryStore, config: DetectionConfig | None = None) -> None:
        """Initialize the pipeline.

        Args:
            store: A loaded history store.
            config: Validated detection configuration. Defaults to DetectionConfig().
        """
        self.store = store
        self.config = config or DetectionConfig()
        self._selector = BaselineSelector(self.config.baseline)
        self._detector = RegressionDetector(self.config.threshold)

    async def ingest(self, run: Run) -> Report:
        """Ingest a run and judge every measurement.

        The run is durable in the store before any verdict is computed.

        Args:
            run: The run to ingest.

        Returns:
            Report with one verdict per measurement, in run order.

        Raises:
            InvalidRunError: If the run is malformed (nothing is recorded).
            ToolMismatchError: If a benchmark name belongs to another tool.
            StorageError: If the history cannot be persisted.
        """
        validate_run(run)

        async with self.store.writer() as writer:
            appended = await writer.append(run)
            items = [self._judge(writer, run, measurement) for measurement in run.measurements]

        report = Report(
            suite=self.store.suite,
            commit=run.commit,
            tool=run.tool,
            items=items,
            appended=appended,
        )
        for item in report.regressions:
            logger.warning(f"Regression detected: {item.message}")
        logger.info(
            f"Ingested {appended} measurements at {run.commit.short_id}: "
            f"{report.count(Verdict.REGRESSED)} regressed, {report.count(Verdict.IMPROVED)} improved"
        )
        return report

    def _judge(self, writer: HistoryWriter, run: Run, measurement: Measurement) -> RegressionVerdict:
        series = writer.series(measurement.name)
        # The run was just appended, so its entry is the newest one.
        baseline = self._selector.select(series, len(series) - 1)
        direction = self.config.direction_for(measurement.name, run.tool)
        return self._detector.detect(measurement, baseline, direction)
