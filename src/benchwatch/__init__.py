"""benchwatch: benchmark history store and regression detection engine."""

from __future__ import annotations

from benchwatch.benchmarks import HistoryStore, JSONFileStore, MemoryStore, StorageProtocol
from benchwatch.core.config import (
    BaselinePolicy,
    BaselineStrategy,
    DetectionConfig,
    Direction,
    ThresholdPolicy,
)
from benchwatch.core.exceptions import (
    BenchwatchError,
    ConfigurationError,
    InvalidRunError,
    StorageError,
    ToolMismatchError,
)
from benchwatch.core.ingest import IngestionPipeline, validate_run
from benchwatch.core.types import CommitRef, HistoryEntry, Measurement, Run
from benchwatch.regression import Baseline, BaselineSelector, RegressionDetector, RegressionVerdict, Report, Verdict

__version__ = "0.3.0"
__all__ = [
    # Data model
    "CommitRef",
    "HistoryEntry",
    "Measurement",
    "Run",
    # History
    "HistoryStore",
    "JSONFileStore",
    "MemoryStore",
    "StorageProtocol",
    # Configuration
    "BaselinePolicy",
    "BaselineStrategy",
    "DetectionConfig",
    "Direction",
    "ThresholdPolicy",
    # Regression detection
    "Baseline",
    "BaselineSelector",
    "RegressionDetector",
    "RegressionVerdict",
    "Report",
    "Verdict",
    # Ingestion
    "IngestionPipeline",
    "validate_run",
    # Errors
    "BenchwatchError",
    "ConfigurationError",
    "InvalidRunError",
    "StorageError",
    "ToolMismatchError",
    # Version
    "__version__",
]
