"""Core types, configuration and ingestion for benchwatch."""

from __future__ import annotations

from benchwatch.core.config import (
    BaselinePolicy,
    BaselineStrategy,
    DetectionConfig,
    Direction,
    Settings,
    ThresholdPolicy,
)
from benchwatch.core.exceptions import (
    BenchwatchError,
    ConfigurationError,
    InvalidRunError,
    StorageError,
    ToolMismatchError,
)
from benchwatch.core.types import CommitAuthor, CommitRef, HistoryDocument, HistoryEntry, Measurement, Run

__all__ = [
    "BaselinePolicy",
    "BaselineStrategy",
    "BenchwatchError",
    "CommitAuthor",
    "CommitRef",
    "ConfigurationError",
    "DetectionConfig",
    "Direction",
    "HistoryDocument",
    "HistoryEntry",
    "InvalidRunError",
    "Measurement",
    "Run",
    "Settings",
    "StorageError",
    "ThresholdPolicy",
    "ToolMismatchError",
]
