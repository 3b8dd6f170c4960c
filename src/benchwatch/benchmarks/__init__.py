"""Benchmark history module for benchwatch.

This module provides the append-only history store, its storage
backends and the codec for the persisted history format.

Example:
    >>> from benchwatch.benchmarks import HistoryStore, JSONFileStore
    >>>
    >>> async with HistoryStore(JSONFileStore("dev/bench/data.js")) as store:
    ...     await store.append(run)
    ...     series = store.series("fib_20")
"""

from __future__ import annotations

from benchwatch.benchmarks.history import DEFAULT_SUITE, HistoryStore, HistoryWriter
from benchwatch.benchmarks.storage import JSONFileStore, MemoryStore, StorageProtocol

__all__ = [
    "DEFAULT_SUITE",
    "HistoryStore",
    "HistoryWriter",
    "JSONFileStore",
    "MemoryStore",
    "StorageProtocol",
]
