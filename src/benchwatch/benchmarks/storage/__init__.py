"""Storage backends for benchmark history.

This module provides the storage protocol and implementations for
persisting the benchmark history document.

Example:
    >>> from benchwatch.benchmarks.storage import JSONFileStore
    >>> store = JSONFileStore("dev/bench/data.js")
    >>> document = await store.load()
"""

from __future__ import annotations

from benchwatch.benchmarks.storage.base import StorageProtocol
from benchwatch.benchmarks.storage.json_store import JSONFileStore
from benchwatch.benchmarks.storage.memory import MemoryStore

__all__ = [
    "JSONFileStore",
    "MemoryStore",
    "StorageProtocol",
]
