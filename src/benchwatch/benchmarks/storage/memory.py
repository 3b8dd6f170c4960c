"""In-memory storage for benchmark history."""

from __future__ import annotations

from benchwatch.core.types import HistoryDocument


class MemoryStore:
    """Storage backend that keeps the document in memory.

    Useful for tests and for embedders that persist the history elsewhere.

    Example:
        >>> store = MemoryStore()
        >>> await store.save(document)
        >>> (await store.load()) == document
        True
    """

    def __init__(self, document: HistoryDocument | None = None) -> None:
        self._document = document or HistoryDocument()
        self.save_count = 0

    async def load(self) -> HistoryDocument:
        return self._document

    async def save(self, document: HistoryDocument) -> None:
        self._document = document
        self.save_count += 1
