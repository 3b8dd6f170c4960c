"""Base protocol for benchmark history storage backends.

This module defines the StorageProtocol that all storage backends must implement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from benchwatch.core.types import HistoryDocument


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol for benchmark history storage backends.

    A backend persists the whole history document. ``save`` must either
    replace the durable document completely or leave it untouched.

    Example:
        >>> class MyStorage:
        ...     async def load(self) -> HistoryDocument: ...
        ...     async def save(self, document: HistoryDocument) -> None: ...
        >>> isinstance(MyStorage(), StorageProtocol)
        True
    """

    async def load(self) -> HistoryDocument:
        """Load the persisted document.

        Returns:
            The stored document, or an empty document if nothing is stored.

        Raises:
            StorageError: If the document cannot be read or decoded.
        """
        ...

    async def save(self, document: HistoryDocument) -> None:
        """Persist the document, replacing the previous one atomically.

        Args:
            document: The document to store.

        Raises:
            StorageError: If the document cannot be written.
        """
        ...
