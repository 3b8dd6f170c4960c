"""JSON file storage for benchmark history.

This module provides the file backend that reads and writes the
``data.js`` / JSON history document.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from benchwatch.benchmarks.codec import CommitStyles, dumps_document, loads_document
from benchwatch.core.exceptions import StorageError
from benchwatch.core.types import HistoryDocument

logger = logging.getLogger(__name__)


class JSONFileStore:
    """JSON file storage for benchmark history.

    Uses atomic writes (temp file + rename) so a failed save never
    corrupts the previously durable document. Files ending in ``.js``,
    or read with the ``window.BENCHMARK_DATA =`` prefix, are written back
    with the prefix. Commits read from the file are written back spelled
    as they were read, so a save only changes what was appended.

    Example:
        >>> store = JSONFileStore("dev/bench/data.js")
        >>> document = await store.load()
        >>> await store.save(document)
    """

    def __init__(self, path: str | Path = "dev/bench/data.js") -> None:
        """Initialize the JSON file store.

        Args:
            path: Path to the history file.
        """
        self._path = Path(path)
        self._js_prefix = self._path.suffix == ".js"
        self._styles: CommitStyles = {}

    @property
    def path(self) -> Path:
        """Path of the history file."""
        return self._path

    async def load(self) -> HistoryDocument:
        """Load the history document.

        Returns:
            The stored document, or an empty one if the file is missing or blank.

        Raises:
            StorageError: If the file cannot be read or is malformed.
        """
        if not self._path.exists():
            logger.debug(f"No benchmark history at {self._path}, starting empty")
            return HistoryDocument()

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read benchmark history from {self._path}: {e}") from e

        styles: CommitStyles = {}
        document, had_prefix = loads_document(content, styles)
        self._js_prefix = self._js_prefix or had_prefix
        self._styles = styles
        logger.debug(f"Loaded {sum(len(r) for r in document.entries.values())} runs from {self._path}")
        return document

    async def save(self, document: HistoryDocument) -> None:
        """Save the history document with an atomic write.

        Args:
            document: The document to store.

        Raises:
            StorageError: If the file cannot be written. The previous file
                is left in place.
        """
        content = dumps_document(document, js_prefix=self._js_prefix, styles=self._styles)

        try:
            # Ensure parent directory exists
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".benchwatch_",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageError(f"Failed to write benchmark history to {self._path}: {e}") from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            # Atomic rename
            Path(temp_path).replace(self._path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            raise StorageError(f"Failed to write benchmark history to {self._path}: {e}") from e
        except BaseException:
            # Clean up temp file on any other failure
            Path(temp_path).unlink(missing_ok=True)
            raise

        logger.debug(f"Saved benchmark history to {self._path}")
