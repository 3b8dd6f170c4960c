"""Append-only benchmark history store.

This module provides HistoryStore, which owns the loaded history document,
keeps a per-benchmark series index over one suite, and enforces the
append-only invariants of the history.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from benchwatch.benchmarks.storage import JSONFileStore, StorageProtocol
from benchwatch.core.exceptions import BenchwatchError, InvalidRunError, ToolMismatchError
from benchwatch.core.types import HistoryDocument, HistoryEntry, Run

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from typing_extensions import Self

logger = logging.getLogger(__name__)

DEFAULT_SUITE = "Benchmark"


@dataclass(frozen=True)
class _Snapshot:
    """Committed state of the store. Replaced wholesale, never mutated."""

    document: HistoryDocument
    series: dict[str, tuple[HistoryEntry, ...]] = field(default_factory=dict)
    tools: dict[str, str] = field(default_factory=dict)
    units: dict[str, str] = field(default_factory=dict)


def _index(document: HistoryDocument, suite: str) -> _Snapshot:
    """Build the series index of one suite."""
    series: dict[str, list[HistoryEntry]] = {}
    tools: dict[str, str] = {}
    units: dict[str, str] = {}

    for run in document.runs(suite):
        for measurement in run.measurements:
            previous_tool = tools.get(measurement.name)
            if previous_tool is not None and previous_tool != run.tool:
                logger.warning(
                    f"Benchmark '{measurement.name}' in suite '{suite}' mixes tools "
                    f"'{previous_tool}' and '{run.tool}' in stored history"
                )
            tools[measurement.name] = run.tool
            units[measurement.name] = measurement.unit
            series.setdefault(measurement.name, []).append(
                HistoryEntry(
                    commit=run.commit,
                    collected_at=run.collected_at,
                    tool=run.tool,
                    measurement=measurement,
                )
            )

    return _Snapshot(
        document=document,
        series={name: tuple(entries) for name, entries in series.items()},
        tools=tools,
        units=units,
    )


class HistoryWriter:
    """Handle given to the holder of the store's write lock.

    Appends and reads through a writer happen while no other writer can
    touch the store, so a baseline read right after an append always sees
    that append as the newest entry.
    """

    def __init__(self, store: HistoryStore) -> None:
        self._store = store

    async def append(self, run: Run) -> int:
        """Append a run. See HistoryStore.append."""
        return await self._store._append_locked(run)

    def series(self, name: str) -> tuple[HistoryEntry, ...]:
        """Read a series, including appends made through this writer."""
        return self._store.series(name)


class HistoryStore:
    """Append-only, per-benchmark time series over one suite of the history.

    The store owns the loaded document and its ``last_update`` stamp.
    Writers are serialized by an asyncio lock; readers never take it and
    see the last committed snapshot, since committed entries are immutable
    and the snapshot is replaced copy-on-write.

    Attributes:
        suite: Suite key inside the document's ``entries``.
        autosave: Persist every append before committing it.

    Example:
        >>> async with HistoryStore(JSONFileStore("dev/bench/data.js")) as store:
        ...     await store.append(run)
        ...     for entry in store.series("fib_20"):
        ...         print(entry.commit.short_id, entry.value)
    """

    def __init__(
        self,
        storage: StorageProtocol | None = None,
        suite: str = DEFAULT_SUITE,
        autosave: bool = True,
    ) -> None:
        """Initialize with a storage backend.

        Args:
            storage: Storage backend (default: JSONFileStore).
            suite: Suite key inside the history document.
            autosave: Persist each append before it becomes visible.
                When False, pending appends are flushed by ``save()`` or
                on leaving the ``async with`` block.
        """
        self._storage: StorageProtocol = storage or JSONFileStore()
        self.suite = suite
        self.autosave = autosave
        self._snapshot: _Snapshot | None = None
        self._dirty = False
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        await self.load()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._dirty:
            await self.save()

    @property
    def is_loaded(self) -> bool:
        """Whether the history has been loaded."""
        return self._snapshot is not None

    @property
    def dirty(self) -> bool:
        """Whether appended runs are waiting to be saved."""
        return self._dirty

    @property
    def last_update(self) -> datetime | None:
        """Instant of the last successful write, as stored in the document."""
        return self._require_snapshot().document.last_update

    @property
    def document(self) -> HistoryDocument:
        """The committed history document."""
        return self._require_snapshot().document

    async def load(self) -> None:
        """Load the document from storage and rebuild the series index.

        Raises:
            StorageError: If the stored document cannot be read.
        """
        async with self._lock:
            document = await self._storage.load()
            self._snapshot = _index(document, self.suite)
            self._dirty = False
        logger.debug(f"History suite '{self.suite}' loaded with {len(self._snapshot.series)} benchmarks")

    async def save(self) -> None:
        """Stamp ``last_update`` and persist the document.

        Raises:
            StorageError: If the document cannot be written. The committed
                in-memory state and the durable file are left unchanged.
        """
        async with self._lock:
            snapshot = self._require_snapshot()
            self._snapshot = await self._persist(snapshot)
            self._dirty = False

    async def _persist(self, snapshot: _Snapshot) -> _Snapshot:
        now = datetime.now(timezone.utc)
        now = now.replace(microsecond=now.microsecond - now.microsecond % 1000)
        document = snapshot.document.model_copy(update={"last_update": now})
        await self._storage.save(document)
        return _Snapshot(document=document, series=snapshot.series, tools=snapshot.tools, units=snapshot.units)

    def _require_snapshot(self) -> _Snapshot:
        if self._snapshot is None:
            raise BenchwatchError("History store is not loaded; call load() or use 'async with'")
        return self._snapshot

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def series(self, name: str) -> tuple[HistoryEntry, ...]:
        """Get the recorded series for a benchmark, oldest first.

        Args:
            name: Benchmark name.

        Returns:
            The series; empty if the name is unknown.
        """
        return self._require_snapshot().series.get(name, ())

    def names(self) -> list[str]:
        """Get benchmark names in the order they were first recorded."""
        return list(self._require_snapshot().series)

    def tool_for(self, name: str) -> str | None:
        """Get the tool that owns a benchmark name, if any."""
        return self._require_snapshot().tools.get(name)

    def latest_run(self) -> Run | None:
        """Get the most recently appended run of the suite."""
        runs = self._require_snapshot().document.runs(self.suite)
        return runs[-1] if runs else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def writer(self) -> AsyncIterator[HistoryWriter]:
        """Hold the write lock for a sequence of appends and reads.

        Example:
            >>> async with store.writer() as writer:
            ...     await writer.append(run)
            ...     series = writer.series("fib_20")
        """
        async with self._lock:
            yield HistoryWriter(self)

    async def append(self, run: Run) -> int:
        """Append every measurement of a run to its benchmark's series.

        The append is atomic: either the whole run is recorded or nothing
        changes.

        Args:
            run: The run to record.

        Returns:
            Number of measurements appended.

        Raises:
            ToolMismatchError: If a name is already recorded for another tool.
            InvalidRunError: If the run is older than the latest recorded run,
                repeats a name, or changes a benchmark's unit.
            StorageError: If autosave is on and the write fails.
        """
        async with self.writer() as writer:
            return await writer.append(run)

    async def _append_locked(self, run: Run) -> int:
        snapshot = self._require_snapshot()
        self._check_consistency(snapshot, run)

        runs = snapshot.document.runs(self.suite)
        entries = dict(snapshot.document.entries)
        entries[self.suite] = (*runs, run)
        document = snapshot.document.model_copy(update={"entries": entries})

        series = dict(snapshot.series)
        tools = dict(snapshot.tools)
        units = dict(snapshot.units)
        for measurement in run.measurements:
            entry = HistoryEntry(
                commit=run.commit,
                collected_at=run.collected_at,
                tool=run.tool,
                measurement=measurement,
            )
            series[measurement.name] = (*series.get(measurement.name, ()), entry)
            tools[measurement.name] = run.tool
            units[measurement.name] = measurement.unit

        candidate = _Snapshot(document=document, series=series, tools=tools, units=units)
        if self.autosave:
            candidate = await self._persist(candidate)
        else:
            self._dirty = True
        self._snapshot = candidate

        logger.info(
            f"Appended {len(run.measurements)} measurements from {run.tool} "
            f"at commit {run.commit.short_id} to suite '{self.suite}'"
        )
        return len(run.measurements)

    def _check_consistency(self, snapshot: _Snapshot, run: Run) -> None:
        runs = snapshot.document.runs(self.suite)
        if runs and run.collected_at < runs[-1].collected_at:
            raise InvalidRunError(
                f"Run collected at {run.collected_at.isoformat()} is older than the latest recorded run "
                f"({runs[-1].collected_at.isoformat()})"
            )

        seen: set[str] = set()
        for measurement in run.measurements:
            if measurement.name in seen:
                raise InvalidRunError(f"Duplicate benchmark name in run: {measurement.name}")
            seen.add(measurement.name)

            tool = snapshot.tools.get(measurement.name)
            if tool is not None and tool != run.tool:
                raise ToolMismatchError(measurement.name, expected_tool=tool, actual_tool=run.tool)

            unit = snapshot.units.get(measurement.name)
            if unit is not None and unit != measurement.unit:
                raise InvalidRunError(
                    f"Benchmark '{measurement.name}' is recorded in '{unit}', run reports '{measurement.unit}'"
                )
