"""Core type definitions for benchwatch.

This module defines the data structures shared by the history store,
the regression detector and the ingestion pipeline: commits, measurements,
runs and the persisted history document.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Iterator


class CommitAuthor(BaseModel):
    """Author or committer of a commit. Display only."""

    model_config = {"frozen": True}

    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Email address")
    username: str | None = Field(default=None, description="Forge username")


class CommitRef(BaseModel):
    """Immutable identity of a code revision.

    Only ``id`` and ``timestamp`` take part in history bookkeeping; the
    remaining fields are carried for display.

    Attributes:
        id: Opaque commit hash.
        timestamp: Commit timestamp (timezone-aware).
        author: Optional commit author.
        committer: Optional committer.
        message: Optional commit message.
        url: Optional link to the commit.
        distinct: Whether the commit is distinct from earlier pushes.
        tree_id: Optional tree hash.

    Example:
        >>> commit = CommitRef(
        ...     id="e4af457a3bb7eb0b088724703ceb56042019dec2",
        ...     timestamp=datetime.fromisoformat("2020-12-03T12:02:08+01:00"),
        ...     message="Add correct access token",
        ... )
    """

    model_config = {"frozen": True}

    id: str = Field(..., description="Opaque commit hash")
    timestamp: datetime = Field(..., description="Commit timestamp")
    author: CommitAuthor | None = Field(default=None, description="Commit author")
    committer: CommitAuthor | None = Field(default=None, description="Committer")
    message: str | None = Field(default=None, description="Commit message")
    url: str | None = Field(default=None, description="Link to the commit")
    distinct: bool | None = Field(default=None, description="Distinct flag from the push event")
    tree_id: str | None = Field(default=None, description="Tree hash")

    @property
    def short_id(self) -> str:
        """First seven characters of the commit id."""
        return self.id[:7]


class Measurement(BaseModel):
    """One named metric from one run.

    Attributes:
        name: Benchmark name, unique within a run.
        value: Measured value.
        error_margin: One standard deviation or equivalent spread.
        unit: Display unit, e.g. ``ns/iter``. Never converted.
        extra: Optional free-form text carried by the harness.

    Example:
        >>> m = Measurement(name="fib_20", value=2385218, error_margin=13922, unit="ns/iter")
    """

    model_config = {"frozen": True}

    name: str = Field(..., description="Benchmark name")
    value: float = Field(..., description="Measured value")
    error_margin: float = Field(default=0.0, description="Spread of the measurement")
    unit: str = Field(default="", description="Display unit")
    extra: str | None = Field(default=None, description="Free-form harness output")


class Run(BaseModel):
    """One ingestion event: every measurement of one benchmark execution.

    Attributes:
        commit: Commit the run was measured on.
        tool: Identifier of the harness that produced the measurements.
        collected_at: When the run was collected, at millisecond precision.
        measurements: Measurements in harness order.

    Example:
        >>> run = Run(
        ...     commit=commit,
        ...     tool="cargo",
        ...     collected_at=datetime(2020, 12, 3, 11, 5, tzinfo=timezone.utc),
        ...     measurements=(Measurement(name="fib_20", value=2385218, unit="ns/iter"),),
        ... )
        >>> run.names()
        ['fib_20']
    """

    model_config = {"frozen": True}

    commit: CommitRef = Field(..., description="Commit the run was measured on")
    tool: str = Field(..., description="Harness identifier")
    collected_at: datetime = Field(..., description="Collection instant")
    measurements: tuple[Measurement, ...] = Field(..., description="Measurements in harness order")

    @field_validator("collected_at")
    @classmethod
    def _truncate_to_millis(cls, value: datetime) -> datetime:
        # The history stores UTC epoch milliseconds.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.replace(microsecond=value.microsecond - value.microsecond % 1000)

    def __len__(self) -> int:
        """Return the number of measurements in the run."""
        return len(self.measurements)

    def __iter__(self) -> Iterator[Measurement]:  # type: ignore[override]
        """Iterate over measurements in the run."""
        return iter(self.measurements)

    def names(self) -> list[str]:
        """Return measurement names in run order."""
        return [m.name for m in self.measurements]

    def get(self, name: str) -> Measurement | None:
        """Return the measurement with the given name, if present."""
        for measurement in self.measurements:
            if measurement.name == name:
                return measurement
        return None


@dataclass(frozen=True)
class HistoryEntry:
    """One point in a benchmark's series.

    Attributes:
        commit: Commit the measurement belongs to.
        collected_at: When the owning run was collected.
        tool: Harness that produced the measurement.
        measurement: The recorded measurement.
    """

    commit: CommitRef
    collected_at: datetime
    tool: str
    measurement: Measurement

    @property
    def value(self) -> float:
        return self.measurement.value

    @property
    def error_margin(self) -> float:
        return self.measurement.error_margin


class HistoryDocument(BaseModel):
    """The persisted history: every suite's runs, oldest first.

    Attributes:
        last_update: Instant of the last successful write.
        repo_url: Optional repository URL.
        entries: Mapping from suite key to its runs, in append order.
    """

    model_config = {"frozen": True}

    last_update: datetime | None = Field(default=None, description="Instant of the last write")
    repo_url: str | None = Field(default=None, description="Repository URL")
    entries: dict[str, tuple[Run, ...]] = Field(default_factory=dict, description="Runs per suite")

    def runs(self, suite: str) -> tuple[Run, ...]:
        """Return the runs recorded for a suite (empty if unknown)."""
        return self.entries.get(suite, ())
