"""Custom exceptions for benchwatch.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BenchwatchError for easy catching.
"""

from __future__ import annotations


class BenchwatchError(Exception):
    """Base exception for all benchwatch errors.

    Example:
        >>> try:
        ...     report = await pipeline.ingest(run)
        ... except BenchwatchError as e:
        ...     print(f"benchwatch error: {e}")
    """


class InvalidRunError(BenchwatchError):
    """Raised when a run is malformed and cannot be ingested.

    Covers empty runs, duplicate benchmark names, negative or non-finite
    values, runs older than the latest recorded run, and unit changes.
    Raised before any history is mutated.

    Example:
        >>> raise InvalidRunError("Duplicate benchmark name in run: fib_20")
    """


class ToolMismatchError(BenchwatchError):
    """Raised when a benchmark name is reused by a different harness.

    Attributes:
        name: The benchmark name.
        expected_tool: Tool already recorded for the name.
        actual_tool: Tool of the rejected run.

    Example:
        >>> raise ToolMismatchError("fib_20", expected_tool="cargo", actual_tool="go")
    """

    def __init__(self, name: str, expected_tool: str, actual_tool: str) -> None:
        self.name = name
        self.expected_tool = expected_tool
        self.actual_tool = actual_tool
        super().__init__(
            f"Benchmark '{name}' is recorded for tool '{expected_tool}', refusing measurement from '{actual_tool}'"
        )


class StorageError(BenchwatchError):
    """Raised when the persisted history cannot be read or written.

    Previously durable state is left untouched when this is raised.

    Example:
        >>> raise StorageError("Failed to write dev/bench/data.js: disk full")
    """


class ConfigurationError(BenchwatchError):
    """Raised when configuration is invalid or missing.

    Raised while configuration is loaded, never while a run is compared.

    Example:
        >>> raise ConfigurationError("relative_threshold must be greater than 1.0")
    """
