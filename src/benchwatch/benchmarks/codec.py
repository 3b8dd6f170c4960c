"""Codec for the persisted benchmark history format.

The history document is the format written by continuous benchmarking
actions::

    window.BENCHMARK_DATA = {
      "lastUpdate": 1747618039813,
      "repoUrl": "https://github.com/...",
      "entries": {
        "Benchmark": [
          {"commit": {...}, "date": 1606993507181, "tool": "cargo",
           "benches": [{"name": "fib_20", "value": 2385218, "range": "± 13922", "unit": "ns/iter"}]}
        ]
      }
    }

The ``range`` text and millisecond timestamps only exist at this boundary;
everything past the codec works with typed fields.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from benchwatch.core.exceptions import StorageError
from benchwatch.core.types import CommitAuthor, CommitRef, HistoryDocument, Measurement, Run

JS_PREFIX = "window.BENCHMARK_DATA = "

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
_RANGE_PATTERN = re.compile(r"^\s*(?:±|\+/-|\+-)?\s*(?P<number>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*$")


# ============================================================================
# Scalars
# ============================================================================


def parse_range(text: str | None) -> float:
    """Parse a ``"± <number>"`` range into an error margin.

    Args:
        text: The range text. ``None`` or blank means no margin.

    Returns:
        The error margin.

    Raises:
        ValueError: If the text is not a range.

    Example:
        >>> parse_range("± 64930")
        64930.0
    """
    if text is None or not text.strip():
        return 0.0
    match = _RANGE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid range: {text!r}")
    return float(match.group("number"))


def format_number(value: float) -> int | float:
    """Return an int for integral values so files keep their integer style."""
    if math.isfinite(value) and float(value).is_integer():
        return int(value)
    return float(value)


def format_range(error_margin: float) -> str:
    """Format an error margin as ``"± <number>"``.

    Example:
        >>> format_range(64930.0)
        '± 64930'
        >>> format_range(0.25)
        '± 0.25'
    """
    return f"± {format_number(error_margin)!r}"


def millis_to_datetime(millis: int | float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=millis)


def datetime_to_millis(instant: datetime) -> int:
    """Convert an aware (or UTC-naive) datetime to epoch milliseconds."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return (instant - _EPOCH) // _MILLISECOND


# ============================================================================
# Objects
# ============================================================================


_AUTHOR_KEYS = ("email", "name", "username")


@dataclass(frozen=True)
class CommitStyle:
    """How a stored commit object was spelled.

    Files written by different action versions order author keys
    differently and spell UTC as ``Z`` or ``+00:00``. Keeping the spelling
    per commit id lets a rewrite leave existing entries untouched.

    Attributes:
        timestamp: Timestamp text as stored.
        author: Author key order.
        committer: Committer key order.
    """

    timestamp: str
    author: tuple[str, ...] = ()
    committer: tuple[str, ...] = ()


CommitStyles = dict[str, CommitStyle]


def _parse_timestamp(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _format_timestamp(timestamp: datetime, style: CommitStyle | None) -> str:
    if style is not None:
        stored = _parse_timestamp(style.timestamp)
        # Reuse the stored text only while it still names the same instant and offset.
        if stored == timestamp and stored.utcoffset() == timestamp.utcoffset():
            return style.timestamp
    return timestamp.isoformat()


def _author_from_dict(data: dict[str, Any] | None) -> CommitAuthor | None:
    if data is None:
        return None
    return CommitAuthor(name=data.get("name"), email=data.get("email"), username=data.get("username"))


def _author_order(data: dict[str, Any] | None) -> tuple[str, ...]:
    if data is None:
        return ()
    return tuple(key for key in data if key in _AUTHOR_KEYS)


def _author_to_dict(author: CommitAuthor, order: tuple[str, ...] = ()) -> dict[str, Any]:
    keys = [*order, *(key for key in _AUTHOR_KEYS if key not in order)]
    fields = {"email": author.email, "name": author.name, "username": author.username}
    return {key: fields[key] for key in keys if fields[key] is not None}


def commit_from_dict(data: dict[str, Any], styles: CommitStyles | None = None) -> CommitRef:
    """Decode a commit object.

    Args:
        data: The stored commit object.
        styles: When given, the commit's spelling is recorded here by id.
    """
    commit = CommitRef(
        id=data["id"],
        timestamp=_parse_timestamp(data["timestamp"]),
        author=_author_from_dict(data.get("author")),
        committer=_author_from_dict(data.get("committer")),
        message=data.get("message"),
        url=data.get("url"),
        distinct=data.get("distinct"),
        tree_id=data.get("tree_id"),
    )
    if styles is not None:
        styles[commit.id] = CommitStyle(
            timestamp=data["timestamp"],
            author=_author_order(data.get("author")),
            committer=_author_order(data.get("committer")),
        )
    return commit


def commit_to_dict(commit: CommitRef, styles: CommitStyles | None = None) -> dict[str, Any]:
    """Encode a commit object, keeping the key order of existing files.

    Args:
        commit: The commit to encode.
        styles: Spellings recorded on load. Commits without one use the
            default author order and ISO 8601 offsets.
    """
    style = styles.get(commit.id) if styles is not None else None
    data: dict[str, Any] = {}
    if commit.author is not None:
        data["author"] = _author_to_dict(commit.author, style.author if style else ())
    if commit.committer is not None:
        data["committer"] = _author_to_dict(commit.committer, style.committer if style else ())
    if commit.distinct is not None:
        data["distinct"] = commit.distinct
    data["id"] = commit.id
    if commit.message is not None:
        data["message"] = commit.message
    data["timestamp"] = _format_timestamp(commit.timestamp, style)
    if commit.tree_id is not None:
        data["tree_id"] = commit.tree_id
    if commit.url is not None:
        data["url"] = commit.url
    return data


def measurement_from_dict(data: dict[str, Any]) -> Measurement:
    """Decode one ``benches`` element."""
    return Measurement(
        name=data["name"],
        value=float(data["value"]),
        error_margin=parse_range(data.get("range")),
        unit=data.get("unit", ""),
        extra=data.get("extra"),
    )


def measurement_to_dict(measurement: Measurement) -> dict[str, Any]:
    """Encode one ``benches`` element."""
    data: dict[str, Any] = {
        "name": measurement.name,
        "value": format_number(measurement.value),
        "range": format_range(measurement.error_margin),
        "unit": measurement.unit,
    }
    if measurement.extra is not None:
        data["extra"] = measurement.extra
    return data


def run_from_dict(data: dict[str, Any], styles: CommitStyles | None = None) -> Run:
    """Decode a run object.

    Raises:
        KeyError, TypeError, ValueError: If the object is malformed.
    """
    return Run(
        commit=commit_from_dict(data["commit"], styles),
        tool=data["tool"],
        collected_at=millis_to_datetime(data["date"]),
        measurements=tuple(measurement_from_dict(b) for b in data["benches"]),
    )


def run_to_dict(run: Run, styles: CommitStyles | None = None) -> dict[str, Any]:
    """Encode a run object."""
    return {
        "commit": commit_to_dict(run.commit, styles),
        "date": datetime_to_millis(run.collected_at),
        "tool": run.tool,
        "benches": [measurement_to_dict(m) for m in run.measurements],
    }


def document_from_dict(data: dict[str, Any], styles: CommitStyles | None = None) -> HistoryDocument:
    """Decode the whole history document."""
    last_update = data.get("lastUpdate")
    entries = {
        suite: tuple(run_from_dict(r, styles) for r in runs)
        for suite, runs in (data.get("entries") or {}).items()
    }
    return HistoryDocument(
        last_update=millis_to_datetime(last_update) if last_update is not None else None,
        repo_url=data.get("repoUrl"),
        entries=entries,
    )


def document_to_dict(document: HistoryDocument, styles: CommitStyles | None = None) -> dict[str, Any]:
    """Encode the whole history document."""
    data: dict[str, Any] = {}
    if document.last_update is not None:
        data["lastUpdate"] = datetime_to_millis(document.last_update)
    if document.repo_url is not None:
        data["repoUrl"] = document.repo_url
    data["entries"] = {suite: [run_to_dict(r, styles) for r in runs] for suite, runs in document.entries.items()}
    return data


# ============================================================================
# Text
# ============================================================================


def strip_js_prefix(content: str) -> tuple[str, bool]:
    """Remove the ``window.BENCHMARK_DATA =`` prefix if present.

    Returns:
        Tuple of (json_text, had_prefix).
    """
    stripped = content.lstrip()
    if stripped.startswith("window.BENCHMARK_DATA"):
        _, _, rest = stripped.partition("=")
        return rest.strip().rstrip(";"), True
    return content, False


def loads_document(content: str, styles: CommitStyles | None = None) -> tuple[HistoryDocument, bool]:
    """Decode document text (JSON or ``data.js``).

    Args:
        content: File content.
        styles: When given, receives the spelling of every commit read.

    Returns:
        Tuple of (document, had_js_prefix). Blank text is an empty document.

    Raises:
        StorageError: If the text is not a valid history document.
    """
    text, had_prefix = strip_js_prefix(content)
    if not text.strip():
        return HistoryDocument(), had_prefix

    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return document_from_dict(data, styles), had_prefix
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed benchmark history: {e}") from e


def dumps_document(
    document: HistoryDocument,
    js_prefix: bool = False,
    styles: CommitStyles | None = None,
) -> str:
    """Encode a document as text, optionally with the ``data.js`` prefix.

    Commits found in ``styles`` are spelled as they were loaded.
    """
    content = json.dumps(document_to_dict(document, styles), indent=2, ensure_ascii=False)
    if js_prefix:
        return f"{JS_PREFIX}{content}\n"
    return f"{content}\n"


def loads_run(content: str) -> Run:
    """Decode a single run object from JSON text.

    Raises:
        ValueError: If the text is not a valid run object.
    """
    try:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return run_from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise ValueError(f"Malformed run: {e}") from e
