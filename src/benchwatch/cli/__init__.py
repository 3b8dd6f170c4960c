"""Command-line interface for benchwatch."""

from __future__ import annotations

from benchwatch.cli.main import app

__all__ = ["app"]
