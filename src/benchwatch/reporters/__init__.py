"""Reporters module for benchwatch.

This module provides output formatters for ingestion reports:
- Console: Terminal output with tables and colors
- JSON: Machine-readable format
- Markdown: Pull request and commit comment bodies
"""

from __future__ import annotations

from benchwatch.reporters.console import ConsoleReporter
from benchwatch.reporters.json import JSONReporter
from benchwatch.reporters.markdown import MarkdownReporter

__all__ = [
    "ConsoleReporter",
    "JSONReporter",
    "MarkdownReporter",
]
