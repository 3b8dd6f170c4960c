"""Tests for console reporter."""

from __future__ import annotations

from datetime import datetime, timezone
from io import StringIO
from typing import TYPE_CHECKING

import pytest

from benchwatch.core.types import CommitRef, HistoryEntry, Measurement
from benchwatch.reporters.console import ConsoleReporter, _supports_color, format_value

if TYPE_CHECKING:
    from benchwatch.regression import Report


class TestFormatValue:
    """Tests for format_value."""

    def test_integral(self) -> None:
        """Integral values get thousands separators."""
        assert format_value(2385218, "ns/iter") == "2,385,218 ns/iter"

    def test_fractional(self) -> None:
        """Fractional values keep four significant digits."""
        assert format_value(0.123456, "s") == "0.1235 s"

    def test_no_unit(self) -> None:
        """Without a unit there is no trailing space."""
        assert format_value(5) == "5"

    def test_missing(self) -> None:
        """None renders as a dash."""
        assert format_value(None, "ns/iter") == "-"


class TestConsoleReporterInit:
    """Tests for ConsoleReporter initialization."""

    def test_default_values(self) -> None:
        """Default values are set correctly."""
        output = StringIO()
        reporter = ConsoleReporter(output=output)

        assert reporter.output is output

    def test_colors_disabled_for_non_tty(self) -> None:
        """StringIO is not a TTY so colors are off."""
        reporter = ConsoleReporter(use_colors=True, output=StringIO())

        assert reporter.use_colors is False


class TestConsoleReporterReport:
    """Tests for ConsoleReporter.report."""

    @pytest.fixture
    def output(self) -> StringIO:
        return StringIO()

    @pytest.fixture
    def reporter(self, output: StringIO) -> ConsoleReporter:
        """Reporter with colors disabled for testing."""
        return ConsoleReporter(use_colors=False, output=output)

    def test_header(self, reporter: ConsoleReporter, output: StringIO, sample_report: Report) -> None:
        """Header shows suite, short commit and tool with the message's first line."""
        reporter.report(sample_report)

        text = output.getvalue()
        assert "Benchmark @ e4af457 (cargo)" in text
        assert "Add correct access token" in text
        assert "Longer description" not in text

    def test_table_rows(self, reporter: ConsoleReporter, output: StringIO, sample_report: Report) -> None:
        """Every verdict gets a row."""
        reporter.report(sample_report)

        text = output.getvalue()
        assert "┌" in text
        assert "Benchmark" in text
        assert "151 ns/iter" in text
        assert "1.51" in text
        assert "❌ regressed (critical)" in text
        assert "🚀 improved" in text
        assert "✅ stable" in text
        assert "➖ insufficient" in text

    def test_counts_line(self, reporter: ConsoleReporter, output: StringIO, sample_report: Report) -> None:
        """The counts line summarizes verdicts."""
        reporter.report(sample_report)

        assert "1 regressed, 1 improved, 1 stable, 1 without baseline" in output.getvalue()

    def test_no_ansi_codes(self, reporter: ConsoleReporter, output: StringIO, sample_report: Report) -> None:
        """No escape codes are written with colors disabled."""
        reporter.report(sample_report)

        assert "\033[" not in output.getvalue()


class TestConsoleReporterSeries:
    """Tests for ConsoleReporter.report_series."""

    def test_empty_series(self) -> None:
        """An unknown benchmark prints a notice."""
        output = StringIO()
        ConsoleReporter(use_colors=False, output=output).report_series("missing", ())

        assert "missing (0 entries)" in output.getvalue()
        assert "No history recorded." in output.getvalue()

    def test_series_rows(self) -> None:
        """Each entry shows time, commit, value and range."""
        instant = datetime(2020, 12, 3, 11, 5, 0, tzinfo=timezone.utc)
        entry = HistoryEntry(
            commit=CommitRef(id="e4af457a3bb7eb0b", timestamp=instant),
            collected_at=instant,
            tool="cargo",
            measurement=Measurement(name="fib_20", value=2385218, error_margin=13922, unit="ns/iter"),
        )
        output = StringIO()

        ConsoleReporter(use_colors=False, output=output).report_series("fib_20", [entry])

        text = output.getvalue()
        assert "2020-12-03 11:05:00" in text
        assert "e4af457" in text
        assert "2,385,218 ns/iter" in text
        assert "± 13,922" in text


class TestSupportsColor:
    """Tests for _supports_color."""

    def test_stringio(self) -> None:
        """StringIO never supports color."""
        assert _supports_color(StringIO()) is False

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """NO_COLOR disables color on a TTY."""

        class FakeTTY(StringIO):
            def isatty(self) -> bool:
                return True

        monkeypatch.setenv("NO_COLOR", "1")
        assert _supports_color(FakeTTY()) is False

        monkeypatch.delenv("NO_COLOR")
        monkeypatch.setenv("TERM", "xterm")
        assert _supports_color(FakeTTY()) is True
