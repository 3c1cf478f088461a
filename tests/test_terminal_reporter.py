"""Tests for the terminal (Rich) reporter."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from rich.console import Console
from rich.table import Table

from lcov_comment.analyzers.coverage import ThresholdResult
from lcov_comment.models.coverage import CoverageAggregate
from lcov_comment.reporters.terminal import CLIReporter, reporter

# ── Fixtures ────────────────────────────────────────────────────


@pytest.fixture
def mock_console() -> MagicMock:
    """Return a MagicMock that replaces the console."""
    return MagicMock()


@pytest.fixture
def recording_reporter() -> CLIReporter:
    """Reporter writing to a recording console wide enough for the table."""
    return CLIReporter(Console(record=True, width=120, color_system=None))


def _text(cli_reporter: CLIReporter) -> str:
    return cli_reporter.console.export_text()


# ── Messages ────────────────────────────────────────────────────


class TestMessages:
    def test_singleton_exists(self) -> None:
        assert isinstance(reporter, CLIReporter)

    def test_custom_console_is_used(self, mock_console: MagicMock) -> None:
        CLIReporter(mock_console).print_success("done")

        mock_console.print.assert_called_once_with("[green]✓[/green] done")

    def test_error_and_warning(self, mock_console: MagicMock) -> None:
        cli_reporter = CLIReporter(mock_console)

        cli_reporter.print_error("bad")
        cli_reporter.print_warning("careful")

        printed = [c.args[0] for c in mock_console.print.call_args_list]
        assert printed == ["[red]✗[/red] bad", "[yellow]⚠[/yellow] careful"]


# ── Coverage color ──────────────────────────────────────────────


class TestCoverageColor:
    @pytest.mark.parametrize(
        ("percentage", "color"),
        [(100.0, "green"), (80.0, "green"), (79.9, "yellow"), (50.0, "yellow"), (0.0, "red")],
    )
    def test_thresholds(self, percentage: float, color: str) -> None:
        assert CLIReporter(MagicMock())._get_coverage_color(percentage) == color


# ── Coverage summary table ──────────────────────────────────────


class TestPrintCoverageSummary:
    def test_prints_rich_table(self, mock_console: MagicMock) -> None:
        CLIReporter(mock_console).print_coverage_summary(
            CoverageAggregate(),
            CoverageAggregate(),
            0,
            0,
            ThresholdResult(all_passed=True, changed_passed=True),
            has_changed_files=False,
        )

        (table,) = mock_console.print.call_args.args
        assert isinstance(table, Table)
        assert table.title == "LCOV Coverage"
        assert table.row_count == 2

    def test_rows_with_thresholds(self, recording_reporter: CLIReporter) -> None:
        recording_reporter.print_coverage_summary(
            CoverageAggregate(lines_found=1234, lines_hit=617, percentage=50.0),
            CoverageAggregate(lines_found=10, lines_hit=9, percentage=90.0),
            80,
            72.5,
            ThresholdResult(all_passed=False, changed_passed=True),
            has_changed_files=True,
        )

        output = _text(recording_reporter)
        assert "50.0%" in output
        assert "617/1,234" in output
        assert "80%" in output
        assert "72.5%" in output
        assert "✗" in output
        assert "✓" in output

    def test_changed_row_skipped_without_changed_files(
        self, recording_reporter: CLIReporter
    ) -> None:
        recording_reporter.print_coverage_summary(
            CoverageAggregate(),
            CoverageAggregate(),
            0,
            0,
            ThresholdResult(all_passed=True, changed_passed=True),
            has_changed_files=False,
        )

        output = _text(recording_reporter)
        assert "n/a" in output
        assert "skipped" in output
