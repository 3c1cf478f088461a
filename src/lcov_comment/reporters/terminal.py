"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from lcov_comment.reporters.markdown import format_percentage, format_threshold

if TYPE_CHECKING:
    from lcov_comment.analyzers.coverage import ThresholdResult
    from lcov_comment.models.coverage import CoverageAggregate

console = Console()

_HIGH_COVERAGE = 80.0
_MEDIUM_COVERAGE = 50.0


class CLIReporter:
    """Rich terminal output for coverage runs."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_coverage_summary(
        self,
        all_coverage: CoverageAggregate,
        changed_coverage: CoverageAggregate,
        all_files_minimum: float,
        changed_files_minimum: float,
        result: ThresholdResult,
        *,
        has_changed_files: bool,
    ) -> None:
        """Print a table with whole-codebase and changed-file coverage."""
        table = Table(title="LCOV Coverage", title_style="bold cyan")
        table.add_column("Scope", style="bold")
        table.add_column("Coverage", justify="right")
        table.add_column("Lines", justify="right")
        table.add_column("Threshold", justify="right")
        table.add_column("Status", justify="center")

        table.add_row(
            "All files",
            self._format_coverage(all_coverage),
            f"{all_coverage.lines_hit:,}/{all_coverage.lines_found:,}",
            self._format_threshold(all_files_minimum),
            self._format_status(passed=result.all_passed),
        )
        if has_changed_files:
            table.add_row(
                "Changed files",
                self._format_coverage(changed_coverage),
                f"{changed_coverage.lines_hit:,}/{changed_coverage.lines_found:,}",
                self._format_threshold(changed_files_minimum),
                self._format_status(passed=result.changed_passed),
            )
        else:
            table.add_row("Changed files", "-", "-", "-", "[dim]skipped[/dim]")

        self.console.print(table)

    def _format_coverage(self, coverage: CoverageAggregate) -> str:
        if coverage.lines_found == 0:
            return "[dim]n/a[/dim]"
        color = self._get_coverage_color(coverage.percentage)
        return f"[{color}]{format_percentage(coverage.percentage)}%[/{color}]"

    def _format_threshold(self, minimum: float) -> str:
        return f"{format_threshold(minimum)}%" if minimum > 0 else "-"

    def _format_status(self, *, passed: bool) -> str:
        return "[green]✓[/green]" if passed else "[red]✗[/red]"

    def _get_coverage_color(self, percentage: float) -> str:
        """Get a color based on coverage percentage."""
        if percentage >= _HIGH_COVERAGE:
            return "green"
        if percentage >= _MEDIUM_COVERAGE:
            return "yellow"
        return "red"


# Singleton instance for easy import
reporter = CLIReporter()
