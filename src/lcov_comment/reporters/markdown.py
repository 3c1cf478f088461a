"""Markdown rendering of coverage summaries for pull-request comments.

The rendered document always starts with :data:`COMMENT_MARKER` on its own
line so a later run can find and replace the comment it posted before.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from lcov_comment.utils.git import compute_comment_marker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lcov_comment.models.coverage import CoverageAggregate, FileCoverage

COMMENT_MARKER = compute_comment_marker("lcov-comment")

PASS_GLYPH = "✅"
FAIL_GLYPH = "❌"

NO_COVERAGE_DATA = "No coverage data available"
NO_FILES_CHANGED = "> No files changed"
CHANGED_FILES_NOT_COVERED = "Changed files not in coverage"

_ONE_DECIMAL = Decimal("0.1")


def format_percentage(value: float) -> str:
    """Format *value* with one decimal place, rounding halves away from zero."""
    return str(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def format_threshold(value: float) -> str:
    """Format a threshold without a redundant ``.0`` (``80`` rather than ``80.0``)."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def _glyph(passed: bool) -> str:
    return PASS_GLYPH if passed else FAIL_GLYPH


def _format_coverage_line(coverage: CoverageAggregate, minimum: float) -> str:
    summary = f"**{format_percentage(coverage.percentage)}%** of {coverage.lines_found:,} lines"
    if minimum > 0:
        passed = coverage.percentage >= minimum
        return f"{_glyph(passed)} {summary} (threshold: {format_threshold(minimum)}%)"
    return summary


def sort_changed_files(files: Iterable[FileCoverage]) -> list[FileCoverage]:
    """Order files for the changed-files table.

    Files without instrumented lines go last in their original order. The rest
    are sorted by ascending coverage, larger files first at equal coverage.
    """
    entries = list(files)
    measured = [entry for entry in entries if entry.lines_found > 0]
    unmeasured = [entry for entry in entries if entry.lines_found == 0]
    measured.sort(key=lambda entry: (entry.percentage, -entry.lines_found))
    return measured + unmeasured


def _format_file_table(files: list[FileCoverage]) -> str:
    if not files:
        return ""

    lines = ["| File | Coverage |", "| --- | --- |"]
    for entry in files:
        name = entry.file.removeprefix("/")
        if entry.lines_found == 0:
            lines.append(f"| `{name}` | - |")
        else:
            pct = format_percentage(entry.percentage)
            lines.append(f"| `{name}` | {pct}% of {entry.lines_found} lines |")
    return "\n".join(lines)


def _format_all_files_section(coverage: CoverageAggregate, minimum: float) -> str:
    if coverage.lines_found == 0:
        return f"### All files\n\n{NO_COVERAGE_DATA}"
    return f"### All files\n\n{_format_coverage_line(coverage, minimum)}"


def _format_changed_files_section(
    coverage: CoverageAggregate, minimum: float, *, has_changed_files: bool
) -> str:
    if not has_changed_files:
        return f"### Changed files\n\n{NO_FILES_CHANGED}"
    if coverage.lines_found == 0:
        return f"### Changed files\n\n{CHANGED_FILES_NOT_COVERED}"

    table = _format_file_table(sort_changed_files(coverage.files))
    return f"### Changed files\n\n{_format_coverage_line(coverage, minimum)}\n\n{table}"


def _format_performance_section(test_summary: str, marker: str) -> str:
    # The marker must stay unique to the first line of the document.
    summary = test_summary.replace(marker, "")
    return f"\n\n### Test performance\n\n```\n{summary}\n```"


def render_report(
    all_coverage: CoverageAggregate,
    changed_coverage: CoverageAggregate,
    all_files_minimum: float,
    changed_files_minimum: float,
    passed: bool,
    has_changed_files: bool,
    test_summary: str | None = None,
    *,
    marker: str = COMMENT_MARKER,
) -> str:
    """Render the coverage comment body.

    Args:
        all_coverage: Aggregate over every file in the report.
        changed_coverage: Aggregate over the files changed in the pull request.
        all_files_minimum: Minimum whole-codebase percentage (0 disables it).
        changed_files_minimum: Minimum changed-files percentage (0 disables it).
        passed: Overall threshold outcome, shown in the header.
        has_changed_files: Whether the pull request changed any files.
        test_summary: Optional free text shown verbatim in a code block.
        marker: Identifier placed on the first line.

    Returns:
        The Markdown document. Identical inputs give identical output.
    """
    has_thresholds = all_files_minimum > 0 or changed_files_minimum > 0
    header = f"## {_glyph(passed)} LCOV report" if has_thresholds else "## LCOV report"

    sections: list[str] = []
    sections.append(marker)
    sections.append(header)
    sections.append("")
    sections.append(_format_all_files_section(all_coverage, all_files_minimum))
    sections.append("")
    sections.append(
        _format_changed_files_section(
            changed_coverage, changed_files_minimum, has_changed_files=has_changed_files
        )
    )

    body = "\n".join(sections)
    if test_summary:
        body += _format_performance_section(test_summary, marker)
    return body
