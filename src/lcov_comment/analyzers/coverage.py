"""Coverage aggregation and threshold evaluation.

Reduces a parsed report (optionally scoped to the files changed in a pull
request) to line totals, and decides whether those totals meet the configured
minimums.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lcov_comment.models.coverage import CoverageAggregate, calculate_percentage

if TYPE_CHECKING:
    from lcov_comment.models.coverage import CoverageReport

logger = logging.getLogger(__name__)

__all__ = [
    "ThresholdResult",
    "aggregate_coverage",
    "calculate_percentage",
    "evaluate_thresholds",
]


@dataclass(frozen=True)
class ThresholdResult:
    """Outcome of checking both aggregates against their minimums."""

    all_passed: bool
    """Whole-codebase coverage met ``all_files_minimum``."""

    changed_passed: bool
    """Changed-file coverage met ``changed_files_minimum`` (or nothing changed)."""

    @property
    def passed(self) -> bool:
        """Return True when both halves of the check passed."""
        return self.all_passed and self.changed_passed


def aggregate_coverage(
    report: CoverageReport, changed_files: Collection[str] | None = None
) -> CoverageAggregate:
    """Sum line counts over *report*, optionally restricted to *changed_files*.

    An empty or missing filter keeps every entry. When nothing is retained the
    result is an all-zero aggregate with no files.
    """
    if changed_files:
        retained = tuple(entry for entry in report.files if entry.file in changed_files)
    else:
        retained = report.files

    if not retained:
        return CoverageAggregate()

    found = sum(entry.lines_found for entry in retained)
    hit = sum(entry.lines_hit for entry in retained)
    return CoverageAggregate(
        lines_found=found,
        lines_hit=hit,
        percentage=calculate_percentage(hit, found),
        files=retained,
    )


def evaluate_thresholds(
    all_coverage: CoverageAggregate,
    changed_coverage: CoverageAggregate,
    all_files_minimum: float,
    changed_files_minimum: float,
    *,
    has_changed_files: bool,
) -> ThresholdResult:
    """Compare both aggregates with their minimum percentages.

    Without changed files the changed half passes automatically.
    """
    all_passed = all_coverage.percentage >= all_files_minimum
    changed_passed = not has_changed_files or changed_coverage.percentage >= changed_files_minimum

    if not all_passed:
        logger.info(
            "All-files coverage %.1f%% is below the minimum of %s%%",
            all_coverage.percentage,
            all_files_minimum,
        )
    if not changed_passed:
        logger.info(
            "Changed-files coverage %.1f%% is below the minimum of %s%%",
            changed_coverage.percentage,
            changed_files_minimum,
        )

    return ThresholdResult(all_passed=all_passed, changed_passed=changed_passed)
