"""Data models for lcov-comment."""

from lcov_comment.models.coverage import CoverageAggregate, CoverageReport, FileCoverage

__all__ = [
    "CoverageAggregate",
    "CoverageReport",
    "FileCoverage",
]
