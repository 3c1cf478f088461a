"""LCOV tracefile adapter.

Parses the line-coverage subset of the lcov ``.info`` format (``SF``, ``LF``,
``LH``, ``end_of_record``) into a :class:`CoverageReport`. Function and branch
records are skipped.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lcov_comment.models.coverage import CoverageReport, FileCoverage

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


# ── Constants ────────────────────────────────────────────────────

_LCOV_SF = "SF:"
_LCOV_LF = "LF:"
_LCOV_LH = "LH:"
_LCOV_END = "end_of_record"


class LcovParseError(ValueError):
    """Raised when an ``LF``/``LH`` line does not carry a valid integer."""

    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(f"Invalid LCOV count on line {line_number}: {line!r}")
        self.line_number = line_number
        self.line = line


@dataclass
class _LcovRecordState:
    path: str
    found: int = 0
    hit: int = 0

    def to_file_coverage(self) -> FileCoverage:
        return FileCoverage(file=self.path, lines_found=self.found, lines_hit=self.hit)


def normalize_path(path: str, base_dir: str | Path) -> str:
    """Resolve *path* against *base_dir* and express it relative to *base_dir*."""
    base = os.path.abspath(base_dir)
    absolute = os.path.abspath(os.path.join(base, path))
    relative = os.path.relpath(absolute, base)
    return "" if relative == os.curdir else relative


def _parse_count(value: str, line_number: int, line: str) -> int:
    try:
        return int(value, 10)
    except ValueError as exc:
        raise LcovParseError(line_number, line) from exc


def parse_lcov(content: str, base_dir: str | Path) -> CoverageReport:
    """Parse LCOV text into a :class:`CoverageReport`.

    Args:
        content: Raw tracefile text.
        base_dir: Directory that ``SF`` paths are resolved against and made
            relative to.

    Returns:
        Report with one entry per closed record, in source order.

    Raises:
        LcovParseError: If an ``LF`` or ``LH`` value is not an integer.
    """
    files: list[FileCoverage] = []
    state: _LcovRecordState | None = None

    for line_number, line in enumerate(content.splitlines(), start=1):
        if line.startswith(_LCOV_SF):
            # A new SF drops any record that was never closed.
            state = _LcovRecordState(normalize_path(line[len(_LCOV_SF) :], base_dir))
        elif state is None:
            continue
        elif line.startswith(_LCOV_LF):
            state.found = _parse_count(line[len(_LCOV_LF) :], line_number, line)
        elif line.startswith(_LCOV_LH):
            state.hit = _parse_count(line[len(_LCOV_LH) :], line_number, line)
        elif line == _LCOV_END:
            files.append(state.to_file_coverage())
            state = None

    return CoverageReport(files=tuple(files))


# ── Adapter ──────────────────────────────────────────────────────


class LcovAdapter:
    """Reads lcov tracefiles from disk."""

    def parse_coverage_file(self, coverage_file: Path, base_dir: str | Path) -> CoverageReport:
        """Parse a tracefile into a :class:`CoverageReport`.

        Raises:
            FileNotFoundError: If *coverage_file* does not exist.
            LcovParseError: If a count is malformed.
        """
        report = parse_lcov(coverage_file.read_text(encoding="utf-8"), base_dir)
        logger.info("Parsed %d LCOV records from %s", len(report), coverage_file)
        return report
