"""Coverage report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


def calculate_percentage(hit: int, found: int) -> float:
    """Return ``hit / found`` as a percentage, or 0.0 when nothing was found."""
    return (hit / found) * 100 if found > 0 else 0.0


@dataclass(frozen=True)
class FileCoverage:
    """Line coverage for a single source file."""

    file: str
    """Path relative to the base directory the report was parsed against."""

    lines_found: int = 0
    """Number of instrumented lines (``LF``)."""

    lines_hit: int = 0
    """Number of instrumented lines executed at least once (``LH``)."""

    @property
    def percentage(self) -> float:
        """Line coverage percentage; 0.0 when the file has no instrumented lines."""
        return calculate_percentage(self.lines_hit, self.lines_found)


@dataclass(frozen=True)
class CoverageReport:
    """Parsed LCOV report, one entry per record in source order.

    Records sharing a path are not merged.
    """

    files: tuple[FileCoverage, ...] = ()

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[FileCoverage]:
        return iter(self.files)


@dataclass(frozen=True)
class CoverageAggregate:
    """Line totals over a set of files."""

    lines_found: int = 0
    """Sum of ``lines_found`` over ``files``."""

    lines_hit: int = 0
    """Sum of ``lines_hit`` over ``files``."""

    percentage: float = 0.0
    """``lines_hit / lines_found * 100``, or 0.0 when ``lines_found`` is 0."""

    files: tuple[FileCoverage, ...] = field(default_factory=tuple)
    """Entries that contributed to the totals, in report order."""

    @property
    def is_empty(self) -> bool:
        """Return True when no instrumented lines were found."""
        return self.lines_found == 0
