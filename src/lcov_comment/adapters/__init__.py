"""Coverage format adapters."""

from lcov_comment.adapters.lcov import LcovAdapter, LcovParseError, parse_lcov

__all__ = [
    "LcovAdapter",
    "LcovParseError",
    "parse_lcov",
]
