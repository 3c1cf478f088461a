"""lcov-comment: LCOV coverage summaries for pull requests."""

__version__ = "0.3.0"
