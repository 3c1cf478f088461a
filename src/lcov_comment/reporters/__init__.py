"""Reporters for outputting coverage results."""

from __future__ import annotations

from lcov_comment.reporters.github_comment import CoverageCommentReporter
from lcov_comment.reporters.markdown import COMMENT_MARKER, render_report
from lcov_comment.reporters.terminal import reporter

__all__ = [
    "COMMENT_MARKER",
    "CoverageCommentReporter",
    "render_report",
    "reporter",
]
