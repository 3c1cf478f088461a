"""CI context detection utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass

from lcov_comment.utils.git import PULL_REQUEST_EVENT


@dataclass
class CIContext:
    """Detected CI execution context."""

    is_github_actions: bool
    """Running inside a GitHub Actions job."""

    event_name: str | None
    """Name of the triggering event (``pull_request``, ``push``, ...)."""

    @property
    def is_pr(self) -> bool:
        """Return True when the run was triggered for a pull request."""
        return self.event_name == PULL_REQUEST_EVENT


def detect_ci_context() -> CIContext:
    """Detect CI context from environment variables.

    Returns:
        CIContext with detected values.
    """
    if os.getenv("GITHUB_ACTIONS") == "true":
        return CIContext(
            is_github_actions=True,
            event_name=os.getenv("GITHUB_EVENT_NAME") or None,
        )

    return CIContext(is_github_actions=False, event_name=None)


def format_workflow_error(message: str) -> str:
    """Format *message* as a GitHub Actions ``::error::`` workflow command."""
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    return f"::error::{escaped}"
