"""GitHub comment reporter for posting coverage summaries to PRs.

Keeps exactly one coverage comment per pull request: the first comment whose
body carries the marker is edited in place, otherwise a new one is created.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from lcov_comment.reporters.markdown import COMMENT_MARKER
from lcov_comment.utils.git import MAX_PER_PAGE

if TYPE_CHECKING:
    from lcov_comment.utils.git import CommentStore, GitHubPRInfo

logger = logging.getLogger(__name__)


class CoverageCommentReporter:
    """Reporter that publishes the rendered coverage summary as a PR comment."""

    def __init__(self, store: CommentStore, marker: str = COMMENT_MARKER) -> None:
        """Initialize the reporter.

        Args:
            store: Comment backend, usually a :class:`~lcov_comment.utils.git.GitHubAPI`.
            marker: String identifying comments posted by this tool.
        """
        self._store = store
        self._marker = marker

    @property
    def marker(self) -> str:
        return self._marker

    def find_existing_comment(self, pr_info: GitHubPRInfo) -> dict[str, Any] | None:
        """Return the first comment on the PR carrying the marker, if any.

        Only the first page of comments is searched.

        Raises:
            GitHubAPIError: If listing comments fails.
        """
        comments = self._store.list_comments(pr_info, per_page=MAX_PER_PAGE)
        for comment in comments:
            if self._marker in (comment.get("body") or ""):
                return comment
        return None

    def reconcile(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create or update the coverage comment on a PR.

        Args:
            pr_info: Pull request information.
            body: Rendered comment body. Should start with the marker.

        Returns:
            GitHub API response for the created or updated comment.

        Raises:
            GitHubAPIError: If any API request fails.
        """
        if self._marker not in body:
            logger.warning("Marker '%s' not found in comment body. Adding it.", self._marker)
            body = f"{self._marker}\n{body}"

        existing = self.find_existing_comment(pr_info)

        if existing:
            logger.info("Updating existing comment %d on PR #%d", existing["id"], pr_info.pr_number)
            return self._store.update_comment(pr_info, existing["id"], body)

        logger.info("Creating new comment on PR #%d", pr_info.pr_number)
        return self._store.create_comment(pr_info, body)
