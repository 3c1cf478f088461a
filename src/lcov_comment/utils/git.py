"""Git and GitHub API utilities for lcov-comment.

Provides the two collaborators the coverage pipeline consumes: a source of
changed file paths for a pull request and a store for pull-request comments.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import requests

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"
_REQUEST_TIMEOUT = 30

# Only the first page of comments and compared files is ever consulted.
MAX_PER_PAGE = 100

PULL_REQUEST_EVENT = "pull_request"

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2


def _git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


@dataclass
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""

    base_sha: str | None = None
    """Commit SHA of the base branch the pull request targets."""

    head_sha: str | None = None
    """Commit SHA at the tip of the pull request branch."""


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class ChangedFileLister(Protocol):
    """Anything that can list the files changed by a pull request."""

    def list_changed_files(self, pr_info: GitHubPRInfo) -> set[str]: ...


class CommentStore(Protocol):
    """Anything that can list, create and update pull-request comments."""

    def list_comments(
        self, pr_info: GitHubPRInfo, per_page: int = MAX_PER_PAGE
    ) -> list[dict[str, Any]]: ...

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]: ...

    def update_comment(
        self, pr_info: GitHubPRInfo, comment_id: int, body: str
    ) -> dict[str, Any]: ...


class GitHubAPI:
    """Client for interacting with the GitHub API.

    Handles authentication, changed-file lookup and PR comment management.
    Implements both :class:`ChangedFileLister` and :class:`CommentStore`.
    """

    def __init__(self, token: str | None = None) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub access token. If not provided, will try to read
                from GITHUB_TOKEN environment variable.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass token to constructor."
            )

        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def list_changed_files(self, pr_info: GitHubPRInfo) -> set[str]:
        """Return the paths changed between the PR base and head commits.

        Args:
            pr_info: Pull request information with ``base_sha`` and ``head_sha``.

        Returns:
            Repository-relative paths from the first page of the comparison.

        Raises:
            GitHubAPIError: If the SHAs are missing or the API request fails.
        """
        if not pr_info.base_sha or not pr_info.head_sha:
            raise GitHubAPIError(
                f"Base and head SHAs are required to compare PR #{pr_info.pr_number}"
            )

        url = (
            f"{GITHUB_API_BASE}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"compare/{pr_info.base_sha}...{pr_info.head_sha}"
        )
        data: dict[str, Any] = self._get(url, params={"per_page": MAX_PER_PAGE})

        files = {entry["filename"] for entry in data.get("files", [])}
        logger.info("PR #%d changes %d files", pr_info.pr_number, len(files))
        return files

    def list_comments(
        self, pr_info: GitHubPRInfo, per_page: int = MAX_PER_PAGE
    ) -> list[dict[str, Any]]:
        """List the first page of comments on a pull request.

        Args:
            pr_info: Pull request information.
            per_page: Page size (GitHub caps it at 100).

        Returns:
            Comment dicts as returned by the API.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{GITHUB_API_BASE}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )

        comments: list[dict[str, Any]] = self._get(url, params={"per_page": per_page})
        return comments

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create a new comment on a pull request.

        Args:
            pr_info: Pull request information.
            body: Comment body (markdown formatted).

        Returns:
            GitHub API response as a dictionary.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{GITHUB_API_BASE}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )

        result: dict[str, Any] = self._post(url, {"body": body})
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Update an existing comment on a pull request.

        Args:
            pr_info: Pull request information.
            comment_id: ID of the comment to update.
            body: New comment body (markdown formatted).

        Returns:
            GitHub API response as a dictionary.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{GITHUB_API_BASE}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/comments/{comment_id}"
        )

        result: dict[str, Any] = self._patch(url, {"body": body})
        return result

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request to the GitHub API.

        Args:
            url: Full API URL.
            params: Optional query parameters.

        Returns:
            Parsed JSON response.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

    def _post(self, url: str, data: dict[str, Any]) -> Any:
        """Make a POST request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.post(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"POST request failed: {exc}") from exc

    def _patch(self, url: str, data: dict[str, Any]) -> Any:
        """Make a PATCH request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.patch(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"PATCH request failed: {exc}") from exc


def _load_event_payload() -> dict[str, Any]:
    """Read the webhook payload GitHub Actions writes to ``GITHUB_EVENT_PATH``."""
    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if not event_path or not Path(event_path).is_file():
        return {}

    try:
        parsed = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read event payload %s: %s", event_path, exc)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _pr_number_from_ref(github_ref: str | None) -> int | None:
    """Parse the PR number from ``refs/pull/<number>/merge``."""
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None
    try:
        return int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Get PR information from GitHub Actions environment variables.

    The PR number and commit SHAs come from the event payload; the PR number
    falls back to ``GITHUB_REF`` when the payload is unavailable.

    Returns:
        GitHubPRInfo if running for a ``pull_request`` event, None otherwise.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    github_event_name = os.environ.get("GITHUB_EVENT_NAME")

    if not github_repository or github_event_name != PULL_REQUEST_EVENT:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None

    owner, repo = parts

    pull_request = _load_event_payload().get("pull_request") or {}
    pr_number = pull_request.get("number")
    if not isinstance(pr_number, int):
        pr_number = _pr_number_from_ref(os.environ.get("GITHUB_REF"))
    if pr_number is None:
        return None

    return GitHubPRInfo(
        owner=owner,
        repo=repo,
        pr_number=pr_number,
        base_sha=(pull_request.get("base") or {}).get("sha"),
        head_sha=(pull_request.get("head") or {}).get("sha"),
    )


def compute_comment_marker(prefix: str) -> str:
    """Generate a unique marker for a GitHub comment.

    This creates an HTML comment marker that can be used to identify
    and update specific comments on a PR.

    Args:
        prefix: Prefix for the marker (e.g., "lcov-comment").

    Returns:
        HTML comment marker string.
    """
    hash_str = hashlib.sha256(prefix.encode()).hexdigest()[:8]
    return f"<!-- {prefix}:{hash_str} -->"


class GitOperationError(Exception):
    """Exception raised when git operations fail."""


_GIT_REF_MAX_LENGTH = 255
_GIT_REF_UNSAFE = re.compile(r"[\x00-\x1f\x7f \~\^:\?\*\[\]\\;|&$`()<>{}!#'\"]")


def _validate_git_ref(ref: str) -> None:
    """Validate a git ref to prevent injection and malformed inputs.

    Raises:
        GitOperationError: If the ref is invalid.
    """
    if not ref:
        raise GitOperationError("Git ref must not be empty")
    if len(ref) > _GIT_REF_MAX_LENGTH:
        raise GitOperationError(f"Git ref exceeds {_GIT_REF_MAX_LENGTH} characters")
    if _GIT_REF_UNSAFE.search(ref):
        raise GitOperationError(f"Git ref contains unsafe characters: {ref!r}")
    if ref.startswith("-"):
        raise GitOperationError("Git ref must not start with a dash")
    if ".." in ref:
        raise GitOperationError("Git ref must not contain '..'")


def get_changed_files_from_git(repo_path: Path | str, base_ref: str) -> set[str]:
    """List files changed on HEAD since it diverged from *base_ref*.

    Args:
        repo_path: Path to git repository.
        base_ref: Branch, tag or SHA to compare against (e.g. ``origin/main``).

    Returns:
        Repository-relative paths.

    Raises:
        GitOperationError: If the ref is unsafe or git fails.
    """
    _validate_git_ref(base_ref)
    try:
        result = subprocess.run(
            [_git_executable(), "diff", "--name-only", f"{base_ref}...HEAD"],
            cwd=Path(repo_path),
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        msg = f"Failed to list files changed since {base_ref}: {exc.stderr or exc}"
        raise GitOperationError(msg) from exc

    return {line.strip() for line in result.stdout.splitlines() if line.strip()}
