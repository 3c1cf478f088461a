"""Transport-level HTTP tests for GitHubAPI.

These tests use the ``responses`` library to intercept ``requests`` calls at the
transport layer, verifying that the correct URLs, headers, query parameters and
request bodies are sent to the GitHub REST API.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests as _requests
import responses
from responses import matchers

from lcov_comment.reporters.github_comment import CoverageCommentReporter
from lcov_comment.reporters.markdown import COMMENT_MARKER
from lcov_comment.utils.git import GitHubAPI, GitHubAPIError, GitHubPRInfo

_BASE = "https://api.github.com"

_EXPECTED_HEADERS = {
    "Authorization": "Bearer test-value",
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

_COMMENTS_URL = f"{_BASE}/repos/octocat/hello-world/issues/42/comments"


def _req_body(call: responses.Call) -> dict[str, Any]:
    """Parse the JSON request body from a responses.Call."""
    body = call.request.body
    assert body is not None
    parsed: dict[str, Any] = json.loads(body)
    return parsed


# ── Fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def api(monkeypatch: pytest.MonkeyPatch) -> GitHubAPI:
    """Create a GitHubAPI instance backed by a test token."""
    monkeypatch.setenv("GITHUB_TOKEN", "test-value")
    return GitHubAPI()


@pytest.fixture()
def pr_info() -> GitHubPRInfo:
    """Standard PR info using GitHub's canonical example owner/repo."""
    return GitHubPRInfo(
        owner="octocat", repo="hello-world", pr_number=42, base_sha="abc123", head_sha="def456"
    )


_COMMENT_RESPONSE: dict[str, Any] = {
    "id": 1,
    "html_url": "https://github.com/octocat/hello-world/pull/42#issuecomment-1",
    "body": "Test comment",
    "user": {"login": "github-actions[bot]", "id": 41898282},
}


class TestListChangedFiles:
    """GET /repos/{owner}/{repo}/compare/{base}...{head}."""

    @responses.activate
    def test_url_query_and_headers(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(
            responses.GET,
            f"{_BASE}/repos/octocat/hello-world/compare/abc123...def456",
            json={"files": [{"filename": "lib/a.ex", "status": "modified"}]},
            status=200,
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.query_param_matcher({"per_page": "100"}),
            ],
        )

        assert api.list_changed_files(pr_info) == {"lib/a.ex"}
        assert len(responses.calls) == 1


class TestListComments:
    """GET /repos/{owner}/{repo}/issues/{pr_number}/comments."""

    @responses.activate
    def test_first_page_only(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        comments = [{"id": 1, "body": "a"}, {"id": 2, "body": None}]
        responses.add(
            responses.GET,
            _COMMENTS_URL,
            json=comments,
            status=200,
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.query_param_matcher({"per_page": "100"}),
            ],
        )

        assert api.list_comments(pr_info) == comments
        assert len(responses.calls) == 1


class TestCreateComment:
    """POST /repos/{owner}/{repo}/issues/{pr_number}/comments."""

    @responses.activate
    def test_url_headers_and_body(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(
            responses.POST,
            _COMMENTS_URL,
            json=_COMMENT_RESPONSE,
            status=201,
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.json_params_matcher({"body": "Test comment"}),
            ],
        )

        result = api.create_comment(pr_info, "Test comment")

        assert result == _COMMENT_RESPONSE

    @responses.activate
    def test_markdown_and_unicode_body(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        body = "## ✅ LCOV report\n\n| File | Coverage |\n| --- | --- |\n| `résumé.ex` | - |"
        responses.add(
            responses.POST,
            _COMMENTS_URL,
            json={**_COMMENT_RESPONSE, "body": body},
            status=201,
            match=[matchers.json_params_matcher({"body": body})],
        )

        assert api.create_comment(pr_info, body)["body"] == body


class TestUpdateComment:
    """PATCH /repos/{owner}/{repo}/issues/comments/{comment_id}."""

    @responses.activate
    def test_url_and_method(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        url = f"{_BASE}/repos/octocat/hello-world/issues/comments/999"
        responses.add(
            responses.PATCH,
            url,
            json={**_COMMENT_RESPONSE, "id": 999, "body": "Updated"},
            status=200,
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.json_params_matcher({"body": "Updated"}),
            ],
        )

        result = api.update_comment(pr_info, 999, "Updated")

        assert result["id"] == 999
        assert responses.calls[0].request.method == "PATCH"


class TestReconcileOverHTTP:
    """CoverageCommentReporter driving the real client against a fake GitHub."""

    @responses.activate
    def test_creates_when_no_marked_comment(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        body = f"{COMMENT_MARKER}\n## LCOV report"
        responses.add(responses.GET, _COMMENTS_URL, json=[{"id": 5, "body": "nice"}])
        responses.add(responses.POST, _COMMENTS_URL, json={**_COMMENT_RESPONSE, "body": body})

        CoverageCommentReporter(api).reconcile(pr_info, body)

        assert [call.request.method for call in responses.calls] == ["GET", "POST"]
        assert _req_body(responses.calls[1]) == {"body": body}

    @responses.activate
    def test_updates_marked_comment(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        body = f"{COMMENT_MARKER}\n## LCOV report"
        responses.add(
            responses.GET,
            _COMMENTS_URL,
            json=[{"id": 5, "body": "nice"}, {"id": 6, "body": f"{COMMENT_MARKER}\nold"}],
        )
        responses.add(
            responses.PATCH,
            f"{_BASE}/repos/octocat/hello-world/issues/comments/6",
            json={**_COMMENT_RESPONSE, "id": 6, "body": body},
        )

        result = CoverageCommentReporter(api).reconcile(pr_info, body)

        assert result["id"] == 6
        assert [call.request.method for call in responses.calls] == ["GET", "PATCH"]


class TestHTTPErrors:
    """Error handling for 4xx, 5xx, and network failures."""

    @responses.activate
    def test_get_404(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(responses.GET, _COMMENTS_URL, json={"message": "Not Found"}, status=404)

        with pytest.raises(GitHubAPIError, match="GET request failed.*404"):
            api.list_comments(pr_info)

    @responses.activate
    def test_patch_403_forbidden(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(
            responses.PATCH,
            f"{_BASE}/repos/octocat/hello-world/issues/comments/1",
            json={"message": "Resource not accessible by integration"},
            status=403,
        )

        with pytest.raises(GitHubAPIError, match="PATCH request failed.*403"):
            api.update_comment(pr_info, 1, "Updated")

    @responses.activate
    def test_post_500_server_error(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(responses.POST, _COMMENTS_URL, json={"message": "boom"}, status=500)

        with pytest.raises(GitHubAPIError, match="POST request failed.*500"):
            api.create_comment(pr_info, "test")

    @responses.activate
    def test_connection_error(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(
            responses.GET,
            f"{_BASE}/repos/octocat/hello-world/compare/abc123...def456",
            body=_requests.exceptions.ConnectionError("DNS resolution failed"),
        )

        with pytest.raises(GitHubAPIError, match="GET request failed"):
            api.list_changed_files(pr_info)

    @responses.activate
    def test_timeout_error(self, api: GitHubAPI, pr_info: GitHubPRInfo) -> None:
        responses.add(
            responses.POST,
            _COMMENTS_URL,
            body=_requests.exceptions.Timeout("Read timed out"),
        )

        with pytest.raises(GitHubAPIError, match="POST request failed"):
            api.create_comment(pr_info, "test")
