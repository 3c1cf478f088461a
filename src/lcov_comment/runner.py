"""Coverage run pipeline: parse, aggregate, check, render, publish."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lcov_comment.adapters.lcov import LcovAdapter
from lcov_comment.analyzers.coverage import (
    ThresholdResult,
    aggregate_coverage,
    evaluate_thresholds,
)
from lcov_comment.config import require_valid_config
from lcov_comment.reporters.github_comment import CoverageCommentReporter
from lcov_comment.reporters.markdown import render_report
from lcov_comment.utils.git import (
    GitHubAPI,
    get_changed_files_from_git,
    get_pr_info_from_env,
)

if TYPE_CHECKING:
    from lcov_comment.config import ActionConfig
    from lcov_comment.models.coverage import CoverageAggregate
    from lcov_comment.utils.git import ChangedFileLister, CommentStore, GitHubPRInfo

logger = logging.getLogger(__name__)

THRESHOLD_FAILURE_MESSAGE = "Coverage is below the minimum threshold"


@dataclass
class ReportOutcome:
    """Everything a coverage run produced."""

    all_coverage: CoverageAggregate
    """Aggregate over every file in the report."""

    changed_coverage: CoverageAggregate
    """Aggregate over the changed files present in the report."""

    thresholds: ThresholdResult
    """Pass/fail for each half of the threshold check."""

    changed_files: frozenset[str]
    """Paths changed by the pull request (empty outside a PR)."""

    body: str
    """Rendered Markdown comment."""

    pr_info: GitHubPRInfo | None = None
    """Pull request the run belongs to, if any."""

    comment: dict[str, Any] | None = None
    """API response for the posted comment, when one was posted."""

    @property
    def passed(self) -> bool:
        return self.thresholds.passed

    @property
    def has_changed_files(self) -> bool:
        return bool(self.changed_files)


class CoverageRunner:
    """Runs the coverage pipeline once for a validated configuration.

    Every step is attempted once; any exception aborts the run.
    """

    def __init__(
        self,
        config: ActionConfig,
        *,
        api: GitHubAPI | None = None,
        lister: ChangedFileLister | None = None,
        store: CommentStore | None = None,
        pr_info: GitHubPRInfo | None = None,
        detect_pr: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Run configuration; validated here.
            api: GitHub client. Created from ``config.github_token`` on first use.
            lister: Source of changed files for the PR. Defaults to ``api``.
            store: Comment backend for the PR. Defaults to ``api``.
            pr_info: Pull request to report on. Read from the Actions
                environment when omitted and ``detect_pr`` is True.
            detect_pr: Whether to look up the pull request from the environment.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self._config = require_valid_config(config)
        self._api = api
        self._lister = lister
        self._store = store
        if pr_info is None and detect_pr:
            pr_info = get_pr_info_from_env()
        self._pr_info = pr_info
        self._adapter = LcovAdapter()

    @property
    def api(self) -> GitHubAPI:
        if self._api is None:
            self._api = GitHubAPI(token=self._config.github_token)
        return self._api

    @property
    def pr_info(self) -> GitHubPRInfo | None:
        return self._pr_info

    def list_changed_files(self) -> frozenset[str]:
        """Return the files changed by the pull request, or an empty set.

        A configured ``base_ref`` takes precedence and is diffed locally.

        Raises:
            GitHubAPIError: If the comparison request fails.
            GitOperationError: If ``git diff`` fails for a local base ref.
        """
        if self._config.base_ref:
            return frozenset(
                get_changed_files_from_git(self._config.base_dir, self._config.base_ref)
            )
        if self._pr_info is None:
            logger.info("Not running for a pull request; no changed files")
            return frozenset()
        lister = self._lister or self.api
        return frozenset(lister.list_changed_files(self._pr_info))

    def run(self, *, publish: bool = True) -> ReportOutcome:
        """Run the pipeline.

        Args:
            publish: Post or update the PR comment when running for a pull
                request. False renders only.

        Returns:
            The outcome, including whether the thresholds passed.

        Raises:
            LcovParseError: If the tracefile has malformed counts.
            GitHubAPIError: If a GitHub request fails.
            GitOperationError: If ``git diff`` fails.
        """
        config = self._config
        report = self._adapter.parse_coverage_file(Path(config.lcov_file), config.base_dir)
        changed_files = self.list_changed_files()
        test_summary = config.read_test_summary()

        all_coverage = aggregate_coverage(report)
        changed_coverage = aggregate_coverage(report, changed_files)
        has_changed_files = bool(changed_files)

        thresholds = evaluate_thresholds(
            all_coverage,
            changed_coverage,
            config.all_files_minimum_coverage,
            config.changed_files_minimum_coverage,
            has_changed_files=has_changed_files,
        )
        if not thresholds.passed:
            logger.warning(THRESHOLD_FAILURE_MESSAGE)

        body = render_report(
            all_coverage,
            changed_coverage,
            config.all_files_minimum_coverage,
            config.changed_files_minimum_coverage,
            thresholds.passed,
            has_changed_files,
            test_summary,
        )

        outcome = ReportOutcome(
            all_coverage=all_coverage,
            changed_coverage=changed_coverage,
            thresholds=thresholds,
            changed_files=changed_files,
            body=body,
            pr_info=self._pr_info,
        )

        if publish and self._pr_info is not None:
            store = self._store or self.api
            outcome.comment = CoverageCommentReporter(store).reconcile(self._pr_info, body)
        elif publish:
            logger.info("Not a pull_request event; skipping PR comment")

        return outcome
