"""lcov-comment CLI: top-level command group."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.logging import RichHandler

from lcov_comment import __version__
from lcov_comment.adapters.lcov import LcovAdapter, LcovParseError
from lcov_comment.analyzers.coverage import aggregate_coverage, evaluate_thresholds
from lcov_comment.config import load_config, parse_threshold
from lcov_comment.reporters.terminal import reporter
from lcov_comment.runner import THRESHOLD_FAILURE_MESSAGE, CoverageRunner
from lcov_comment.utils.ci_context import detect_ci_context, format_workflow_error

logger = logging.getLogger(__name__)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=reporter.console, show_path=False)],
        force=True,
    )


def _fail(message: str) -> None:
    """Report *message* as a failure and annotate the Actions step when in CI."""
    reporter.print_error(message)
    if detect_ci_context().is_github_actions:
        click.echo(format_workflow_error(message))


def _warn_comment_skipped() -> None:
    ci = detect_ci_context()
    if not ci.is_github_actions:
        reporter.print_warning("No PR comment posted outside GitHub Actions")
    elif not ci.is_pr:
        reporter.print_warning(f"No PR comment posted for '{ci.event_name}' event")
    else:
        reporter.print_warning("Pull request number not found; no PR comment posted")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="lcov-comment")
def cli(*, verbose: bool) -> None:
    """lcov-comment: LCOV coverage summaries for pull requests."""
    _configure_logging(verbose=verbose)


@cli.command()
@click.option("--lcov-file", default=None, help="Path to the LCOV tracefile.")
@click.option("--github-token", default=None, help="GitHub token (defaults to $GITHUB_TOKEN).")
@click.option(
    "--test-summary-file",
    default=None,
    help="Text file shown verbatim under 'Test performance'.",
)
@click.option(
    "--all-files-minimum-coverage",
    default=None,
    help="Minimum line coverage for the whole codebase, in percent.",
)
@click.option(
    "--changed-files-minimum-coverage",
    default=None,
    help="Minimum line coverage for files changed in the pull request, in percent.",
)
@click.option(
    "--base-dir",
    default=None,
    help="Directory LCOV paths are made relative to (defaults to --path).",
)
@click.option(
    "--base-ref",
    default=None,
    help="Diff against this git ref locally instead of asking the GitHub API.",
)
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where .lcov-comment.yml lives).",
)
@click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Also write the rendered Markdown to this file.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Render and print the comment without posting it.",
)
def report(
    lcov_file: str | None,
    github_token: str | None,
    test_summary_file: str | None,
    all_files_minimum_coverage: str | None,
    changed_files_minimum_coverage: str | None,
    base_dir: str | None,
    base_ref: str | None,
    path: str,
    output_file: str | None,
    *,
    dry_run: bool,
) -> None:
    """Check coverage thresholds and publish the PR coverage comment.

    The comment is only posted for pull_request events; the exit code reflects
    the threshold check either way.

    Examples:
        lcov-comment report --lcov-file coverage/lcov.info
        lcov-comment report --lcov-file lcov.info --all-files-minimum-coverage 80
    """
    try:
        config = load_config(
            path,
            lcov_file=lcov_file,
            github_token=github_token,
            test_summary_file=test_summary_file,
            all_files_minimum_coverage=all_files_minimum_coverage,
            changed_files_minimum_coverage=changed_files_minimum_coverage,
            base_dir=base_dir,
            base_ref=base_ref,
        )
        outcome = CoverageRunner(config).run(publish=not dry_run)
    except Exception as exc:
        logger.exception("Coverage run failed")
        _fail(f"Action failed: {exc}")
        raise SystemExit(1) from exc

    reporter.print_coverage_summary(
        outcome.all_coverage,
        outcome.changed_coverage,
        config.all_files_minimum_coverage,
        config.changed_files_minimum_coverage,
        outcome.thresholds,
        has_changed_files=outcome.has_changed_files,
    )

    if output_file:
        Path(output_file).write_text(outcome.body + "\n", encoding="utf-8")
        reporter.print_info(f"Wrote report to {output_file}")

    if dry_run:
        click.echo(outcome.body)
    elif outcome.comment:
        reporter.print_success(f"Posted coverage comment: {outcome.comment.get('html_url', '')}")
    else:
        _warn_comment_skipped()

    if not outcome.passed:
        _fail(THRESHOLD_FAILURE_MESSAGE)
        raise SystemExit(1)


@cli.command()
@click.argument("lcov_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--changed-file",
    "changed_files",
    multiple=True,
    help="Treat this path as changed (repeatable).",
)
@click.option("--all-files-minimum-coverage", default="0", help="Minimum overall coverage.")
@click.option("--changed-files-minimum-coverage", default="0", help="Minimum changed coverage.")
@click.option(
    "--base-dir",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Directory LCOV paths are made relative to.",
)
def summary(
    lcov_file: str,
    changed_files: tuple[str, ...],
    all_files_minimum_coverage: str,
    changed_files_minimum_coverage: str,
    base_dir: str,
) -> None:
    """Print a coverage summary for an LCOV file without touching GitHub.

    Examples:
        lcov-comment summary lcov.info --changed-file src/app.py
    """
    try:
        coverage_report = LcovAdapter().parse_coverage_file(Path(lcov_file), base_dir)
    except LcovParseError as exc:
        reporter.print_error(str(exc))
        raise SystemExit(1) from exc

    all_minimum = parse_threshold(all_files_minimum_coverage)
    changed_minimum = parse_threshold(changed_files_minimum_coverage)

    changed = set(changed_files)
    all_coverage = aggregate_coverage(coverage_report)
    changed_coverage = aggregate_coverage(coverage_report, changed)
    result = evaluate_thresholds(
        all_coverage,
        changed_coverage,
        all_minimum,
        changed_minimum,
        has_changed_files=bool(changed),
    )

    reporter.print_coverage_summary(
        all_coverage,
        changed_coverage,
        all_minimum,
        changed_minimum,
        result,
        has_changed_files=bool(changed),
    )

    if not result.passed:
        reporter.print_error(THRESHOLD_FAILURE_MESSAGE)
        raise SystemExit(1)
