"""Configuration parsing from command-line options, environment and ``.lcov-comment.yml``.

Precedence, highest first: explicit overrides (CLI options), environment
variables (GitHub Actions ``INPUT_*`` inputs, then plain names), the YAML file,
built-in defaults.
"""

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".lcov-comment.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_LEADING_FLOAT_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Environment variables consulted for each setting, in order.
_ENV_KEYS: dict[str, tuple[str, ...]] = {
    "lcov_file": ("INPUT_LCOV-FILE", "LCOV_FILE"),
    "github_token": ("INPUT_GITHUB-TOKEN", "GITHUB_" + "TOKEN"),
    "test_summary_file": ("INPUT_TEST-SUMMARY-FILE", "TEST_SUMMARY_FILE"),
    "all_files_minimum_coverage": ("INPUT_ALL-FILES-MINIMUM-COVERAGE",),
    "changed_files_minimum_coverage": ("INPUT_CHANGED-FILES-MINIMUM-COVERAGE",),
}


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Resolve environment variables in the string values of a flat mapping."""
    return {
        key: _resolve_env_vars(value) if isinstance(value, str) else value
        for key, value in data.items()
    }


def parse_threshold(value: Any) -> float:
    """Parse a minimum-coverage percentage leniently.

    A leading number is accepted (``"80%"`` gives 80.0). Missing, unparseable
    or non-finite values fall back to 0.0, which disables the check.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        match = _LEADING_FLOAT_RE.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


@dataclass
class ActionConfig:
    """Settings for one coverage run."""

    lcov_file: str = ""
    """Path to the LCOV tracefile (required)."""

    github_token: str = ""
    """Token passed to the GitHub API (required)."""

    test_summary_file: str = ""
    """Optional file whose trimmed text is shown under "Test performance"."""

    all_files_minimum_coverage: float = 0.0
    """Minimum whole-codebase line coverage percentage (0 or below = no minimum)."""

    changed_files_minimum_coverage: float = 0.0
    """Minimum changed-files line coverage percentage (0 or below = no minimum)."""

    base_dir: str = "."
    """Directory LCOV ``SF`` paths are made relative to (the repository root)."""

    base_ref: str = ""
    """Compare against this git ref locally instead of asking the GitHub API."""

    @property
    def lcov_path(self) -> Path:
        return Path(self.lcov_file)

    def read_test_summary(self) -> str | None:
        """Return the trimmed test summary, or None when unset or missing."""
        if not self.test_summary_file:
            return None
        path = Path(self.test_summary_file)
        if not path.is_file():
            logger.info("Test summary file %s not found; skipping", path)
            return None
        return path.read_text(encoding="utf-8").strip()


def _load_yaml(root_path: Path) -> dict[str, Any]:
    config_file = root_path / CONFIG_FILE_NAME
    if not config_file.is_file():
        return {}

    parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    if not isinstance(parsed, dict):
        return {}
    return _resolve_dict(parsed)


def _from_env(key: str) -> str | None:
    for env_key in _ENV_KEYS.get(key, ()):
        value = os.environ.get(env_key)
        if value:
            return value
    return None


def load_config(root: str | Path = ".", **overrides: Any) -> ActionConfig:
    """Load the run configuration.

    Args:
        root: Project root containing the optional ``.lcov-comment.yml``.
        **overrides: Values from the command line; ``None`` means "not given".

    Returns:
        The merged configuration. Call :func:`validate_config` before use.
    """
    root_path = Path(root).resolve()
    raw = _load_yaml(root_path)

    def _pick(key: str, default: Any = "") -> Any:
        value = overrides.get(key)
        if value is not None:
            return value
        value = _from_env(key)
        if value is not None:
            return value
        return raw.get(key, default)

    base_dir = str(_pick("base_dir", "") or root_path)

    return ActionConfig(
        lcov_file=str(_pick("lcov_file") or ""),
        github_token=str(_pick("github_token") or ""),
        test_summary_file=str(_pick("test_summary_file") or ""),
        all_files_minimum_coverage=parse_threshold(_pick("all_files_minimum_coverage", 0)),
        changed_files_minimum_coverage=parse_threshold(
            _pick("changed_files_minimum_coverage", 0)
        ),
        base_dir=base_dir,
        base_ref=str(_pick("base_ref") or ""),
    )


def validate_config(config: ActionConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.lcov_file:
        errors.append("lcov-file is required")
    elif not config.lcov_path.is_file():
        errors.append(f"LCOV file not found: {config.lcov_file}")

    if not config.github_token:
        errors.append("github-token is required")

    return errors


def require_valid_config(config: ActionConfig) -> ActionConfig:
    """Return *config* unchanged, or raise :class:`ConfigError` listing every problem."""
    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors))
    return config
