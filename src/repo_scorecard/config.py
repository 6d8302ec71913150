"""Runtime settings resolved from the process environment."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass

from repo_scorecard.models import DependencyPolicy

logger = logging.getLogger(__name__)

DEFAULT_DEPS_DEV_BASE_URL = "https://api.deps.dev"
DEFAULT_MAX_PROBE_WORKERS = 4
DEFAULT_MAX_DEPENDENCY_WORKERS = 5
DEFAULT_DEPENDENCY_TIMEOUT = 120.0

_GITHUB_TOKEN_ENVS = ("GITHUB_AUTH_TOKEN", "GITHUB_TOKEN")


@dataclass(frozen=True, slots=True)
class Settings:
    """Configuration threaded explicitly through clients and the orchestrator."""

    github_token: str | None = None
    gitlab_token: str | None = None
    deps_dev_base_url: str = DEFAULT_DEPS_DEV_BASE_URL
    max_probe_workers: int = DEFAULT_MAX_PROBE_WORKERS
    max_dependency_workers: int = DEFAULT_MAX_DEPENDENCY_WORKERS
    dependency_timeout: float = DEFAULT_DEPENDENCY_TIMEOUT
    dependency_policy: DependencyPolicy = DependencyPolicy.AUXILIARY

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        *,
        use_gh_cli: bool = True,
    ) -> Settings:
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (tests).
            use_gh_cli: Fall back to ``gh auth token`` when no GitHub token
                is set in the environment.
        """
        source = env if env is not None else os.environ

        github_token = None
        for name in _GITHUB_TOKEN_ENVS:
            value = source.get(name, "").strip()
            if value:
                github_token = value
                break
        if github_token is None and use_gh_cli:
            github_token = _resolve_gh_cli_token()
            if github_token:
                logger.info("Using GitHub token from `gh auth token` fallback.")

        policy_raw = source.get("SCORECARD_DEPENDENCY_POLICY", "").strip().lower()
        try:
            policy = DependencyPolicy(policy_raw) if policy_raw else DependencyPolicy.AUXILIARY
        except ValueError:
            logger.warning(
                "Unknown SCORECARD_DEPENDENCY_POLICY '%s', using '%s'.",
                policy_raw,
                DependencyPolicy.AUXILIARY.value,
            )
            policy = DependencyPolicy.AUXILIARY

        return cls(
            github_token=github_token,
            gitlab_token=source.get("GITLAB_AUTH_TOKEN", "").strip() or None,
            deps_dev_base_url=(
                source.get("DEPS_DEV_BASE_URL", "").strip().rstrip("/")
                or DEFAULT_DEPS_DEV_BASE_URL
            ),
            max_probe_workers=_positive_int(
                source, "SCORECARD_MAX_PROBE_WORKERS", DEFAULT_MAX_PROBE_WORKERS
            ),
            max_dependency_workers=_positive_int(
                source, "SCORECARD_MAX_DEPENDENCY_WORKERS", DEFAULT_MAX_DEPENDENCY_WORKERS
            ),
            dependency_timeout=_positive_float(
                source, "SCORECARD_DEPENDENCY_TIMEOUT", DEFAULT_DEPENDENCY_TIMEOUT
            ),
            dependency_policy=policy,
        )


def _positive_int(source: Mapping[str, str], name: str, default: int) -> int:
    raw = source.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning("Invalid integer for %s: '%s', using %d.", name, raw, default)
        return default


def _positive_float(source: Mapping[str, str], name: str, default: float) -> float:
    raw = source.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid number for %s: '%s', using %s.", name, raw, default)
        return default
    return value if value > 0 else default


def _resolve_gh_cli_token() -> str | None:
    """Try to read a token from local GitHub CLI auth context."""
    try:
        completed = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None

    if completed.returncode != 0:
        return None
    token = completed.stdout.strip()
    return token or None
