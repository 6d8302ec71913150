"""evaluate_repository tool -- score a repository and its direct dependencies."""

from __future__ import annotations

from dataclasses import asdict

from mcp.server.fastmcp import Context

from repo_scorecard.checks.orchestrator import evaluate_repository as run_evaluation
from repo_scorecard.clients.base import HEAD_REVISION
from repo_scorecard.errors import ScorecardError
from repo_scorecard.models import PackageCoordinate
from repo_scorecard.tools._helpers import get_context


async def evaluate_repository(
    ctx: Context,
    repo: str,
    checks: list[str] | None = None,
    package_system: str | None = None,
    package_name: str | None = None,
    revision: str = HEAD_REVISION,
) -> dict[str, object]:
    """Run security checks against a repository.

    Each check runs its probes against the repository snapshot and turns
    the findings into a 0-10 score (-1 when inconclusive or on error).
    Binary-Artifacts additionally evaluates every direct dependency of the
    package published from the repository and reports those results
    alongside the main score.

    Args:
        repo: Repository to evaluate, e.g. "github.com/ossf/scorecard",
            "https://gitlab.com/group/project", or a local directory path.
        checks: Names of checks to run. Defaults to all of
            "Binary-Artifacts", "Dependency-Update-Tool", "Token-Permissions".
        package_system: Package ecosystem (e.g. "GO", "NPM", "PYPI") of the
            package published from this repository. Auto-discovered when omitted.
        package_name: Package name within ``package_system``.
        revision: Commit SHA or branch to evaluate. Defaults to the default branch head.

    Returns:
        Dict with the evaluated repo and a list of check results (score,
        status, reason, findings and, for dependency-aware checks, the
        dependency report with skipped dependencies and their reasons).
    """
    try:
        app = get_context(ctx)

        package = None
        if package_system and package_name:
            package = PackageCoordinate(system=package_system.upper(), name=package_name)
        elif package_system or package_name:
            return {
                "success": False,
                "error": "package_system and package_name must be given together.",
            }

        results = await run_evaluation(
            repo,
            repo_factory=app.repo_factory,
            package_client=app.package_client,
            settings=app.settings,
            checks=checks,
            package=package,
            revision=revision,
        )
        return {
            "repo": repo,
            "revision": revision,
            "checks": [asdict(r) for r in results],
        }

    except ScorecardError as exc:
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in evaluate_repository: {exc}")
        return {"success": False, "error": f"Internal error: {type(exc).__name__}"}
