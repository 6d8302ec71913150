"""Run checks against a repository and, for opted-in checks, its direct dependencies.

Flow per check:
1. self-check: probe runner + evaluator on the primary fact source
2. ecosystem discovery (deps.dev project -> package), unless given explicitly
3. dependency enumeration (default version's graph, SELF excluded)
4. per-dependency evaluation, concurrently and bounded
5. dependency results attached to the primary result as an auxiliary report

Only a fault in step 1 yields an error result; every later failure degrades
to fewer dependency results plus a skip count.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path

from repo_scorecard.checks.base import CheckDefinition
from repo_scorecard.checks.registry import CHECKS, get_check
from repo_scorecard.clients.base import HEAD_REVISION, FactSource, RepoClientFactoryPort
from repo_scorecard.config import Settings
from repo_scorecard.errors import (
    FactSourceError,
    RuntimeFaultError,
    ScorecardError,
    UnsupportedDependencyError,
)
from repo_scorecard.evaluation.base import EvaluatorPort
from repo_scorecard.evaluation.scorer import create_runtime_error_result, evaluate
from repo_scorecard.models import (
    CheckResult,
    CheckStatus,
    DependencyNode,
    DependencyPolicy,
    DependencyReport,
    DependencyResult,
    HostingProvider,
    Location,
    Outcome,
    PackageCoordinate,
    RepoCoordinate,
    SkippedDependency,
    VersionKey,
)
from repo_scorecard.packages.base import PackageMetadataPort
from repo_scorecard.probes.runner import run_probes

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CheckRequest:
    """Everything a check needs, passed explicitly (no global clients)."""

    source: FactSource
    repo: RepoCoordinate
    package: PackageCoordinate | None = None
    package_client: PackageMetadataPort | None = None
    repo_factory: RepoClientFactoryPort | None = None
    settings: Settings = field(default_factory=Settings)
    evaluator: EvaluatorPort = evaluate


# ─── Public API ──────────────────────────────────────────────


async def run_check(check: CheckDefinition, request: CheckRequest) -> CheckResult:
    """Evaluate one check for the primary repository (and its dependencies if opted in)."""
    try:
        findings = await run_probes(
            request.source,
            check.probes,
            max_workers=request.settings.max_probe_workers,
        )
    except RuntimeFaultError as exc:
        logger.warning("Check %s failed on %s: %s", check.name, request.repo.uri, exc)
        return create_runtime_error_result(check.name, str(exc))

    result = request.evaluator(check.name, findings, check.policy)
    if not check.traverses_dependencies:
        return result

    if request.package_client is None or request.repo_factory is None:
        report = DependencyReport(status_message="dependency traversal not configured")
        return replace(result, dependencies=report)

    report = await traverse_dependencies(check, request)
    if request.settings.dependency_policy == DependencyPolicy.FOLDED:
        result = _fold_dependency_findings(check, result, report, request.evaluator)
    return replace(result, dependencies=report)


async def run_checks(names: Sequence[str], request: CheckRequest) -> list[CheckResult]:
    """Run several checks, in the given order, against the same request.

    Raises:
        UnknownCheckError: If any name is not a registered check.
    """
    checks = [get_check(name) for name in names]
    return [await run_check(check, request) for check in checks]


async def evaluate_repository(
    repo_uri: str,
    *,
    repo_factory: RepoClientFactoryPort,
    package_client: PackageMetadataPort | None = None,
    settings: Settings | None = None,
    checks: Sequence[str] | None = None,
    package: PackageCoordinate | None = None,
    revision: str = HEAD_REVISION,
) -> list[CheckResult]:
    """Open ``repo_uri`` (hosted repository or local directory) and run checks on it.

    Raises:
        ScorecardError: Invalid URI, unknown check, or the repository cannot be opened.
    """
    if Path(repo_uri).expanduser().is_dir():
        repo = RepoCoordinate.local(str(Path(repo_uri).expanduser().resolve()))
    else:
        try:
            repo = RepoCoordinate.parse(repo_uri)
        except ValueError as exc:
            raise ScorecardError(str(exc)) from exc

    names = list(checks) if checks else list(CHECKS)
    for name in names:
        get_check(name)

    source = await repo_factory.open(repo, revision)

    request = CheckRequest(
        source=source,
        repo=repo,
        package=package,
        package_client=package_client,
        repo_factory=repo_factory,
        settings=settings or Settings(),
    )
    return await run_checks(names, request)


# ─── Dependency traversal ────────────────────────────────────


async def traverse_dependencies(check: CheckDefinition, request: CheckRequest) -> DependencyReport:
    """Evaluate ``check`` against every direct dependency of the primary project.

    Never raises for dependency-level failures; they end up in
    ``DependencyReport.skipped`` or ``status_message``.
    """
    assert request.package_client is not None
    client = request.package_client

    package = request.package
    if package is None:
        package, message = await _discover_package(request)
        if package is None:
            logger.warning("Skipping dependency traversal for %s: %s", request.repo.uri, message)
            return DependencyReport(status_message=message)

    try:
        graph = await client.get_package_dependencies(package.system, package.name)
    except ScorecardError as exc:
        message = f"dependency graph unavailable for {package.system}:{package.name}: {exc}"
        logger.warning("Skipping dependency traversal for %s: %s", request.repo.uri, message)
        return DependencyReport(status_message=message)

    self_key = next((node.version_key for node in graph.nodes if node.is_self), None)
    nodes = graph.direct_dependencies()
    logger.info(
        "Evaluating %s on %d direct dependencies of %s:%s",
        check.name,
        len(nodes),
        package.system,
        package.name,
    )

    sem = asyncio.Semaphore(max(1, request.settings.max_dependency_workers))
    timeout = request.settings.dependency_timeout

    async def _limited(node: DependencyNode) -> DependencyResult:
        async with sem:
            return await asyncio.wait_for(_evaluate_dependency(check, node, request), timeout)

    # One dependency failing must not cancel its siblings; cancelling the
    # caller still cancels all of them.
    outcomes = await asyncio.gather(*(_limited(node) for node in nodes), return_exceptions=True)

    results: list[DependencyResult] = []
    skipped: list[SkippedDependency] = []
    for node, outcome in zip(nodes, outcomes, strict=True):
        if isinstance(outcome, DependencyResult):
            results.append(outcome)
            continue
        if not isinstance(outcome, Exception):
            raise outcome
        reason = _skip_reason(outcome, timeout)
        if isinstance(outcome, UnsupportedDependencyError):
            logger.info("Skipping dependency %s: %s", node.version_key, reason)
        else:
            logger.warning("Skipping dependency %s: %s", node.version_key, reason)
        skipped.append(SkippedDependency(version_key=node.version_key, reason=reason))

    return DependencyReport(
        package=self_key,
        results=results,
        skipped=skipped,
        status_message=(
            f"evaluated {len(results)} of {len(nodes)} direct dependencies"
            f" ({len(skipped)} skipped)"
        ),
    )


async def _discover_package(
    request: CheckRequest,
) -> tuple[PackageCoordinate | None, str]:
    """Find the package published from the primary repository."""
    assert request.package_client is not None
    repo = request.repo
    if repo.provider == HostingProvider.LOCALDIR:
        return None, "no package coordinate given for a local repository"

    try:
        versions = await request.package_client.resolve_project_packages(repo.host, repo.project)
    except ScorecardError as exc:
        return None, f"package discovery failed for {repo.uri}: {exc}"
    if not versions:
        return None, f"no packages published from {repo.uri}"

    return versions[0].version_key.package, ""


async def _evaluate_dependency(
    check: CheckDefinition,
    node: DependencyNode,
    request: CheckRequest,
) -> DependencyResult:
    """Run the full pipeline against one dependency's source repository.

    Raises on any failure; the caller turns that into a skip.
    """
    assert request.package_client is not None
    assert request.repo_factory is not None
    key: VersionKey = node.version_key

    repo = await request.package_client.resolve_source_uri(key.system, key.name, key.version)

    source = request.repo_factory.create_client(repo.provider)
    if not await request.repo_factory.initialize(source, repo, HEAD_REVISION, 0):
        raise FactSourceError(f"could not initialize {repo.uri}")

    findings = await run_probes(
        source,
        check.probes,
        max_workers=request.settings.max_probe_workers,
    )
    result = request.evaluator(check.name, findings, check.policy)
    if result.status == CheckStatus.ERROR:
        raise RuntimeFaultError(f"{repo.uri}: {result.reason}")

    logger.debug("Dependency %s (%s) scored %d", key, repo.uri, result.score)
    return DependencyResult(version_key=key, repo=repo.uri, result=result)


def _skip_reason(exc: Exception, timeout: float) -> str:
    if isinstance(exc, TimeoutError):
        return f"timed out after {timeout:g}s"
    return f"{type(exc).__name__}: {exc}"


def _fold_dependency_findings(
    check: CheckDefinition,
    result: CheckResult,
    report: DependencyReport,
    evaluator: EvaluatorPort,
) -> CheckResult:
    """Re-score the primary check with dependency negatives counted against it."""
    if result.status != CheckStatus.SCORED:
        return result

    extra = [
        replace(
            f,
            location=Location(
                path=f"{dep.repo}/{f.location.path}" if f.location else dep.repo,
                line_start=f.location.line_start if f.location else None,
            ),
        )
        for dep in report.results
        for f in dep.result.findings
        if f.outcome == Outcome.NEGATIVE
    ]
    if not extra:
        return result
    return evaluator(check.name, [*result.findings, *extra], check.policy)
