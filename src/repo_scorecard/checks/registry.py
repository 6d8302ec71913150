"""Registration table of checks, built once at import."""

from __future__ import annotations

from types import MappingProxyType

from repo_scorecard.checks.base import CheckDefinition
from repo_scorecard.errors import UnknownCheckError
from repo_scorecard.models import ScoringPolicy
from repo_scorecard.probes import binary_artifacts, dependency_update_tool, top_level_permissions

BINARY_ARTIFACTS = "Binary-Artifacts"
DEPENDENCY_UPDATE_TOOL = "Dependency-Update-Tool"
TOKEN_PERMISSIONS = "Token-Permissions"

CHECKS: MappingProxyType[str, CheckDefinition] = MappingProxyType({
    BINARY_ARTIFACTS: CheckDefinition(
        name=BINARY_ARTIFACTS,
        probes=(binary_artifacts.PROBE_ID,),
        policy=ScoringPolicy(
            penalty=1,
            pass_reason="no binaries found in the repo",
            fail_reason="binaries present in source code ({count} found)",
        ),
        traverses_dependencies=True,
    ),
    DEPENDENCY_UPDATE_TOOL: CheckDefinition(
        name=DEPENDENCY_UPDATE_TOOL,
        probes=(dependency_update_tool.PROBE_ID,),
        policy=ScoringPolicy(
            penalty=10,
            pass_reason="update tool detected",
            fail_reason="no update tool detected",
        ),
    ),
    TOKEN_PERMISSIONS: CheckDefinition(
        name=TOKEN_PERMISSIONS,
        probes=(top_level_permissions.PROBE_ID,),
        policy=ScoringPolicy(
            penalty=2,
            cap_per_location=5,
            pass_reason="no top-level write permissions in workflows",
            fail_reason="{count} top-level write permission(s) detected",
        ),
    ),
})


def get_check(name: str) -> CheckDefinition:
    """Return the check registered under ``name``.

    Raises:
        UnknownCheckError: If no such check exists.
    """
    check = CHECKS.get(name)
    if check is None:
        raise UnknownCheckError(
            f"Unknown check '{name}'. Available checks: {', '.join(sorted(CHECKS))}."
        )
    return check
