"""Probe: GitHub Actions workflows should not grant top-level write permissions."""

from __future__ import annotations

import logging

import yaml

from repo_scorecard.clients.base import FactSource
from repo_scorecard.models import Finding, Location, Outcome

logger = logging.getLogger(__name__)

PROBE_ID = "topLevelPermissions"

_WORKFLOW_DIR = ".github/workflows/"


def is_workflow_file(path: str) -> bool:
    if not path.startswith(_WORKFLOW_DIR):
        return False
    name = path[len(_WORKFLOW_DIR):]
    return "/" not in name and name.endswith((".yml", ".yaml"))


def _write_permissions(permissions: object) -> list[str]:
    """Names of permissions granted ``write`` (``write-all`` for the shorthand)."""
    if isinstance(permissions, str):
        return ["write-all"] if permissions.strip().lower() == "write-all" else []
    if isinstance(permissions, dict):
        return [
            str(name)
            for name, level in permissions.items()
            if isinstance(level, str) and level.strip().lower() == "write"
        ]
    return []


async def run(source: FactSource) -> list[Finding]:
    workflows = sorted(await source.list_files(is_workflow_file))
    if not workflows:
        return [
            Finding(
                probe=PROBE_ID,
                outcome=Outcome.NOT_APPLICABLE,
                message="no GitHub workflows found",
            )
        ]

    findings: list[Finding] = []
    for path in workflows:
        content = await source.read_file(path)
        try:
            data = yaml.safe_load(content.decode("utf-8"))
        except (UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.warning("Unparsable workflow %s: %s", path, exc)
            findings.append(
                Finding(
                    probe=PROBE_ID,
                    outcome=Outcome.ERROR,
                    message=f"unable to parse workflow: {path}",
                    location=Location(path=path),
                )
            )
            continue

        if not isinstance(data, dict):
            continue
        for permission in _write_permissions(data.get("permissions")):
            findings.append(
                Finding(
                    probe=PROBE_ID,
                    outcome=Outcome.NEGATIVE,
                    message=f"top-level '{permission}' permission set to write",
                    values={"permission": permission},
                    location=Location(path=path),
                )
            )

    if not findings:
        findings.append(
            Finding(
                probe=PROBE_ID,
                outcome=Outcome.POSITIVE,
                message="no workflows with top-level write permissions",
            )
        )
    return findings
