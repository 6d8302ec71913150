"""Probe: a dependency update tool is configured."""

from __future__ import annotations

from repo_scorecard.clients.base import FactSource
from repo_scorecard.models import Finding, Location, Outcome

PROBE_ID = "dependencyUpdateToolConfigured"

# Config file path (lower-cased) -> tool name
_TOOL_CONFIGS: dict[str, str] = {
    ".github/dependabot.yml": "Dependabot",
    ".github/dependabot.yaml": "Dependabot",
    "renovate.json": "RenovateBot",
    "renovate.json5": "RenovateBot",
    ".renovaterc": "RenovateBot",
    ".renovaterc.json": "RenovateBot",
    ".renovaterc.json5": "RenovateBot",
    ".github/renovate.json": "RenovateBot",
    ".github/renovate.json5": "RenovateBot",
    ".gitlab/renovate.json": "RenovateBot",
    ".gitlab/renovate.json5": "RenovateBot",
    ".pyup.yml": "PyUp",
    ".scala-steward.conf": "scala-steward",
    ".config/.scala-steward.conf": "scala-steward",
    ".github/.scala-steward.conf": "scala-steward",
}


def _is_tool_config(path: str) -> bool:
    return path.lower() in _TOOL_CONFIGS


async def run(source: FactSource) -> list[Finding]:
    configs = await source.list_files(_is_tool_config)

    findings = [
        Finding(
            probe=PROBE_ID,
            outcome=Outcome.POSITIVE,
            message=f"detected update tool: {_TOOL_CONFIGS[path.lower()]}",
            values={"tool": _TOOL_CONFIGS[path.lower()]},
            location=Location(path=path),
        )
        for path in sorted(configs)
    ]
    if not findings:
        findings.append(
            Finding(
                probe=PROBE_ID,
                outcome=Outcome.NEGATIVE,
                message="no dependency update tool configurations found",
            )
        )
    return findings
