"""Registration table of probe implementations, built once at import."""

from __future__ import annotations

from types import MappingProxyType

from repo_scorecard.probes import binary_artifacts, dependency_update_tool, top_level_permissions
from repo_scorecard.probes.base import ProbeFunc

PROBES: MappingProxyType[str, ProbeFunc] = MappingProxyType({
    binary_artifacts.PROBE_ID: binary_artifacts.run,
    dependency_update_tool.PROBE_ID: dependency_update_tool.run,
    top_level_permissions.PROBE_ID: top_level_permissions.run,
})
