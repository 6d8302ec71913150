"""Load probe descriptors (static YAML metadata) shipped with the package."""

from __future__ import annotations

import importlib.resources
import logging

import yaml

from repo_scorecard.errors import ScorecardError
from repo_scorecard.models import ProbeDescriptor

logger = logging.getLogger(__name__)

_descriptors: dict[str, ProbeDescriptor] | None = None


def load_descriptors() -> dict[str, ProbeDescriptor]:
    """Read every ``defs/*.yml`` once per process, keyed by probe id.

    Raises:
        ScorecardError: If a descriptor file is malformed.
    """
    global _descriptors
    if _descriptors is not None:
        return _descriptors

    defs = importlib.resources.files("repo_scorecard.probes") / "defs"
    loaded: dict[str, ProbeDescriptor] = {}
    for ref in sorted(defs.iterdir(), key=lambda r: r.name):
        if not ref.name.endswith((".yml", ".yaml")):
            continue
        try:
            text = ref.read_text(encoding="utf-8")
        except OSError as exc:
            raise ScorecardError(f"Failed to read probe descriptor '{ref.name}': {exc}") from exc
        descriptor = parse_descriptor(text, source=ref.name)
        loaded[descriptor.id] = descriptor

    logger.debug("Loaded %d probe descriptors", len(loaded))
    _descriptors = loaded
    return loaded


def get_descriptor(probe_id: str) -> ProbeDescriptor:
    """Return the descriptor for ``probe_id``.

    Raises:
        ScorecardError: If no descriptor is registered under that id.
    """
    descriptor = load_descriptors().get(probe_id)
    if descriptor is None:
        raise ScorecardError(f"No descriptor found for probe '{probe_id}'.")
    return descriptor


def clear_cache() -> None:
    """Forget loaded descriptors (primarily for tests)."""
    global _descriptors
    _descriptors = None


def parse_descriptor(text: str, source: str = "") -> ProbeDescriptor:
    """Parse YAML text into a ProbeDescriptor."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ScorecardError(f"Invalid probe descriptor {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise ScorecardError(f"Invalid probe descriptor {source}: expected a YAML mapping.")

    probe_id = data.get("id")
    lifecycle = data.get("lifecycle")
    if not probe_id or not lifecycle:
        raise ScorecardError(f"Invalid probe descriptor {source}: 'id' and 'lifecycle' required.")

    remediation = data.get("remediation") or {}
    if not isinstance(remediation, dict):
        raise ScorecardError(f"Invalid probe descriptor {source}: 'remediation' must be a mapping.")
    ecosystem = data.get("ecosystem") or {}

    return ProbeDescriptor(
        id=str(probe_id),
        lifecycle=str(lifecycle),
        short=str(data.get("short", "")).strip(),
        remediation_text=[str(line) for line in remediation.get("text") or []],
        remediation_effort=str(remediation.get("effort", "")),
        on_outcome=str(remediation.get("onOutcome", "")),
        clients=[str(c) for c in ecosystem.get("clients") or []],
    )
