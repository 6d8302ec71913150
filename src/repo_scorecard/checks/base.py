"""Check definitions: which probes feed a check and how they are scored."""

from __future__ import annotations

from dataclasses import dataclass

from repo_scorecard.models import ScoringPolicy


@dataclass(frozen=True, slots=True)
class CheckDefinition:
    """A named check: an ordered probe set plus its scoring policy.

    ``traverses_dependencies`` opts the check into re-running the same
    pipeline against every direct dependency of the evaluated project.
    """

    name: str
    probes: tuple[str, ...]
    policy: ScoringPolicy
    traverses_dependencies: bool = False
