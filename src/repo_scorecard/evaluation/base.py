"""Port: scoring the findings of one check."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from repo_scorecard.models import CheckResult, Finding, ScoringPolicy


class EvaluatorPort(Protocol):
    """Port for turning one check's findings into a scored CheckResult."""

    def __call__(
        self,
        name: str,
        findings: Sequence[Finding],
        policy: ScoringPolicy,
    ) -> CheckResult:
        """Compute a deterministic score and reason from findings."""
        ...
