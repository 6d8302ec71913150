"""Probe Runner: execute registered probes against one fact-source snapshot."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace

from repo_scorecard.clients.base import FactSource
from repo_scorecard.config import DEFAULT_MAX_PROBE_WORKERS
from repo_scorecard.errors import FactSourceError, RuntimeFaultError, ScorecardError
from repo_scorecard.models import Finding, Outcome
from repo_scorecard.probes.base import ProbeFunc
from repo_scorecard.probes.descriptors import get_descriptor
from repo_scorecard.probes.registry import PROBES

logger = logging.getLogger(__name__)


async def run_probes(
    source: FactSource,
    probe_ids: Sequence[str],
    *,
    max_workers: int = DEFAULT_MAX_PROBE_WORKERS,
    registry: Mapping[str, ProbeFunc] = PROBES,
) -> list[Finding]:
    """Run each probe exactly once and concatenate findings in registration order.

    Probes run concurrently (bounded by ``max_workers``); results are
    re-joined in the order of ``probe_ids``.

    Raises:
        RuntimeFaultError: A probe is unknown, or one hit an unrecoverable
            fault (unreadable fact source, internal error).
    """
    unknown = [probe_id for probe_id in probe_ids if probe_id not in registry]
    if unknown:
        raise RuntimeFaultError(f"Unknown probe(s): {', '.join(unknown)}")

    sem = asyncio.Semaphore(max(1, max_workers))

    async def _limited_run(probe_id: str) -> list[Finding]:
        async with sem:
            return await registry[probe_id](source)

    results = await asyncio.gather(
        *(_limited_run(probe_id) for probe_id in probe_ids),
        return_exceptions=True,
    )

    findings: list[Finding] = []
    for probe_id, result in zip(probe_ids, results, strict=True):
        if isinstance(result, BaseException):
            raise _as_fault(probe_id, result) from result
        if not result:
            # Every probe must report something so the evaluator can reason
            # about completeness.
            logger.warning("Probe %s returned no findings", probe_id)
            result = [
                Finding(
                    probe=probe_id,
                    outcome=Outcome.ERROR,
                    message=f"probe {probe_id} produced no findings",
                )
            ]
        findings.extend(_with_remediation(probe_id, f) for f in result)
    return findings


def _as_fault(probe_id: str, exc: BaseException) -> RuntimeFaultError:
    if isinstance(exc, FactSourceError):
        return RuntimeFaultError(f"probe {probe_id}: fact source error: {exc}")
    if isinstance(exc, RuntimeFaultError):
        return RuntimeFaultError(f"probe {probe_id}: {exc}")
    return RuntimeFaultError(f"probe {probe_id}: internal error: {type(exc).__name__}: {exc}")


def _with_remediation(probe_id: str, finding: Finding) -> Finding:
    if finding.outcome != Outcome.NEGATIVE or finding.remediation is not None:
        return finding
    try:
        descriptor = get_descriptor(probe_id)
    except ScorecardError:
        return finding
    if not descriptor.remediation_text:
        return finding
    return replace(finding, remediation=" ".join(descriptor.remediation_text))
