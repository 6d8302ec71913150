"""Compute a bounded check score from the findings of one check."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from repo_scorecard.models import CheckResult, CheckStatus, Finding, Outcome, ScoringPolicy

MAX_RESULT_SCORE = 10
MIN_RESULT_SCORE = 0
INCONCLUSIVE_RESULT_SCORE = -1


def create_inconclusive_result(
    name: str,
    reason: str,
    findings: Sequence[Finding] = (),
) -> CheckResult:
    return CheckResult(
        name=name,
        score=INCONCLUSIVE_RESULT_SCORE,
        status=CheckStatus.INCONCLUSIVE,
        reason=reason,
        findings=list(findings),
    )


def create_runtime_error_result(
    name: str,
    reason: str,
    findings: Sequence[Finding] = (),
) -> CheckResult:
    return CheckResult(
        name=name,
        score=INCONCLUSIVE_RESULT_SCORE,
        status=CheckStatus.ERROR,
        reason=f"internal error: {reason}",
        findings=list(findings),
    )


def _distinct_negatives(findings: Sequence[Finding]) -> list[Finding]:
    """Negative findings, counting identical probe/location/message once."""
    seen: set[tuple[str, str, str]] = set()
    result: list[Finding] = []
    for f in findings:
        if f.outcome != Outcome.NEGATIVE:
            continue
        key = (f.probe, f.location.path if f.location else "", f.message)
        if key in seen:
            continue
        seen.add(key)
        result.append(f)
    return result


def _total_penalty(negatives: Sequence[Finding], policy: ScoringPolicy) -> int:
    per_location: dict[str, int] = defaultdict(int)
    for f in negatives:
        per_location[f.location.path if f.location else f.probe] += policy.penalty

    if policy.cap_per_location is None:
        return sum(per_location.values())
    return sum(min(p, policy.cap_per_location) for p in per_location.values())


def evaluate(
    name: str,
    findings: Sequence[Finding],
    policy: ScoringPolicy,
) -> CheckResult:
    """Score the findings of one check.

    Rules, in order:
    - any error finding: runtime-error result (not "no issues found")
    - no positive/negative findings: inconclusive
    - all positive: MAX_RESULT_SCORE
    - otherwise each distinct negative subtracts ``policy.penalty``
      (optionally capped per location), floored at MIN_RESULT_SCORE

    Pure and deterministic: same findings, same result.
    """
    for f in findings:
        if f.outcome == Outcome.ERROR:
            return create_runtime_error_result(name, f.message, findings)

    scored = [f for f in findings if f.outcome in (Outcome.POSITIVE, Outcome.NEGATIVE)]
    if not scored:
        reason = "no findings to score" if not findings else "no applicable findings"
        return create_inconclusive_result(name, reason, findings)

    negatives = _distinct_negatives(scored)
    if not negatives:
        return CheckResult(
            name=name,
            score=MAX_RESULT_SCORE,
            status=CheckStatus.SCORED,
            reason=policy.pass_reason,
            findings=list(findings),
        )

    score = max(MIN_RESULT_SCORE, MAX_RESULT_SCORE - _total_penalty(negatives, policy))
    return CheckResult(
        name=name,
        score=score,
        status=CheckStatus.SCORED,
        reason=policy.fail_reason.format(count=len(negatives)),
        findings=list(findings),
    )
