"""Tests for the probe runner."""

from __future__ import annotations

import asyncio
from types import MappingProxyType
from unittest.mock import MagicMock

import pytest

from repo_scorecard.errors import FactSourceError, RuntimeFaultError
from repo_scorecard.models import Finding, Outcome
from repo_scorecard.probes.binary_artifacts import PROBE_ID as BINARY_PROBE
from repo_scorecard.probes.runner import run_probes


def _finding(probe: str, outcome: Outcome = Outcome.POSITIVE, message: str = "ok") -> Finding:
    return Finding(probe=probe, outcome=outcome, message=message)


def _static_probe(*findings: Finding):
    async def _run(source):
        return list(findings)

    return _run


class TestRunProbes:
    async def test_concatenates_in_registration_order(self):
        async def slow(source):
            await asyncio.sleep(0.02)
            return [_finding("slow")]

        registry = MappingProxyType({"slow": slow, "fast": _static_probe(_finding("fast"))})

        findings = await run_probes(MagicMock(), ["slow", "fast"], registry=registry)

        assert [f.probe for f in findings] == ["slow", "fast"]

    async def test_each_probe_runs_once(self):
        calls: list[str] = []

        async def counting(source):
            calls.append("counting")
            return [_finding("counting")]

        registry = MappingProxyType({"counting": counting})
        await run_probes(MagicMock(), ["counting"], registry=registry)
        assert calls == ["counting"]

    async def test_concurrency_bounded(self):
        active = 0
        peak = 0

        async def tracked(source):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return [_finding("tracked")]

        registry = MappingProxyType({f"p{i}": tracked for i in range(6)})
        await run_probes(MagicMock(), list(registry), max_workers=2, registry=registry)
        assert peak <= 2

    async def test_unknown_probe_is_runtime_fault(self):
        with pytest.raises(RuntimeFaultError, match="Unknown probe"):
            await run_probes(MagicMock(), ["nope"], registry=MappingProxyType({}))

    async def test_fact_source_error_becomes_runtime_fault(self):
        async def broken(source):
            raise FactSourceError("disk gone")

        registry = MappingProxyType({"broken": broken, "ok": _static_probe(_finding("ok"))})
        with pytest.raises(RuntimeFaultError, match="fact source error: disk gone"):
            await run_probes(MagicMock(), ["ok", "broken"], registry=registry)

    async def test_unexpected_exception_becomes_runtime_fault(self):
        async def buggy(source):
            raise KeyError("path")

        registry = MappingProxyType({"buggy": buggy})
        with pytest.raises(RuntimeFaultError, match="internal error: KeyError"):
            await run_probes(MagicMock(), ["buggy"], registry=registry)

    async def test_empty_probe_output_becomes_error_finding(self):
        registry = MappingProxyType({"silent": _static_probe()})
        findings = await run_probes(MagicMock(), ["silent"], registry=registry)
        assert len(findings) == 1
        assert findings[0].outcome == Outcome.ERROR
        assert findings[0].probe == "silent"

    async def test_negative_findings_get_descriptor_remediation(self):
        registry = MappingProxyType(
            {BINARY_PROBE: _static_probe(_finding(BINARY_PROBE, Outcome.NEGATIVE, "bin"))}
        )
        findings = await run_probes(MagicMock(), [BINARY_PROBE], registry=registry)
        assert findings[0].remediation
        assert "Remove the generated executable artifacts" in findings[0].remediation

    async def test_positive_findings_have_no_remediation(self):
        registry = MappingProxyType({BINARY_PROBE: _static_probe(_finding(BINARY_PROBE))})
        findings = await run_probes(MagicMock(), [BINARY_PROBE], registry=registry)
        assert findings[0].remediation is None

    async def test_probe_without_descriptor_keeps_finding(self):
        registry = MappingProxyType(
            {"adhoc": _static_probe(_finding("adhoc", Outcome.NEGATIVE, "bad"))}
        )
        findings = await run_probes(MagicMock(), ["adhoc"], registry=registry)
        assert findings[0].remediation is None
