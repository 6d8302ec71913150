"""Probe contract: a stateless async transformation FactSource -> findings."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from repo_scorecard.clients.base import FactSource
from repo_scorecard.models import Finding

ProbeFunc = Callable[[FactSource], Awaitable[list[Finding]]]
