"""Shared test fixtures."""

from __future__ import annotations

import pytest

from repo_scorecard.probes.descriptors import clear_cache


@pytest.fixture(autouse=True)
def _clear_descriptor_cache() -> None:
    """Reload probe descriptors in each test to prevent cross-test pollution."""
    clear_cache()
