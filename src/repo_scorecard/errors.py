"""Exception hierarchy for repo-scorecard.

All exceptions inherit from ScorecardError (single catch point).
Dependency-level errors are contained by the orchestrator; only a
RuntimeFaultError during the self-check surfaces as an error result.
"""

from __future__ import annotations


class ScorecardError(Exception):
    """Base exception for all repo-scorecard errors."""


class NotFoundError(ScorecardError):
    """Package, project or version unknown to the package-metadata service."""


class ServiceError(ScorecardError):
    """Package-metadata service answered with a non-200, non-404 status or was unreachable."""


class UnsupportedDependencyError(ScorecardError):
    """Dependency has no source link on a supported hosting domain."""


class FactSourceError(ScorecardError):
    """A repository fact source could not be initialized or read."""


class RuntimeFaultError(ScorecardError):
    """A probe hit an unrecoverable fault (malformed fact source, internal bug)."""


class UnknownCheckError(ScorecardError):
    """Requested check name is not registered."""
