"""Port: package-metadata service client."""

from __future__ import annotations

from typing import Protocol

from repo_scorecard.models import (
    DependencyGraph,
    PackageData,
    ProjectPackageVersion,
    RepoCoordinate,
    VersionMetadata,
)


class PackageMetadataPort(Protocol):
    """Port for resolving packages, dependency graphs and source links."""

    async def resolve_project_packages(
        self,
        host: str,
        project: str,
    ) -> list[ProjectPackageVersion]:
        """Package versions published from a source project. NotFoundError if unknown."""
        ...

    async def get_package(self, system: str, name: str) -> PackageData:
        """Package versions with the default one flagged. NotFoundError if unknown."""
        ...

    async def get_package_dependencies(self, system: str, name: str) -> DependencyGraph:
        """Dependency graph of the package's default version."""
        ...

    async def get_version_metadata(
        self,
        system: str,
        name: str,
        version: str,
    ) -> VersionMetadata:
        """Metadata (links, licenses) of one version. NotFoundError if unknown."""
        ...

    async def resolve_source_uri(
        self,
        system: str,
        name: str,
        version: str,
    ) -> RepoCoordinate:
        """Canonical GitHub source repository of one version."""
        ...
