"""Ports: repository fact sources and the factory that binds them to repositories."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from repo_scorecard.models import HostingProvider, RepoCoordinate

HEAD_REVISION = "HEAD"

FilePredicate = Callable[[str], bool]


class FactSource(Protocol):
    """Read-only view of one repository snapshot.

    After ``init_repo`` every listing and read reflects the same pinned
    commit for the lifetime of the instance.
    """

    @property
    def repo(self) -> RepoCoordinate | None:
        """The repository this source is bound to, once initialized."""
        ...

    @property
    def default_branch(self) -> str:
        ...

    @property
    def commit(self) -> str:
        """Pinned revision of the snapshot."""
        ...

    async def init_repo(
        self,
        repo: RepoCoordinate,
        revision: str = HEAD_REVISION,
        depth: int = 0,
    ) -> None:
        """Bind to ``repo`` at ``revision``. Raises FactSourceError on failure."""
        ...

    async def list_files(self, predicate: FilePredicate) -> list[str]:
        """Return every file path in the snapshot accepted by ``predicate``."""
        ...

    async def read_file(self, path: str) -> bytes:
        """Return the raw content of ``path``. Raises FactSourceError if unreadable."""
        ...


class RepoClientFactoryPort(Protocol):
    """Port for producing fact sources bound to resolved repositories."""

    def create_client(self, provider: HostingProvider) -> FactSource:
        """Create an uninitialized fact source for a hosting provider."""
        ...

    async def initialize(
        self,
        client: FactSource,
        repo: RepoCoordinate,
        revision: str = HEAD_REVISION,
        depth: int = 0,
    ) -> bool:
        """Initialize ``client`` at ``revision``; False when the repo is unreachable."""
        ...

    async def open(self, repo: RepoCoordinate, revision: str = HEAD_REVISION) -> FactSource:
        """Create and initialize a fact source for ``repo``.

        Raises:
            FactSourceError: If the repository cannot be reached.
        """
        ...
