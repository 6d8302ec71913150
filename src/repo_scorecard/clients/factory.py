"""Build fact sources for resolved repository coordinates."""

from __future__ import annotations

import logging

import httpx

from repo_scorecard.clients.base import HEAD_REVISION, FactSource
from repo_scorecard.clients.github import GitHubRepoClient
from repo_scorecard.clients.gitlab import GitLabRepoClient
from repo_scorecard.clients.localdir import LocalDirRepoClient
from repo_scorecard.config import Settings
from repo_scorecard.errors import FactSourceError
from repo_scorecard.models import HostingProvider, RepoCoordinate

logger = logging.getLogger(__name__)


class RepoClientFactory:
    """Adapter for RepoClientFactoryPort: shares one httpx client and the credentials."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._settings = settings

    def create_client(self, provider: HostingProvider) -> FactSource:
        """Create an uninitialized fact source for ``provider``."""
        if provider == HostingProvider.GITHUB:
            return GitHubRepoClient(self._http, self._settings.github_token)
        if provider == HostingProvider.GITLAB:
            return GitLabRepoClient(self._http, self._settings.gitlab_token)
        return LocalDirRepoClient()

    async def initialize(
        self,
        client: FactSource,
        repo: RepoCoordinate,
        revision: str = HEAD_REVISION,
        depth: int = 0,
    ) -> bool:
        """Initialize ``client`` for ``repo``. Returns False (and logs) on failure."""
        try:
            await client.init_repo(repo, revision, depth)
        except FactSourceError as exc:
            logger.warning("Could not initialize %s at %s: %s", repo.uri, revision, exc)
            return False
        return True

    async def open(self, repo: RepoCoordinate, revision: str = HEAD_REVISION) -> FactSource:
        """Create and initialize a fact source, raising FactSourceError on failure."""
        client = self.create_client(repo.provider)
        await client.init_repo(repo, revision, 0)
        return client
