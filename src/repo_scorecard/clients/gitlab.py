"""Fact source backed by the GitLab REST API (gitlab.com or self-hosted)."""

from __future__ import annotations

import logging
from urllib.parse import quote as urlquote

import httpx

from repo_scorecard.clients.base import HEAD_REVISION, FilePredicate
from repo_scorecard.errors import FactSourceError
from repo_scorecard.models import RepoCoordinate

logger = logging.getLogger(__name__)

_TREE_PAGE_SIZE = 100
# Hard stop for pathological trees (100 * 500 = 50k entries)
_MAX_TREE_PAGES = 500


class GitLabRepoClient:
    """Snapshot of a GitLab project pinned to one commit."""

    def __init__(self, http_client: httpx.AsyncClient, token: str | None = None) -> None:
        self._http = http_client
        self._token = token
        self._repo: RepoCoordinate | None = None
        self._project_url = ""
        self._default_branch = ""
        self._commit = ""
        self._files: list[str] | None = None

    @property
    def repo(self) -> RepoCoordinate | None:
        return self._repo

    @property
    def default_branch(self) -> str:
        return self._default_branch

    @property
    def commit(self) -> str:
        return self._commit

    async def init_repo(
        self,
        repo: RepoCoordinate,
        revision: str = HEAD_REVISION,
        depth: int = 0,
    ) -> None:
        project_url = f"https://{repo.host}/api/v4/projects/{urlquote(repo.project, safe='')}"

        project = await self._get_json(project_url, repo)
        default_branch = project.get("default_branch") or ""
        ref = default_branch if revision in ("", HEAD_REVISION) else revision
        if not ref:
            raise FactSourceError(f"{repo.uri}: project has no default branch.")

        commit = await self._get_json(
            f"{project_url}/repository/commits/{urlquote(ref, safe='')}", repo
        )
        sha = commit.get("id", "")
        if not sha:
            raise FactSourceError(f"{repo.uri}: could not resolve revision '{ref}'.")

        files = await self._list_tree(project_url, sha, repo)

        self._repo = repo
        self._project_url = project_url
        self._default_branch = default_branch
        self._commit = sha
        self._files = files

    async def list_files(self, predicate: FilePredicate) -> list[str]:
        if self._files is None:
            raise FactSourceError("GitLab client used before init_repo.")
        return [path for path in self._files if predicate(path)]

    async def read_file(self, path: str) -> bytes:
        if self._repo is None:
            raise FactSourceError("GitLab client used before init_repo.")
        url = f"{self._project_url}/repository/files/{urlquote(path, safe='')}/raw"
        resp = await self._get(url, params={"ref": self._commit})
        if resp.status_code != 200:
            raise FactSourceError(
                f"{self._repo.uri}: cannot read '{path}' (HTTP {resp.status_code})."
            )
        return resp.content

    async def _list_tree(self, project_url: str, sha: str, repo: RepoCoordinate) -> list[str]:
        """Walk the paginated recursive tree, following ``X-Next-Page``."""
        files: list[str] = []
        page = "1"
        for _ in range(_MAX_TREE_PAGES):
            resp = await self._get(
                f"{project_url}/repository/tree",
                params={
                    "recursive": "true",
                    "ref": sha,
                    "per_page": str(_TREE_PAGE_SIZE),
                    "page": page,
                },
            )
            if resp.status_code != 200:
                raise FactSourceError(
                    f"{repo.uri}: GitLab tree listing returned HTTP {resp.status_code}."
                )
            try:
                entries = resp.json()
            except ValueError as exc:
                raise FactSourceError(f"{repo.uri}: malformed GitLab tree response.") from exc
            files.extend(
                entry["path"]
                for entry in entries
                if entry.get("type") == "blob" and entry.get("path")
            )
            page = resp.headers.get("X-Next-Page", "").strip()
            if not page:
                return files

        logger.warning(
            "GitLab tree for %s exceeded %d pages; file list is partial.",
            repo.uri,
            _MAX_TREE_PAGES,
        )
        return files

    async def _get_json(self, url: str, repo: RepoCoordinate) -> dict:
        resp = await self._get(url)
        if resp.status_code == 404:
            raise FactSourceError(f"{repo.uri}: not found on {repo.host}.")
        if resp.status_code != 200:
            raise FactSourceError(f"{repo.uri}: GitLab API returned HTTP {resp.status_code}.")
        try:
            data = resp.json()
        except ValueError as exc:
            raise FactSourceError(f"{repo.uri}: malformed GitLab API response.") from exc
        if not isinstance(data, dict):
            raise FactSourceError(f"{repo.uri}: unexpected GitLab API response shape.")
        return data

    async def _get(self, url: str, *, params: dict[str, str] | None = None) -> httpx.Response:
        headers = {"PRIVATE-TOKEN": self._token} if self._token else {}
        try:
            return await self._http.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise FactSourceError(f"GitLab request failed: {exc}") from exc
