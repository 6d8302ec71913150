"""Fact source backed by the GitHub REST API."""

from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import quote as urlquote

import httpx

from repo_scorecard.clients.base import HEAD_REVISION, FilePredicate
from repo_scorecard.errors import FactSourceError
from repo_scorecard.models import RepoCoordinate

logger = logging.getLogger(__name__)

_API_URL = "https://api.github.com"
_MAX_CONCURRENT_REQUESTS = 5


class GitHubRepoClient:
    """Snapshot of a GitHub repository pinned to one commit.

    The recursive git tree is fetched once in ``init_repo``; file reads go
    through the contents API at the pinned commit SHA.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token: str | None = None,
        *,
        api_url: str = _API_URL,
    ) -> None:
        self._http = http_client
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._semaphore = asyncio.Semaphore(_MAX_CONCURRENT_REQUESTS)
        self._rate_limit_reset = 0.0
        self._logged_rate_limit_hint = False
        self._repo: RepoCoordinate | None = None
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
        """Resolve the default branch, pin ``revision`` to a SHA and snapshot the tree."""
        base = f"/repos/{repo.owner}/{repo.name}"

        repo_data = await self._get_json(base, repo)
        default_branch = repo_data.get("default_branch") or ""
        ref = default_branch if revision in ("", HEAD_REVISION) else revision
        if not ref:
            raise FactSourceError(f"{repo.uri}: repository has no default branch.")

        commit_data = await self._get_json(f"{base}/commits/{urlquote(ref, safe='')}", repo)
        sha = commit_data.get("sha", "")
        if not sha:
            raise FactSourceError(f"{repo.uri}: could not resolve revision '{ref}'.")

        tree_data = await self._get_json(
            f"{base}/git/trees/{sha}",
            repo,
            params={"recursive": "1"},
        )
        if tree_data.get("truncated"):
            logger.warning("Git tree for %s@%s is truncated; file list is partial.", repo.uri, sha)

        self._repo = repo
        self._default_branch = default_branch
        self._commit = sha
        self._files = [
            entry["path"]
            for entry in tree_data.get("tree", [])
            if entry.get("type") == "blob" and entry.get("path")
        ]

    async def list_files(self, predicate: FilePredicate) -> list[str]:
        if self._files is None:
            raise FactSourceError("GitHub client used before init_repo.")
        return [path for path in self._files if predicate(path)]

    async def read_file(self, path: str) -> bytes:
        if self._repo is None:
            raise FactSourceError("GitHub client used before init_repo.")
        url = (
            f"{self._api_url}/repos/{self._repo.owner}/{self._repo.name}"
            f"/contents/{urlquote(path, safe='/')}"
        )
        resp = await self._request(
            url,
            params={"ref": self._commit},
            accept="application/vnd.github.raw+json",
        )
        if resp.status_code != 200:
            raise FactSourceError(
                f"{self._repo.uri}: cannot read '{path}' (HTTP {resp.status_code})."
            )
        return resp.content

    # ── HTTP helpers ────────────────────────────────────────────

    async def _get_json(
        self,
        path: str,
        repo: RepoCoordinate,
        *,
        params: dict[str, str] | None = None,
    ) -> dict:
        resp = await self._request(f"{self._api_url}{path}", params=params)
        if resp.status_code == 404:
            raise FactSourceError(f"{repo.uri}: not found on GitHub.")
        if resp.status_code != 200:
            raise FactSourceError(f"{repo.uri}: GitHub API returned HTTP {resp.status_code}.")
        try:
            data = resp.json()
        except ValueError as exc:
            raise FactSourceError(f"{repo.uri}: malformed GitHub API response.") from exc
        if not isinstance(data, dict):
            raise FactSourceError(f"{repo.uri}: unexpected GitHub API response shape.")
        return data

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        accept: str = "application/vnd.github+json",
    ) -> httpx.Response:
        if self._is_rate_limited():
            raise FactSourceError("GitHub API rate limit exhausted; retry after reset.")

        headers = {"Accept": accept}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        async with self._semaphore:
            try:
                resp = await self._http.get(url, params=params, headers=headers)
            except httpx.HTTPError as exc:
                raise FactSourceError(f"GitHub request failed: {exc}") from exc

        self._check_rate_limit(resp)
        return resp

    def _is_rate_limited(self) -> bool:
        return time.monotonic() < self._rate_limit_reset

    def _check_rate_limit(self, resp: httpx.Response) -> None:
        """Update local rate-limit gate and emit a single clear warning message."""
        remaining = resp.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return
        try:
            remaining_value = int(remaining)
        except ValueError:
            return
        if remaining_value != 0:
            return

        try:
            reset_epoch = int(resp.headers.get("X-RateLimit-Reset", "0"))
        except ValueError:
            reset_epoch = 0
        self._rate_limit_reset = time.monotonic() + max(0, reset_epoch - time.time())

        if self._logged_rate_limit_hint:
            return
        logger.warning(
            "GitHub API rate limit exhausted (%s). Repository evaluation degraded until reset.",
            "authenticated" if self._token else "no auth token",
        )
        self._logged_rate_limit_hint = True
