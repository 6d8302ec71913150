"""Tests for repository fact sources and the client factory."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock

import httpx
import pytest

from repo_scorecard.clients.factory import RepoClientFactory
from repo_scorecard.clients.github import GitHubRepoClient
from repo_scorecard.clients.gitlab import GitLabRepoClient
from repo_scorecard.clients.localdir import LocalDirRepoClient
from repo_scorecard.config import Settings
from repo_scorecard.errors import FactSourceError
from repo_scorecard.models import HostingProvider, RepoCoordinate

GITHUB_REPO = RepoCoordinate.parse("github.com/acme/widget")
GITLAB_REPO = RepoCoordinate.parse("gitlab.com/group/sub/project")


def _http(*responses: httpx.Response | Exception) -> AsyncMock:
    http = AsyncMock(spec=httpx.AsyncClient)
    http.get.side_effect = list(responses)
    return http


def _github_init_responses() -> list[httpx.Response]:
    return [
        httpx.Response(200, json={"default_branch": "main"}),
        httpx.Response(200, json={"sha": "abc123"}),
        httpx.Response(
            200,
            json={
                "tree": [
                    {"path": "src", "type": "tree"},
                    {"path": "src/main.go", "type": "blob"},
                    {"path": "lib/vendor.jar", "type": "blob"},
                ],
                "truncated": False,
            },
        ),
    ]


# ─── GitHub ──────────────────────────────────────────────────


class TestGitHubRepoClient:
    async def test_init_repo_pins_default_branch_head(self):
        http = _http(*_github_init_responses())
        client = GitHubRepoClient(http, token="tok")

        await client.init_repo(GITHUB_REPO)

        assert client.repo == GITHUB_REPO
        assert client.default_branch == "main"
        assert client.commit == "abc123"
        urls = [call.args[0] for call in http.get.call_args_list]
        assert urls == [
            "https://api.github.com/repos/acme/widget",
            "https://api.github.com/repos/acme/widget/commits/main",
            "https://api.github.com/repos/acme/widget/git/trees/abc123",
        ]
        headers = http.get.call_args_list[0].kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"

    async def test_explicit_revision(self):
        http = _http(*_github_init_responses())
        client = GitHubRepoClient(http)

        await client.init_repo(GITHUB_REPO, revision="v1.2.3")

        assert http.get.call_args_list[1].args[0].endswith("/commits/v1.2.3")
        assert "Authorization" not in http.get.call_args_list[0].kwargs["headers"]

    async def test_list_files_only_blobs(self):
        client = GitHubRepoClient(_http(*_github_init_responses()))
        await client.init_repo(GITHUB_REPO)

        assert await client.list_files(lambda p: True) == ["src/main.go", "lib/vendor.jar"]
        assert await client.list_files(lambda p: p.endswith(".jar")) == ["lib/vendor.jar"]

    async def test_read_file_at_pinned_commit(self):
        http = _http(*_github_init_responses(), httpx.Response(200, content=b"PK\x03\x04"))
        client = GitHubRepoClient(http)
        await client.init_repo(GITHUB_REPO)

        content = await client.read_file("lib/vendor.jar")

        assert content == b"PK\x03\x04"
        call = http.get.call_args
        assert call.args[0] == "https://api.github.com/repos/acme/widget/contents/lib/vendor.jar"
        assert call.kwargs["params"] == {"ref": "abc123"}
        assert call.kwargs["headers"]["Accept"] == "application/vnd.github.raw+json"

    async def test_read_file_failure(self):
        http = _http(*_github_init_responses(), httpx.Response(403))
        client = GitHubRepoClient(http)
        await client.init_repo(GITHUB_REPO)

        with pytest.raises(FactSourceError, match="HTTP 403"):
            await client.read_file("lib/vendor.jar")

    async def test_missing_repo(self):
        client = GitHubRepoClient(_http(httpx.Response(404)))
        with pytest.raises(FactSourceError, match="not found on GitHub"):
            await client.init_repo(GITHUB_REPO)

    async def test_transport_error(self):
        client = GitHubRepoClient(_http(httpx.ConnectError("refused")))
        with pytest.raises(FactSourceError, match="GitHub request failed"):
            await client.init_repo(GITHUB_REPO)

    async def test_used_before_init(self):
        client = GitHubRepoClient(_http())
        with pytest.raises(FactSourceError, match="before init_repo"):
            await client.list_files(lambda p: True)

    async def test_rate_limit_exhaustion_blocks_further_requests(self):
        exhausted = httpx.Response(
            403,
            headers={
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(time.time()) + 600),
            },
        )
        http = _http(exhausted)
        client = GitHubRepoClient(http)

        with pytest.raises(FactSourceError, match="HTTP 403"):
            await client.init_repo(GITHUB_REPO)
        with pytest.raises(FactSourceError, match="rate limit exhausted"):
            await client.init_repo(GITHUB_REPO)
        assert http.get.await_count == 1


# ─── GitLab ──────────────────────────────────────────────────


class TestGitLabRepoClient:
    async def test_init_repo_paginates_tree(self):
        http = _http(
            httpx.Response(200, json={"default_branch": "trunk"}),
            httpx.Response(200, json={"id": "deadbeef"}),
            httpx.Response(
                200,
                json=[{"path": "a.txt", "type": "blob"}, {"path": "dir", "type": "tree"}],
                headers={"X-Next-Page": "2"},
            ),
            httpx.Response(200, json=[{"path": "dir/b.so", "type": "blob"}]),
        )
        client = GitLabRepoClient(http, token="glpat")

        await client.init_repo(GITLAB_REPO)

        assert client.default_branch == "trunk"
        assert client.commit == "deadbeef"
        assert await client.list_files(lambda p: True) == ["a.txt", "dir/b.so"]
        first = http.get.call_args_list[0]
        assert first.args[0] == "https://gitlab.com/api/v4/projects/group%2Fsub%2Fproject"
        assert first.kwargs["headers"] == {"PRIVATE-TOKEN": "glpat"}
        assert http.get.call_args_list[3].kwargs["params"]["page"] == "2"

    async def test_read_file(self):
        http = _http(
            httpx.Response(200, json={"default_branch": "main"}),
            httpx.Response(200, json={"id": "deadbeef"}),
            httpx.Response(200, json=[{"path": ".github/workflows/ci.yml", "type": "blob"}]),
            httpx.Response(200, content=b"on: push\n"),
        )
        client = GitLabRepoClient(http)
        await client.init_repo(GITLAB_REPO)

        assert await client.read_file(".github/workflows/ci.yml") == b"on: push\n"
        call = http.get.call_args
        assert call.args[0].endswith("/repository/files/.github%2Fworkflows%2Fci.yml/raw")
        assert call.kwargs["params"] == {"ref": "deadbeef"}

    async def test_missing_project(self):
        client = GitLabRepoClient(_http(httpx.Response(404)))
        with pytest.raises(FactSourceError, match="not found on gitlab.com"):
            await client.init_repo(GITLAB_REPO)


# ─── Local directory ─────────────────────────────────────────


class TestLocalDirRepoClient:
    async def test_lists_files_skipping_vcs_dirs(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "main.py").write_text("print()\n")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        client = LocalDirRepoClient()

        await client.init_repo(RepoCoordinate.local(str(tmp_path)))

        assert await client.list_files(lambda p: True) == ["src/main.py"]
        assert client.commit == "HEAD"
        assert await client.read_file("src/main.py") == b"print()\n"

    async def test_refuses_paths_outside_root(self, tmp_path):
        root = tmp_path / "repo"
        root.mkdir()
        (tmp_path / "secret.txt").write_text("x")
        client = LocalDirRepoClient(root)
        await client.init_repo()

        with pytest.raises(FactSourceError, match="outside"):
            await client.read_file("../secret.txt")

    async def test_missing_directory(self, tmp_path):
        client = LocalDirRepoClient(tmp_path / "nope")
        with pytest.raises(FactSourceError, match="not a directory"):
            await client.init_repo()

    async def test_no_root(self):
        with pytest.raises(FactSourceError, match="no root directory"):
            await LocalDirRepoClient().init_repo()


# ─── Factory ─────────────────────────────────────────────────


class TestRepoClientFactory:
    def test_create_client_by_provider(self):
        factory = RepoClientFactory(AsyncMock(spec=httpx.AsyncClient), Settings())
        assert isinstance(factory.create_client(HostingProvider.GITHUB), GitHubRepoClient)
        assert isinstance(factory.create_client(HostingProvider.GITLAB), GitLabRepoClient)
        assert isinstance(factory.create_client(HostingProvider.LOCALDIR), LocalDirRepoClient)

    async def test_initialize_returns_false_on_failure(self):
        factory = RepoClientFactory(_http(httpx.Response(404)), Settings())
        client = factory.create_client(HostingProvider.GITHUB)
        assert await factory.initialize(client, GITHUB_REPO) is False

    async def test_initialize_returns_true(self, tmp_path):
        factory = RepoClientFactory(AsyncMock(spec=httpx.AsyncClient), Settings())
        client = factory.create_client(HostingProvider.LOCALDIR)
        assert await factory.initialize(client, RepoCoordinate.local(str(tmp_path))) is True

    async def test_open_raises_on_failure(self):
        factory = RepoClientFactory(_http(httpx.Response(500)), Settings(github_token="t"))
        with pytest.raises(FactSourceError, match="HTTP 500"):
            await factory.open(GITHUB_REPO)
