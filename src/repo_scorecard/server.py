"""MCP server that scores repositories and their dependencies on security practices."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from repo_scorecard.clients.base import RepoClientFactoryPort
from repo_scorecard.clients.factory import RepoClientFactory
from repo_scorecard.config import Settings
from repo_scorecard.packages.base import PackageMetadataPort
from repo_scorecard.packages.depsdev import DepsDevClient
from repo_scorecard.tools.evaluate import evaluate_repository


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations."""

    http_client: httpx.AsyncClient
    settings: Settings
    package_client: PackageMetadataPort
    repo_factory: RepoClientFactoryPort


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Build the shared adapters and close the HTTP client on shutdown."""
    settings = Settings.from_env()
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=10.0),
        follow_redirects=True,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        transport=httpx.AsyncHTTPTransport(retries=3),
    ) as http_client:
        yield AppContext(
            http_client=http_client,
            settings=settings,
            package_client=DepsDevClient(http_client, base_url=settings.deps_dev_base_url),
            repo_factory=RepoClientFactory(http_client, settings),
        )


mcp = FastMCP(
    "repo-scorecard",
    instructions=(
        "repo-scorecard scores a source repository on supply-chain security practices.\n\n"
        "Use evaluate_repository when the user asks whether a repository (or its "
        "dependencies) ships binaries, has an automated dependency update tool, or "
        "grants write permissions to workflow tokens.\n\n"
        "- Scores run from 0 (worst) to 10 (best); -1 means the check could not "
        "reach a conclusion, see its reason.\n"
        "- Dependency results are reported separately from the repository's own "
        "score. Mention how many dependencies were skipped and why.\n"
        "- Explain negative findings using their remediation text."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(evaluate_repository)
