"""HTTP client for the deps.dev package-metadata API.

API docs: https://docs.deps.dev/api/
Base URL: https://api.deps.dev
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import quote as urlquote
from urllib.parse import urlsplit

import httpx

from repo_scorecard.config import DEFAULT_DEPS_DEV_BASE_URL
from repo_scorecard.errors import NotFoundError, ServiceError, UnsupportedDependencyError
from repo_scorecard.models import (
    DependencyEdge,
    DependencyGraph,
    DependencyNode,
    GITHUB_HOST,
    PackageCoordinate,
    PackageData,
    PackageVersion,
    ProjectPackageVersion,
    RepoCoordinate,
    SlsaProvenance,
    SourceLink,
    VersionKey,
    VersionMetadata,
)

logger = logging.getLogger(__name__)


def _seg(value: str) -> str:
    """Percent-encode one path segment, slashes included."""
    return urlquote(value, safe="")


def source_uri_from_metadata(metadata: VersionMetadata) -> RepoCoordinate:
    """Derive the canonical GitHub repository from version metadata.

    Takes the first ``SOURCE_REPO`` link, drops a ``git+`` prefix and a
    trailing ``.git``, and requires the URL host itself to be github.com.

    Raises:
        UnsupportedDependencyError: No source link, or the link is not on GitHub.
    """
    link = metadata.source_repo_link
    if link is None:
        raise UnsupportedDependencyError(
            f"{metadata.version_key}: no source repository link."
        )

    trimmed = link.url.strip().removeprefix("git+").removesuffix("/").removesuffix(".git")
    if "://" not in trimmed:
        trimmed = f"https://{trimmed}"
    parts = urlsplit(trimmed)
    host = (parts.hostname or "").removeprefix("www.")
    if host != GITHUB_HOST:
        raise UnsupportedDependencyError(
            f"{metadata.version_key}: source repository '{link.url}' is not on github.com."
        )
    try:
        return RepoCoordinate.parse(f"{GITHUB_HOST}{parts.path}")
    except ValueError as exc:
        raise UnsupportedDependencyError(
            f"{metadata.version_key}: cannot parse source repository '{link.url}'."
        ) from exc


@dataclass
class DepsDevClient:
    """Async client for the deps.dev API.

    Every operation is a single GET, so callers can retry any of them
    independently.
    """

    http: httpx.AsyncClient
    base_url: str = DEFAULT_DEPS_DEV_BASE_URL
    _version_cache: dict[VersionKey, VersionMetadata] = field(
        default_factory=dict,
        init=False,
        repr=False,
    )

    # ── Public API ────────────────────────────────────────────

    async def resolve_project_packages(
        self,
        host: str,
        project: str,
    ) -> list[ProjectPackageVersion]:
        """List package versions published from ``host/project``.

        Raises:
            NotFoundError: deps.dev does not know the project.
            ServiceError: Any other API failure.
        """
        data = await self._get(
            f"/v3/projects/{_seg(f'{host}/{project}')}:packageversions",
            what=f"project '{host}/{project}'",
        )
        return [self._parse_project_version(v) for v in data.get("versions") or []]

    async def get_package(self, system: str, name: str) -> PackageData:
        """Fetch a package and its versions."""
        data = await self._get(
            f"/v3alpha/systems/{_seg(system)}/packages/{_seg(name)}",
            what=f"package '{system}:{name}'",
        )
        key = data.get("packageKey") or {}
        return PackageData(
            package_key=PackageCoordinate(
                system=key.get("system", system),
                name=key.get("name", name),
            ),
            versions=[
                PackageVersion(
                    version_key=self._parse_version_key(v.get("versionKey")),
                    published_at=v.get("publishedAt") or "",
                    is_default=bool(v.get("isDefault", False)),
                    purl=v.get("purl") or "",
                )
                for v in data.get("versions") or []
            ],
        )

    async def get_package_dependencies(self, system: str, name: str) -> DependencyGraph:
        """Fetch the resolved dependency graph of the package's default version.

        Calls ``get_package`` first to find the default version.
        """
        package = await self.get_package(system, name)
        version = package.default_version
        if version is None:
            raise NotFoundError(f"deps.dev: package '{system}:{name}' has no versions.")

        data = await self._get(
            f"/v3alpha/systems/{_seg(system)}/packages/{_seg(name)}"
            f"/versions/{_seg(version)}:dependencies",
            what=f"dependencies of '{system}:{name}@{version}'",
        )
        graph = DependencyGraph(
            nodes=[
                DependencyNode(
                    version_key=self._parse_version_key(n.get("versionKey")),
                    relation=n.get("relation") or "",
                    bundled=bool(n.get("bundled", False)),
                    errors=list(n.get("errors") or []),
                )
                for n in data.get("nodes") or []
            ],
            edges=[
                DependencyEdge(
                    from_node=int(e.get("fromNode", 0)),
                    to_node=int(e.get("toNode", 0)),
                    requirement=e.get("requirement") or "",
                )
                for e in data.get("edges") or []
            ],
            error=data.get("error") or "",
        )
        if graph.error:
            logger.info(
                "deps.dev resolved %s:%s@%s with error: %s",
                system,
                name,
                version,
                graph.error,
            )
        return graph

    async def get_version_metadata(
        self,
        system: str,
        name: str,
        version: str,
    ) -> VersionMetadata:
        """Fetch metadata of one package version (cached per version key)."""
        cache_key = VersionKey(system=system, name=name, version=version)
        cached = self._version_cache.get(cache_key)
        if cached is not None:
            return cached

        data = await self._get(
            f"/v3alpha/systems/{_seg(system)}/packages/{_seg(name)}/versions/{_seg(version)}",
            what=f"version '{cache_key}'",
        )
        metadata = VersionMetadata(
            version_key=self._parse_version_key(data.get("versionKey"), fallback=cache_key),
            links=[
                SourceLink(label=link.get("label") or "", url=link.get("url") or "")
                for link in data.get("links") or []
            ],
            licenses=list(data.get("licenses") or []),
            advisory_keys=[
                a.get("id", "") if isinstance(a, dict) else str(a)
                for a in data.get("advisoryKeys") or []
            ],
            published_at=data.get("publishedAt") or "",
            is_default=bool(data.get("isDefault", False)),
            purl=data.get("purl") or "",
        )
        self._version_cache[cache_key] = metadata
        return metadata

    async def resolve_source_uri(
        self,
        system: str,
        name: str,
        version: str,
    ) -> RepoCoordinate:
        """Resolve the GitHub repository a package version was built from."""
        metadata = await self.get_version_metadata(system, name, version)
        return source_uri_from_metadata(metadata)

    # ── HTTP helper ──────────────────────────────────────────────

    async def _get(self, path: str, *, what: str) -> dict:
        url = f"{self.base_url.rstrip('/')}{path}"
        try:
            response = await self.http.get(url)
        except httpx.HTTPError as exc:
            raise ServiceError(f"deps.dev: failed to fetch {what}: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"deps.dev: {what} not found.")
        if response.status_code != 200:
            raise ServiceError(f"deps.dev: {response.status_code} fetching {what}.")

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError(f"deps.dev: malformed response for {what}.") from exc
        if not isinstance(data, dict):
            raise ServiceError(f"deps.dev: unexpected response shape for {what}.")
        return data

    # ── Parsing helpers ──────────────────────────────────────────

    @staticmethod
    def _parse_version_key(raw: dict | None, fallback: VersionKey | None = None) -> VersionKey:
        """Missing fields come from ``fallback``, else empty strings."""
        raw = raw or {}
        return VersionKey(
            system=raw.get("system") or (fallback.system if fallback else ""),
            name=raw.get("name") or (fallback.name if fallback else ""),
            version=raw.get("version") or (fallback.version if fallback else ""),
        )

    def _parse_project_version(self, raw: dict) -> ProjectPackageVersion:
        return ProjectPackageVersion(
            version_key=self._parse_version_key(raw.get("versionKey")),
            relation_type=raw.get("relationType") or "",
            relation_provenance=raw.get("relationProvenance") or "",
            slsa_provenances=[
                SlsaProvenance(
                    source_repository=p.get("sourceRepository") or "",
                    commit=p.get("commit") or "",
                    verified=bool(p.get("verified", False)),
                )
                for p in raw.get("slsaProvenances") or []
            ],
        )
