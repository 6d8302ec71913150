"""Domain models for repo-scorecard. All frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum

# ─── Enumerations ─────────────────────────────────────────────


class Outcome(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NOT_APPLICABLE = "not_applicable"
    ERROR = "error"


class CheckStatus(StrEnum):
    SCORED = "scored"
    INCONCLUSIVE = "inconclusive"
    ERROR = "error"


class HostingProvider(StrEnum):
    GITHUB = "github"
    GITLAB = "gitlab"
    LOCALDIR = "localdir"


class DependencyPolicy(StrEnum):
    AUXILIARY = "auxiliary"  # dependency findings reported, never scored
    FOLDED = "folded"  # dependency findings also count against the primary score


# ─── Finding Models ───────────────────────────────────────────


class FindingValues(dict[str, int | str]):
    """Read-only mapping of a finding's structured values.

    Stays a ``dict`` so ``dataclasses.asdict`` and JSON encoding handle it.
    """

    def _read_only(self, *args: object, **kwargs: object) -> None:
        raise TypeError("Finding values are read-only")

    __setitem__ = _read_only
    __delitem__ = _read_only
    __ior__ = _read_only
    clear = _read_only
    pop = _read_only
    popitem = _read_only
    setdefault = _read_only
    update = _read_only

    def __reduce__(self) -> tuple[type[FindingValues], tuple[dict[str, int | str]]]:
        return (type(self), (dict(self),))


@dataclass(frozen=True, slots=True)
class Location:
    """Where in the fact source a finding points to."""

    path: str
    line_start: int | None = None
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class Finding:
    """One probe's observation about one subject of a repository snapshot."""

    probe: str
    outcome: Outcome
    message: str
    values: FindingValues = field(default_factory=FindingValues)
    location: Location | None = None
    remediation: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.values, FindingValues):
            object.__setattr__(self, "values", FindingValues(self.values))


@dataclass(frozen=True, slots=True)
class ProbeDescriptor:
    """Static metadata attached to a probe id. Never drives control flow."""

    id: str
    lifecycle: str
    short: str = ""
    remediation_text: list[str] = field(default_factory=list)
    remediation_effort: str = ""
    on_outcome: str = ""
    clients: list[str] = field(default_factory=list)


# ─── Repository Models ────────────────────────────────────────

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)

GITHUB_HOST = "github.com"
LOCAL_HOST = "file"


@dataclass(frozen=True, slots=True)
class RepoCoordinate:
    """A repository on a hosting provider, e.g. ``github.com/ossf/scorecard``.

    ``owner`` may contain slashes for nested GitLab groups.
    Local directories use ``host="file"`` and keep the path in ``name``.
    """

    host: str
    owner: str
    name: str

    @property
    def uri(self) -> str:
        if self.host == LOCAL_HOST:
            return f"file://{self.name}"
        return f"{self.host}/{self.owner}/{self.name}"

    @property
    def project(self) -> str:
        """``owner/name`` as used by the hosting and package-metadata APIs."""
        return f"{self.owner}/{self.name}"

    @property
    def provider(self) -> HostingProvider:
        if self.host == LOCAL_HOST:
            return HostingProvider.LOCALDIR
        if self.host == GITHUB_HOST:
            return HostingProvider.GITHUB
        return HostingProvider.GITLAB

    @classmethod
    def local(cls, path: str) -> RepoCoordinate:
        return cls(host=LOCAL_HOST, owner="", name=path)

    @classmethod
    def parse(cls, uri: str) -> RepoCoordinate:
        """Parse ``https://host/owner/repo(.git)`` or bare ``host/owner/repo``.

        Raises:
            ValueError: If the URI has no host/owner/repo structure.
        """
        raw = uri.strip()
        if raw.lower().startswith("file://"):
            return cls.local(raw[len("file://"):])

        raw = _SCHEME_RE.sub("", raw).split("?", 1)[0].split("#", 1)[0].strip("/")
        if raw.endswith(".git"):
            raw = raw[: -len(".git")]
        parts = [p for p in raw.split("/") if p]
        if len(parts) < 3:
            raise ValueError(f"Invalid repository URI '{uri}': expected host/owner/repo.")

        host = parts[0].lower()
        if host == GITHUB_HOST:
            # Anything after owner/repo is a browse path (tree/, blob/, ...)
            return cls(host=host, owner=parts[1], name=parts[2])

        if "-" in parts:
            parts = parts[: parts.index("-")]
            if len(parts) < 3:
                raise ValueError(f"Invalid repository URI '{uri}': expected host/owner/repo.")
        return cls(host=host, owner="/".join(parts[1:-1]), name=parts[-1])


# ─── Package Metadata Models ──────────────────────────────────


@dataclass(frozen=True, slots=True)
class PackageCoordinate:
    """A package in the metadata service namespace, e.g. (``GO``, ``golang.org/x/net``)."""

    system: str
    name: str


@dataclass(frozen=True, slots=True)
class VersionKey:
    """A fully resolved package version."""

    system: str
    name: str
    version: str

    @property
    def package(self) -> PackageCoordinate:
        return PackageCoordinate(system=self.system, name=self.name)

    def __str__(self) -> str:
        return f"{self.system}:{self.name}@{self.version}"


@dataclass(frozen=True, slots=True)
class SlsaProvenance:
    source_repository: str
    commit: str = ""
    verified: bool = False


@dataclass(frozen=True, slots=True)
class ProjectPackageVersion:
    """A package version the service links to a source project."""

    version_key: VersionKey
    relation_type: str = ""
    relation_provenance: str = ""
    slsa_provenances: list[SlsaProvenance] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PackageVersion:
    version_key: VersionKey
    published_at: str = ""
    is_default: bool = False
    purl: str = ""


@dataclass(frozen=True, slots=True)
class PackageData:
    """A package and its published versions."""

    package_key: PackageCoordinate
    versions: list[PackageVersion] = field(default_factory=list)

    @property
    def default_version(self) -> str | None:
        for version in self.versions:
            if version.is_default:
                return version.version_key.version
        if self.versions:
            return self.versions[0].version_key.version
        return None


SELF_RELATION = "SELF"
INDIRECT_RELATION = "INDIRECT"


@dataclass(frozen=True, slots=True)
class DependencyNode:
    version_key: VersionKey
    relation: str = ""
    bundled: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def is_self(self) -> bool:
        return self.relation == SELF_RELATION

    @property
    def is_direct(self) -> bool:
        return self.relation not in (SELF_RELATION, INDIRECT_RELATION)


@dataclass(frozen=True, slots=True)
class DependencyEdge:
    from_node: int
    to_node: int
    requirement: str = ""


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """Resolved dependency graph of one package version."""

    nodes: list[DependencyNode] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)
    error: str = ""

    def direct_dependencies(self) -> list[DependencyNode]:
        """Direct nodes (neither SELF nor INDIRECT), de-duplicated, in graph order."""
        seen: set[VersionKey] = set()
        result: list[DependencyNode] = []
        for node in self.nodes:
            if not node.is_direct or node.version_key in seen:
                continue
            seen.add(node.version_key)
            result.append(node)
        return result


SOURCE_REPO_LABEL = "SOURCE_REPO"


@dataclass(frozen=True, slots=True)
class SourceLink:
    label: str
    url: str


@dataclass(frozen=True, slots=True)
class VersionMetadata:
    """Metadata of one published package version."""

    version_key: VersionKey
    links: list[SourceLink] = field(default_factory=list)
    licenses: list[str] = field(default_factory=list)
    advisory_keys: list[str] = field(default_factory=list)
    published_at: str = ""
    is_default: bool = False
    purl: str = ""

    @property
    def source_repo_link(self) -> SourceLink | None:
        for link in self.links:
            if link.label == SOURCE_REPO_LABEL:
                return link
        return None


# ─── Check Result Models ──────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DependencyResult:
    """Evaluation of one direct dependency's source repository."""

    version_key: VersionKey
    repo: str
    result: CheckResult


@dataclass(frozen=True, slots=True)
class SkippedDependency:
    version_key: VersionKey
    reason: str


@dataclass(frozen=True, slots=True)
class DependencyReport:
    """Auxiliary dependency findings attached to a primary check result."""

    package: VersionKey | None = None
    results: list[DependencyResult] = field(default_factory=list)
    skipped: list[SkippedDependency] = field(default_factory=list)
    status_message: str = ""

    @property
    def num_skipped(self) -> int:
        return len(self.skipped)


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Scored, explained output of one check.

    ``score`` is in [0, 10] when ``status`` is ``scored``, otherwise -1.
    """

    name: str
    score: int
    status: CheckStatus
    reason: str
    findings: list[Finding] = field(default_factory=list)
    dependencies: DependencyReport | None = None


# ─── Scoring Models ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ScoringPolicy:
    """Per-check weighting of negative findings.

    ``cap_per_location`` bounds the total penalty attributed to one
    location (file path, or probe id for findings without a location).
    """

    penalty: int
    cap_per_location: int | None = None
    pass_reason: str = "no issues detected"
    fail_reason: str = "{count} issue(s) detected"
