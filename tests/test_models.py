"""Tests for domain models: coordinates, dependency graphs, reports."""

from __future__ import annotations

import copy
import dataclasses

import pytest

from repo_scorecard.models import (
    DependencyGraph,
    DependencyNode,
    DependencyReport,
    Finding,
    HostingProvider,
    Outcome,
    PackageData,
    PackageVersion,
    RepoCoordinate,
    SkippedDependency,
    SourceLink,
    VersionKey,
    VersionMetadata,
)


def _key(name: str, version: str = "1.0.0") -> VersionKey:
    return VersionKey(system="NPM", name=name, version=version)


class TestRepoCoordinate:
    def test_parse_https_github_url(self):
        repo = RepoCoordinate.parse("https://github.com/ossf/scorecard")
        assert repo == RepoCoordinate(host="github.com", owner="ossf", name="scorecard")
        assert repo.uri == "github.com/ossf/scorecard"
        assert repo.provider == HostingProvider.GITHUB

    def test_parse_strips_git_suffix_and_browse_path(self):
        assert RepoCoordinate.parse("https://github.com/OWNER/REPO.git").uri == (
            "github.com/OWNER/REPO"
        )
        assert RepoCoordinate.parse("github.com/owner/repo/tree/main/docs").uri == (
            "github.com/owner/repo"
        )

    def test_parse_gitlab_nested_groups(self):
        repo = RepoCoordinate.parse("https://gitlab.com/group/sub/project")
        assert repo.owner == "group/sub"
        assert repo.name == "project"
        assert repo.project == "group/sub/project"
        assert repo.provider == HostingProvider.GITLAB

    def test_parse_gitlab_cuts_at_dash_segment(self):
        repo = RepoCoordinate.parse("https://gitlab.com/group/project/-/tree/main")
        assert repo.uri == "gitlab.com/group/project"

    def test_parse_file_uri(self):
        repo = RepoCoordinate.parse("file:///tmp/checkout")
        assert repo.provider == HostingProvider.LOCALDIR
        assert repo.name == "/tmp/checkout"
        assert repo.uri == "file:///tmp/checkout"

    @pytest.mark.parametrize("uri", ["", "github.com", "github.com/only-owner", "not-a-repo"])
    def test_parse_rejects_incomplete_uri(self, uri):
        with pytest.raises(ValueError, match="expected host/owner/repo"):
            RepoCoordinate.parse(uri)

    def test_frozen(self):
        repo = RepoCoordinate.parse("github.com/a/b")
        with pytest.raises(dataclasses.FrozenInstanceError):
            repo.name = "c"  # type: ignore[misc]


class TestVersionKey:
    def test_str_and_package(self):
        key = VersionKey(system="GO", name="golang.org/x/net", version="v0.1.0")
        assert str(key) == "GO:golang.org/x/net@v0.1.0"
        assert key.package.system == "GO"
        assert key.package.name == "golang.org/x/net"


class TestPackageData:
    def test_default_version_prefers_flagged(self):
        data = PackageData(
            package_key=_key("left-pad").package,
            versions=[
                PackageVersion(version_key=_key("left-pad", "1.0.0")),
                PackageVersion(version_key=_key("left-pad", "1.3.0"), is_default=True),
            ],
        )
        assert data.default_version == "1.3.0"

    def test_default_version_falls_back_to_first(self):
        data = PackageData(
            package_key=_key("left-pad").package,
            versions=[PackageVersion(version_key=_key("left-pad", "0.9.0"))],
        )
        assert data.default_version == "0.9.0"

    def test_default_version_none_without_versions(self):
        assert PackageData(package_key=_key("x").package).default_version is None


class TestDependencyGraph:
    def test_direct_dependencies_excludes_self_and_indirect(self):
        graph = DependencyGraph(
            nodes=[
                DependencyNode(version_key=_key("app"), relation="SELF"),
                DependencyNode(version_key=_key("a"), relation="DIRECT"),
                DependencyNode(version_key=_key("b"), relation="INDIRECT"),
                DependencyNode(version_key=_key("c"), relation=""),
            ]
        )
        names = [n.version_key.name for n in graph.direct_dependencies()]
        assert names == ["a", "c"]

    def test_direct_dependencies_deduplicates_in_order(self):
        graph = DependencyGraph(
            nodes=[
                DependencyNode(version_key=_key("b"), relation="DIRECT"),
                DependencyNode(version_key=_key("a"), relation="DIRECT"),
                DependencyNode(version_key=_key("b"), relation="DIRECT"),
            ]
        )
        names = [n.version_key.name for n in graph.direct_dependencies()]
        assert names == ["b", "a"]

    def test_self_only_graph_has_no_dependencies(self):
        graph = DependencyGraph(nodes=[DependencyNode(version_key=_key("app"), relation="SELF")])
        assert graph.direct_dependencies() == []


class TestVersionMetadata:
    def test_source_repo_link_picks_label(self):
        metadata = VersionMetadata(
            version_key=_key("a"),
            links=[
                SourceLink(label="HOMEPAGE", url="https://example.com"),
                SourceLink(label="SOURCE_REPO", url="https://github.com/a/a"),
            ],
        )
        assert metadata.source_repo_link == SourceLink(
            label="SOURCE_REPO", url="https://github.com/a/a"
        )

    def test_source_repo_link_missing(self):
        assert VersionMetadata(version_key=_key("a")).source_repo_link is None


class TestDependencyReport:
    def test_num_skipped(self):
        report = DependencyReport(
            skipped=[
                SkippedDependency(version_key=_key("a"), reason="x"),
                SkippedDependency(version_key=_key("b"), reason="y"),
            ]
        )
        assert report.num_skipped == 2


class TestFinding:
    def test_defaults(self):
        finding = Finding(probe="p", outcome=Outcome.POSITIVE, message="ok")
        assert finding.values == {}
        assert finding.location is None
        assert finding.remediation is None

    def test_values_read_only(self):
        finding = Finding(
            probe="p", outcome=Outcome.POSITIVE, message="ok", values={"tool": "Dependabot"}
        )
        with pytest.raises(TypeError, match="read-only"):
            finding.values["tool"] = "other"
        with pytest.raises(TypeError):
            finding.values.update(extra=1)
        assert finding.values == {"tool": "Dependabot"}

    def test_values_copied_from_caller_dict(self):
        raw = {"permission": "contents"}
        finding = Finding(probe="p", outcome=Outcome.NEGATIVE, message="bad", values=raw)
        raw["permission"] = "packages"
        assert finding.values == {"permission": "contents"}

    def test_values_serialize_as_plain_mapping(self):
        finding = Finding(probe="p", outcome=Outcome.POSITIVE, message="ok", values={"n": 1})
        assert dataclasses.asdict(finding)["values"] == {"n": 1}
        assert dataclasses.replace(finding, message="x").values == {"n": 1}
        assert copy.deepcopy(finding).values == {"n": 1}
