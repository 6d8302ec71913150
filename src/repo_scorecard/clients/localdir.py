"""Fact source over a directory on the local filesystem."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from repo_scorecard.clients.base import HEAD_REVISION, FilePredicate
from repo_scorecard.errors import FactSourceError
from repo_scorecard.models import RepoCoordinate

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({".git", ".hg", ".svn"})


class LocalDirRepoClient:
    """Fact source for a checked-out directory.

    The file list is snapshotted in ``init_repo``; contents are read
    lazily, so the directory must not change during an evaluation.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root).resolve() if root is not None else None
        self._repo: RepoCoordinate | None = None
        self._files: list[str] | None = None

    @property
    def repo(self) -> RepoCoordinate | None:
        return self._repo

    @property
    def default_branch(self) -> str:
        return ""

    @property
    def commit(self) -> str:
        return HEAD_REVISION

    async def init_repo(
        self,
        repo: RepoCoordinate | None = None,
        revision: str = HEAD_REVISION,
        depth: int = 0,
    ) -> None:
        if repo is not None:
            self._root = Path(repo.name).resolve()
        if self._root is None:
            raise FactSourceError("Local directory client has no root directory.")
        if not self._root.is_dir():
            raise FactSourceError(f"Cannot read '{self._root}': not a directory.")
        if revision not in ("", HEAD_REVISION):
            logger.debug("Ignoring revision '%s' for local directory %s", revision, self._root)

        self._files = await asyncio.to_thread(_walk, self._root)
        self._repo = repo or RepoCoordinate.local(str(self._root))

    async def list_files(self, predicate: FilePredicate) -> list[str]:
        if self._files is None:
            raise FactSourceError("Local directory client used before init_repo.")
        return [path for path in self._files if predicate(path)]

    async def read_file(self, path: str) -> bytes:
        if self._root is None or self._files is None:
            raise FactSourceError("Local directory client used before init_repo.")
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise FactSourceError(f"Refusing to read '{path}' outside {self._root}.")
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise FactSourceError(f"Could not read {target}: {exc}") from exc


def _walk(root: Path) -> list[str]:
    files: list[str] = []
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root)
        if any(part in _SKIPPED_DIRS for part in rel.parts):
            continue
        if path.is_file():
            files.append(rel.as_posix())
    return files
