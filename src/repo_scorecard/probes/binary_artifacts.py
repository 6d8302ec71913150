"""Probe: the repository should not contain binary artifacts."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from repo_scorecard.clients.base import FactSource
from repo_scorecard.models import Finding, Location, Outcome

logger = logging.getLogger(__name__)

PROBE_ID = "freeOfUnverifiedBinaryArtifacts"

_BINARY_EXTENSIONS = frozenset({
    "a", "bin", "bundle", "class", "crx", "deb", "dex", "dey", "dll", "drv",
    "dylib", "efi", "elf", "exe", "iso", "jar", "lib", "macho", "msi", "o",
    "ocx", "par", "pyc", "pyo", "rpm", "so", "war", "wasm", "whl",
})

_MAGIC_NUMBERS = (
    b"\x7fELF",  # ELF
    b"MZ",  # PE / DOS
    b"PK\x03\x04",  # zip based: jar, war, whl, crx
    b"\xca\xfe\xba\xbe",  # Java class / Mach-O fat
    b"\xcf\xfa\xed\xfe",  # Mach-O 64
    b"\xce\xfa\xed\xfe",  # Mach-O 32
    b"\x00asm",  # WebAssembly
    b"!<arch>",  # ar archives: .a, .deb
    b"\xed\xab\xee\xdb",  # RPM
)

_SNIFF_BYTES = 8000


def has_binary_extension(path: str) -> bool:
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return suffix in _BINARY_EXTENSIONS


def is_binary_content(content: bytes) -> bool:
    """True for known executable magic numbers or content with NUL bytes."""
    if content.startswith(_MAGIC_NUMBERS):
        return True
    return b"\x00" in content[:_SNIFF_BYTES]


async def run(source: FactSource) -> list[Finding]:
    candidates = await source.list_files(has_binary_extension)

    findings: list[Finding] = []
    for path in candidates:
        content = await source.read_file(path)
        if not is_binary_content(content):
            logger.debug("Skipping %s: binary extension but text content", path)
            continue
        findings.append(
            Finding(
                probe=PROBE_ID,
                outcome=Outcome.NEGATIVE,
                message=f"binary artifact detected: {path}",
                location=Location(path=path),
            )
        )

    if not findings:
        return [
            Finding(
                probe=PROBE_ID,
                outcome=Outcome.POSITIVE,
                message="repository does not have binary artifacts",
            )
        ]
    return findings
