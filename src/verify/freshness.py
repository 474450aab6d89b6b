"""Freshness check for a publish.

A publish is fresh when every destination already holds exactly the bytes the
publish would write. Comparison is a chunked byte-for-byte stream compare:
no hashes, no size or mtime shortcuts.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path
    from typing import BinaryIO

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FreshnessResult:
    binary: bool
    sources: bool
    descriptor: bool
    stale: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        stale = tuple(
            name
            for name, fresh in (
                ("binary", self.binary),
                ("sources", self.sources),
                ("descriptor", self.descriptor),
            )
            if not fresh
        )
        object.__setattr__(self, "stale", stale)

    @property
    def fresh(self) -> bool:
        return self.binary and self.sources and self.descriptor


def streams_equal(first: BinaryIO, second: BinaryIO) -> bool:
    """Return True when both streams yield exactly the same bytes."""
    while True:
        left = first.read(_CHUNK_SIZE)
        right = second.read(_CHUNK_SIZE)
        if left != right:
            return False
        if not left:
            return True


def file_matches(destination: Path, candidate: Path) -> bool:
    if not destination.is_file():
        return False
    with destination.open("rb") as existing, candidate.open("rb") as incoming:
        return streams_equal(existing, incoming)


def file_matches_bytes(destination: Path, content: bytes) -> bool:
    if not destination.is_file():
        return False
    with destination.open("rb") as existing:
        return streams_equal(existing, io.BytesIO(content))


def check_freshness(
    *,
    binary_destination: Path,
    sources_destination: Path,
    descriptor_destination: Path,
    sources: Path | None,
    binary: Path,
    descriptor: str,
) -> FreshnessResult:
    """Compare the current destinations against what a publish would write.

    Args:
        binary_destination: Where the binary archive is published.
        sources_destination: Where the sources archive is published.
        descriptor_destination: Where the Ivy descriptor is published.
        sources: Candidate sources archive, or None when none is published.
            Without a candidate the sources destination must not exist.
        binary: Candidate (normalized) binary archive.
        descriptor: Candidate descriptor document, compared as UTF-8.

    Returns:
        FreshnessResult with one flag per destination.
    """
    if sources is None:
        sources_fresh = not sources_destination.exists()
    else:
        sources_fresh = file_matches(sources_destination, sources)

    return FreshnessResult(
        binary=file_matches(binary_destination, binary),
        sources=sources_fresh,
        descriptor=file_matches_bytes(
            descriptor_destination, descriptor.encode("utf-8")
        ),
    )


__all__ = [
    "FreshnessResult",
    "check_freshness",
    "file_matches",
    "file_matches_bytes",
    "streams_equal",
]
