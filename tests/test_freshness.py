from __future__ import annotations

import io
from pathlib import Path

from verify.freshness import (
    FreshnessResult,
    check_freshness,
    file_matches,
    streams_equal,
)

DESCRIPTOR = '<?xml version="1.0" encoding="UTF-8"?>\n<ivy-module/>'


def _layout(root: Path) -> dict[str, Path]:
    version_dir = root / "repo"
    version_dir.mkdir()
    candidates = root / "candidates"
    candidates.mkdir()
    return {
        "binary_destination": version_dir / "foo-1.0.jar",
        "sources_destination": version_dir / "foo-1.0-sources.jar",
        "descriptor_destination": version_dir / "ivy-1.0.xml",
        "binary": candidates / "foo.jar",
        "sources": candidates / "foo-sources.jar",
    }


def _check(paths: dict[str, Path], *, with_sources: bool) -> FreshnessResult:
    return check_freshness(
        binary_destination=paths["binary_destination"],
        sources_destination=paths["sources_destination"],
        descriptor_destination=paths["descriptor_destination"],
        sources=paths["sources"] if with_sources else None,
        binary=paths["binary"],
        descriptor=DESCRIPTOR,
    )


def _publish(paths: dict[str, Path], *, with_sources: bool) -> None:
    paths["binary"].write_bytes(b"binary")
    paths["binary_destination"].write_bytes(b"binary")
    paths["descriptor_destination"].write_bytes(DESCRIPTOR.encode("utf-8"))
    if with_sources:
        paths["sources"].write_bytes(b"sources")
        paths["sources_destination"].write_bytes(b"sources")


def test_nothing_published_is_stale(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    paths["binary"].write_bytes(b"binary")

    result = _check(paths, with_sources=False)

    assert not result.fresh
    assert result.stale == ("binary", "descriptor")


def test_identical_destinations_are_fresh(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    _publish(paths, with_sources=True)

    result = _check(paths, with_sources=True)

    assert result.fresh
    assert result.stale == ()


def test_absent_sources_fresh_only_without_destination(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    _publish(paths, with_sources=False)
    assert _check(paths, with_sources=False).fresh

    paths["sources_destination"].write_bytes(b"left over")

    result = _check(paths, with_sources=False)
    assert not result.fresh
    assert result.stale == ("sources",)


def test_same_size_different_bytes_is_stale(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    _publish(paths, with_sources=True)
    paths["sources"].write_bytes(b"SOURCES")

    result = _check(paths, with_sources=True)

    assert result.stale == ("sources",)


def test_descriptor_compared_as_utf8(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    _publish(paths, with_sources=False)
    paths["descriptor_destination"].write_bytes(
        DESCRIPTOR.replace("\n", "\r\n").encode("utf-8")
    )

    assert _check(paths, with_sources=False).stale == ("descriptor",)


def test_directory_destination_is_stale(tmp_path: Path) -> None:
    paths = _layout(tmp_path)
    _publish(paths, with_sources=False)
    paths["binary_destination"].unlink()
    paths["binary_destination"].mkdir()

    assert _check(paths, with_sources=False).stale == ("binary",)


def test_streams_equal_detects_prefix() -> None:
    assert streams_equal(io.BytesIO(b"abc"), io.BytesIO(b"abc"))
    assert not streams_equal(io.BytesIO(b"abc"), io.BytesIO(b"abcd"))
    assert not streams_equal(io.BytesIO(b""), io.BytesIO(b"a"))
    assert streams_equal(io.BytesIO(b""), io.BytesIO(b""))


def test_file_matches_large_content(tmp_path: Path) -> None:
    payload = bytes(range(256)) * 1024
    first = tmp_path / "first.bin"
    second = tmp_path / "second.bin"
    first.write_bytes(payload)
    second.write_bytes(payload[:-1] + b"\x00")

    assert file_matches(first, first)
    assert not file_matches(first, second)
