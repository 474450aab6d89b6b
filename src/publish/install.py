"""Idempotent install of a module into a filesystem Ivy repository."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from archive.normalize import (
    METADATA_PREFIX,
    MissingBinaryArtifactError,
    strip_metadata_entries,
)
from contract.coordinates import parse_module, parse_module_location
from contract.errors import PublishError
from contract.layout import ArtifactDestinations
from descriptor.ivy import render_ivy_module
from verify.freshness import FreshnessResult, check_freshness

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from contract.coordinates import Module, ModuleLocation

log = logging.getLogger(__name__)


class DestinationWriteError(PublishError):
    """Raised when a destination file in the version directory cannot be written.

    The version directory may hold a partial set of updated files; publishing
    again completes it.
    """

    def __init__(self, message: str, destination: Path) -> None:
        super().__init__(message)
        self.destination = destination


class MissingSourcesArtifactError(PublishError):
    """Raised when a sources archive is given but is not a regular file."""


def _parse_all(
    repo: Path, coordinates: str, dependencies: Sequence[str]
) -> tuple[ModuleLocation, list[Module]]:
    location = parse_module_location(coordinates, repo)
    return location, [parse_module(dependency) for dependency in dependencies]


def _check_sources(sources: Path | None) -> None:
    if sources is not None and not sources.is_file():
        log.error("Invalid sources archive: %s", sources)
        msg = f"Sources artifact does not exist or is not a regular file: {sources}"
        raise MissingSourcesArtifactError(msg)


def install_to_ivy_repo(
    repo: Path,
    coordinates: str,
    dependencies: Sequence[str],
    binary: Path,
    sources: Path | None = None,
    *,
    metadata_prefix: str = METADATA_PREFIX,
) -> bool:
    """Publish ``binary`` (and optionally ``sources``) under ``coordinates``.

    The binary is normalized in place first, so the freshness check compares
    the archive that would actually be published. When every destination is
    already byte-identical nothing is written.

    Args:
        repo: Repository root.
        coordinates: ``group:name:version`` of the published module.
        dependencies: Direct dependency coordinates, in descriptor order.
        binary: Binary archive to publish. Rewritten in place without
            entries under ``metadata_prefix``.
        sources: Optional sources archive. When absent, a previously
            published sources archive is removed.
        metadata_prefix: Archive entry prefix to strip from the binary.

    Returns:
        True if any destination was written, False if already up to date.

    Raises:
        MalformedCoordinatesError: If any coordinate string is malformed.
            Raised before any filesystem mutation.
        MissingSourcesArtifactError: If ``sources`` is given but is not a
            regular file. Raised before any filesystem mutation.
        ArchiveError: If the binary is missing or cannot be normalized.
        DestinationWriteError: If a destination cannot be written.
    """
    location, dependency_modules = _parse_all(repo, coordinates, dependencies)
    module = location.module
    _check_sources(sources)
    destinations = ArtifactDestinations.for_location(location)

    location.version_dir.mkdir(parents=True, exist_ok=True)

    strip_metadata_entries(binary, prefix=metadata_prefix)

    descriptor = render_ivy_module(module, dependency_modules)

    freshness = check_freshness(
        binary_destination=destinations.binary,
        sources_destination=destinations.sources,
        descriptor_destination=destinations.descriptor,
        sources=sources,
        binary=binary,
        descriptor=descriptor,
    )
    if freshness.fresh:
        log.info("%s is up to date in %s", module.coordinates, location.version_dir)
        return False

    log.debug("Stale destinations for %s: %s", module.coordinates, freshness.stale)
    _write_destinations(destinations, binary, sources, descriptor)
    log.info("Published %s to %s", module.coordinates, location.version_dir)
    return True


def check_installed(
    repo: Path,
    coordinates: str,
    dependencies: Sequence[str],
    binary: Path,
    sources: Path | None = None,
    *,
    metadata_prefix: str = METADATA_PREFIX,
) -> FreshnessResult:
    """Report whether :func:`install_to_ivy_repo` would write anything.

    Unlike the install, nothing is mutated: a temporary copy of the binary
    is normalized and compared instead.
    """
    location, dependency_modules = _parse_all(repo, coordinates, dependencies)
    destinations = ArtifactDestinations.for_location(location)
    descriptor = render_ivy_module(location.module, dependency_modules)
    _check_sources(sources)

    if not binary.is_file():
        msg = f"Binary artifact does not exist or is not a regular file: {binary}"
        raise MissingBinaryArtifactError(msg)

    with tempfile.TemporaryDirectory() as temp_dir:
        candidate = Path(temp_dir) / binary.name
        shutil.copyfile(binary, candidate)
        strip_metadata_entries(candidate, prefix=metadata_prefix)

        return check_freshness(
            binary_destination=destinations.binary,
            sources_destination=destinations.sources,
            descriptor_destination=destinations.descriptor,
            sources=sources,
            binary=candidate,
            descriptor=descriptor,
        )


def _write_destinations(
    destinations: ArtifactDestinations,
    binary: Path,
    sources: Path | None,
    descriptor: str,
) -> None:
    if sources is None:
        _write(destinations.sources, lambda: destinations.sources.unlink(missing_ok=True))
    else:
        _write(destinations.sources, lambda: shutil.copyfile(sources, destinations.sources))

    _write(destinations.binary, lambda: shutil.copyfile(binary, destinations.binary))

    # bytes, not text: newline translation would break the freshness check
    payload = descriptor.encode("utf-8")
    _write(destinations.descriptor, lambda: destinations.descriptor.write_bytes(payload))


def _write(destination: Path, action: Callable[[], object]) -> None:
    try:
        action()
    except OSError as exc:
        msg = f"Failed to write {destination}: {exc}"
        raise DestinationWriteError(msg, destination) from exc


__all__ = [
    "DestinationWriteError",
    "MissingSourcesArtifactError",
    "check_installed",
    "install_to_ivy_repo",
]
