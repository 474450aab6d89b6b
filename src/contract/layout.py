"""Destination file names inside a version directory.

These names are the stable contract between the publisher and any resolver
reading the repository (see ``contract.repository``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from contract.coordinates import Module, ModuleLocation

JAR_EXTENSION = "jar"
SOURCES_CLASSIFIER = "sources"


def binary_filename(module: Module) -> str:
    return f"{module.name}-{module.version}.{JAR_EXTENSION}"


def sources_filename(module: Module) -> str:
    return f"{module.name}-{module.version}-{SOURCES_CLASSIFIER}.{JAR_EXTENSION}"


def descriptor_filename(module: Module) -> str:
    return f"ivy-{module.version}.xml"


@dataclass(frozen=True)
class ArtifactDestinations:
    """The three destination paths a publish may touch."""

    binary: Path
    sources: Path
    descriptor: Path

    @classmethod
    def for_location(cls, location: ModuleLocation) -> ArtifactDestinations:
        module = location.module
        version_dir = location.version_dir
        return cls(
            binary=version_dir / binary_filename(module),
            sources=version_dir / sources_filename(module),
            descriptor=version_dir / descriptor_filename(module),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "binary": str(self.binary),
            "sources": str(self.sources),
            "descriptor": str(self.descriptor),
        }


__all__ = [
    "JAR_EXTENSION",
    "SOURCES_CLASSIFIER",
    "ArtifactDestinations",
    "binary_filename",
    "descriptor_filename",
    "sources_filename",
]
