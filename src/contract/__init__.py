"""Stable publish contract: coordinates, destination layout, and the
repository registration surface that reads it back."""

from contract.coordinates import (
    MalformedCoordinatesError,
    Module,
    ModuleLocation,
    parse_module,
    parse_module_location,
)
from contract.errors import PublishError
from contract.layout import ArtifactDestinations


def __getattr__(name: str) -> object:
    if name in {"IvyRepository", "setup_ivy_repository"}:
        from contract.repository import IvyRepository, setup_ivy_repository

        return {
            "IvyRepository": IvyRepository,
            "setup_ivy_repository": setup_ivy_repository,
        }[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "ArtifactDestinations",
    "IvyRepository",
    "MalformedCoordinatesError",
    "Module",
    "ModuleLocation",
    "PublishError",
    "parse_module",
    "parse_module_location",
    "setup_ivy_repository",
]
