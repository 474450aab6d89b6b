"""Module coordinate parsing.

Coordinates are ``group:name:version`` strings. The version directory of a
module is ``root/<group with dots as separators>/<name>/<version>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contract.errors import PublishError

if TYPE_CHECKING:
    from pathlib import Path

COORDINATE_SEPARATOR = ":"

# path separators, and characters XML 1.0 cannot carry
_FORBIDDEN_CHARS = re.compile(r"[/\\\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
_RELATIVE_SEGMENTS = frozenset({".", ".."})


class MalformedCoordinatesError(PublishError, ValueError):
    """Raised when a coordinate string is not ``group:name:version``."""


@dataclass(frozen=True)
class Module:
    group: str
    name: str
    version: str

    @property
    def coordinates(self) -> str:
        return COORDINATE_SEPARATOR.join((self.group, self.name, self.version))


@dataclass(frozen=True)
class ModuleLocation:
    module: Module
    version_dir: Path


def parse_module(coordinates: str) -> Module:
    """Parse ``group:name:version`` into a Module.

    Raises:
        MalformedCoordinatesError: If the string does not split into exactly
            three non-empty fields. Fields must not contain path separators,
            be ``.`` or ``..``, or hold characters XML cannot represent; the
            group must not have empty dot-separated segments.
    """
    parts = coordinates.split(COORDINATE_SEPARATOR)
    if len(parts) != 3:
        msg = (
            f"Malformed coordinates {coordinates!r}: expected group:name:version, "
            f"got {len(parts)} field(s)"
        )
        raise MalformedCoordinatesError(msg)
    if not all(parts):
        msg = f"Malformed coordinates {coordinates!r}: empty field"
        raise MalformedCoordinatesError(msg)
    for field in parts:
        if _FORBIDDEN_CHARS.search(field) or field in _RELATIVE_SEGMENTS:
            msg = f"Malformed coordinates {coordinates!r}: invalid field {field!r}"
            raise MalformedCoordinatesError(msg)
    group, name, version = parts
    if not all(group.split(".")):
        msg = f"Malformed coordinates {coordinates!r}: empty segment in group {group!r}"
        raise MalformedCoordinatesError(msg)
    return Module(group=group, name=name, version=version)


def parse_module_location(coordinates: str, root: Path) -> ModuleLocation:
    """Parse coordinates and resolve the module's version directory under root."""
    module = parse_module(coordinates)
    version_dir = root.joinpath(*module.group.split("."), module.name, module.version)
    return ModuleLocation(module=module, version_dir=version_dir)


__all__ = [
    "COORDINATE_SEPARATOR",
    "MalformedCoordinatesError",
    "Module",
    "ModuleLocation",
    "parse_module",
    "parse_module_location",
]
