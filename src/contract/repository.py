"""Repository registration surface.

Describes how a resolver has to be configured to read the layout the
publisher writes: Maven-style patterns with m2 compatible organisation paths,
metadata taken from the Ivy descriptor only, and no dynamic revisions.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

from contract.layout import JAR_EXTENSION

if TYPE_CHECKING:
    from collections.abc import Callable

    from contract.coordinates import Module

MAVEN_ARTIFACT_PATTERN = (
    "[organisation]/[module]/[revision]/[artifact]-[revision](-[classifier])(.[ext])"
)
MAVEN_IVY_PATTERN = "[organisation]/[module]/[revision]/ivy-[revision].xml"

MetadataSource = Literal["ivyDescriptor", "artifact", "gradleMetadata", "mavenPom"]

_OPTIONAL_PART = re.compile(r"\(([^()]*)\)")
_TOKEN = re.compile(r"\[([a-z]+)\]")


class IvyRepository(BaseModel):
    """Resolver configuration for a repository written by the publisher."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    url: str = Field(description="Repository root URL or path")
    artifact_pattern: str = Field(default=MAVEN_ARTIFACT_PATTERN)
    ivy_pattern: str = Field(default=MAVEN_IVY_PATTERN)
    m2compatible: bool = Field(
        default=True,
        description="Expand dots in the organisation into directories",
    )
    metadata_sources: list[MetadataSource] = Field(
        default_factory=lambda: ["ivyDescriptor"],
    )
    allow_insecure_protocol: bool = Field(default=True)
    dynamic_mode: bool = Field(
        default=False,
        description="Resolve dynamic revisions through the descriptor",
    )

    def artifact_path(
        self,
        module: Module,
        *,
        ext: str = JAR_EXTENSION,
        classifier: str | None = None,
    ) -> PurePosixPath:
        """Expand the artifact pattern for one artifact of a module."""
        tokens = self._module_tokens(module)
        tokens["artifact"] = module.name
        tokens["ext"] = ext
        tokens["classifier"] = classifier or ""
        return PurePosixPath(_expand_pattern(self.artifact_pattern, tokens))

    def descriptor_path(self, module: Module) -> PurePosixPath:
        """Expand the ivy pattern for a module's descriptor."""
        return PurePosixPath(
            _expand_pattern(self.ivy_pattern, self._module_tokens(module))
        )

    def _module_tokens(self, module: Module) -> dict[str, str]:
        organisation = module.group
        if self.m2compatible:
            organisation = organisation.replace(".", "/")
        return {
            "organisation": organisation,
            "module": module.name,
            "revision": module.version,
        }


def _expand_pattern(pattern: str, tokens: dict[str, str]) -> str:
    """Substitute ``[token]`` placeholders, dropping ``(...)`` groups whose
    tokens are empty or unknown."""

    def _optional(match: re.Match[str]) -> str:
        part = match.group(1)
        names = _TOKEN.findall(part)
        if not all(tokens.get(name) for name in names):
            return ""
        return part

    expanded = _OPTIONAL_PART.sub(_optional, pattern)

    def _required(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in tokens:
            msg = f"Unknown pattern token [{name}] in {pattern!r}"
            raise ValueError(msg)
        return tokens[name]

    return _TOKEN.sub(_required, expanded)


def setup_ivy_repository(
    url: str,
    configure: Callable[[IvyRepository], None] | None = None,
) -> IvyRepository:
    """Build the resolver configuration for ``url`` and apply ``configure``.

    The callback runs last so it can override any default.
    """
    repository = IvyRepository(url=url)
    if configure is not None:
        configure(repository)
    return repository


__all__ = [
    "MAVEN_ARTIFACT_PATTERN",
    "MAVEN_IVY_PATTERN",
    "IvyRepository",
    "MetadataSource",
    "setup_ivy_repository",
]
