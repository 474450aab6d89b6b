from __future__ import annotations

from pathlib import Path
from typing import Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from archive.normalize import METADATA_PREFIX
from contract.errors import PublishError

CONFIG_FILENAME = "ivypublish.toml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class PublishConfig(BaseModel):
    """Configuration for ivypublish, read from ivypublish.toml."""

    model_config = ConfigDict(extra="forbid")

    repository: str | None = Field(
        default=None,
        description="Default repository root, relative to the project directory",
    )
    metadata_prefix: str = Field(
        default=METADATA_PREFIX,
        description="Archive entries under this prefix are stripped before publishing",
    )
    log_level: LogLevel = Field(
        default="WARNING",
        description="Log level used by the command-line interface",
    )

    @field_validator("metadata_prefix")
    @classmethod
    def validate_metadata_prefix(cls, v: str) -> str:
        if not v or not v.endswith("/"):
            msg = f"metadata_prefix must be a non-empty directory prefix ending in '/', got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.upper()
        return v


class ConfigError(PublishError):
    """Raised when config file exists but cannot be parsed."""


def resolve_repository_dir(project: Path, repository: str) -> Path:
    """Resolve a config-provided repository root.

    Absolute paths (including ``~``) are taken as-is. Relative paths are
    resolved against the project directory and must not escape it.
    """
    if not repository:
        msg = "repository must be a non-empty path"
        raise ConfigError(msg)

    repository_path = Path(repository).expanduser()
    if repository_path.is_absolute():
        return repository_path.resolve()

    try:
        resolved_project = project.resolve()
        resolved_repository = (resolved_project / repository_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve repository '{repository}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_repository.relative_to(resolved_project)
    except ValueError as exc:
        msg = f"repository '{repository}' escapes the project directory"
        raise ConfigError(msg) from exc

    return resolved_repository


def load_config(project: Path) -> PublishConfig:
    """Load configuration from ivypublish.toml if it exists."""
    config_path = project / CONFIG_FILENAME

    if not config_path.is_file():
        return PublishConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return PublishConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
