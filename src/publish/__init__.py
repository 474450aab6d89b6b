"""Publish entry points."""

from publish.install import (
    DestinationWriteError,
    MissingSourcesArtifactError,
    check_installed,
    install_to_ivy_repo,
)

__all__ = [
    "DestinationWriteError",
    "MissingSourcesArtifactError",
    "check_installed",
    "install_to_ivy_repo",
]
