"""Archive normalization for published binaries."""

from archive.normalize import (
    METADATA_PREFIX,
    ArchiveError,
    ArchiveReplaceError,
    ArchiveRewriteError,
    MissingBinaryArtifactError,
    NormalizeResult,
    strip_metadata_entries,
)

__all__ = [
    "METADATA_PREFIX",
    "ArchiveError",
    "ArchiveReplaceError",
    "ArchiveRewriteError",
    "MissingBinaryArtifactError",
    "NormalizeResult",
    "strip_metadata_entries",
]
