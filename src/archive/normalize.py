"""Binary archive normalization.

Entries under a reserved metadata prefix (``META-INF/`` by default) are
dropped so that signatures and manifests embedded by the build do not make
otherwise identical archives differ between builds.

Kept entries are copied as raw local records (header, compressed bytes and
any trailing data descriptor), so nothing is re-compressed. The central
directory is re-emitted from the source entries with new offsets.
"""

from __future__ import annotations

import logging
import os
import struct
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from contract.errors import PublishError

if TYPE_CHECKING:
    from typing import BinaryIO

log = logging.getLogger(__name__)

METADATA_PREFIX = "META-INF/"
TEMP_SUFFIX = "-temp"

_LOCAL_HEADER = struct.Struct("<IHHHHHIIIHH")
_LOCAL_HEADER_SIGNATURE = 0x04034B50
_CENTRAL_HEADER = struct.Struct("<IHHHHHHIIIHHHHHII")
_CENTRAL_HEADER_SIGNATURE = 0x02014B50
_END_RECORD = struct.Struct("<IHHHHIIH")
_END_RECORD_SIGNATURE = 0x06054B50
_DATA_DESCRIPTOR_SIGNATURE = b"PK\x07\x08"
_FLAG_DATA_DESCRIPTOR = 0x08
_ZIP32_LIMIT = 0xFFFFFFFF
_ZIP32_MAX_ENTRIES = 0xFFFF


class ArchiveError(PublishError):
    """Base class for archive normalization failures."""


class MissingBinaryArtifactError(ArchiveError):
    """Raised when the binary archive is missing or not a regular file."""


class ArchiveRewriteError(ArchiveError):
    """Raised when reading the archive or writing the filtered copy fails."""


class ArchiveReplaceError(ArchiveError):
    """Raised when the filtered copy cannot replace the original.

    The filtered copy is left at ``temp_path`` for manual recovery.
    """

    def __init__(self, message: str, temp_path: Path) -> None:
        super().__init__(message)
        self.temp_path = temp_path


@dataclass(frozen=True)
class NormalizeResult:
    archive: Path
    stripped: tuple[str, ...]
    kept: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.stripped)


def default_temp_path(archive: Path) -> Path:
    return archive.with_name(archive.name + TEMP_SUFFIX)


def strip_metadata_entries(
    archive: Path,
    temp_path: Path | None = None,
    *,
    prefix: str = METADATA_PREFIX,
) -> NormalizeResult:
    """Remove every entry whose name starts with ``prefix`` from ``archive``.

    The filtered archive is written to ``temp_path`` (``<archive>-temp`` by
    default), synced, and then moved over the original. When no entry
    matches, nothing is written.

    Raises:
        MissingBinaryArtifactError: If ``archive`` is not a regular file.
        ArchiveRewriteError: If the archive is corrupt, needs ZIP64, or the
            filtered copy cannot be written. The original is untouched.
        ArchiveReplaceError: If the filtered copy cannot replace the original.
    """
    if not archive.is_file():
        log.error("Invalid archive file: %s", archive)
        msg = f"Binary artifact does not exist or is not a regular file: {archive}"
        raise MissingBinaryArtifactError(msg)

    if temp_path is None:
        temp_path = default_temp_path(archive)

    try:
        with archive.open("rb") as source, zipfile.ZipFile(source) as zip_file:
            entries = zip_file.infolist()
            kept = [info for info in entries if not info.filename.startswith(prefix)]
            stripped = tuple(
                info.filename for info in entries if info.filename.startswith(prefix)
            )
            kept_names = tuple(info.filename for info in kept)
            if not stripped:
                log.debug("No %s entries in %s", prefix, archive)
                return NormalizeResult(archive=archive, stripped=(), kept=kept_names)
            _write_filtered(source, kept, zip_file.comment, temp_path)
    except ArchiveRewriteError:
        _discard(temp_path)
        raise
    except (OSError, zipfile.BadZipFile) as exc:
        _discard(temp_path)
        msg = f"Failed to rewrite archive {archive}: {exc}"
        raise ArchiveRewriteError(msg) from exc

    try:
        temp_path.replace(archive)
    except OSError as exc:
        log.warning(
            "Failed to replace %s with filtered copy %s: %s", archive, temp_path, exc
        )
        msg = f"Failed to replace {archive} with filtered copy {temp_path}: {exc}"
        raise ArchiveReplaceError(msg, temp_path) from exc

    log.debug("Stripped %d entries from %s: %s", len(stripped), archive, stripped)
    return NormalizeResult(archive=archive, stripped=stripped, kept=kept_names)


def _discard(temp_path: Path) -> None:
    try:
        temp_path.unlink(missing_ok=True)
    except OSError as exc:
        log.warning("Failed to remove temporary archive %s: %s", temp_path, exc)


def _write_filtered(
    source: BinaryIO,
    entries: list[zipfile.ZipInfo],
    comment: bytes,
    temp_path: Path,
) -> None:
    if len(entries) > _ZIP32_MAX_ENTRIES:
        msg = f"ZIP64 archives are not supported ({len(entries)} entries)"
        raise ArchiveRewriteError(msg)

    central_records: list[bytes] = []
    with temp_path.open("wb") as target:
        for info in entries:
            _check_zip32(info)
            offset = target.tell()
            raw_name, record = _read_local_record(source, info)
            target.write(record)
            central_records.append(_central_record(info, raw_name, offset))

        directory_offset = target.tell()
        for record in central_records:
            target.write(record)
        directory_size = target.tell() - directory_offset
        if directory_offset + directory_size > _ZIP32_LIMIT:
            msg = "ZIP64 archives are not supported (central directory offset)"
            raise ArchiveRewriteError(msg)

        target.write(
            _END_RECORD.pack(
                _END_RECORD_SIGNATURE,
                0,
                0,
                len(central_records),
                len(central_records),
                directory_size,
                directory_offset,
                len(comment),
            )
        )
        target.write(comment)
        target.flush()
        os.fsync(target.fileno())


def _check_zip32(info: zipfile.ZipInfo) -> None:
    if max(info.file_size, info.compress_size, info.header_offset) >= _ZIP32_LIMIT:
        msg = f"ZIP64 archives are not supported (entry {info.filename!r})"
        raise ArchiveRewriteError(msg)


def _read_local_record(source: BinaryIO, info: zipfile.ZipInfo) -> tuple[bytes, bytes]:
    """Return the raw file name and the full local record of ``info``."""
    source.seek(info.header_offset)
    header = source.read(_LOCAL_HEADER.size)
    if len(header) != _LOCAL_HEADER.size:
        msg = f"Truncated local header for {info.filename!r}"
        raise zipfile.BadZipFile(msg)

    (signature, _, flags, _, _, _, _, _, _, name_length, extra_length) = (
        _LOCAL_HEADER.unpack(header)
    )
    if signature != _LOCAL_HEADER_SIGNATURE:
        msg = f"Bad local header signature for {info.filename!r}"
        raise zipfile.BadZipFile(msg)

    raw_name = source.read(name_length)
    body_length = extra_length + info.compress_size
    body = source.read(body_length)
    if len(raw_name) != name_length or len(body) != body_length:
        msg = f"Truncated data for {info.filename!r}"
        raise zipfile.BadZipFile(msg)

    descriptor = b""
    if flags & _FLAG_DATA_DESCRIPTOR:
        # crc + sizes, optionally preceded by a signature
        lead = source.read(4)
        descriptor = lead + source.read(
            12 if lead == _DATA_DESCRIPTOR_SIGNATURE else 8
        )
        if len(descriptor) not in (12, 16):
            msg = f"Truncated data descriptor for {info.filename!r}"
            raise zipfile.BadZipFile(msg)

    return raw_name, header + raw_name + body + descriptor


def _dos_timestamp(date_time: tuple[int, int, int, int, int, int]) -> tuple[int, int]:
    year, month, day, hour, minute, second = date_time
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    dos_date = ((year - 1980) << 9) | (month << 5) | day
    return dos_time, dos_date


def _central_record(info: zipfile.ZipInfo, raw_name: bytes, offset: int) -> bytes:
    dos_time, dos_date = _dos_timestamp(info.date_time)
    header = _CENTRAL_HEADER.pack(
        _CENTRAL_HEADER_SIGNATURE,
        (info.create_system << 8) | info.create_version,
        (info.reserved << 8) | info.extract_version,
        info.flag_bits,
        info.compress_type,
        dos_time,
        dos_date,
        info.CRC,
        info.compress_size,
        info.file_size,
        len(raw_name),
        len(info.extra),
        len(info.comment),
        info.volume,
        info.internal_attr,
        info.external_attr,
        offset,
    )
    return header + raw_name + info.extra + info.comment


__all__ = [
    "METADATA_PREFIX",
    "TEMP_SUFFIX",
    "ArchiveError",
    "ArchiveReplaceError",
    "ArchiveRewriteError",
    "MissingBinaryArtifactError",
    "NormalizeResult",
    "default_temp_path",
    "strip_metadata_entries",
]
