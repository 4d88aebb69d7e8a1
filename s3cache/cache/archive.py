"""Archiver - turns a local path into one gzip payload and back.

Payload layouts:
- Directory: tar archive (POSIX/PAX) compressed with gzip in one pass,
  entries rooted at the directory's own name.
- Regular file: the file's bytes compressed with gzip, no tar header.

On restore the decompressed bytes are sniffed for the tar "ustar" magic at
offset 257; the sniffed format decides whether to unpack, never upload-time
metadata.

Permissions: tar entries keep their mode bits; extraction uses the tarfile
"data" filter, which clears set-uid/set-gid and group/other write bits,
does not restore owners, and rejects members escaping the target directory.

All functions here are blocking; async callers dispatch them with
``asyncio.to_thread``.
"""

import gzip
import os
import shutil
import tarfile
import zlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from s3cache.core.constants import (
    SNIFF_LENGTH,
    STREAM_CHUNK_BYTES,
    TAR_MAGIC,
    TAR_MAGIC_OFFSET,
)
from s3cache.core.exceptions import ArchiveError, ArchiveFormatError


class PayloadFormat(str, Enum):
    """Format of a decompressed payload."""
    PLAIN_FILE = "plain_file"
    PACKED_ARCHIVE = "packed_archive"


@dataclass(frozen=True)
class PackedPayload:
    """A compressed payload ready for upload.

    Attributes:
        path: Location of the gzip file
        was_directory: True when the source was a directory (tar.gz)
        size_bytes: Compressed size
    """

    path: Path
    was_directory: bool
    size_bytes: int


def sniff_format(prefix: bytes) -> PayloadFormat:
    """Classify decompressed bytes by the tar magic number.

    Args:
        prefix: Leading bytes of the decompressed payload

    Returns:
        PACKED_ARCHIVE when "ustar" sits at offset 257, else PLAIN_FILE

    Example:
        >>> sniff_format(b"hello")
        <PayloadFormat.PLAIN_FILE: 'plain_file'>
    """
    magic = prefix[TAR_MAGIC_OFFSET:TAR_MAGIC_OFFSET + len(TAR_MAGIC)]
    if magic == TAR_MAGIC:
        return PayloadFormat.PACKED_ARCHIVE
    return PayloadFormat.PLAIN_FILE


def read_prefix(path: Path, length: int = SNIFF_LENGTH) -> bytes:
    """Read up to ``length`` leading bytes of a file."""
    with open(path, "rb") as handle:
        return handle.read(length)


def archive_name(local_path: Path) -> str:
    """Name of the root entry a directory is archived under.

    Raises:
        ArchiveError: For paths without a usable final component ("." or "/")
    """
    name = local_path.name
    if not name or name == "..":
        raise ArchiveError(
            f"Cannot archive {local_path}: path has no directory name",
            path=str(local_path),
        )
    return name


def pack(local_path: Path, work_dir: Path) -> PackedPayload:
    """Compress a file or directory into ``work_dir``.

    Args:
        local_path: File or directory to pack
        work_dir: Private directory for the payload

    Returns:
        PackedPayload describing the gzip file

    Raises:
        ArchiveError: If the path is missing or packing fails
    """
    if not local_path.exists():
        raise ArchiveError(f"Path does not exist: {local_path}", path=str(local_path))

    was_directory = local_path.is_dir()
    payload_path = work_dir / ("payload.tar.gz" if was_directory else "payload.gz")

    try:
        if was_directory:
            with tarfile.open(payload_path, "w:gz", format=tarfile.PAX_FORMAT) as tar:
                tar.add(local_path, arcname=archive_name(local_path))
        else:
            with open(local_path, "rb") as source, gzip.open(payload_path, "wb") as target:
                shutil.copyfileobj(source, target, STREAM_CHUNK_BYTES)
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveError(
            f"Failed to compress {local_path}: {exc}", path=str(local_path), cause=exc
        ) from exc

    return PackedPayload(
        path=payload_path,
        was_directory=was_directory,
        size_bytes=payload_path.stat().st_size,
    )


def decompress(source: Path, target: Path) -> None:
    """Gunzip ``source`` into ``target``.

    Raises:
        ArchiveFormatError: If the stream is corrupt or truncated
    """
    try:
        with gzip.open(source, "rb") as compressed, open(target, "wb") as output:
            shutil.copyfileobj(compressed, output, STREAM_CHUNK_BYTES)
    except (OSError, EOFError, zlib.error) as exc:
        raise ArchiveFormatError(
            f"Failed to decompress payload: {exc}", path=str(target), cause=exc
        ) from exc


def _restore_plain_file(payload: Path, destination: Path) -> list[Path]:
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.is_dir():
        raise ArchiveError(
            f"Cannot restore file over existing directory: {destination}",
            path=str(destination),
        )
    shutil.move(os.fspath(payload), os.fspath(destination))
    return [destination]


def _restore_archive(payload: Path, destination: Path) -> list[Path]:
    into_dir = destination.parent
    into_dir.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(payload, "r:") as tar:
            roots = sorted({Path(name).parts[0] for name in tar.getnames() if name})
            tar.extractall(into_dir, filter="data")
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveFormatError(
            f"Failed to unpack archive into {into_dir}: {exc}",
            path=str(destination),
            cause=exc,
        ) from exc
    return [into_dir / root for root in roots]


_RESTORERS: dict[PayloadFormat, Callable[[Path, Path], list[Path]]] = {
    PayloadFormat.PLAIN_FILE: _restore_plain_file,
    PayloadFormat.PACKED_ARCHIVE: _restore_archive,
}


def restore_payload(payload: Path, destination: Path) -> list[Path]:
    """Materialize a decompressed payload at ``destination``.

    Plain files are moved onto the destination; archives are unpacked into
    the destination's parent directory.

    Args:
        payload: Decompressed payload file
        destination: Local cache path being restored

    Returns:
        Top-level paths written
    """
    payload_format = sniff_format(read_prefix(payload))
    return _RESTORERS[payload_format](payload, destination)
