"""Retriever - downloads a cache object and restores it onto local disk.

Steps, strictly in order:
1. download the object into a private temporary directory
2. gunzip it next to the download
3. sniff the decompressed bytes; unpack archives into the destination's
   parent directory, move plain files onto the destination

Every failure surfaces as a TransferError; a missing object is the
CacheEntryNotFoundError subclass so callers can report it as a miss.
"""

import asyncio
import tempfile
from pathlib import Path

from s3cache.cache import archive
from s3cache.clients.protocols import ObjectInfo, ObjectStoreProtocol
from s3cache.core.exceptions import (
    ArchiveError,
    CacheEntryNotFoundError,
    ObjectNotFoundError,
    ObjectStoreError,
    TransferError,
)
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


class Retriever:
    """Fetches cache objects and materializes them locally."""

    def __init__(self, store: ObjectStoreProtocol, temp_dir: str | None = None) -> None:
        """Initialize retriever.

        Args:
            store: Object store client
            temp_dir: Parent for per-download temporary directories
                (system default when None)
        """
        self._store = store
        self._temp_dir = temp_dir

    async def probe(self, bucket: str, storage_key: str) -> ObjectInfo:
        """Check that an object exists without downloading it.

        Raises:
            CacheEntryNotFoundError: If the object does not exist
            TransferError: If the probe itself fails
        """
        try:
            return await self._store.head_object(bucket, storage_key)
        except ObjectNotFoundError as exc:
            raise CacheEntryNotFoundError(
                f"Cache entry not found: {storage_key}", storage_key=storage_key, cause=exc
            ) from exc
        except ObjectStoreError as exc:
            raise TransferError(
                f"Failed to probe {storage_key}: {exc}", storage_key=storage_key, cause=exc
            ) from exc

    async def exists(self, bucket: str, storage_key: str) -> bool:
        """Return True when the object exists."""
        try:
            await self.probe(bucket, storage_key)
        except CacheEntryNotFoundError:
            return False
        return True

    async def fetch(self, bucket: str, storage_key: str, destination: Path) -> list[Path]:
        """Download, decompress and restore one cache object.

        Args:
            bucket: Bucket name
            storage_key: Object key
            destination: Local cache path to recreate

        Returns:
            Top-level local paths written

        Raises:
            CacheEntryNotFoundError: If the object does not exist
            TransferError: On storage, decompression or extraction failure
        """
        with tempfile.TemporaryDirectory(prefix="s3cache-restore-", dir=self._temp_dir) as work:
            work_dir = Path(work)
            compressed = work_dir / "payload.gz"
            decompressed = work_dir / "payload"
            try:
                size = await self._download(bucket, storage_key, compressed)
                await asyncio.to_thread(archive.decompress, compressed, decompressed)
                restored = await asyncio.to_thread(
                    archive.restore_payload, decompressed, destination
                )
            except ObjectNotFoundError as exc:
                raise CacheEntryNotFoundError(
                    f"Cache entry not found: {storage_key}",
                    storage_key=storage_key,
                    cause=exc,
                ) from exc
            except ObjectStoreError as exc:
                raise TransferError(
                    f"Failed to download {storage_key}: {exc}",
                    storage_key=storage_key,
                    cause=exc,
                ) from exc
            except ArchiveError as exc:
                exc.storage_key = storage_key
                raise
            except OSError as exc:
                raise TransferError(
                    f"Failed to restore {storage_key} to {destination}: {exc}",
                    storage_key=storage_key,
                    cause=exc,
                ) from exc

        logger.debug(
            "Cache object restored",
            storage_key=storage_key,
            destination=str(destination),
            compressed_bytes=size,
        )
        return restored

    async def _download(self, bucket: str, storage_key: str, target: Path) -> int:
        size = 0
        with open(target, "wb") as handle:
            async for chunk in self._store.get_object(bucket, storage_key):
                await asyncio.to_thread(handle.write, chunk)
                size += len(chunk)
        return size
