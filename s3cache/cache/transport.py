"""Transport - uploads a payload file to the object store.

Payloads up to the multipart threshold go up in a single put. Larger
payloads use a multipart session, split into parts exactly the threshold
size and numbered from 1.

A multipart session is scoped by ``MultipartUpload``: leaving the ``async
with`` block normally completes it, leaving it through any exception
(including cancellation) aborts it. An abort failure is logged and the
original error is the one raised.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from s3cache.clients.protocols import CompletedPart, ObjectStoreProtocol
from s3cache.core.constants import MULTIPART_THRESHOLD_BYTES
from s3cache.core.exceptions import ObjectStoreError, TransferError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Result of one upload.

    Attributes:
        storage_key: Object key written
        size_bytes: Payload size
        multipart: Whether a multipart session was used
        part_count: Number of parts (1 for a single put)
        etag: ETag reported by the store
    """

    storage_key: str
    size_bytes: int
    multipart: bool
    part_count: int
    etag: str | None = None


def read_chunk(path: Path, offset: int, size: int) -> bytes:
    """Read ``size`` bytes of ``path`` starting at ``offset``."""
    with open(path, "rb") as handle:
        handle.seek(offset)
        return handle.read(size)


class MultipartUpload:
    """A multipart session that always ends in exactly one of complete/abort.

    Example:
        >>> async with MultipartUpload(store, "bucket", "v1:dist") as session:
        ...     await session.upload_part(1, first_chunk)
        ...     await session.upload_part(2, second_chunk)
        # completed here; aborted instead if the block raised
    """

    def __init__(self, store: ObjectStoreProtocol, bucket: str, storage_key: str) -> None:
        self._store = store
        self._bucket = bucket
        self._storage_key = storage_key
        self._etags: dict[int, str] = {}
        self.upload_id: str | None = None
        self.etag: str | None = None
        self.outcome: str | None = None

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def parts(self) -> list[CompletedPart]:
        """Uploaded parts in ascending part-number order."""
        return [
            CompletedPart(part_number=number, etag=self._etags[number])
            for number in sorted(self._etags)
        ]

    async def __aenter__(self) -> MultipartUpload:
        self.upload_id = await self._store.create_multipart_upload(
            self._bucket, self._storage_key
        )
        logger.debug(
            "Multipart upload opened",
            storage_key=self._storage_key,
            upload_id=self.upload_id,
        )
        return self

    async def upload_part(self, part_number: int, body: bytes) -> CompletedPart:
        """Upload one part and record its ETag.

        Raises:
            ValueError: If part_number is below 1 or already uploaded
        """
        if part_number < 1:
            raise ValueError(f"part_number must be >= 1, got {part_number}")
        if part_number in self._etags:
            raise ValueError(f"part {part_number} already uploaded")
        etag = await self._store.upload_part(
            self._bucket, self._storage_key, self.upload_id, part_number, body
        )
        self._etags[part_number] = etag
        return CompletedPart(part_number=part_number, etag=etag)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is None:
            try:
                await self._complete()
            except BaseException as complete_error:
                await self._abort(complete_error)
                raise
            return False

        await self._abort(exc)
        return False

    async def _complete(self) -> None:
        parts = self.parts
        expected = list(range(1, len(parts) + 1))
        if not parts or [part.part_number for part in parts] != expected:
            raise TransferError(
                f"Incomplete part list for {self._storage_key}: "
                f"{[part.part_number for part in parts]}",
                storage_key=self._storage_key,
            )
        self.etag = await self._store.complete_multipart_upload(
            self._bucket, self._storage_key, self.upload_id, parts
        )
        self.outcome = "completed"

    async def _abort(self, reason: BaseException | None) -> None:
        self.outcome = "aborted"
        try:
            # Shielded so a repeated cancel cannot leave the session open
            await asyncio.shield(
                self._store.abort_multipart_upload(
                    self._bucket, self._storage_key, self.upload_id
                )
            )
        except Exception as abort_error:
            logger.warning(
                "Failed to abort multipart upload",
                storage_key=self._storage_key,
                upload_id=self.upload_id,
                error=str(abort_error),
                reason=repr(reason),
            )
        else:
            logger.info(
                "Multipart upload aborted",
                storage_key=self._storage_key,
                upload_id=self.upload_id,
                reason=repr(reason),
            )


class Transport:
    """Uploads payload files, choosing single put or multipart by size.

    The threshold doubles as the part size so the size check and the
    chunking can never disagree.
    """

    def __init__(
        self,
        store: ObjectStoreProtocol,
        threshold_bytes: int = MULTIPART_THRESHOLD_BYTES,
        part_concurrency: int = 1,
    ) -> None:
        """Initialize transport.

        Args:
            store: Object store client
            threshold_bytes: Multipart threshold and part size
            part_concurrency: Parts uploaded in parallel (1 = sequential)
        """
        if threshold_bytes < 1:
            raise ValueError(f"threshold_bytes must be >= 1, got {threshold_bytes}")
        if part_concurrency < 1:
            raise ValueError(f"part_concurrency must be >= 1, got {part_concurrency}")
        self._store = store
        self._threshold = threshold_bytes
        self._part_concurrency = part_concurrency

    @property
    def threshold_bytes(self) -> int:
        return self._threshold

    async def upload(self, bucket: str, storage_key: str, payload_path: Path) -> UploadResult:
        """Upload ``payload_path`` under ``storage_key``.

        Raises:
            TransferError: If the payload cannot be read or any store call fails
        """
        try:
            size = payload_path.stat().st_size
            if size <= self._threshold:
                body = await asyncio.to_thread(payload_path.read_bytes)
                etag = await self._store.put_object(bucket, storage_key, body)
                return UploadResult(storage_key, size, multipart=False, part_count=1, etag=etag)
            return await self._upload_multipart(bucket, storage_key, payload_path, size)
        except ObjectStoreError as exc:
            raise TransferError(
                f"Failed to upload {storage_key}: {exc}", storage_key=storage_key, cause=exc
            ) from exc
        except OSError as exc:
            raise TransferError(
                f"Failed to read payload for {storage_key}: {exc}",
                storage_key=storage_key,
                cause=exc,
            ) from exc

    async def _upload_multipart(
        self,
        bucket: str,
        storage_key: str,
        payload_path: Path,
        size: int,
    ) -> UploadResult:
        part_count = math.ceil(size / self._threshold)
        async with MultipartUpload(self._store, bucket, storage_key) as session:
            if self._part_concurrency == 1:
                for part_number in range(1, part_count + 1):
                    await self._upload_part(session, payload_path, part_number)
            else:
                await self._upload_parts_concurrently(session, payload_path, part_count)

        logger.debug(
            "Multipart upload completed",
            storage_key=storage_key,
            parts=part_count,
            size_bytes=size,
        )
        return UploadResult(
            storage_key, size, multipart=True, part_count=part_count, etag=session.etag
        )

    async def _upload_part(
        self, session: MultipartUpload, payload_path: Path, part_number: int
    ) -> None:
        offset = (part_number - 1) * self._threshold
        body = await asyncio.to_thread(read_chunk, payload_path, offset, self._threshold)
        await session.upload_part(part_number, body)

    async def _upload_parts_concurrently(
        self, session: MultipartUpload, payload_path: Path, part_count: int
    ) -> None:
        semaphore = asyncio.Semaphore(self._part_concurrency)
        failed = asyncio.Event()

        async def upload_one(part_number: int) -> None:
            async with semaphore:
                if failed.is_set():
                    return
                try:
                    await self._upload_part(session, payload_path, part_number)
                except BaseException:
                    failed.set()
                    raise

        tasks = [
            asyncio.create_task(upload_one(part_number))
            for part_number in range(1, part_count + 1)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
