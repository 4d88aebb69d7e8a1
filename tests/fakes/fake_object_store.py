"""Fake object store for unit testing.

In-memory implementation of ObjectStoreProtocol with call recording and
error injection, so transfer code can be tested without S3.
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
from collections.abc import AsyncIterator
from typing import Any

from s3cache.clients.protocols import CompletedPart, ObjectInfo
from s3cache.core.exceptions import ObjectNotFoundError, ObjectStoreError


def _etag(data: bytes) -> str:
    return f'"{hashlib.md5(data).hexdigest()}"'


class FakeObjectStore:
    """Fake object store.

    Attributes:
        objects: Stored objects keyed by (bucket, key)
        uploads: Open multipart sessions keyed by upload id
        completed: Upload ids completed, in order
        aborted: Upload ids aborted, in order
        call_history: Recorded calls for verification

    Example:
        >>> store = FakeObjectStore(fail_part_number=2)
        >>> # upload_part(..., part_number=2, ...) raises ObjectStoreError
    """

    def __init__(
        self,
        error_on: dict[str, Exception] | None = None,
        fail_part_number: int | None = None,
        abort_error: Exception | None = None,
        chunk_size: int = 64 * 1024,
    ) -> None:
        """Initialize fake store.

        Args:
            error_on: Dict mapping method names to exceptions to raise
            fail_part_number: Part number whose upload raises ObjectStoreError
            abort_error: Exception raised by abort_multipart_upload
            chunk_size: Chunk size yielded by get_object
        """
        self._error_on = error_on or {}
        self._fail_part_number = fail_part_number
        self._abort_error = abort_error
        self._chunk_size = chunk_size
        self._upload_ids = itertools.count(1)
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: dict[str, dict[str, Any]] = {}
        self.completed: list[str] = []
        self.aborted: list[str] = []
        self.call_history: list[dict[str, Any]] = []

    def _check_error(self, method: str) -> None:
        if method in self._error_on:
            raise self._error_on[method]

    def _record_call(self, method: str, **args: Any) -> None:
        self.call_history.append({"method": method, "args": args})

    def calls(self, method: str) -> list[dict[str, Any]]:
        """Return recorded calls of one method."""
        return [call for call in self.call_history if call["method"] == method]

    def method_sequence(self) -> list[str]:
        return [call["method"] for call in self.call_history]

    def put(self, bucket: str, key: str, data: bytes) -> None:
        """Seed an object directly."""
        self.objects[(bucket, key)] = data

    async def put_object(self, bucket: str, key: str, body: bytes) -> str:
        self._record_call("put_object", bucket=bucket, key=key, size=len(body))
        await asyncio.sleep(0)
        self._check_error("put_object")
        self.objects[(bucket, key)] = bytes(body)
        return _etag(body)

    async def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        self._record_call("get_object", bucket=bucket, key=key)
        await asyncio.sleep(0)
        self._check_error("get_object")
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(f"Object not found: {key}", "get_object", key)
        data = self.objects[(bucket, key)]
        for offset in range(0, len(data), self._chunk_size):
            yield data[offset:offset + self._chunk_size]

    async def head_object(self, bucket: str, key: str) -> ObjectInfo:
        self._record_call("head_object", bucket=bucket, key=key)
        await asyncio.sleep(0)
        self._check_error("head_object")
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(f"Object not found: {key}", "head_object", key)
        data = self.objects[(bucket, key)]
        return ObjectInfo(key=key, size_bytes=len(data), etag=_etag(data))

    async def create_multipart_upload(self, bucket: str, key: str) -> str:
        self._record_call("create_multipart_upload", bucket=bucket, key=key)
        await asyncio.sleep(0)
        self._check_error("create_multipart_upload")
        upload_id = f"upload-{next(self._upload_ids)}"
        self.uploads[upload_id] = {"bucket": bucket, "key": key, "parts": {}}
        return upload_id

    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        self._record_call(
            "upload_part",
            bucket=bucket,
            key=key,
            upload_id=upload_id,
            part_number=part_number,
            size=len(body),
        )
        await asyncio.sleep(0)
        self._check_error("upload_part")
        if part_number == self._fail_part_number:
            raise ObjectStoreError(f"Injected failure on part {part_number}", "upload_part")
        if upload_id not in self.uploads:
            raise ObjectStoreError(f"No such upload: {upload_id}", "upload_part", "NoSuchUpload")
        self.uploads[upload_id]["parts"][part_number] = bytes(body)
        return _etag(body)

    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> str:
        self._record_call(
            "complete_multipart_upload",
            bucket=bucket,
            key=key,
            upload_id=upload_id,
            part_numbers=[part.part_number for part in parts],
        )
        await asyncio.sleep(0)
        self._check_error("complete_multipart_upload")
        stored = self.uploads.pop(upload_id)["parts"]
        for part in parts:
            if _etag(stored[part.part_number]) != part.etag:
                raise ObjectStoreError(f"ETag mismatch on part {part.part_number}", "complete")
        data = b"".join(stored[part.part_number] for part in parts)
        self.objects[(bucket, key)] = data
        self.completed.append(upload_id)
        return _etag(data)

    async def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        self._record_call(
            "abort_multipart_upload", bucket=bucket, key=key, upload_id=upload_id
        )
        await asyncio.sleep(0)
        self.aborted.append(upload_id)
        if self._abort_error is not None:
            raise self._abort_error
        self.uploads.pop(upload_id, None)
