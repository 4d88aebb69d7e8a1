"""Object store client protocol.

Duck typing protocol for the object store - enables FakeObjectStore
substitution in tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ObjectInfo:
    """Metadata returned by a head probe.

    Attributes:
        key: Object key
        size_bytes: Stored object size
        etag: Backend integrity token
        last_modified: Last write time if reported
    """

    key: str
    size_bytes: int
    etag: str | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class CompletedPart:
    """One uploaded part of a multipart session."""

    part_number: int
    etag: str

    def to_dict(self) -> dict[str, object]:
        """Convert to the S3 CompleteMultipartUpload part shape."""
        return {"PartNumber": self.part_number, "ETag": self.etag}


@runtime_checkable
class ObjectStoreProtocol(Protocol):
    """Protocol for object store clients.

    Methods:
        put_object: Store a whole object in one call
        get_object: Stream an object's bytes
        head_object: Probe existence and metadata
        create_multipart_upload: Open a multipart session
        upload_part: Upload one numbered part
        complete_multipart_upload: Finalize a session from its ordered parts
        abort_multipart_upload: Release a session's stored parts

    Implementations raise ObjectNotFoundError for a missing object and
    ObjectStoreError for every other failure.
    """

    async def put_object(self, bucket: str, key: str, body: bytes) -> str:
        """Store ``body`` under ``key`` and return its ETag."""
        ...

    def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        """Iterate over the object's bytes in chunks."""
        ...

    async def head_object(self, bucket: str, key: str) -> ObjectInfo:
        """Return metadata for ``key``."""
        ...

    async def create_multipart_upload(self, bucket: str, key: str) -> str:
        """Open a multipart session and return its upload id."""
        ...

    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        """Upload one part and return its ETag."""
        ...

    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> str:
        """Finalize the session and return the object's ETag."""
        ...

    async def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        """Abort the session."""
        ...
