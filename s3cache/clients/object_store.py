"""S3 object store client.

Wraps a boto3 S3 client behind ObjectStoreProtocol. boto3 is blocking, so
every call is dispatched with ``asyncio.to_thread``; the client itself is
thread-safe and shared by all transfers in the process.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3cache.clients.protocols import CompletedPart, ObjectInfo, ObjectStoreProtocol
from s3cache.core.config import Settings, get_settings
from s3cache.core.constants import STREAM_CHUNK_BYTES
from s3cache.core.exceptions import ObjectNotFoundError, ObjectStoreError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def create_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client from settings.

    Args:
        settings: Settings with credentials and region present

    Returns:
        boto3 S3 client
    """
    settings.require_transfer_config()
    session = boto3.session.Session(
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key.get_secret_value(),
        region_name=settings.aws_region,
    )
    boto_config = Config(
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
    )
    client_args: dict[str, Any] = {"config": boto_config}
    if settings.endpoint_url:
        client_args["endpoint_url"] = settings.endpoint_url
    return session.client("s3", **client_args)


class S3ObjectStore:
    """ObjectStoreProtocol implementation backed by boto3.

    Example:
        >>> store = S3ObjectStore.from_settings(get_settings())
        >>> await store.put_object("bucket", "v1:dist", b"...")
    """

    def __init__(self, client: Any, chunk_size: int = STREAM_CHUNK_BYTES) -> None:
        """Initialize with an existing boto3 S3 client.

        Args:
            client: boto3 S3 client
            chunk_size: Read size when streaming object bodies
        """
        self._client = client
        self._chunk_size = chunk_size

    @classmethod
    def from_settings(cls, settings: Settings) -> S3ObjectStore:
        """Build a store from settings, failing fast on missing configuration."""
        return cls(create_s3_client(settings))

    async def _call(self, operation: str, key: str, **kwargs: Any) -> dict[str, Any]:
        method = getattr(self._client, operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "")
            if error_code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(
                    f"Object not found: {key}", operation, key
                ) from exc
            raise ObjectStoreError(
                f"{operation} failed for {key}: {exc}", operation, error_code
            ) from exc
        except BotoCoreError as exc:
            raise ObjectStoreError(f"{operation} failed for {key}: {exc}", operation) from exc

    async def put_object(self, bucket: str, key: str, body: bytes) -> str:
        response = await self._call("put_object", key, Bucket=bucket, Key=key, Body=body)
        return str(response.get("ETag", ""))

    async def get_object(self, bucket: str, key: str) -> AsyncIterator[bytes]:
        response = await self._call("get_object", key, Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            while True:
                try:
                    chunk = await asyncio.to_thread(body.read, self._chunk_size)
                except (BotoCoreError, OSError) as exc:
                    raise ObjectStoreError(
                        f"get_object stream failed for {key}: {exc}", "get_object"
                    ) from exc
                if not chunk:
                    break
                yield chunk
        finally:
            body.close()

    async def head_object(self, bucket: str, key: str) -> ObjectInfo:
        response = await self._call("head_object", key, Bucket=bucket, Key=key)
        return ObjectInfo(
            key=key,
            size_bytes=int(response.get("ContentLength", 0)),
            etag=response.get("ETag"),
            last_modified=response.get("LastModified"),
        )

    async def create_multipart_upload(self, bucket: str, key: str) -> str:
        response = await self._call("create_multipart_upload", key, Bucket=bucket, Key=key)
        return str(response["UploadId"])

    async def upload_part(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        response = await self._call(
            "upload_part",
            key,
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=body,
        )
        return str(response["ETag"])

    async def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> str:
        response = await self._call(
            "complete_multipart_upload",
            key,
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={"Parts": [part.to_dict() for part in parts]},
        )
        return str(response.get("ETag", ""))

    async def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        await self._call(
            "abort_multipart_upload",
            key,
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
        )

    def __repr__(self) -> str:
        return f"S3ObjectStore(chunk_size={self._chunk_size})"


# Global store instance (set by the pipeline entry point or tests)
_object_store: ObjectStoreProtocol | None = None


def get_object_store() -> ObjectStoreProtocol:
    """Get the shared object store, creating it from settings on first use.

    Raises:
        ConfigurationError: If credentials, region or bucket are missing
    """
    global _object_store
    if _object_store is None:
        _object_store = S3ObjectStore.from_settings(get_settings())
        logger.debug("Object store initialized", store=repr(_object_store))
    return _object_store


def set_object_store(store: ObjectStoreProtocol | None) -> None:
    """Replace the shared object store (``None`` resets it)."""
    global _object_store
    _object_store = store
