"""Object store clients.

Exports:
    - ObjectStoreProtocol: Duck-typed store interface
    - S3ObjectStore: boto3-backed implementation
    - get_object_store, set_object_store: Shared process-wide store
"""

from s3cache.clients.object_store import (
    S3ObjectStore,
    create_s3_client,
    get_object_store,
    set_object_store,
)
from s3cache.clients.protocols import CompletedPart, ObjectInfo, ObjectStoreProtocol


__all__ = [
    "CompletedPart",
    "ObjectInfo",
    "ObjectStoreProtocol",
    "S3ObjectStore",
    "create_s3_client",
    "get_object_store",
    "set_object_store",
]
