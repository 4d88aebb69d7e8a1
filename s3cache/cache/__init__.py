"""Cache transfer package.

Leaves first:
- archive: pack/unpack local paths, sniff payload format
- transport: single put or scoped multipart upload
- retriever: download, decompress, restore
- resolver: primary/fallback key resolution
- orchestrator: per-path save and restore with aggregated outcome
- state: cross-phase key/value handoff between restore and save
"""

from s3cache.cache.archive import (
    PackedPayload,
    PayloadFormat,
    pack,
    restore_payload,
    sniff_format,
)
from s3cache.cache.keys import (
    build_storage_key,
    collation_key,
    is_exact_key_match,
    normalize_cache_path,
)
from s3cache.cache.orchestrator import CacheRestorer, CacheSaver
from s3cache.cache.report import PathResult, TransferReport
from s3cache.cache.resolver import (
    KeyResolver,
    ResolutionState,
    RestoreOutcome,
    candidate_keys,
)
from s3cache.cache.retriever import Retriever
from s3cache.cache.state import (
    NullStateProvider,
    StateProvider,
    StateProviderProtocol,
)
from s3cache.cache.transport import MultipartUpload, Transport, UploadResult


__all__ = [
    # Orchestrators
    "CacheRestorer",
    "CacheSaver",
    # Resolution
    "KeyResolver",
    # Transport
    "MultipartUpload",
    # State
    "NullStateProvider",
    # Archive
    "PackedPayload",
    "PathResult",
    "PayloadFormat",
    "ResolutionState",
    "RestoreOutcome",
    "Retriever",
    "StateProvider",
    "StateProviderProtocol",
    "Transport",
    "TransferReport",
    "UploadResult",
    # Keys
    "build_storage_key",
    "candidate_keys",
    "collation_key",
    "is_exact_key_match",
    "normalize_cache_path",
    "pack",
    "restore_payload",
    "sniff_format",
]
