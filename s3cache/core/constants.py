"""Pipeline constants: input/output names, state slots and transfer sizes.

Input, output and state names match the action metadata so that workflows
written for the hosted cache action work unchanged.
"""

from enum import Enum


# =============================================================================
# Transfer Sizes
# =============================================================================

MIB: int = 1024 * 1024

# Payloads larger than this use multipart upload, in parts of this size
MULTIPART_THRESHOLD_BYTES: int = 5 * MIB

# S3 rejects non-final parts smaller than 5 MiB
MIN_PART_SIZE_BYTES: int = 5 * MIB

# Streaming buffer for compress/decompress/download
STREAM_CHUNK_BYTES: int = 1 * MIB


# =============================================================================
# Archive Format Detection
# =============================================================================

# POSIX tar header: "ustar" magic at offset 257
TAR_MAGIC: bytes = b"ustar"
TAR_MAGIC_OFFSET: int = 257
SNIFF_LENGTH: int = 512


# =============================================================================
# Pipeline Boundary
# =============================================================================

class Inputs(str, Enum):
    """Action input names."""
    KEY = "key"
    PATH = "path"
    RESTORE_KEYS = "restore-keys"
    FAIL_ON_CACHE_MISS = "fail-on-cache-miss"
    LOOKUP_ONLY = "lookup-only"


class Outputs(str, Enum):
    """Action output names."""
    CACHE_HIT = "cache-hit"
    CACHE_PRIMARY_KEY = "cache-primary-key"
    CACHE_MATCHED_KEY = "cache-matched-key"


class State(str, Enum):
    """Cross-phase state slots (restore writes, save reads)."""
    CACHE_PRIMARY_KEY = "CACHE_KEY"
    CACHE_MATCHED_KEY = "CACHE_RESULT"


class Events(str, Enum):
    """Runner environment variables describing the trigger."""
    KEY = "GITHUB_EVENT_NAME"
    REF_KEY = "GITHUB_REF"


# Runner file commands
GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"
GITHUB_STATE_ENV = "GITHUB_STATE"
