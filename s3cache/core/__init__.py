"""Core module - Configuration, logging, constants and exceptions.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - Inputs, Outputs, State, Events: Pipeline boundary names
    - Exception classes: CacheError, TransferError, etc.
"""

from s3cache.core.config import Settings, get_settings
from s3cache.core.constants import (
    MULTIPART_THRESHOLD_BYTES,
    SNIFF_LENGTH,
    Events,
    Inputs,
    Outputs,
    State,
)
from s3cache.core.exceptions import (
    ArchiveError,
    ArchiveFormatError,
    CacheEntryNotFoundError,
    CacheError,
    CacheMissError,
    CacheValidationError,
    ConfigurationError,
    ObjectNotFoundError,
    ObjectStoreError,
    TransferError,
)
from s3cache.core.logging import configure_logging, get_logger


__all__ = [
    # Constants
    "MULTIPART_THRESHOLD_BYTES",
    "SNIFF_LENGTH",
    # Exceptions
    "ArchiveError",
    "ArchiveFormatError",
    "CacheEntryNotFoundError",
    "CacheError",
    "CacheMissError",
    "CacheValidationError",
    "ConfigurationError",
    "Events",
    "Inputs",
    "ObjectNotFoundError",
    "ObjectStoreError",
    "Outputs",
    # Configuration
    "Settings",
    "State",
    "TransferError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_settings",
]
