"""Custom exceptions for the cache.

All exceptions are namespaced to avoid shadowing Python builtins and share
the ``CacheError`` base so callers can catch any cache failure with a single
except clause.

Propagation:
    - ConfigurationError: fatal, raised before any transfer
    - CacheValidationError: soft, the operation is skipped
    - TransferError (and subclasses): recovered per path / per candidate key
    - CacheMissError: fatal only under fail-on-cache-miss
"""

from typing import Any


class CacheError(Exception):
    """Base exception for all cache errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigurationError(CacheError):
    """Raised when credentials, region or bucket are not configured.

    Distinct from pydantic's validation errors: this is raised when the
    settings loaded fine but are insufficient for a transfer.
    """

    def __init__(self, message: str, settings: list[str] | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error description
            settings: Names of the missing settings
        """
        self.settings = settings or []
        super().__init__(message)


class CacheValidationError(CacheError):
    """Raised when pipeline inputs or the trigger context are unusable.

    Distinct from Python's built-in ValueError to carry the offending field.
    """

    def __init__(self, message: str, field: str, value: Any | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Error description
            field: The input that failed validation
            value: The invalid value
        """
        self.field = field
        self.value = value
        super().__init__(message)


class TransferError(CacheError):
    """Raised when moving one payload to or from the object store fails.

    Covers put/get/head and every multipart step. Carries the storage key
    so per-path and per-candidate failures can be reported.
    """

    def __init__(
        self,
        message: str,
        storage_key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize transfer error.

        Args:
            message: Error description
            storage_key: Object key the transfer targeted
            cause: Original exception that caused this error
        """
        self.storage_key = storage_key
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message)


class CacheEntryNotFoundError(TransferError):
    """Raised when the object store has no object for a storage key."""


class ArchiveError(TransferError):
    """Raised when packing or unpacking a local path fails."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        storage_key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize archive error.

        Args:
            message: Error description
            path: Local path being packed or restored
            storage_key: Object key if known
            cause: Original exception
        """
        self.path = path
        super().__init__(message, storage_key=storage_key, cause=cause)


class ArchiveFormatError(ArchiveError):
    """Raised for a corrupt gzip stream or an unreadable tar archive."""


class CacheMissError(CacheError):
    """Raised when no candidate key restores and fail-on-cache-miss is set."""

    def __init__(self, message: str, primary_key: str, keys: list[str] | None = None) -> None:
        """Initialize cache miss error.

        Args:
            message: Error description
            primary_key: The primary key requested
            keys: Every candidate key that was tried
        """
        self.primary_key = primary_key
        self.keys = keys or []
        super().__init__(message)


class ObjectStoreError(CacheError):
    """Raised when an object store call fails.

    This is the client-boundary error; Transport and Retriever wrap it in a
    ``TransferError`` carrying the storage key.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        error_code: str | None = None,
    ) -> None:
        """Initialize object store error.

        Args:
            message: Error description
            operation: Store operation that failed (e.g. "upload_part")
            error_code: Backend error code if available
        """
        self.operation = operation
        self.error_code = error_code
        super().__init__(message)


class ObjectNotFoundError(ObjectStoreError):
    """Raised when the requested object does not exist."""

    def __init__(self, message: str, operation: str, key: str) -> None:
        self.key = key
        super().__init__(message, operation, error_code="NoSuchKey")
