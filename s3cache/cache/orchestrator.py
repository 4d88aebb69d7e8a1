"""Save and restore orchestrators.

Save: every requested path is packed then uploaded under the primary key.
Paths run concurrently (bounded) and a failing path never stops the
others; the TransferReport says which succeeded.

Restore: delegates to the KeyResolver and escalates a miss to
CacheMissError only when fail-on-cache-miss is requested.
"""

import asyncio
import tempfile
from collections.abc import Sequence
from pathlib import Path

from s3cache.cache import archive
from s3cache.cache.keys import build_storage_key
from s3cache.cache.report import PathResult, TransferReport
from s3cache.cache.resolver import KeyResolver, RestoreOutcome, candidate_keys
from s3cache.cache.retriever import Retriever
from s3cache.cache.transport import Transport
from s3cache.clients.protocols import ObjectStoreProtocol
from s3cache.core.config import Settings
from s3cache.core.exceptions import CacheMissError, TransferError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


class CacheSaver:
    """Packs and uploads cache paths under one primary key."""

    def __init__(
        self,
        transport: Transport,
        bucket: str,
        namespace: str = "",
        max_concurrency: int = 4,
        temp_dir: str | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._transport = transport
        self._bucket = bucket
        self._namespace = namespace
        self._max_concurrency = max_concurrency
        self._temp_dir = temp_dir

    @classmethod
    def from_settings(cls, settings: Settings, store: ObjectStoreProtocol) -> "CacheSaver":
        transport = Transport(
            store,
            threshold_bytes=settings.multipart_threshold_bytes,
            part_concurrency=settings.part_concurrency,
        )
        return cls(
            transport,
            bucket=settings.bucket_name,
            namespace=settings.key_namespace,
            max_concurrency=settings.max_concurrency,
            temp_dir=settings.temp_dir,
        )

    async def save(self, primary_key: str, paths: Sequence[str]) -> TransferReport:
        """Upload every path, attempting all of them.

        Args:
            primary_key: Cache key to save under
            paths: Local cache paths

        Returns:
            TransferReport of per-path outcomes
        """
        if not primary_key:
            raise ValueError("primary_key cannot be empty")
        if not paths:
            raise ValueError("paths cannot be empty")

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(path: str) -> PathResult:
            async with semaphore:
                return await self.save_path(primary_key, path)

        results = await asyncio.gather(*(bounded(path) for path in paths))
        report = TransferReport.from_results(results)

        if report.ok:
            logger.info("Cache saved", key=primary_key, paths=sorted(report.succeeded))
        else:
            logger.warning("Failed to save cache", key=primary_key, **report.summary())
        return report

    async def save_path(self, primary_key: str, path: str) -> PathResult:
        """Pack and upload one path; failures are returned, not raised."""
        try:
            storage_key = build_storage_key(primary_key, path, self._namespace)
        except ValueError as exc:
            return PathResult(path=path, storage_key="", error=exc)

        local_path = Path(path).expanduser()
        with tempfile.TemporaryDirectory(prefix="s3cache-save-", dir=self._temp_dir) as work:
            try:
                payload = await asyncio.to_thread(archive.pack, local_path, Path(work))
                result = await self._transport.upload(self._bucket, storage_key, payload.path)
            except TransferError as exc:
                logger.warning(
                    "Failed to upload cache path",
                    path=path,
                    storage_key=storage_key,
                    error=str(exc),
                )
                return PathResult(path=path, storage_key=storage_key, error=exc)

        logger.info(
            "Uploaded cache path",
            path=path,
            bucket=self._bucket,
            storage_key=storage_key,
            directory=payload.was_directory,
            size_bytes=result.size_bytes,
            multipart=result.multipart,
        )
        return PathResult(path=path, storage_key=storage_key)


class CacheRestorer:
    """Restores cache paths from the best matching key."""

    def __init__(self, resolver: KeyResolver) -> None:
        self._resolver = resolver

    @classmethod
    def from_settings(cls, settings: Settings, store: ObjectStoreProtocol) -> "CacheRestorer":
        retriever = Retriever(store, temp_dir=settings.temp_dir)
        resolver = KeyResolver(
            retriever,
            bucket=settings.bucket_name,
            namespace=settings.key_namespace,
            max_concurrency=settings.max_concurrency,
        )
        return cls(resolver)

    @property
    def resolver(self) -> KeyResolver:
        return self._resolver

    async def restore(
        self,
        primary_key: str,
        fallback_keys: Sequence[str],
        paths: Sequence[str],
        lookup_only: bool = False,
        fail_on_miss: bool = False,
    ) -> RestoreOutcome:
        """Restore paths from the primary key or the first usable fallback.

        Raises:
            CacheMissError: On a miss when fail_on_miss is set
        """
        outcome = await self._resolver.resolve(
            primary_key, fallback_keys, paths, lookup_only=lookup_only
        )
        if not outcome.hit:
            if fail_on_miss:
                raise CacheMissError(
                    "Failed to restore cache entry. Exiting as fail-on-cache-miss is set. "
                    f"Input key: {primary_key}",
                    primary_key=primary_key,
                    keys=list(outcome.tried_keys),
                )
            logger.info(
                "Cache not found for input keys",
                keys=candidate_keys(primary_key, fallback_keys),
            )
        return outcome
