"""Key Resolver - picks the cache entry to restore.

Candidates are tried in order: the primary key, then each fallback key.
A candidate wins only when every requested path restores (or, in
lookup-only mode, exists); paths from different candidates are never
mixed: whatever an abandoned candidate already restored is deleted before
the next candidate is tried. Once a candidate wins no later candidate is
inspected.

    PENDING -> TRYING(key) -> EXACT_HIT | FALLBACK_HIT | MISS
"""

import asyncio
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from s3cache.cache.keys import build_storage_key, is_exact_key_match
from s3cache.cache.report import PathResult, TransferReport
from s3cache.cache.retriever import Retriever
from s3cache.core.exceptions import CacheEntryNotFoundError, TransferError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


class ResolutionState(str, Enum):
    """Key Resolver states."""
    PENDING = "pending"
    TRYING = "trying"
    EXACT_HIT = "exact_hit"
    FALLBACK_HIT = "fallback_hit"
    MISS = "miss"


@dataclass(frozen=True)
class RestoreOutcome:
    """Result of resolving a primary key and its fallbacks.

    Attributes:
        resolved_key: Candidate key that satisfied every path, or None
        exact: True when resolved_key matches the primary key
        restored_paths: Paths restored (or found, in lookup-only mode)
        state: Terminal resolver state
        tried_keys: Candidate keys in the order they were tried
    """

    resolved_key: str | None
    exact: bool
    restored_paths: frozenset[str]
    state: ResolutionState
    tried_keys: tuple[str, ...] = ()

    @property
    def hit(self) -> bool:
        return self.resolved_key is not None


def candidate_keys(primary_key: str, fallback_keys: Sequence[str]) -> list[str]:
    """Primary key followed by fallbacks, without blanks or repeats.

    Example:
        >>> candidate_keys("v2", ["v1", "v2", "", "v0"])
        ['v2', 'v1', 'v0']
    """
    keys: list[str] = []
    for key in [primary_key, *fallback_keys]:
        if key and key not in keys:
            keys.append(key)
    return keys


def discard_paths(paths: Sequence[str]) -> None:
    """Delete restored cache paths, files and directories alike.

    Symlinks are unlinked, never followed.
    """
    for path in paths:
        local_path = Path(path).expanduser()
        if local_path.is_dir() and not local_path.is_symlink():
            shutil.rmtree(local_path)
        elif local_path.exists() or local_path.is_symlink():
            local_path.unlink()


class KeyResolver:
    """Walks candidate keys until one restores every requested path.

    Example:
        >>> resolver = KeyResolver(retriever, bucket="ci-cache")
        >>> outcome = await resolver.resolve("v2", ["v1"], ["dist"])
        >>> outcome.state
        <ResolutionState.FALLBACK_HIT: 'fallback_hit'>
    """

    def __init__(
        self,
        retriever: Retriever,
        bucket: str,
        namespace: str = "",
        max_concurrency: int = 4,
    ) -> None:
        """Initialize resolver.

        Args:
            retriever: Retriever used to fetch or probe objects
            bucket: Bucket holding cache entries
            namespace: Storage key namespace
            max_concurrency: Paths of one candidate processed in parallel
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._retriever = retriever
        self._bucket = bucket
        self._namespace = namespace
        self._max_concurrency = max_concurrency
        self.state = ResolutionState.PENDING
        self.current_key: str | None = None

    async def resolve(
        self,
        primary_key: str,
        fallback_keys: Sequence[str],
        paths: Sequence[str],
        lookup_only: bool = False,
    ) -> RestoreOutcome:
        """Resolve the best available cache entry.

        Args:
            primary_key: Key the caller wants
            fallback_keys: Ordered keys tried after the primary
            paths: Local cache paths that must all be satisfied
            lookup_only: Probe existence instead of downloading

        Returns:
            RestoreOutcome with the terminal state

        Raises:
            ValueError: If primary_key or paths is empty
        """
        if not primary_key:
            raise ValueError("primary_key cannot be empty")
        if not paths:
            raise ValueError("paths cannot be empty")

        self.state = ResolutionState.PENDING
        candidates = candidate_keys(primary_key, fallback_keys)

        for key in candidates:
            self.state = ResolutionState.TRYING
            self.current_key = key
            report = await self._try_candidate(key, paths, lookup_only)

            if report.ok:
                exact = is_exact_key_match(primary_key, key)
                self.state = (
                    ResolutionState.EXACT_HIT if exact else ResolutionState.FALLBACK_HIT
                )
                logger.info(
                    "Cache found and can be restored" if lookup_only else "Cache restored",
                    key=key,
                    exact=exact,
                    paths=sorted(report.succeeded),
                )
                return RestoreOutcome(
                    resolved_key=key,
                    exact=exact,
                    restored_paths=frozenset(report.succeeded),
                    state=self.state,
                    tried_keys=tuple(candidates[: candidates.index(key) + 1]),
                )

            logger.info(
                "Cache candidate not usable",
                key=key,
                failed={path: str(error) for path, error in report.failed.items()},
            )
            if report.succeeded and not lookup_only:
                await self._discard(key, sorted(report.succeeded))

        self.state = ResolutionState.MISS
        self.current_key = None
        return RestoreOutcome(
            resolved_key=None,
            exact=False,
            restored_paths=frozenset(),
            state=self.state,
            tried_keys=tuple(candidates),
        )

    async def _try_candidate(
        self, key: str, paths: Sequence[str], lookup_only: bool
    ) -> TransferReport:
        semaphore = asyncio.Semaphore(self._max_concurrency)
        abandoned = asyncio.Event()

        async def try_path(path: str) -> PathResult | None:
            async with semaphore:
                if abandoned.is_set():
                    return None
                result = await self._try_path(key, path, lookup_only)
                if not result.ok:
                    abandoned.set()
                return result

        results = await asyncio.gather(*(try_path(path) for path in paths))
        return TransferReport.from_results(result for result in results if result is not None)

    async def _discard(self, key: str, paths: list[str]) -> None:
        """Remove paths an abandoned candidate already restored."""
        try:
            await asyncio.to_thread(discard_paths, paths)
        except OSError as exc:
            logger.warning(
                "Failed to discard partially restored paths",
                key=key,
                paths=paths,
                error=str(exc),
            )
            return
        logger.info("Discarded partially restored paths", key=key, paths=paths)

    async def _try_path(self, key: str, path: str, lookup_only: bool) -> PathResult:
        storage_key = build_storage_key(key, path, self._namespace)
        try:
            if lookup_only:
                await self._retriever.probe(self._bucket, storage_key)
            else:
                logger.info("Pulling cache object", storage_key=storage_key)
                await self._retriever.fetch(
                    self._bucket, storage_key, Path(path).expanduser()
                )
        except TransferError as exc:
            log = logger.info if isinstance(exc, CacheEntryNotFoundError) else logger.warning
            log(
                "Failed to restore cache path",
                storage_key=storage_key,
                error=str(exc),
            )
            return PathResult(path=path, storage_key=storage_key, error=exc)
        return PathResult(path=path, storage_key=storage_key)
