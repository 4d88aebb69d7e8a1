"""Per-path results and their aggregation.

Each path processed by a save or a restore candidate yields a PathResult;
the overall decision is a pure reduction over the collected TransferReport.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PathResult:
    """Outcome of one path.

    Attributes:
        path: Local cache path as given by the caller
        storage_key: Object key used for the path
        error: Failure, or None on success
    """

    path: str
    storage_key: str
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TransferReport:
    """Aggregate of per-path results.

    Attributes:
        succeeded: Paths that transferred
        failed: Paths that failed, with their error
    """

    succeeded: set[str] = field(default_factory=set)
    failed: dict[str, Exception] = field(default_factory=dict)

    @classmethod
    def from_results(cls, results: Iterable[PathResult]) -> "TransferReport":
        report = cls()
        for result in results:
            report.add(result)
        return report

    def add(self, result: PathResult) -> None:
        if result.ok:
            self.succeeded.add(result.path)
        else:
            self.failed[result.path] = result.error

    @property
    def ok(self) -> bool:
        """True when at least one path ran and none failed."""
        return bool(self.succeeded) and not self.failed

    @property
    def partial(self) -> bool:
        """True when some paths succeeded and some failed."""
        return bool(self.succeeded) and bool(self.failed)

    def summary(self) -> dict[str, object]:
        return {
            "succeeded": sorted(self.succeeded),
            "failed": {path: str(error) for path, error in sorted(self.failed.items())},
        }
