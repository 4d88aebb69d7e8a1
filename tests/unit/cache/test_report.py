"""Unit tests for s3cache.cache.report."""

from s3cache.cache.report import PathResult, TransferReport
from s3cache.core.exceptions import TransferError


class TestTransferReport:
    """Tests for per-path aggregation."""

    def test_all_succeeded(self) -> None:
        report = TransferReport.from_results(
            [PathResult("dist", "v1:dist"), PathResult("out", "v1:out")]
        )

        assert report.ok is True
        assert report.partial is False
        assert report.succeeded == {"dist", "out"}

    def test_partial(self) -> None:
        error = TransferError("boom", storage_key="v1:out")
        report = TransferReport.from_results(
            [PathResult("dist", "v1:dist"), PathResult("out", "v1:out", error)]
        )

        assert report.ok is False
        assert report.partial is True
        assert report.failed == {"out": error}

    def test_all_failed_is_not_partial(self) -> None:
        report = TransferReport.from_results(
            [PathResult("dist", "v1:dist", TransferError("boom"))]
        )

        assert report.ok is False
        assert report.partial is False

    def test_empty_report_is_not_ok(self) -> None:
        """Test a report with no paths is never a success."""
        assert TransferReport().ok is False

    def test_summary_is_sorted_and_serializable(self) -> None:
        report = TransferReport()
        report.add(PathResult("b", "v1:b"))
        report.add(PathResult("a", "v1:a"))
        report.add(PathResult("c", "v1:c", TransferError("missing")))

        assert report.summary() == {"succeeded": ["a", "b"], "failed": {"c": "missing"}}
