"""
Tests for sharing_audit/bundle.py - ReportBundle and RunContext
"""

import sys
import os
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from sharing_audit.bundle import ReportBundle, RunContext
from sharing_audit.errors import QueryError, RenderError
from sharing_audit.models import ReportRow
from sharing_audit.thresholds import Severity


def _row(name: str) -> ReportRow:
    return ReportRow(
        sharing_time="2024-01-15 10:30:00",
        shared_by="alice@contoso.com",
        shared_with=name,
        resource_type="File",
        resource="https://contoso.sharepoint.com/sites/x/doc.docx",
        site_url="https://contoso.sharepoint.com/sites/x/",
        sharing_type="SharingInvitationCreated",
        system="SharePoint",
        more_info={"Id": name},
    )


def _bundle(**kwargs) -> ReportBundle:
    return ReportBundle(
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 1, 5, tzinfo=timezone.utc),
        **kwargs
    )


class TestReportBundle:
    """Tests for ReportBundle aggregation."""

    def test_starts_empty(self):
        bundle = _bundle()
        assert bundle.total == 0
        assert bundle.to_records() == []

    def test_preserves_batch_then_row_order(self):
        bundle = _bundle()
        bundle.extend([_row("a"), _row("b")])
        bundle.extend([])
        bundle.extend([_row("c")])
        assert [r.shared_with for r in bundle.rows] == ["a", "b", "c"]

    def test_extend_returns_added_count(self):
        bundle = _bundle()
        assert bundle.extend(iter([_row("a"), _row("b")])) == 2
        assert bundle.extend([]) == 0

    def test_does_not_deduplicate(self):
        bundle = _bundle()
        bundle.extend([_row("a")])
        bundle.extend([_row("a")])
        assert bundle.total == 2
        assert bundle.rows[0] == bundle.rows[1]

    def test_severity_uses_bundle_thresholds(self):
        bundle = _bundle(warning_threshold=1, critical_threshold=3)
        assert bundle.severity is Severity.NORMAL
        bundle.extend([_row("a")])
        assert bundle.severity is Severity.WARNING
        bundle.extend([_row("b"), _row("c")])
        assert bundle.severity is Severity.CRITICAL

    def test_records_use_column_names(self):
        bundle = _bundle()
        bundle.extend([_row("a")])
        record = bundle.to_records()[0]
        assert record["Shared With"] == "a"
        assert record["More Info"] == {"Id": "a"}


class TestRunContext:
    """Tests for RunContext progress tracking."""

    def test_counts_render_failures(self):
        context = RunContext()
        context.record_error(QueryError("boom"))
        context.record_error(RenderError("disk full", report_format="CSV"))
        assert context.render_failures == 1
        assert len(context.errors) == 2

    def test_summary(self):
        context = RunContext(windows_total=3, windows_processed=2, windows_failed=1)
        context.files_written.append("out/SharingReport_x.csv")
        summary = context.summary()
        assert summary["windows_total"] == 3
        assert summary["windows_failed"] == 1
        assert summary["files_written"] == ["out/SharingReport_x.csv"]
        assert summary["render_failures"] == 0
