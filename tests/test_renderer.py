"""
Tests for sharing_audit/renderer.py - CSV, JSON and HTML reports
"""

import pytest
import sys
import os
import csv
import json
import re
import tempfile
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from sharing_audit.bundle import ReportBundle
from sharing_audit import renderer
from sharing_audit.config import ReportFormat
from sharing_audit.models import REPORT_COLUMNS, ReportRow
from sharing_audit.renderer import (
    build_html,
    render_bundle,
    report_paths,
    write_csv,
    write_html,
    write_json,
)


def _row(shared_with: str = "guest@partner.com", **kwargs) -> ReportRow:
    fields = dict(
        sharing_time="2024-01-15 10:30:00",
        shared_by="alice@contoso.com",
        shared_with=shared_with,
        resource_type="File",
        resource="https://contoso.sharepoint.com/sites/finance/Shared Documents/Q1, final.xlsx",
        site_url="https://contoso.sharepoint.com/sites/finance/",
        sharing_type="SharingInvitationCreated",
        system="SharePoint",
        more_info={"Id": "1", "EventData": "<Type>Edit</Type>", "Nested": {"a": [1, 2]}},
    )
    fields.update(kwargs)
    return ReportRow(**fields)


def _bundle(rows=None, **kwargs) -> ReportBundle:
    bundle = ReportBundle(
        start=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end=datetime(2024, 1, 5, tzinfo=timezone.utc),
        formats=[ReportFormat.CSV, ReportFormat.HTML, ReportFormat.JSON],
        **kwargs
    )
    bundle.extend(rows or [])
    return bundle


class TestWriteCsv:
    """Tests for write_csv function."""

    def test_header_and_rows(self):
        bundle = _bundle([_row("a@x.com"), _row("b@x.com")])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_csv(bundle, os.path.join(tmpdir, "r.csv"))
            with open(path, encoding='utf-8', newline='') as f:
                rows = list(csv.reader(f))
        assert rows[0] == REPORT_COLUMNS
        assert len(rows) == 3
        assert rows[1][2] == "a@x.com"

    def test_quotes_commas_and_serializes_more_info(self):
        bundle = _bundle([_row()])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_csv(bundle, os.path.join(tmpdir, "r.csv"))
            with open(path, encoding='utf-8', newline='') as f:
                record = list(csv.DictReader(f))[0]
        assert record["Resource"].endswith("Q1, final.xlsx")
        assert json.loads(record["More Info"])["Nested"] == {"a": [1, 2]}

    def test_none_values_are_empty_cells(self):
        bundle = _bundle([_row(shared_with=None)])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_csv(bundle, os.path.join(tmpdir, "r.csv"))
            with open(path, encoding='utf-8', newline='') as f:
                record = list(csv.DictReader(f))[0]
        assert record["Shared With"] == ""

    def test_utf8(self):
        bundle = _bundle([_row("José García")])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_csv(bundle, os.path.join(tmpdir, "r.csv"))
            with open(path, 'rb') as f:
                assert "José García".encode('utf-8') in f.read()


class TestWriteJson:
    """Tests for write_json function."""

    def test_round_trip(self):
        rows = [_row("a@x.com"), _row("b@x.com", more_info={"deep": {"er": [None, True]}})]
        bundle = _bundle(rows)
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_json(bundle, os.path.join(tmpdir, "r.json"))
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        assert len(data) == len(rows)
        assert [ReportRow.from_dict(d) for d in data] == rows
        assert list(data[0].keys()) == REPORT_COLUMNS


class TestWriteHtml:
    """Tests for HTML report generation."""

    def test_contains_summary(self):
        html_text = build_html(_bundle([_row()]), generated_at=datetime(2024, 2, 1, 9, 0, 0))
        assert "<title>External Sharing Report</title>" in html_text
        assert "2024-02-01 09:00:00" in html_text
        assert "2024-01-01T00:00:00+00:00 to 2024-01-05T00:00:00+00:00" in html_text
        assert "<strong>Total Records:</strong> 1" in html_text
        for column in REPORT_COLUMNS:
            assert f"<th>{column}</th>" in html_text

    def test_escapes_field_values(self):
        row = _row('<script>alert("x")</script>', resource="a&b.docx")
        html_text = build_html(_bundle([row]))
        assert "<script>" not in html_text
        assert "&lt;script&gt;" in html_text
        assert "a&amp;b.docx" in html_text
        assert "&lt;Type&gt;Edit&lt;/Type&gt;" in html_text

    def test_row_cells_follow_column_order(self):
        html_text = build_html(_bundle([_row("guest@partner.com")]))
        row = re.search(r"<tr><td>.*</tr>", html_text).group(0)
        cells = re.findall(r"<td[^>]*>(.*?)</td>", row)
        assert len(cells) == len(REPORT_COLUMNS)
        assert cells[2] == "guest@partner.com"
        assert '<td class="more-info">' in row

    def test_no_banner_below_warning(self):
        html_text = build_html(_bundle([_row()], warning_threshold=2, critical_threshold=3))
        assert 'class="banner' not in html_text

    def test_warning_banner(self):
        html_text = build_html(_bundle([_row(), _row()], warning_threshold=2, critical_threshold=3))
        assert 'class="banner warning"' in html_text
        assert 'class="banner critical"' not in html_text

    def test_critical_banner(self):
        rows = [_row(), _row(), _row()]
        html_text = build_html(_bundle(rows, warning_threshold=2, critical_threshold=3))
        assert 'class="banner critical"' in html_text
        assert 'class="banner warning"' not in html_text

    def test_write_html(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_html(_bundle([_row()]), os.path.join(tmpdir, "r.html"))
            with open(path, encoding='utf-8') as f:
                assert f.read().startswith("<!DOCTYPE html>")


class TestRenderBundle:
    """Tests for render_bundle function."""

    def test_report_paths_share_timestamp(self):
        paths = report_paths("out", "20240105_120000", [ReportFormat.ALL])
        assert paths == {
            ReportFormat.CSV: os.path.join("out", "SharingReport_20240105_120000.csv"),
            ReportFormat.HTML: os.path.join("out", "SharingReport_20240105_120000.html"),
            ReportFormat.JSON: os.path.join("out", "SharingReport_20240105_120000.json"),
        }

    def test_empty_bundle_all_formats(self):
        bundle = _bundle()
        with tempfile.TemporaryDirectory() as tmpdir:
            written, errors = render_bundle(bundle, tmpdir, "20240105_120000", [ReportFormat.ALL])
            assert errors == []
            assert len(written) == 3

            with open(os.path.join(tmpdir, "SharingReport_20240105_120000.csv"), encoding='utf-8') as f:
                assert list(csv.reader(f)) == [REPORT_COLUMNS]
            with open(os.path.join(tmpdir, "SharingReport_20240105_120000.json"), encoding='utf-8') as f:
                assert json.load(f) == []
            with open(os.path.join(tmpdir, "SharingReport_20240105_120000.html"), encoding='utf-8') as f:
                html_text = f.read()
            assert re.search(r"<tbody>\s*</tbody>", html_text)
            assert "<td" not in html_text
            assert "<strong>Total Records:</strong> 0" in html_text

    def test_defaults_to_bundle_formats(self):
        bundle = _bundle([_row()])
        bundle.formats = [ReportFormat.JSON]
        with tempfile.TemporaryDirectory() as tmpdir:
            written, errors = render_bundle(bundle, tmpdir, "ts")
            assert written == [os.path.join(tmpdir, "SharingReport_ts.json")]

    def test_failed_format_does_not_stop_others(self):
        bundle = _bundle([_row()])
        with tempfile.TemporaryDirectory() as tmpdir:
            # A directory where the CSV file should go makes that write fail
            os.mkdir(os.path.join(tmpdir, "SharingReport_ts.csv"))
            written, errors = render_bundle(bundle, tmpdir, "ts", [ReportFormat.ALL])

            assert len(errors) == 1
            assert errors[0].report_format == "CSV"
            assert sorted(os.path.basename(p) for p in written) == [
                "SharingReport_ts.html",
                "SharingReport_ts.json",
            ]
            assert all(os.path.isfile(p) for p in written)

    def test_docx_format(self):
        bundle = _bundle([_row()])
        with tempfile.TemporaryDirectory() as tmpdir:
            written, errors = render_bundle(bundle, tmpdir, "ts", [ReportFormat.DOCX])
            assert errors == []
            assert written[0].endswith("SharingReport_ts.docx")
            assert os.path.getsize(written[0]) > 0

    def test_unexpected_writer_error_is_isolated(self, monkeypatch):
        def broken_writer(bundle, path, generated_at):
            raise KeyError("no style with name 'Light Grid Accent 1'")

        monkeypatch.setitem(renderer.WRITERS, ReportFormat.DOCX, broken_writer)
        bundle = _bundle([_row()])
        with tempfile.TemporaryDirectory() as tmpdir:
            written, errors = render_bundle(
                bundle, tmpdir, "ts", [ReportFormat.DOCX, ReportFormat.CSV, ReportFormat.JSON]
            )

            assert len(errors) == 1
            assert errors[0].report_format == "DOCX"
            assert "Light Grid Accent 1" in str(errors[0])
            assert sorted(os.path.basename(p) for p in written) == [
                "SharingReport_ts.csv",
                "SharingReport_ts.json",
            ]
