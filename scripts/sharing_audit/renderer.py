"""
Report rendering for external sharing audits.

This module writes a ReportBundle as:
- CSV (write_csv): header of the report columns plus one line per row
- JSON (write_json): array of objects keyed by the report columns
- HTML (write_html): Jinja2 page with summary, threshold banner and table
- DOCX (via docgen.create_sharing_report): Word report, opt-in

render_bundle() writes every requested format with one shared run
timestamp. A format that fails to write is reported and skipped; the
remaining formats are still attempted.
"""

import csv
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .bundle import ReportBundle
from .config import ReportFormat, expand_formats
from .errors import RenderError
from .models import REPORT_COLUMNS
from .thresholds import Severity
from .utils import save_json


REPORT_TITLE = "External Sharing Report"
FILE_PREFIX = "SharingReport"
HTML_TEMPLATE = "sharing_report.html"

BANNERS = {
    Severity.CRITICAL: (
        'critical',
        "CRITICAL: {total} external sharing events (critical threshold {critical})",
    ),
    Severity.WARNING: (
        'warning',
        "WARNING: {total} external sharing events (warning threshold {warning})",
    ),
}


def _cell(value: Any) -> str:
    """Flatten a field value into the text stored in CSV and HTML cells."""
    if value is None:
        return ''
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def report_paths(output_dir: str, timestamp: str, formats) -> Dict[ReportFormat, str]:
    """Return the destination path for each format, SharingReport_<timestamp>.<ext>."""
    return {
        fmt: os.path.join(output_dir, f"{FILE_PREFIX}_{timestamp}.{fmt.extension}")
        for fmt in expand_formats(formats)
    }


def write_csv(bundle: ReportBundle, path: str) -> str:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(REPORT_COLUMNS)
        for row in bundle.rows:
            record = row.to_dict()
            writer.writerow([_cell(record[column]) for column in REPORT_COLUMNS])
    return path


def write_json(bundle: ReportBundle, path: str) -> str:
    save_json(bundle.to_records(), path)
    return path


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml")),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def build_html(bundle: ReportBundle, generated_at: datetime = None) -> str:
    generated_at = generated_at or datetime.now()

    banner = None
    if bundle.severity in BANNERS:
        css_class, text = BANNERS[bundle.severity]
        banner = {
            'css_class': css_class,
            'text': text.format(
                total=bundle.total,
                warning=bundle.warning_threshold,
                critical=bundle.critical_threshold,
            ),
        }

    template = _template_env().get_template(HTML_TEMPLATE)
    return template.render(
        title=REPORT_TITLE,
        generated_at=generated_at.strftime('%Y-%m-%d %H:%M:%S'),
        start=bundle.start.isoformat(),
        end=bundle.end.isoformat(),
        total=bundle.total,
        banner=banner,
        columns=REPORT_COLUMNS,
        rows=[
            [(column, _cell(record[column])) for column in REPORT_COLUMNS]
            for record in bundle.to_records()
        ],
    )


def write_html(bundle: ReportBundle, path: str, generated_at: datetime = None) -> str:
    content = build_html(bundle, generated_at)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    return path


def write_docx(bundle: ReportBundle, path: str, generated_at: datetime = None) -> str:
    # python-docx is only loaded when a Word report is requested
    from .docgen import create_sharing_report

    doc = create_sharing_report(bundle, generated_at)
    doc.save(path)
    return path


WRITERS = {
    ReportFormat.CSV: lambda bundle, path, generated_at: write_csv(bundle, path),
    ReportFormat.JSON: lambda bundle, path, generated_at: write_json(bundle, path),
    ReportFormat.HTML: write_html,
    ReportFormat.DOCX: write_docx,
}


def render_bundle(
    bundle: ReportBundle,
    output_dir: str,
    timestamp: str,
    formats=None,
    generated_at: datetime = None
) -> Tuple[List[str], List[RenderError]]:
    """
    Write the bundle in each requested format.

    Args:
        bundle: Aggregated rows for the run
        output_dir: Report directory
        timestamp: Run timestamp shared by every file
        formats: Formats to write (default: the bundle's formats)
        generated_at: Generation time shown in HTML/DOCX reports

    Returns:
        Tuple of (written_paths, render_errors)
    """
    generated_at = generated_at or datetime.now()
    written: List[str] = []
    errors: List[RenderError] = []

    for fmt, path in report_paths(output_dir, timestamp, formats or bundle.formats).items():
        try:
            written.append(WRITERS[fmt](bundle, path, generated_at))
        except Exception as e:
            errors.append(RenderError(
                f"Failed to write {fmt.value} report to {path}: {e}",
                report_format=fmt.value,
                path=path,
            ))

    return written, errors
