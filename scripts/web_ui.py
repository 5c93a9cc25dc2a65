#!/usr/bin/env python3
"""
External Sharing Audit Web UI

A minimalist Streamlit interface for running external sharing reports.

Usage:
    cd /path/to/repo
    streamlit run scripts/web_ui.py

Features:
    - Upload a unified audit log export (JSON or CSV)
    - Choose date range, workload scope, report formats and thresholds
    - Run the audit with progress feedback
    - Download the generated CSV, HTML, JSON and Word reports
"""

import sys
import tempfile
from datetime import datetime, time, timedelta, timezone
from pathlib import Path

# Add scripts directory to path for imports
SCRIPTS_DIR = Path(__file__).parent
sys.path.insert(0, str(SCRIPTS_DIR))

import streamlit as st
from werkzeug.utils import secure_filename

from external_sharing_report import process
from sharing_audit.config import (
    DEFAULTS,
    ReportConfig,
    ReportFormat,
    ReportScope,
    expand_formats,
)
from sharing_audit.thresholds import Severity


MIME_TYPES = {
    '.csv': 'text/csv',
    '.html': 'text/html',
    '.json': 'application/json',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}

SEVERITY_MESSAGES = {
    Severity.NORMAL: st.success,
    Severity.WARNING: st.warning,
    Severity.CRITICAL: st.error,
}


def get_output_dir() -> Path:
    """Get the report directory path."""
    output_dir = SCRIPTS_DIR.parent / "output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


def save_upload(uploaded_file) -> Path:
    """Save an uploaded export under a sanitized name and return its path."""
    temp_dir = Path(tempfile.gettempdir()) / "sharing_audit_uploads"
    temp_dir.mkdir(exist_ok=True)
    temp_path = temp_dir / secure_filename(uploaded_file.name)
    temp_path.write_bytes(uploaded_file.read())
    return temp_path


def discard_upload(path) -> None:
    """Delete a saved upload. Uploaded exports are never kept after a run."""
    if path is None:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        pass


def main():
    """Main Streamlit application."""
    st.set_page_config(
        page_title="External Sharing Audit",
        page_icon="🔗",
        layout="wide"
    )

    if "runs" not in st.session_state:
        st.session_state.runs = []

    st.title("🔗 External Sharing Audit")
    st.markdown("Report guest invitations and anonymous links from the Microsoft 365 audit log")

    today = datetime.now(timezone.utc).date()

    with st.sidebar:
        st.header("Audit Window")
        start_date = st.date_input(
            "Start Date",
            value=today - timedelta(days=DEFAULTS['lookback_days']),
            max_value=today
        )
        end_date = st.date_input("End Date", value=today, max_value=today)

        st.divider()
        st.header("Options")
        scope = st.selectbox(
            "Scope",
            options=[s.value for s in ReportScope],
            index=[s.value for s in ReportScope].index(ReportScope.BOTH.value)
        )
        formats = st.multiselect(
            "Report Formats",
            options=[f.value for f in ReportFormat if f is not ReportFormat.ALL],
            default=[f.value for f in expand_formats([ReportFormat.ALL])]
        )
        interval = st.number_input(
            "Batch Interval (minutes)",
            min_value=1,
            value=DEFAULTS['interval_minutes']
        )
        warning_threshold = st.number_input(
            "Warning Threshold",
            min_value=0,
            value=DEFAULTS['warning_threshold']
        )
        critical_threshold = st.number_input(
            "Critical Threshold",
            min_value=0,
            value=DEFAULTS['critical_threshold']
        )

        st.divider()
        if st.button("🗑️ Clear Session", help="Forget previous runs"):
            st.session_state.runs = []
            st.rerun()

    st.header("Run Audit")

    uploaded_file = st.file_uploader(
        "Upload Audit Log Export",
        type=["json", "csv"],
        help="Unified audit log export from Microsoft Purview"
    )

    if st.button("🚀 Run Audit", type="primary", disabled=not uploaded_file):
        export_path = None
        try:
            with st.spinner("Searching audit export..."):
                export_path = save_upload(uploaded_file)
                now = datetime.now(timezone.utc)
                end = min(datetime.combine(end_date, time.max, tzinfo=timezone.utc), now)
                config = ReportConfig(
                    export_path=str(export_path),
                    start=datetime.combine(start_date, time.min, tzinfo=timezone.utc),
                    end=end,
                    scope=ReportScope(scope),
                    formats=expand_formats(formats),
                    interval_minutes=int(interval),
                    warning_threshold=int(warning_threshold),
                    critical_threshold=int(critical_threshold),
                    output_dir=str(get_output_dir()),
                ).validate(now)

                result = process(config)

            st.session_state.runs.append({
                "timestamp": result.timestamp,
                "total": result.total,
                "severity": result.severity,
                "paths": result.paths,
            })

            SEVERITY_MESSAGES[result.severity](
                f"{result.total} external sharing events found ({result.severity.value})"
            )
            if result.context.errors:
                with st.expander(f"{len(result.context.errors)} issues during the run"):
                    for error in result.context.errors:
                        st.write(f"- {error}")

        except Exception as e:
            st.error(f"❌ Audit failed: {str(e)}")
            with st.expander("Error Details"):
                st.exception(e)
        finally:
            discard_upload(export_path)

    if st.session_state.runs:
        st.divider()
        st.subheader("Reports")

        for run in reversed(st.session_state.runs):
            with st.expander(f"Run {run['timestamp']}: {run['total']} records ({run['severity'].value})"):
                for path in run["paths"]:
                    path = Path(path)
                    try:
                        with open(path, "rb") as f:
                            st.download_button(
                                f"📄 {path.name}",
                                f,
                                file_name=path.name,
                                mime=MIME_TYPES.get(path.suffix, "application/octet-stream"),
                                key=f"{run['timestamp']}_{path.name}"
                            )
                    except FileNotFoundError:
                        st.warning(f"{path.name} not found")
    else:
        st.info("No audits run yet. Upload an export to get started.")

    st.divider()
    st.caption(
        "🔗 External Sharing Audit | "
        "Exports are processed locally and not uploaded to any external server"
    )


if __name__ == "__main__":
    main()
