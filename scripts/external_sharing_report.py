#!/usr/bin/env python3
"""
Microsoft 365 External Sharing Report

Audit source: Microsoft Purview > Audit > unified audit log export (JSON or CSV)
Operations: SharingInvitationCreated, AnonymousLinkCreated, AddedToSecureLink

Reports guest invitations and anonymous links shared from SharePoint Online
and OneDrive for Business between two dates, and flags the run when the
number of external shares crosses the warning or critical threshold.

Usage:
    python external_sharing_report.py audit_export.csv
    python external_sharing_report.py audit_export.json --start-date 2024-01-01 --end-date 2024-01-07
    python external_sharing_report.py audit_export.csv --scope OneDriveOnly --format CSV --format HTML
"""

import sys
import os
import logging
import time
import traceback
from typing import List, Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sharing_audit.activity_log import log_event
from sharing_audit.bundle import ReportBundle, RunContext
from sharing_audit.config import ReportConfig, build_config
from sharing_audit.errors import QueryError, RecordError, SetupError
from sharing_audit.models import SHARING_OPERATIONS
from sharing_audit.normalizer import normalize_events
from sharing_audit.renderer import render_bundle
from sharing_audit.sources import AuditLogSource, ExportFileSource
from sharing_audit.thresholds import Severity
from sharing_audit.utils import ensure_output_dir, get_timestamp, setup_argparser
from sharing_audit.windows import WindowSplitter


class RunResult:
    """Outcome of a completed run."""

    def __init__(self, bundle: ReportBundle, context: RunContext, paths: List[str], timestamp: str):
        self.bundle = bundle
        self.context = context
        self.paths = paths
        self.timestamp = timestamp

    @property
    def total(self) -> int:
        return self.bundle.total

    @property
    def severity(self) -> Severity:
        return self.bundle.severity


def _record_dropped(config: ReportConfig, context: RunContext, error: RecordError) -> None:
    context.records_dropped += 1
    context.record_error(error)
    record = error.record if isinstance(error.record, dict) else {}
    log_event(
        'record_dropped',
        output_dir=config.output_dir,
        level=logging.WARNING,
        error=str(error),
        operation=record.get('Operation'),
        record_id=record.get('Id'),
    )


def collect_rows(
    config: ReportConfig,
    source: AuditLogSource,
    bundle: ReportBundle,
    context: RunContext,
    tz=None
) -> None:
    """
    Fetch, normalize and aggregate every window of the configured range.

    A failed window is logged and contributes no rows; the next window is
    still fetched.
    """
    splitter = WindowSplitter(config.start, config.end, config.interval_minutes)
    include_sharepoint, include_onedrive = config.include_flags
    context.windows_total = len(splitter)

    for index, window in enumerate(splitter, start=1):
        print(f"  [{index}/{context.windows_total}] {window}")
        try:
            events = source.query(window, SHARING_OPERATIONS, config.result_size)
        except QueryError as e:
            context.windows_failed += 1
            context.record_error(e)
            print(f"    Query failed, skipping window: {e}")
            log_event(
                'window_failed',
                output_dir=config.output_dir,
                level=logging.ERROR,
                window_start=window.start.isoformat(),
                window_end=window.end.isoformat(),
                error=str(e),
            )
            continue

        context.windows_processed += 1
        context.events_fetched += len(events)
        if len(events) >= config.result_size:
            print(
                f"    Result size limit ({config.result_size}) reached; "
                f"use a smaller --interval to avoid missing events"
            )

        added = bundle.extend(normalize_events(
            events,
            include_sharepoint,
            include_onedrive,
            tz=tz,
            on_error=lambda error: _record_dropped(config, context, error),
        ))
        print(f"    {len(events)} audit records, {added} external shares (total {bundle.total})")


def process(
    config: ReportConfig,
    source: Optional[AuditLogSource] = None,
    timestamp: str = None,
    tz=None
) -> RunResult:
    """
    Run an external sharing audit and write the reports.

    Args:
        config: Validated run configuration
        source: Audit log source (default: ExportFileSource on config.export_path)
        timestamp: Run timestamp for file names (default: now)
        tz: Zone for sharing times (default: local zone)

    Returns:
        RunResult with the bundle, progress context and written paths

    Raises:
        SetupError: If the output directory or export cannot be prepared
        AuthError: If the audit log session cannot be established
    """
    start_time = time.time()
    if source is None:
        source = ExportFileSource(config.export_path)
    timestamp = timestamp or get_timestamp()

    try:
        ensure_output_dir(config.output_dir)
    except OSError as e:
        raise SetupError(f"Cannot create report directory {config.output_dir}: {e}") from e

    log_event(
        'run_started',
        output_dir=config.output_dir,
        export_file=os.path.basename(config.export_path),
        start=config.start.isoformat(),
        end=config.end.isoformat(),
        scope=config.scope.value,
        formats=[f.value for f in config.formats],
        auth_mode=config.credentials.auth_mode.value,
        interval_minutes=config.interval_minutes,
    )

    bundle = ReportBundle(
        start=config.start,
        end=config.end,
        formats=list(config.formats),
        warning_threshold=config.warning_threshold,
        critical_threshold=config.critical_threshold,
    )
    context = RunContext()

    try:
        print(f"Connecting to audit log ({config.credentials.auth_mode.value})...")
        source.connect(config.credentials)
        for error in getattr(source, 'skipped', []):
            _record_dropped(config, context, error)

        print(f"Searching audit log from {config.start.isoformat()} to {config.end.isoformat()}...")
        collect_rows(config, source, bundle, context, tz=tz)

        print("Writing reports...")
        paths, render_errors = render_bundle(bundle, config.output_dir, timestamp, config.formats)
        context.files_written.extend(paths)
        for error in render_errors:
            context.record_error(error)
            print(f"  Failed: {error}")
            log_event(
                'render_failed',
                output_dir=config.output_dir,
                level=logging.ERROR,
                report_format=error.report_format,
                path=error.path,
                error=str(error),
            )

        severity = bundle.severity
        log_event(
            'threshold_evaluated',
            output_dir=config.output_dir,
            level=severity.log_level,
            severity=severity.value,
            total_records=bundle.total,
            warning_threshold=config.warning_threshold,
            critical_threshold=config.critical_threshold,
        )

        print(f"\n✓ External sharing: {bundle.total} records found")
        if severity is not Severity.NORMAL:
            print(f"  {severity.value.upper()}: threshold exceeded "
                  f"(warning {config.warning_threshold}, critical {config.critical_threshold})")
        if context.windows_failed or context.records_dropped:
            print(f"  Skipped: {context.windows_failed} windows, {context.records_dropped} records")
        for path in paths:
            print(f"  → {path}")

        log_event(
            'run_complete',
            output_dir=config.output_dir,
            status='success',
            total_records=bundle.total,
            severity=severity.value,
            files_generated=[os.path.basename(p) for p in paths],
            execution_time_seconds=round(time.time() - start_time, 2),
            **{k: v for k, v in context.summary().items() if k != 'files_written'},
        )

        return RunResult(bundle, context, paths, timestamp)

    except Exception as e:
        log_event(
            'run_failed',
            output_dir=config.output_dir,
            level=logging.CRITICAL,
            status='failure',
            error_type=type(e).__name__,
            error=str(e),
            execution_time_seconds=round(time.time() - start_time, 2),
        )
        raise

    finally:
        source.close()


def main(argv: List[str] = None) -> int:
    parser = setup_argparser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        process(config)
    except Exception as e:
        print(f"Error: {e}")
        traceback.print_exc()
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
