"""
External Sharing Audit Core Modules

Shared functionality for auditing guest invitations and anonymous links
recorded in the Microsoft 365 unified audit log.
"""

from .errors import (
    SharingAuditError,
    SetupError,
    AuthError,
    QueryError,
    RecordError,
    RenderError,
)
from .models import (
    Workload,
    Operation,
    RawAuditEvent,
    ReportRow,
    TimeWindow,
    REPORT_COLUMNS,
    SHARING_OPERATIONS,
    ANYONE_WITH_THE_LINK,
)
from .config import (
    ReportConfig,
    ReportScope,
    ReportFormat,
    AuthMode,
    Credentials,
    build_config,
    expand_formats,
)
from .windows import WindowSplitter
from .normalizer import normalize_event, normalize_events
from .bundle import ReportBundle, RunContext
from .thresholds import Severity, evaluate_threshold
from .renderer import render_bundle, report_paths, write_csv, write_json, write_html, write_docx
from .sources import AuditLogSource, ExportFileSource
from .utils import setup_argparser, get_timestamp, ensure_output_dir
from .activity_log import (
    log_event,
    iter_activity_log,
    read_activity_log,
    get_run_summary,
    get_activity_log_path,
    clear_activity_log,
)

__all__ = [
    'SharingAuditError',
    'SetupError',
    'AuthError',
    'QueryError',
    'RecordError',
    'RenderError',
    'Workload',
    'Operation',
    'RawAuditEvent',
    'ReportRow',
    'TimeWindow',
    'REPORT_COLUMNS',
    'SHARING_OPERATIONS',
    'ANYONE_WITH_THE_LINK',
    'ReportConfig',
    'ReportScope',
    'ReportFormat',
    'AuthMode',
    'Credentials',
    'build_config',
    'expand_formats',
    'WindowSplitter',
    'normalize_event',
    'normalize_events',
    'ReportBundle',
    'RunContext',
    'Severity',
    'evaluate_threshold',
    'render_bundle',
    'report_paths',
    'write_csv',
    'write_json',
    'write_html',
    'write_docx',
    'AuditLogSource',
    'ExportFileSource',
    'setup_argparser',
    'get_timestamp',
    'ensure_output_dir',
    'log_event',
    'iter_activity_log',
    'read_activity_log',
    'get_run_summary',
    'get_activity_log_path',
    'clear_activity_log',
]
