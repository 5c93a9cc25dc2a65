"""
Common utilities for the sharing audit toolkit.

This module provides shared functionality for:
- Command-line argument parsing
- File I/O operations (JSON, CSV)
- Timestamp parsing and local time formatting
"""

import os
import json
import csv
import argparse
import chardet
from typing import Dict, List, Any, Optional
from datetime import datetime, time, timezone, tzinfo

from dateutil import parser as date_parser
from dateutil import tz as date_tz


LOCAL_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'

_DAY_START = datetime(2000, 1, 1)
_DAY_END = datetime.combine(_DAY_START.date(), time.max)


def setup_argparser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the external sharing report.

    Returns:
        Configured ArgumentParser instance
    """
    # Imported here so config can use the utilities in this module
    from .config import ReportScope, ReportFormat, AuthMode, DEFAULTS

    parser = argparse.ArgumentParser(
        description='Report external sharing activity from the Microsoft 365 unified audit log',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python external_sharing_report.py audit_export.csv
  python external_sharing_report.py audit_export.json --start-date 2024-01-01 --end-date 2024-01-07
  python external_sharing_report.py audit_export.csv --scope SharePointOnly --format HTML -o ./reports
        """
    )
    parser.add_argument(
        'export_path',
        help='Path to the unified audit log export (JSON or CSV)'
    )
    parser.add_argument(
        '--start-date', '-s',
        help='Start of the audit window (default: 5 days ago)'
    )
    parser.add_argument(
        '--end-date', '-e',
        help='End of the audit window (default: now)'
    )
    parser.add_argument(
        '--scope',
        choices=[s.value for s in ReportScope],
        default=ReportScope.BOTH.value,
        help='Workloads to include (default: Both)'
    )
    parser.add_argument(
        '--format', '-f',
        dest='formats',
        action='append',
        choices=[f.value for f in ReportFormat],
        help='Report format, repeat for several (default: ALL)'
    )
    parser.add_argument(
        '--auth-mode',
        choices=[m.value for m in AuthMode],
        default=AuthMode.INTERACTIVE.value,
        help='How the audit log session is established (default: interactive)'
    )
    parser.add_argument('--tenant-id', help='Tenant ID (app-cert auth)')
    parser.add_argument('--app-id', help='Application ID (app-cert auth)')
    parser.add_argument('--certificate-thumbprint', help='Certificate thumbprint (app-cert auth)')
    parser.add_argument('--username', help='Admin user name (basic-credential auth)')
    parser.add_argument('--password', help='Admin password (basic-credential auth)')
    parser.add_argument(
        '--interval',
        type=int,
        default=DEFAULTS['interval_minutes'],
        help=f"Batch interval in minutes (default: {DEFAULTS['interval_minutes']})"
    )
    parser.add_argument(
        '--result-size',
        type=int,
        default=DEFAULTS['result_size'],
        help=f"Maximum records per audit log query (default: {DEFAULTS['result_size']})"
    )
    parser.add_argument(
        '--warning-threshold',
        type=int,
        default=DEFAULTS['warning_threshold'],
        help=f"Row count that triggers a warning (default: {DEFAULTS['warning_threshold']})"
    )
    parser.add_argument(
        '--critical-threshold',
        type=int,
        default=DEFAULTS['critical_threshold'],
        help=f"Row count that triggers a critical alert (default: {DEFAULTS['critical_threshold']})"
    )
    parser.add_argument(
        '--output', '-o',
        default='./output',
        help='Report directory (default: ./output)'
    )
    return parser


def _detect_encoding(path: str) -> str:
    with open(path, 'rb') as f:
        detected = chardet.detect(f.read())
    return detected.get('encoding') or 'utf-8'


def load_json(path: str) -> Any:
    """
    Load a JSON file with automatic encoding detection.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON content

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is invalid
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Audit export not found: {path}")

    # Try UTF-8 first (BOM tolerated, the portal writes one)
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            return json.load(f)
    except UnicodeDecodeError:
        pass

    with open(path, 'r', encoding=_detect_encoding(path)) as f:
        return json.load(f)


def load_csv(path: str) -> List[Dict]:
    """
    Load a CSV file as a list of dictionaries.

    Args:
        path: Path to the CSV file

    Returns:
        List of dictionaries (one per row)

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Audit export not found: {path}")

    encodings = ['utf-8-sig', 'utf-8', 'cp1252']

    for encoding in encodings:
        try:
            with open(path, 'r', encoding=encoding, newline='') as f:
                return list(csv.DictReader(f))
        except UnicodeDecodeError:
            continue

    with open(path, 'r', encoding=_detect_encoding(path), newline='') as f:
        return list(csv.DictReader(f))


def save_json(data: Any, path: str) -> None:
    """
    Save data as a formatted UTF-8 JSON file.

    Args:
        data: Data to serialize
        path: Output file path
    """
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, default=str, ensure_ascii=False)


def ensure_output_dir(output_dir: str) -> str:
    """
    Ensure an output directory exists, creating it if necessary.

    Args:
        output_dir: Path to the output directory

    Returns:
        The same path (for chaining)
    """
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def to_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_datetime(value: Any) -> datetime:
    """
    Parse a command-line date or timestamp into an aware UTC datetime.

    Any format python-dateutil understands is accepted. Naive values are
    treated as UTC, and a date without a time means midnight.

    Raises:
        ValueError: If the value is empty or cannot be parsed
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if value is None or not str(value).strip():
        raise ValueError("Empty timestamp")
    try:
        return to_utc(date_parser.isoparse(str(value).strip()))
    except ValueError:
        pass
    try:
        return to_utc(date_parser.parse(str(value).strip()))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unparseable timestamp: {value!r}") from e


def is_date_only(value: Any) -> bool:
    """Return True if a date string carries no time of day (e.g. 2024-01-07)."""
    if isinstance(value, datetime):
        return False
    text = str(value).strip()
    # Missing fields are filled from the default, so only a missing hour differs
    try:
        return date_parser.parse(text, default=_DAY_START).hour != date_parser.parse(text, default=_DAY_END).hour
    except (ValueError, OverflowError):
        return False


def parse_audit_time(value: Any) -> datetime:
    """
    Parse an audit record's CreationTime into an aware UTC datetime.

    Only ISO-8601 is accepted, so a truncated value such as "12" is
    rejected instead of being completed from today's date.

    Raises:
        ValueError: If the value is empty or not an ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if value is None or not str(value).strip():
        raise ValueError("Empty timestamp")
    try:
        return to_utc(date_parser.isoparse(str(value).strip()))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unparseable timestamp: {value!r}") from e


def format_local_time(value: Any, tz: Optional[tzinfo] = None) -> str:
    """
    Convert a UTC timestamp to local time and format it.

    Args:
        value: ISO-8601 timestamp string or datetime (UTC)
        tz: Target zone (default: the machine's local zone)

    Returns:
        Formatted string (YYYY-MM-DD HH:MM:SS)

    Raises:
        ValueError: If the timestamp cannot be parsed
    """
    moment = parse_audit_time(value)
    return moment.astimezone(tz or date_tz.tzlocal()).strftime(LOCAL_TIME_FORMAT)


def get_timestamp() -> str:
    """
    Get current timestamp in filename-safe format.

    Returns:
        Timestamp string (YYYYMMDD_HHMMSS)
    """
    return datetime.now().strftime('%Y%m%d_%H%M%S')

