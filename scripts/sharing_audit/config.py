"""
Run configuration for the external sharing report.

ReportConfig is built once from the command line (or the web UI) and passed
explicitly to every stage of the run.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import List, Optional, Tuple

from .errors import AuthError
from .utils import is_date_only, parse_datetime


DEFAULTS = {
    'lookback_days': 5,
    'interval_minutes': 1440,
    'result_size': 5000,
    'warning_threshold': 100,
    'critical_threshold': 500,
}


class ReportScope(Enum):
    SHAREPOINT_ONLY = "SharePointOnly"
    ONEDRIVE_ONLY = "OneDriveOnly"
    BOTH = "Both"

    @property
    def include_flags(self) -> Tuple[bool, bool]:
        """(include_sharepoint, include_onedrive) as the normalizer expects them."""
        if self is ReportScope.SHAREPOINT_ONLY:
            return True, False
        if self is ReportScope.ONEDRIVE_ONLY:
            return False, True
        return True, True


class ReportFormat(Enum):
    CSV = "CSV"
    HTML = "HTML"
    JSON = "JSON"
    DOCX = "DOCX"
    ALL = "ALL"

    @property
    def extension(self) -> str:
        return self.value.lower()


# ALL expands to these; DOCX is opt-in
ALL_FORMATS = [ReportFormat.CSV, ReportFormat.HTML, ReportFormat.JSON]


def expand_formats(formats) -> List[ReportFormat]:
    """
    Resolve requested format names into an ordered, de-duplicated list.

    Args:
        formats: Iterable of ReportFormat members or their names (case-insensitive)

    Returns:
        Concrete formats to render, ALL expanded
    """
    resolved: List[ReportFormat] = []
    for item in formats or [ReportFormat.ALL]:
        fmt = item if isinstance(item, ReportFormat) else ReportFormat(str(item).upper())
        targets = ALL_FORMATS if fmt is ReportFormat.ALL else [fmt]
        for target in targets:
            if target not in resolved:
                resolved.append(target)
    return resolved


class AuthMode(Enum):
    APP_CERT = "app-cert"
    BASIC_CREDENTIAL = "basic-credential"
    INTERACTIVE = "interactive"


@dataclass
class Credentials:
    auth_mode: AuthMode = AuthMode.INTERACTIVE
    tenant_id: Optional[str] = None
    app_id: Optional[str] = None
    certificate_thumbprint: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    def validate(self) -> None:
        """
        Check the fields the selected auth mode needs.

        Raises:
            AuthError: If a required field is missing
        """
        if self.auth_mode is AuthMode.APP_CERT:
            required = {
                'tenant id': self.tenant_id,
                'app id': self.app_id,
                'certificate thumbprint': self.certificate_thumbprint,
            }
        elif self.auth_mode is AuthMode.BASIC_CREDENTIAL:
            required = {'username': self.username, 'password': self.password}
        else:
            required = {}

        missing = [name for name, value in required.items() if not value]
        if missing:
            raise AuthError(
                f"Auth mode '{self.auth_mode.value}' requires: {', '.join(missing)}"
            )


@dataclass
class ReportConfig:
    export_path: str
    start: datetime
    end: datetime
    scope: ReportScope = ReportScope.BOTH
    formats: List[ReportFormat] = field(default_factory=lambda: list(ALL_FORMATS))
    credentials: Credentials = field(default_factory=Credentials)
    interval_minutes: int = DEFAULTS['interval_minutes']
    result_size: int = DEFAULTS['result_size']
    warning_threshold: int = DEFAULTS['warning_threshold']
    critical_threshold: int = DEFAULTS['critical_threshold']
    output_dir: str = './output'

    def validate(self, now: datetime = None) -> 'ReportConfig':
        """
        Check option values before a run starts.

        Raises:
            ValueError: Describing the first invalid option
        """
        now = now or datetime.now(timezone.utc)
        if self.start > now:
            raise ValueError(f"Start date {self.start.isoformat()} is in the future")
        if self.end > now:
            raise ValueError(f"End date {self.end.isoformat()} is in the future")
        if self.start > self.end:
            raise ValueError("Start date must not be after end date")
        if self.interval_minutes <= 0:
            raise ValueError("Batch interval must be a positive number of minutes")
        if self.result_size <= 0:
            raise ValueError("Result size must be positive")
        if self.warning_threshold > self.critical_threshold:
            raise ValueError("Warning threshold must not exceed critical threshold")
        return self

    @property
    def include_flags(self) -> Tuple[bool, bool]:
        return self.scope.include_flags


def build_config(args, now: datetime = None) -> ReportConfig:
    """
    Build a validated ReportConfig from parsed command-line arguments.

    Args:
        args: argparse.Namespace from utils.setup_argparser()
        now: Reference time for defaults (default: current UTC time)

    Raises:
        ValueError: If a date cannot be parsed or an option is invalid
    """
    now = now or datetime.now(timezone.utc)
    start = parse_datetime(args.start_date) if args.start_date else now - timedelta(days=DEFAULTS['lookback_days'])
    end = parse_datetime(args.end_date) if args.end_date else now
    if args.end_date and is_date_only(args.end_date) and end <= now:
        # A bare end date covers that whole day, up to now
        end = min(datetime.combine(end.date(), time.max, tzinfo=timezone.utc), now)

    credentials = Credentials(
        auth_mode=AuthMode(args.auth_mode),
        tenant_id=args.tenant_id,
        app_id=args.app_id,
        certificate_thumbprint=args.certificate_thumbprint,
        username=args.username,
        password=args.password,
    )

    config = ReportConfig(
        export_path=args.export_path,
        start=start,
        end=end,
        scope=ReportScope(args.scope),
        formats=expand_formats(args.formats),
        credentials=credentials,
        interval_minutes=args.interval,
        result_size=args.result_size,
        warning_threshold=args.warning_threshold,
        critical_threshold=args.critical_threshold,
        output_dir=args.output,
    )
    return config.validate(now)
