"""
Run-level aggregation.

ReportBundle holds every ReportRow of a run in fetch order, together with
what the renderers need to know about the run. RunContext tracks progress
and recoverable errors so nothing is kept in module-level state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from .config import ReportFormat
from .errors import RenderError, SharingAuditError
from .models import ReportRow
from .thresholds import Severity, evaluate_threshold


@dataclass
class ReportBundle:
    start: datetime
    end: datetime
    formats: List[ReportFormat] = field(default_factory=list)
    warning_threshold: int = 100
    critical_threshold: int = 500
    rows: List[ReportRow] = field(default_factory=list)

    def extend(self, rows: Iterable[ReportRow]) -> int:
        """
        Append one batch of rows in their original order.

        Rows are never de-duplicated; windows do not overlap, so a repeated
        row points at a repeated record in the source.

        Returns:
            Number of rows appended
        """
        before = len(self.rows)
        self.rows.extend(rows)
        return len(self.rows) - before

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def severity(self) -> Severity:
        return evaluate_threshold(self.total, self.warning_threshold, self.critical_threshold)

    def to_records(self) -> List[dict]:
        return [row.to_dict() for row in self.rows]


@dataclass
class RunContext:
    """Progress counters for one run."""

    windows_total: int = 0
    windows_processed: int = 0
    windows_failed: int = 0
    events_fetched: int = 0
    records_dropped: int = 0
    files_written: List[str] = field(default_factory=list)
    errors: List[SharingAuditError] = field(default_factory=list)

    def record_error(self, error: SharingAuditError) -> None:
        self.errors.append(error)

    @property
    def render_failures(self) -> int:
        return sum(1 for e in self.errors if isinstance(e, RenderError))

    def summary(self) -> dict:
        return {
            'windows_total': self.windows_total,
            'windows_processed': self.windows_processed,
            'windows_failed': self.windows_failed,
            'events_fetched': self.events_fetched,
            'records_dropped': self.records_dropped,
            'files_written': list(self.files_written),
            'render_failures': self.render_failures,
        }
