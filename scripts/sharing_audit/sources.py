"""
Audit log sources.

An AuditLogSource answers one query per time window. The toolkit ships
ExportFileSource, which answers queries from a unified audit log export
downloaded from the compliance portal:
- JSON: a list of records, an object with a "value" list, or records that
  wrap the event in an "AuditData" JSON string/object
- CSV: the portal's export layout, one row per record with an "AuditData"
  column holding the event JSON

Usage:
    with ExportFileSource("audit_export.csv") as source:
        source.connect(credentials)
        events = source.query(window, SHARING_OPERATIONS, 5000)
"""

import json
import os
from typing import Any, Dict, Iterable, List, Optional

from .config import Credentials
from .errors import QueryError, RecordError, SetupError
from .models import RawAuditEvent, TimeWindow
from .utils import load_csv, load_json, parse_audit_time


class AuditLogSource:
    """Base class for audit log collaborators."""

    def connect(self, credentials: Credentials) -> None:
        """
        Establish the session.

        Raises:
            AuthError: If the credentials are incomplete or rejected
        """
        credentials.validate()

    def query(
        self,
        window: TimeWindow,
        operations: Iterable[str],
        result_size: int
    ) -> List[RawAuditEvent]:
        """
        Return events in the window whose operation is in operations.

        Raises:
            QueryError: On any fetch failure for this window
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release the session. Safe to call more than once."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def _unwrap_record(record: Any) -> Dict[str, Any]:
    """Return the event dict, decoding an AuditData wrapper if present."""
    if not isinstance(record, dict):
        raise ValueError(f"Expected an object, got {type(record).__name__}")
    audit_data = record.get('AuditData')
    if audit_data is None:
        return record
    if isinstance(audit_data, str):
        audit_data = json.loads(audit_data)
    if not isinstance(audit_data, dict):
        raise ValueError(f"AuditData is not an object: {type(audit_data).__name__}")
    return audit_data


class ExportFileSource(AuditLogSource):
    """
    Audit log source backed by an exported JSON or CSV file.

    Attributes:
        path: Path to the export file
        records: Decoded event records (after connect)
        skipped: RecordErrors for export rows that could not be decoded
    """

    def __init__(self, path: str):
        self.path = path
        self.records: Optional[List[Dict[str, Any]]] = None
        self.skipped: List[RecordError] = []

    def connect(self, credentials: Credentials) -> None:
        super().connect(credentials)
        try:
            raw = self._load()
        except (OSError, ValueError) as e:
            raise SetupError(f"Cannot read audit export {self.path}: {e}") from e

        records = []
        for index, record in enumerate(raw, start=1):
            try:
                records.append(_unwrap_record(record))
            except ValueError as e:
                self.skipped.append(RecordError(f"Export row {index}: {e}", record=record))
        self.records = records

    def _load(self) -> List[Any]:
        if self.path.lower().endswith('.csv'):
            return load_csv(self.path)

        data = load_json(self.path)
        if isinstance(data, dict):
            if isinstance(data.get('value'), list):
                return data['value']
            return [data]
        if isinstance(data, list):
            return data
        raise ValueError(f"Unsupported export layout in {os.path.basename(self.path)}")

    def query(
        self,
        window: TimeWindow,
        operations: Iterable[str],
        result_size: int
    ) -> List[RawAuditEvent]:
        if self.records is None:
            raise QueryError("Audit export is not loaded; call connect() first", window)

        wanted = set(operations)
        timed = []
        untimed = []
        for record in self.records:
            if record.get('Operation') not in wanted:
                continue
            try:
                moment = parse_audit_time(record.get('CreationTime'))
            except ValueError:
                # Handed to the normalizer once, on the last window
                if window.final:
                    untimed.append(record)
                continue
            if window.contains(moment):
                timed.append((moment, record))

        timed.sort(key=lambda item: item[0])
        ordered = [record for _, record in timed] + untimed
        return [RawAuditEvent.from_record(r) for r in ordered[:result_size]]

    def close(self) -> None:
        self.records = None
