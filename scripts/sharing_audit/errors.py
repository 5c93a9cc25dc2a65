"""
Error taxonomy for external sharing audits.

Fatal errors (SetupError, AuthError) stop a run before any window is
fetched. The others are recoverable and are collected on the run context:
- QueryError: one window could not be fetched, it contributes zero rows
- RecordError: one raw event was malformed and is dropped
- RenderError: one report format could not be written
"""


class SharingAuditError(Exception):
    """Base class for all sharing audit errors."""


class SetupError(SharingAuditError):
    """Output directory or audit export could not be prepared."""


class AuthError(SharingAuditError):
    """Session with the audit log source could not be established."""


class QueryError(SharingAuditError):
    """
    Raised when an audit log query for one time window fails.

    Attributes:
        window: The TimeWindow that failed (if known)
    """
    def __init__(self, message: str, window=None):
        super().__init__(message)
        self.window = window


class RecordError(SharingAuditError):
    """
    Raised when a single raw audit event cannot be normalized.

    Attributes:
        record: The raw payload of the offending event
    """
    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class RenderError(SharingAuditError):
    """
    Raised when a report format cannot be written.

    Attributes:
        report_format: Name of the format that failed (CSV, HTML, ...)
        path: Destination path
    """
    def __init__(self, message: str, report_format: str = None, path: str = None):
        super().__init__(message)
        self.report_format = report_format
        self.path = path
