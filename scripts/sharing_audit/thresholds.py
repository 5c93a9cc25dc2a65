"""
Classify a run's row count against warning and critical thresholds.

The classification only picks a log severity and report banner; it never
stops a run or changes its exit status.
"""

import logging
from enum import Enum


class Severity(Enum):
    NORMAL = "Normal"
    WARNING = "Warning"
    CRITICAL = "Critical"

    @property
    def log_level(self) -> int:
        return {
            Severity.NORMAL: logging.INFO,
            Severity.WARNING: logging.WARNING,
            Severity.CRITICAL: logging.ERROR,
        }[self]


def evaluate_threshold(count: int, warning: int = 100, critical: int = 500) -> Severity:
    """
    Map a row count to a Severity.

    Args:
        count: Total number of report rows
        warning: Lowest count classified as Warning
        critical: Lowest count classified as Critical

    Returns:
        Severity.CRITICAL if count >= critical, Severity.WARNING if
        count >= warning, otherwise Severity.NORMAL
    """
    if warning > critical:
        raise ValueError("warning threshold must not exceed critical threshold")
    if count >= critical:
        return Severity.CRITICAL
    if count >= warning:
        return Severity.WARNING
    return Severity.NORMAL
