"""
Split an audit date range into sequential query windows.

The unified audit log caps how many records a single query returns, so a
long range is fetched one bounded window at a time.
"""

import math
from datetime import datetime, timedelta
from typing import Iterator

from .models import TimeWindow
from .utils import to_utc


class WindowSplitter:
    """
    Restartable sequence of TimeWindows covering [start, end].

    Windows are contiguous, never overlap, are at most interval_minutes
    long, and the last one ends exactly at end. A range shorter than one
    interval (including start == end) gives a single window.

    Usage:
        for window in WindowSplitter(start, end, interval_minutes=1440):
            fetch(window)
    """

    def __init__(self, start: datetime, end: datetime, interval_minutes: int = 1440):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.start = to_utc(start)
        self.end = to_utc(end)
        if self.start > self.end:
            raise ValueError("start must not be after end")
        self.interval = timedelta(minutes=interval_minutes)

    def __iter__(self) -> Iterator[TimeWindow]:
        current = self.start
        while True:
            batch_end = min(current + self.interval, self.end)
            final = batch_end >= self.end
            yield TimeWindow(current, batch_end, final)
            if final:
                return
            current = batch_end

    def __len__(self) -> int:
        span = self.end - self.start
        if span <= self.interval:
            return 1
        return math.ceil(span / self.interval)
