"""
Run history for external sharing audits.

Every run appends what it queried, what it skipped and what it wrote to a
JSON Lines file next to its reports, so any report can be traced back to
the run that produced it.

File: <output_dir>/sharing_activity.jsonl, one JSON object per line with
"timestamp", "event_type" and "level" plus event-specific fields.
"""

import logging
import json
import os
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List


LOG_FILENAME = 'sharing_activity.jsonl'

FINISH_EVENTS = ('run_complete', 'run_failed')

# One logger per log file; Streamlit reruns the page on worker threads
_activity_loggers: Dict[str, logging.Logger] = {}
_registry_lock = threading.Lock()


def get_activity_log_path(output_dir: str = './output') -> str:
    return os.path.join(output_dir, LOG_FILENAME)


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _activity_logger(output_dir: str) -> logging.Logger:
    """Return the logger writing to output_dir's activity file, creating it once."""
    key = os.path.abspath(get_activity_log_path(output_dir))

    with _registry_lock:
        logger = _activity_loggers.get(key)
        if logger is not None:
            return logger

        os.makedirs(output_dir, exist_ok=True)
        logger = logging.getLogger(f'sharing_audit.activity.{hash(key):x}')
        _close_handlers(logger)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        # Entries are pre-serialized JSON, the formatter adds nothing
        file_handler = logging.FileHandler(key, mode='a', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(file_handler)

        _activity_loggers[key] = logger
        return logger


def log_event(
    event_type: str,
    output_dir: str = './output',
    level: int = logging.INFO,
    **kwargs
) -> None:
    """
    Append one activity entry.

    Args:
        event_type: run_started, window_failed, record_dropped, render_failed,
            threshold_evaluated, run_complete or run_failed
        output_dir: Report directory holding the activity file
        level: logging level, stored under "level"
        **kwargs: Event fields (anything json.dumps can render with str())

    A failure to write the entry is ignored; the run continues.
    """
    entry = {
        'timestamp': datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
        'event_type': event_type,
        'level': logging.getLevelName(level),
    }
    entry.update(kwargs)

    try:
        _activity_logger(output_dir).log(level, json.dumps(entry, default=str))
    except Exception:
        pass


def iter_activity_log(output_dir: str = './output') -> Iterator[Dict[str, Any]]:
    """Yield entries in file order, skipping blank lines and lines that are not JSON objects."""
    path = get_activity_log_path(output_dir)
    if not os.path.isfile(path):
        return

    with open(path, encoding='utf-8') as f:
        for raw in f:
            if not raw.strip():
                continue
            try:
                entry = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                yield entry


def read_activity_log(output_dir: str = './output') -> List[Dict[str, Any]]:
    return list(iter_activity_log(output_dir))


def get_run_summary(output_dir: str = './output') -> Dict[str, Any]:
    """
    Summarize the runs recorded in an activity file.

    Returns:
        Dict with runs_completed, runs_failed, total_records (sum over
        completed runs), windows_failed, records_dropped and last_run (the
        most recent run_complete/run_failed entry, or None)
    """
    counts: Counter = Counter()
    total_records = 0
    last_run = None

    # The file is append-only, so file order is run order
    for entry in iter_activity_log(output_dir):
        event_type = entry.get('event_type')
        counts[event_type] += 1
        if event_type in FINISH_EVENTS:
            last_run = entry
        if event_type == 'run_complete' and isinstance(entry.get('total_records'), int):
            total_records += entry['total_records']

    return {
        'runs_completed': counts['run_complete'],
        'runs_failed': counts['run_failed'],
        'total_records': total_records,
        'windows_failed': counts['window_failed'],
        'records_dropped': counts['record_dropped'],
        'last_run': last_run,
    }


def clear_activity_log(output_dir: str = './output') -> None:
    """Delete the activity file, releasing its handler so logging can resume."""
    key = os.path.abspath(get_activity_log_path(output_dir))

    with _registry_lock:
        logger = _activity_loggers.pop(key, None)
        if logger is not None:
            _close_handlers(logger)

    if os.path.exists(key):
        os.remove(key)
