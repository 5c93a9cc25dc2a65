"""
Filter raw audit events and shape them into report rows.

Filtering follows the report scope first (SharePoint only / OneDrive only /
both), then the recipient rules:
- Anonymous links are always kept and shared with "Anyone with the link"
- Every other sharing operation is kept only when the recipient is a Guest

Usage:
    rows = list(normalize_events(events, include_sharepoint=True, include_onedrive=False))
"""

from datetime import tzinfo
from typing import Callable, Iterable, Iterator, Optional

from .errors import RecordError
from .models import (
    ANYONE_WITH_THE_LINK,
    GUEST_RECIPIENT,
    Operation,
    RawAuditEvent,
    ReportRow,
    Workload,
)
from .utils import format_local_time


def _excluded_by_scope(
    event: RawAuditEvent,
    include_sharepoint: bool,
    include_onedrive: bool
) -> bool:
    # Both flags equal means no workload filter
    if include_sharepoint and not include_onedrive:
        return event.workload is Workload.ONEDRIVE
    if include_onedrive and not include_sharepoint:
        return event.workload is Workload.SHAREPOINT
    return False


def _is_anonymous_link(event: RawAuditEvent) -> bool:
    return event.operation is Operation.ANONYMOUS_LINK_CREATED


def normalize_event(
    event: RawAuditEvent,
    include_sharepoint: bool = True,
    include_onedrive: bool = True,
    tz: tzinfo = None
) -> Optional[ReportRow]:
    """
    Decide whether an event is reported and map it to a ReportRow.

    Args:
        event: Raw audit event
        include_sharepoint: Keep SharePoint events
        include_onedrive: Keep OneDrive events
        tz: Zone for the sharing time (default: local zone)

    Returns:
        The ReportRow, or None if the event is filtered out

    Raises:
        RecordError: If the event's CreationTime cannot be parsed
    """
    if _excluded_by_scope(event, include_sharepoint, include_onedrive):
        return None

    if _is_anonymous_link(event):
        shared_with = ANYONE_WITH_THE_LINK
    elif event.target_type == GUEST_RECIPIENT:
        shared_with = event.target_name
    else:
        return None

    try:
        sharing_time = format_local_time(event.creation_time, tz)
    except ValueError as e:
        raise RecordError(str(e), record=event.payload) from e

    return ReportRow(
        sharing_time=sharing_time,
        shared_by=event.user_id,
        shared_with=shared_with,
        resource_type=event.item_type,
        resource=event.object_id,
        site_url=event.site_url,
        sharing_type=event.operation_name,
        system=event.workload_name,
        more_info=event.payload,
    )


def normalize_events(
    events: Iterable[RawAuditEvent],
    include_sharepoint: bool = True,
    include_onedrive: bool = True,
    tz: tzinfo = None,
    on_error: Callable[[RecordError], None] = None
) -> Iterator[ReportRow]:
    """
    Normalize a batch of events, preserving their order.

    Malformed records are dropped; each drop is passed to on_error and the
    batch continues.
    """
    for event in events:
        try:
            row = normalize_event(event, include_sharepoint, include_onedrive, tz)
        except RecordError as e:
            if on_error is not None:
                on_error(e)
            continue
        if row is not None:
            yield row
