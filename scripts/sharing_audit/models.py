"""
Record types shared across the sharing audit pipeline.

RawAuditEvent wraps one unified audit log record with explicit optional
fields and parsed workload/operation enums. ReportRow is the uniform,
immutable row every renderer consumes. TimeWindow is one batch of the
requested date range.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional


ANYONE_WITH_THE_LINK = "Anyone with the link"
GUEST_RECIPIENT = "Guest"

REPORT_COLUMNS = [
    'Sharing Time',
    'Shared By',
    'Shared With',
    'Resource Type',
    'Resource',
    'Site URL',
    'Sharing Type',
    'System',
    'More Info',
]


class Workload(Enum):
    SHAREPOINT = "SharePoint"
    ONEDRIVE = "OneDrive"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'Workload':
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return cls.UNKNOWN


class Operation(Enum):
    SHARING_INVITATION_CREATED = "SharingInvitationCreated"
    ANONYMOUS_LINK_CREATED = "AnonymousLinkCreated"
    ADDED_TO_SECURE_LINK = "AddedToSecureLink"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'Operation':
        for member in cls:
            if member is not cls.UNKNOWN and member.value == value:
                return member
        return cls.UNKNOWN


# Operations requested from the audit log for every window
SHARING_OPERATIONS = (
    Operation.SHARING_INVITATION_CREATED.value,
    Operation.ANONYMOUS_LINK_CREATED.value,
    Operation.ADDED_TO_SECURE_LINK.value,
)


@dataclass(frozen=True)
class RawAuditEvent:
    """One unified audit log record as returned by an audit log source."""

    creation_time: Optional[str]
    user_id: Optional[str]
    workload: Workload
    workload_name: Optional[str]
    item_type: Optional[str]
    object_id: Optional[str]
    site_url: Optional[str]
    operation: Operation
    operation_name: Optional[str]
    target_type: Optional[str]
    target_name: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'RawAuditEvent':
        """Build an event from a raw audit record. Missing fields become None."""
        workload_name = record.get('Workload')
        operation_name = record.get('Operation')
        return cls(
            creation_time=record.get('CreationTime'),
            user_id=record.get('UserId'),
            workload=Workload.parse(workload_name),
            workload_name=workload_name,
            item_type=record.get('ItemType'),
            object_id=record.get('ObjectId'),
            site_url=record.get('SiteUrl'),
            operation=Operation.parse(operation_name),
            operation_name=operation_name,
            target_type=record.get('TargetUserOrGroupType'),
            target_name=record.get('TargetUserOrGroupName'),
            payload=dict(record),
        )


@dataclass(frozen=True)
class ReportRow:
    sharing_time: str
    shared_by: Optional[str]
    shared_with: Optional[str]
    resource_type: Optional[str]
    resource: Optional[str]
    site_url: Optional[str]
    sharing_type: Optional[str]
    system: Optional[str]
    more_info: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the row keyed by the canonical report column names."""
        return dict(zip(REPORT_COLUMNS, (
            self.sharing_time,
            self.shared_by,
            self.shared_with,
            self.resource_type,
            self.resource,
            self.site_url,
            self.sharing_type,
            self.system,
            self.more_info,
        )))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportRow':
        return cls(*(data.get(column) for column in REPORT_COLUMNS))


@dataclass(frozen=True)
class TimeWindow:
    """
    One batch of the audit date range, bounds in UTC.

    Windows produced by the splitter share their boundary instants, so
    contains() treats the end as exclusive except on the final window.
    """

    start: datetime
    end: datetime
    final: bool = False

    def contains(self, moment: datetime) -> bool:
        if self.start <= moment < self.end:
            return True
        return self.final and moment == self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"
