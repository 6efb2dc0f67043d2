"""Domain types for incidents, timelines, notifications and templates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID


class Severity(Enum):
    """Incident severity, P1 being the most critical."""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @classmethod
    def parse(cls, text: str) -> Severity:
        """Parse a severity case-insensitively, raising ValueError if unknown."""
        try:
            return cls(text.upper())
        except ValueError:
            raise ValueError(f"Invalid severity: {text}") from None

    def label(self) -> str:
        return _SEVERITY_LABELS[self]

    def emoji(self) -> str:
        return _SEVERITY_EMOJIS[self]


_SEVERITY_LABELS = {
    Severity.P1: "P1 (Critical)",
    Severity.P2: "P2 (High)",
    Severity.P3: "P3 (Medium)",
    Severity.P4: "P4 (Low)",
}

_SEVERITY_EMOJIS = {
    Severity.P1: "🔴",
    Severity.P2: "🟡",
    Severity.P3: "🟢",
    Severity.P4: "🟢",
}


class IncidentStatus(Enum):
    """Lifecycle state of an incident."""

    DECLARED = "declared"
    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"

    @classmethod
    def parse(cls, text: str) -> IncidentStatus:
        """Parse a status case-insensitively, raising ValueError if unknown."""
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"Invalid incident status: {text}") from None

    def valid_transitions(self) -> tuple[IncidentStatus, ...]:
        """States this status may move to."""
        return _TRANSITIONS[self]

    def can_transition_to(self, target: IncidentStatus) -> bool:
        return target in self.valid_transitions()

    def is_terminal(self) -> bool:
        return self is IncidentStatus.RESOLVED


_TRANSITIONS = {
    IncidentStatus.DECLARED: (
        IncidentStatus.INVESTIGATING,
        IncidentStatus.IDENTIFIED,
        IncidentStatus.MONITORING,
        IncidentStatus.RESOLVED,
    ),
    IncidentStatus.INVESTIGATING: (
        IncidentStatus.IDENTIFIED,
        IncidentStatus.MONITORING,
        IncidentStatus.RESOLVED,
    ),
    IncidentStatus.IDENTIFIED: (IncidentStatus.MONITORING, IncidentStatus.RESOLVED),
    IncidentStatus.MONITORING: (IncidentStatus.RESOLVED,),
    IncidentStatus.RESOLVED: (),
}


class TimelineEventType(Enum):
    DECLARED = "declared"
    STATUS_UPDATE = "status_update"
    SEVERITY_CHANGE = "severity_change"
    RESOLVED = "resolved"

    @classmethod
    def parse(cls, text: str) -> TimelineEventType:
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"Invalid timeline event type: {text}") from None


class NotificationType(Enum):
    SLACK_CHANNEL = "slack_channel"
    SLACK_DM = "slack_dm"

    @classmethod
    def parse(cls, text: str) -> NotificationType:
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"Invalid notification type: {text}") from None


class NotificationStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    PENDING = "pending"
    THROTTLED = "throttled"

    @classmethod
    def parse(cls, text: str) -> NotificationStatus:
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"Invalid notification status: {text}") from None


def format_duration(minutes: Optional[int]) -> str:
    """Render a duration in minutes as '1h 5min', '42min' or 'unknown'."""
    if minutes is None:
        return "unknown"
    hours = int(minutes / 60)
    mins = minutes - hours * 60
    if hours > 0:
        return f"{hours}h {mins}min"
    return f"{mins}min"


def _decode(field: str, raw: Any, parser) -> Any:
    try:
        return parser(raw)
    except ValueError as exc:
        raise ValueError(f"invalid {field} '{raw}': {exc}") from exc


def _uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        text = str(value).strip().replace(" ", "T", 1)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _optional_datetime(value: Any) -> Optional[datetime]:
    return None if value is None else _datetime(value)


@dataclass(frozen=True)
class Incident:
    id: UUID
    slack_channel_id: Optional[str]
    title: str
    severity: Severity
    status: IncidentStatus
    affected_service: str
    commander_id: str
    declared_at: datetime
    resolved_at: Optional[datetime]
    duration_minutes: Optional[int]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> Incident:
        """Build an incident from a row addressable by column name."""
        severity = _decode("severity", row["severity"], Severity.parse)
        status = _decode("status", row["status"], IncidentStatus.parse)
        duration = row["duration_minutes"]
        return cls(
            id=_uuid(row["id"]),
            slack_channel_id=row["slack_channel_id"],
            title=row["title"],
            severity=severity,
            status=status,
            affected_service=row["affected_service"],
            commander_id=row["commander_id"],
            declared_at=_datetime(row["declared_at"]),
            resolved_at=_optional_datetime(row["resolved_at"]),
            duration_minutes=None if duration is None else int(duration),
            created_at=_datetime(row["created_at"]),
            updated_at=_datetime(row["updated_at"]),
        )


@dataclass(frozen=True)
class TimelineEvent:
    id: UUID
    incident_id: UUID
    event_type: TimelineEventType
    message: str
    posted_by: str
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Any) -> TimelineEvent:
        event_type = _decode("event_type", row["event_type"], TimelineEventType.parse)
        return cls(
            id=_uuid(row["id"]),
            incident_id=_uuid(row["incident_id"]),
            event_type=event_type,
            message=row["message"],
            posted_by=row["posted_by"],
            timestamp=_datetime(row["timestamp"]),
        )


@dataclass(frozen=True)
class NotificationRecord:
    id: UUID
    incident_id: UUID
    notification_type: NotificationType
    recipient: str
    sent_at: datetime
    status: NotificationStatus
    error_message: Optional[str]

    @classmethod
    def from_row(cls, row: Any) -> NotificationRecord:
        notification_type = _decode(
            "notification_type", row["notification_type"], NotificationType.parse
        )
        status = _decode("status", row["status"], NotificationStatus.parse)
        return cls(
            id=_uuid(row["id"]),
            incident_id=_uuid(row["incident_id"]),
            notification_type=notification_type,
            recipient=row["recipient"],
            sent_at=_datetime(row["sent_at"]),
            status=status,
            error_message=row["error_message"],
        )


@dataclass(frozen=True)
class IncidentTemplate:
    id: UUID
    name: str
    title: str
    severity: Severity
    affected_service: Optional[str]
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> IncidentTemplate:
        severity = _decode("severity", row["severity"], Severity.parse)
        return cls(
            id=_uuid(row["id"]),
            name=row["name"],
            title=row["title"],
            severity=severity,
            affected_service=row["affected_service"],
            description=row["description"],
            is_active=bool(row["is_active"]),
            created_at=_datetime(row["created_at"]),
            updated_at=_datetime(row["updated_at"]),
        )