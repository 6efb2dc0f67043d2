"""SQL queries over incidents, timelines, notifications, audit and templates."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from incidentbot.errors import DatabaseError, NotFoundError
from incidentbot.models import (
    Incident,
    IncidentStatus,
    IncidentTemplate,
    NotificationRecord,
    NotificationStatus,
    NotificationType,
    Severity,
    TimelineEvent,
    TimelineEventType,
)

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return "".join(part.capitalize() for part in value.name.split("_"))
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _json(value: Any) -> Optional[str]:
    return None if value is None else json.dumps(value, default=_json_default)


@contextmanager
def _database(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run statements in a transaction, turning driver failures into DatabaseError."""
    try:
        with conn:
            yield conn
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc


def _fetch_incident(conn: sqlite3.Connection, sql: str, params: tuple) -> Incident:
    with _database(conn):
        row = conn.execute(sql, params).fetchone()
    if row is None:
        raise NotFoundError()
    return Incident.from_row(row)


# ── Audit ──


def log_action(
    conn: sqlite3.Connection,
    incident_id: Optional[UUID],
    action: str,
    actor_id: str,
    old_state: Any = None,
    new_state: Any = None,
    details: Any = None,
) -> None:
    """Append an entry to the audit log."""
    with _database(conn):
        conn.execute(
            """
            INSERT INTO audit_log
                (id, incident_id, action, actor_id, old_state, new_state, details, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(uuid4()),
                None if incident_id is None else str(incident_id),
                action,
                actor_id,
                _json(old_state),
                _json(new_state),
                _json(details),
                _stamp(_now()),
            ),
        )


# ── Incidents ──


def create_incident(
    conn: sqlite3.Connection,
    title: str,
    severity: Severity,
    affected_service: str,
    commander_id: str,
) -> Incident:
    """Insert a newly declared incident and return it."""
    incident_id = str(uuid4())
    now = _stamp(_now())
    with _database(conn):
        conn.execute(
            """
            INSERT INTO incidents
                (id, title, severity, affected_service, commander_id, status,
                 declared_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                incident_id,
                title,
                severity.value,
                affected_service,
                commander_id,
                IncidentStatus.DECLARED.value,
                now,
                now,
                now,
            ),
        )
        row = conn.execute("SELECT * FROM incidents WHERE id = ?", (incident_id,)).fetchone()
    return Incident.from_row(row)


def get_incident_by_id(conn: sqlite3.Connection, incident_id: UUID) -> Incident:
    return _fetch_incident(conn, "SELECT * FROM incidents WHERE id = ?", (str(incident_id),))


def get_incident_by_channel(conn: sqlite3.Connection, channel_id: str) -> Incident:
    """Return the unresolved incident of a channel."""
    return _fetch_incident(
        conn,
        "SELECT * FROM incidents WHERE slack_channel_id = ? AND status != 'resolved'",
        (channel_id,),
    )


def get_latest_incident_by_channel(conn: sqlite3.Connection, channel_id: str) -> Incident:
    """Return the most recently declared incident of a channel, resolved or not."""
    return _fetch_incident(
        conn,
        """
        SELECT * FROM incidents
        WHERE slack_channel_id = ?
        ORDER BY declared_at DESC
        LIMIT 1
        """,
        (channel_id,),
    )


def update_channel_id(conn: sqlite3.Connection, incident_id: UUID, channel_id: str) -> None:
    with _database(conn):
        conn.execute(
            "UPDATE incidents SET slack_channel_id = ?, updated_at = ? WHERE id = ?",
            (channel_id, _stamp(_now()), str(incident_id)),
        )


def delete_incident(conn: sqlite3.Connection, incident_id: UUID) -> None:
    """Delete an incident together with its notifications, timeline and audit entries."""
    key = (str(incident_id),)
    with _database(conn):
        conn.execute("DELETE FROM incident_notifications WHERE incident_id = ?", key)
        conn.execute("DELETE FROM incident_timeline WHERE incident_id = ?", key)
        conn.execute("DELETE FROM audit_log WHERE incident_id = ?", key)
        conn.execute("DELETE FROM incidents WHERE id = ?", key)


def update_status(conn: sqlite3.Connection, incident_id: UUID, status: IncidentStatus) -> None:
    with _database(conn):
        conn.execute(
            "UPDATE incidents SET status = ?, updated_at = ? WHERE id = ?",
            (status.value, _stamp(_now()), str(incident_id)),
        )


def update_severity(conn: sqlite3.Connection, incident_id: UUID, severity: Severity) -> None:
    with _database(conn):
        conn.execute(
            "UPDATE incidents SET severity = ?, updated_at = ? WHERE id = ?",
            (severity.value, _stamp(_now()), str(incident_id)),
        )


def resolve_incident(conn: sqlite3.Connection, incident_id: UUID) -> Incident:
    """Mark an incident resolved, recording when and for how many minutes it ran."""
    key = str(incident_id)
    with _database(conn):
        row = conn.execute("SELECT declared_at FROM incidents WHERE id = ?", (key,)).fetchone()
        if row is None:
            raise DatabaseError("no rows returned by a query that expected to return at least one row")
        now = _now()
        declared_at = datetime.fromisoformat(row["declared_at"])
        if declared_at.tzinfo is None:
            declared_at = declared_at.replace(tzinfo=timezone.utc)
        seconds = Decimal(str((now - declared_at).total_seconds()))
        duration = int((seconds / 60).quantize(Decimal(1), rounding=ROUND_HALF_UP))
        stamp = _stamp(now)
        conn.execute(
            """
            UPDATE incidents
            SET status = 'resolved', resolved_at = ?, duration_minutes = ?, updated_at = ?
            WHERE id = ?
            """,
            (stamp, duration, stamp, key),
        )
        updated = conn.execute("SELECT * FROM incidents WHERE id = ?", (key,)).fetchone()
    return Incident.from_row(updated)


def list_channels_by_prefix(conn: sqlite3.Connection, prefix: str) -> list[str]:
    """Return the channel ids of incidents whose channel id starts with a prefix."""
    with _database(conn):
        rows = conn.execute(
            """
            SELECT slack_channel_id FROM incidents
            WHERE slack_channel_id IS NOT NULL
              AND substr(slack_channel_id, 1, length(?1)) = ?1
            """,
            (prefix,),
        ).fetchall()
    return [row["slack_channel_id"] for row in rows]


# ── Notifications ──


def log_notification(
    conn: sqlite3.Connection,
    incident_id: UUID,
    notification_type: NotificationType,
    recipient: str,
    status: NotificationStatus,
    error_message: Optional[str] = None,
) -> NotificationRecord:
    """Record a notification attempt and return the stored record."""
    record_id = str(uuid4())
    with _database(conn):
        conn.execute(
            """
            INSERT INTO incident_notifications
                (id, incident_id, notification_type, recipient, sent_at, status, error_message)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record_id,
                str(incident_id),
                notification_type.value,
                recipient,
                _stamp(_now()),
                status.value,
                error_message,
            ),
        )
        row = conn.execute(
            "SELECT * FROM incident_notifications WHERE id = ?", (record_id,)
        ).fetchone()
    return NotificationRecord.from_row(row)


# ── Statuspage ──


def get_component_id(conn: sqlite3.Connection, service_name: str) -> Optional[str]:
    """Return the Statuspage component mapped to a service, if any."""
    with _database(conn):
        row = conn.execute(
            "SELECT component_id FROM statuspage_mappings WHERE service_name = ?",
            (service_name,),
        ).fetchone()
    return None if row is None else row["component_id"]


# ── Templates ──


def list_active_templates(conn: sqlite3.Connection) -> list[IncidentTemplate]:
    with _database(conn):
        rows = conn.execute(
            "SELECT * FROM incident_templates WHERE is_active = 1 ORDER BY name"
        ).fetchall()
    return [IncidentTemplate.from_row(row) for row in rows]


def get_template_by_name(conn: sqlite3.Connection, name: str) -> Optional[IncidentTemplate]:
    with _database(conn):
        row = conn.execute(
            "SELECT * FROM incident_templates WHERE name = ? AND is_active = 1", (name,)
        ).fetchone()
    return None if row is None else IncidentTemplate.from_row(row)


def get_template_by_id(conn: sqlite3.Connection, template_id: UUID) -> Optional[IncidentTemplate]:
    with _database(conn):
        row = conn.execute(
            "SELECT * FROM incident_templates WHERE id = ? AND is_active = 1",
            (str(template_id),),
        ).fetchone()
    return None if row is None else IncidentTemplate.from_row(row)


# ── Timeline ──


def log_event(
    conn: sqlite3.Connection,
    incident_id: UUID,
    event_type: TimelineEventType,
    message: str,
    posted_by: str,
) -> TimelineEvent:
    """Append an event to an incident's timeline and return it."""
    event_id = str(uuid4())
    with _database(conn):
        conn.execute(
            """
            INSERT INTO incident_timeline (id, incident_id, event_type, message, posted_by, timestamp)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (event_id, str(incident_id), event_type.value, message, posted_by, _stamp(_now())),
        )
        row = conn.execute("SELECT * FROM incident_timeline WHERE id = ?", (event_id,)).fetchone()
    return TimelineEvent.from_row(row)


def get_timeline(conn: sqlite3.Connection, incident_id: UUID) -> list[TimelineEvent]:
    """Return an incident's timeline events, oldest first."""
    with _database(conn):
        rows = conn.execute(
            """
            SELECT * FROM incident_timeline
            WHERE incident_id = ?
            ORDER BY timestamp ASC, rowid ASC
            """,
            (str(incident_id),),
        ).fetchall()
    return [TimelineEvent.from_row(row) for row in rows]