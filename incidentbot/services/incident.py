"""Service implementing the incident lifecycle: declare, update, escalate, resolve."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional
from uuid import UUID

from incidentbot import queries
from incidentbot.errors import PermissionDeniedError, ValidationError
from incidentbot.models import (
    Incident,
    IncidentStatus,
    Severity,
    TimelineEventType,
    format_duration,
)
from incidentbot.services.audit import AuditService
from incidentbot.services.timeline import TimelineService

logger = logging.getLogger(__name__)


class IncidentService:
    """Applies incident changes and records them in the timeline and audit log."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.timeline_service = TimelineService(conn)
        self.audit_service = AuditService(conn)

    def create_incident(
        self,
        title: str,
        severity: Severity,
        affected_service: str,
        commander_id: str,
    ) -> Incident:
        """Declare a new incident and log it."""
        incident = queries.create_incident(
            self.conn, title, severity, affected_service, commander_id
        )
        self.timeline_service.log_event(
            incident.id,
            TimelineEventType.DECLARED,
            f"Incident declared: {title}",
            commander_id,
        )
        self.audit_service.log_action(
            incident.id,
            "declare_incident",
            commander_id,
            None,
            {"title": title, "severity": severity, "service": affected_service},
            None,
        )
        logger.info("Incident created: %s (%s)", incident.id, title)
        return incident

    def update_channel_id(self, incident_id: UUID, channel_id: str) -> None:
        queries.update_channel_id(self.conn, incident_id, channel_id)

    def delete_incident(self, incident_id: UUID) -> None:
        queries.delete_incident(self.conn, incident_id)

    def post_status_update(self, incident_id: UUID, message: str, posted_by: str) -> Incident:
        """Record a status update from the commander on an unresolved incident."""
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, posted_by)

        if incident.status.is_terminal():
            raise ValidationError(
                "status", "Cannot post status updates to resolved incidents"
            )

        self.timeline_service.log_event(
            incident_id, TimelineEventType.STATUS_UPDATE, message, posted_by
        )
        self.audit_service.log_action(
            incident_id,
            "post_status_update",
            posted_by,
            None,
            None,
            {"message": message},
        )
        return self.get_by_id(incident_id)

    def change_severity(
        self,
        incident_id: UUID,
        new_severity: Severity,
        changed_by: str,
        reason: Optional[str] = None,
    ) -> tuple[Incident, Severity]:
        """Change the severity; return the updated incident and the old severity."""
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, changed_by)

        old_severity = incident.severity
        queries.update_severity(self.conn, incident_id, new_severity)

        message = (
            f"Severity changed from {old_severity.label()} to {new_severity.label()}"
        )
        if reason is not None:
            message = f"{message} — {reason}"

        self.timeline_service.log_event(
            incident_id, TimelineEventType.SEVERITY_CHANGE, message, changed_by
        )
        self.audit_service.log_action(
            incident_id,
            "change_severity",
            changed_by,
            {"severity": old_severity},
            {"severity": new_severity},
            None if reason is None else {"reason": reason},
        )
        return self.get_by_id(incident_id), old_severity

    def resolve_incident(self, incident_id: UUID, resolved_by: str) -> Incident:
        """Resolve an incident; resolving an already resolved one is a no-op."""
        incident = self.get_by_id(incident_id)
        self.validate_commander(incident, resolved_by)

        if incident.status.is_terminal():
            return incident

        resolved = queries.resolve_incident(self.conn, incident_id)
        duration_text = format_duration(resolved.duration_minutes)

        self.timeline_service.log_event(
            incident_id,
            TimelineEventType.RESOLVED,
            f"Incident resolved (duration: {duration_text})",
            resolved_by,
        )
        self.audit_service.log_action(
            incident_id,
            "resolve_incident",
            resolved_by,
            {"status": incident.status},
            {"status": IncidentStatus.RESOLVED},
            {"duration_minutes": resolved.duration_minutes},
        )
        logger.info("Incident resolved: %s", incident_id)
        return resolved

    def get_by_id(self, incident_id: UUID) -> Incident:
        return queries.get_incident_by_id(self.conn, incident_id)

    def get_by_channel(self, channel_id: str) -> Incident:
        """Return the channel's unresolved incident."""
        return queries.get_incident_by_channel(self.conn, channel_id)

    def get_latest_by_channel(self, channel_id: str) -> Incident:
        """Return the channel's most recent incident, resolved or not."""
        return queries.get_latest_incident_by_channel(self.conn, channel_id)

    def validate_commander(self, incident: Incident, user_id: str) -> None:
        """Raise PermissionDeniedError unless the user commands the incident."""
        if incident.commander_id != user_id:
            raise PermissionDeniedError(user_id, "modify this incident")