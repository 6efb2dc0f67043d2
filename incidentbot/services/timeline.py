"""Service for recording and rendering incident timelines."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from uuid import UUID

from incidentbot import queries
from incidentbot.models import TimelineEvent, TimelineEventType

_EVENT_ICONS = {
    TimelineEventType.DECLARED: "🚨",
    TimelineEventType.STATUS_UPDATE: "📝",
    TimelineEventType.SEVERITY_CHANGE: "⚠️",
    TimelineEventType.RESOLVED: "✅",
}


def _event_name(event_type: TimelineEventType) -> str:
    return "".join(part.capitalize() for part in event_type.name.split("_"))


class TimelineService:
    """Records timeline events and formats them for display."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def log_event(
        self,
        incident_id: UUID,
        event_type: TimelineEventType,
        message: str,
        posted_by: str,
    ) -> TimelineEvent:
        return queries.log_event(self.conn, incident_id, event_type, message, posted_by)

    def get_timeline(self, incident_id: UUID) -> list[TimelineEvent]:
        return queries.get_timeline(self.conn, incident_id)

    def format_as_markdown(self, events: Sequence[TimelineEvent]) -> str:
        """Render events as Markdown, one paragraph per event."""
        if not events:
            return "_No timeline events yet._"
        return "\n".join(
            f"**{event.timestamp.strftime('%H:%M')}** — "
            f"{_EVENT_ICONS[event.event_type]} {_event_name(event.event_type)}\n"
            f"→ {event.message}\n"
            for event in events
        )