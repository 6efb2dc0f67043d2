"""Service that drafts postmortem documents for resolved incidents."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from incidentbot.errors import InternalError
from incidentbot.models import Incident, format_duration
from incidentbot.services.timeline import TimelineService

_STAMP = "%Y-%m-%d %H:%M %Z"


class PostmortemService:
    """Builds a Markdown postmortem draft from an incident and its timeline."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.timeline_service = TimelineService(conn)

    def generate(self, incident: Incident) -> str:
        """Return a postmortem draft; the incident must have been resolved."""
        if incident.resolved_at is None:
            raise InternalError("Resolved incidents must have resolved_at timestamp")

        events = self.timeline_service.get_timeline(incident.id)
        timeline_md = self.timeline_service.format_as_markdown(events)
        duration_text = format_duration(incident.duration_minutes)
        generated = datetime.now(timezone.utc)

        return (
            f"# Postmortem: {incident.title} ({incident.declared_at.strftime('%Y-%m-%d')})\n"
            "\n"
            "## Incident Summary\n"
            f"- **Duration**: {duration_text} "
            f"({incident.declared_at.strftime(_STAMP)} - {incident.resolved_at.strftime(_STAMP)})\n"
            f"- **Severity**: {incident.severity.label()}\n"
            "- **Status**: Resolved\n"
            f"- **Affected Service**: {incident.affected_service}\n"
            f"- **Incident Commander**: <@{incident.commander_id}>\n"
            "- **Impact**: [TO BE FILLED BY TEAM]\n"
            "- **Root Cause**: [TO BE FILLED BY TEAM]\n"
            "\n"
            "## Timeline\n"
            "\n"
            f"{timeline_md}\n"
            "\n"
            "## Action Items\n"
            "- [ ] [TO BE ADDED BY TEAM]\n"
            "\n"
            "## Lessons Learned\n"
            "- [TO BE FILLED BY TEAM]\n"
            "\n"
            "---\n"
            f"*Generated on {generated.strftime(_STAMP)} by Incident Bot*\n"
            "*Edit this postmortem and use `/incident postmortem publish` to post to "
            "Confluence (Phase 2)*\n"
        )