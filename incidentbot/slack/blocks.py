"""Slack Block Kit messages for incident events."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Optional

from incidentbot.models import (
    Incident,
    Severity,
    TimelineEvent,
    TimelineEventType,
    format_duration,
)

Block = dict[str, Any]

_EVENT_ICONS = {
    TimelineEventType.DECLARED: "🚨",
    TimelineEventType.STATUS_UPDATE: "📝",
    TimelineEventType.SEVERITY_CHANGE: "⚠️",
    TimelineEventType.RESOLVED: "✅",
}

_SEVERITY_ORDER = tuple(Severity)


def _mrkdwn(text: str) -> Block:
    return {"type": "mrkdwn", "text": text}


def _section(text: str) -> Block:
    return {"type": "section", "text": _mrkdwn(text)}


def _header(text: str) -> Block:
    return {"type": "header", "text": {"type": "plain_text", "text": text}}


def incident_declared_blocks(incident: Incident) -> list[Block]:
    """Announcement of a newly declared incident."""
    severity = incident.severity
    declared = incident.declared_at
    started = (
        f"*Started:*\n<!date^{math.floor(declared.timestamp())}^{{time}}"
        f"|{declared.strftime('%H:%M %Z')}>"
    )
    return [
        _header(f"{severity.emoji()} {severity.label()} - Incident Declared"),
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Title:*\n{incident.title}"),
                _mrkdwn(f"*Service:*\n{incident.affected_service}"),
                _mrkdwn(f"*Commander:*\n<@{incident.commander_id}>"),
                _mrkdwn(started),
            ],
        },
        {
            "type": "context",
            "elements": [
                _mrkdwn("⚠️ Do NOT post credentials, customer data, or PII in this channel.")
            ],
        },
    ]


def status_update_blocks(severity: Severity, message: str, posted_by: str) -> list[Block]:
    """A status update posted by the commander."""
    return [
        _section(
            f"{severity.emoji()} *Status Update*\n{message}\n_Posted by <@{posted_by}>_"
        )
    ]


def severity_change_blocks(
    old_severity: Severity,
    new_severity: Severity,
    changed_by: str,
    reason: Optional[str] = None,
) -> list[Block]:
    """Notice of a severity change, with the reason as context when given."""
    downgraded = _SEVERITY_ORDER.index(new_severity) > _SEVERITY_ORDER.index(old_severity)
    direction = "⬇️ Downgraded" if downgraded else "⬆️ Escalated"
    verb = "downgraded" if downgraded else "escalated"

    blocks = [
        _section(
            f"{direction} *Severity {verb} from {old_severity.label()} "
            f"to {new_severity.label()}*\n_Changed by <@{changed_by}>_"
        )
    ]
    if reason is not None:
        blocks.append({"type": "context", "elements": [_mrkdwn(f"Reason: {reason}")]})
    return blocks


def resolution_blocks(incident: Incident, resolved_by: str) -> list[Block]:
    """Announcement that an incident has been resolved."""
    return [
        _header("✅ RESOLVED"),
        {
            "type": "section",
            "fields": [
                _mrkdwn(f"*Duration:*\n{format_duration(incident.duration_minutes)}"),
                _mrkdwn(f"*Resolved by:*\n<@{resolved_by}>"),
            ],
        },
    ]


def timeline_blocks(events: Sequence[TimelineEvent]) -> list[Block]:
    """The incident timeline as one section, oldest event first."""
    blocks = [_header("📋 Incident Timeline")]
    if not events:
        blocks.append(_section("_No timeline events yet._"))
        return blocks

    timeline_text = "\n\n".join(
        f"{_EVENT_ICONS[event.event_type]} *{event.timestamp.strftime('%H:%M')}* — "
        f"{event.message}\n_by <@{event.posted_by}>_"
        for event in events
    )
    blocks.append(_section(timeline_text))
    return blocks


def error_blocks(message: str) -> list[Block]:
    return [_section(f"❌ *Error:* {message}")]


def permission_denied_blocks(action: str) -> list[Block]:
    return [
        _section(
            f"❌ *Permission denied:* Only the incident commander can {action}."
        )
    ]