from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

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
    format_duration,
)

S = IncidentStatus


def _incident_row(**overrides):
    row = {
        "id": str(uuid4()),
        "slack_channel_id": "C024BE91L",
        "title": "Okta SSO outage",
        "severity": "P2",
        "status": "declared",
        "affected_service": "Okta SSO",
        "commander_id": "U024BE7LH",
        "declared_at": "2024-11-15 10:30:00",
        "resolved_at": None,
        "duration_minutes": None,
        "created_at": "2024-11-15T10:30:00+00:00",
        "updated_at": "2024-11-15T10:30:00Z",
    }
    row.update(overrides)
    return row


def test_severity_parsing():
    assert Severity.parse("P1") is Severity.P1
    assert Severity.parse("p1") is Severity.P1
    assert Severity.parse("p2") is Severity.P2
    assert Severity.parse("P3") is Severity.P3
    assert Severity.parse("P4") is Severity.P4


@pytest.mark.parametrize("text", ["P5", "invalid", ""])
def test_severity_parsing_rejects(text):
    with pytest.raises(ValueError, match="Invalid severity"):
        Severity.parse(text)


def test_severity_labels():
    assert Severity.P1.label() == "P1 (Critical)"
    assert Severity.P2.label() == "P2 (High)"
    assert Severity.P3.label() == "P3 (Medium)"
    assert Severity.P4.label() == "P4 (Low)"


def test_severity_emojis():
    assert Severity.P1.emoji() == "🔴"
    assert Severity.P2.emoji() == "🟡"
    assert Severity.P3.emoji() == "🟢"
    assert Severity.P4.emoji() == "🟢"


def test_severity_db_value_round_trip():
    for severity in Severity:
        assert Severity.parse(severity.value) is severity


def test_state_machine_transitions():
    assert S.DECLARED.can_transition_to(S.INVESTIGATING)
    assert S.DECLARED.can_transition_to(S.RESOLVED)
    assert not S.RESOLVED.can_transition_to(S.INVESTIGATING)
    assert S.RESOLVED.is_terminal()
    assert not S.DECLARED.is_terminal()


def test_state_machine_all_valid_transitions():
    assert S.DECLARED.can_transition_to(S.INVESTIGATING)
    assert S.DECLARED.can_transition_to(S.IDENTIFIED)
    assert S.DECLARED.can_transition_to(S.MONITORING)
    assert S.DECLARED.can_transition_to(S.RESOLVED)

    assert S.INVESTIGATING.can_transition_to(S.IDENTIFIED)
    assert S.INVESTIGATING.can_transition_to(S.MONITORING)
    assert S.INVESTIGATING.can_transition_to(S.RESOLVED)
    assert not S.INVESTIGATING.can_transition_to(S.DECLARED)

    assert S.IDENTIFIED.can_transition_to(S.MONITORING)
    assert S.IDENTIFIED.can_transition_to(S.RESOLVED)
    assert not S.IDENTIFIED.can_transition_to(S.DECLARED)
    assert not S.IDENTIFIED.can_transition_to(S.INVESTIGATING)

    assert S.MONITORING.can_transition_to(S.RESOLVED)
    assert not S.MONITORING.can_transition_to(S.DECLARED)
    assert not S.MONITORING.can_transition_to(S.INVESTIGATING)
    assert not S.MONITORING.can_transition_to(S.IDENTIFIED)

    for target in (S.DECLARED, S.INVESTIGATING, S.IDENTIFIED, S.MONITORING):
        assert not S.RESOLVED.can_transition_to(target)
    assert S.RESOLVED.valid_transitions() == ()


@pytest.mark.parametrize(
    "status, terminal",
    [
        (S.DECLARED, False),
        (S.INVESTIGATING, False),
        (S.IDENTIFIED, False),
        (S.MONITORING, False),
        (S.RESOLVED, True),
    ],
)
def test_terminal_states(status, terminal):
    assert status.is_terminal() is terminal


def test_status_parsing_is_case_insensitive():
    assert IncidentStatus.parse("Monitoring") is S.MONITORING
    with pytest.raises(ValueError, match="Invalid incident status"):
        IncidentStatus.parse("closed")


def test_other_enum_parsing():
    assert TimelineEventType.parse("STATUS_UPDATE") is TimelineEventType.STATUS_UPDATE
    assert NotificationType.parse("slack_dm") is NotificationType.SLACK_DM
    assert NotificationStatus.parse("Throttled") is NotificationStatus.THROTTLED
    with pytest.raises(ValueError, match="Invalid timeline event type"):
        TimelineEventType.parse("nope")
    with pytest.raises(ValueError, match="Invalid notification type"):
        NotificationType.parse("email")
    with pytest.raises(ValueError, match="Invalid notification status"):
        NotificationStatus.parse("queued")


def test_format_duration():
    assert format_duration(None) == "unknown"
    assert format_duration(42) == "42min"
    assert format_duration(65) == "1h 5min"
    assert format_duration(0) == "0min"


def test_incident_from_row():
    row = _incident_row(duration_minutes=12, resolved_at="2024-11-15 10:42:00", status="resolved")
    incident = Incident.from_row(row)
    assert incident.id == UUID(row["id"])
    assert incident.severity is Severity.P2
    assert incident.status is S.RESOLVED
    assert incident.declared_at == datetime(2024, 11, 15, 10, 30, tzinfo=timezone.utc)
    assert incident.updated_at == incident.created_at
    assert incident.resolved_at == datetime(2024, 11, 15, 10, 42, tzinfo=timezone.utc)
    assert incident.duration_minutes == 12


def test_incident_from_row_bad_severity():
    with pytest.raises(ValueError, match="invalid severity 'P9'"):
        Incident.from_row(_incident_row(severity="P9"))


def test_incident_from_row_bad_status():
    with pytest.raises(ValueError, match="invalid status 'closed'"):
        Incident.from_row(_incident_row(status="closed"))


def test_timeline_event_from_row():
    incident_id = uuid4()
    event = TimelineEvent.from_row(
        {
            "id": uuid4(),
            "incident_id": incident_id,
            "event_type": "severity_change",
            "message": "Escalated",
            "posted_by": "U024BE7LH",
            "timestamp": datetime(2024, 11, 15, 11, 0),
        }
    )
    assert event.incident_id == incident_id
    assert event.event_type is TimelineEventType.SEVERITY_CHANGE
    assert event.timestamp.tzinfo is timezone.utc


def test_notification_record_from_row():
    record = NotificationRecord.from_row(
        {
            "id": str(uuid4()),
            "incident_id": str(uuid4()),
            "notification_type": "slack_channel",
            "recipient": "C024BE91L",
            "sent_at": "2024-11-15T10:31:00",
            "status": "failed",
            "error_message": "channel_not_found",
        }
    )
    assert record.notification_type is NotificationType.SLACK_CHANNEL
    assert record.status is NotificationStatus.FAILED
    assert record.error_message == "channel_not_found"


def test_template_from_row():
    template = IncidentTemplate.from_row(
        {
            "id": str(uuid4()),
            "name": "vpn",
            "title": "VPN down",
            "severity": "p1",
            "affected_service": None,
            "description": None,
            "is_active": 1,
            "created_at": "2024-11-15T10:00:00",
            "updated_at": "2024-11-15T10:00:00",
        }
    )
    assert template.severity is Severity.P1
    assert template.is_active is True
    assert template.affected_service is None