import json

import pytest

from incidentbot import queries
from incidentbot.db import connect, run_migrations
from incidentbot.errors import DatabaseError
from incidentbot.models import Severity
from incidentbot.services.audit import AuditService


@pytest.fixture
def conn():
    connection = connect(":memory:")
    run_migrations(connection)
    yield connection
    connection.close()


def test_log_action_for_incident(conn):
    incident = queries.create_incident(conn, "Outage", Severity.P1, "VPN", "U1")
    AuditService(conn).log_action(
        incident.id,
        "incident_declared",
        "U1",
        None,
        None,
        {"title": "Outage", "severity": Severity.P1, "service": "VPN"},
    )
    row = conn.execute("SELECT * FROM audit_log").fetchone()
    assert row["incident_id"] == str(incident.id)
    assert row["action"] == "incident_declared"
    assert row["old_state"] is None
    assert row["new_state"] is None
    assert json.loads(row["details"]) == {"title": "Outage", "severity": "P1", "service": "VPN"}


def test_log_action_without_incident(conn):
    AuditService(conn).log_action(None, "config_reload", "U9")
    row = conn.execute("SELECT incident_id, actor_id FROM audit_log").fetchone()
    assert row["incident_id"] is None
    assert row["actor_id"] == "U9"


def test_log_action_on_closed_connection_raises(conn):
    service = AuditService(conn)
    conn.close()
    with pytest.raises(DatabaseError):
        service.log_action(None, "anything", "U1")