"""Service that records actions in the audit log."""

from __future__ import annotations

import sqlite3
from typing import Any, Optional
from uuid import UUID

from incidentbot import queries


class AuditService:
    """Writes audit entries for actions taken on incidents."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def log_action(
        self,
        incident_id: Optional[UUID],
        action: str,
        actor_id: str,
        old_state: Any = None,
        new_state: Any = None,
        details: Any = None,
    ) -> None:
        queries.log_action(
            self.conn, incident_id, action, actor_id, old_state, new_state, details
        )