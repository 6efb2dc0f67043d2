"""Database connection handling, schema migrations and health checks."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from incidentbot.errors import DatabaseError

logger = logging.getLogger(__name__)

_MIGRATIONS: tuple[tuple[int, str, tuple[str, ...]], ...] = (
    (
        1,
        "create_incidents",
        (
            """
            CREATE TABLE IF NOT EXISTS incidents (
                id TEXT PRIMARY KEY,
                slack_channel_id TEXT,
                title TEXT NOT NULL,
                severity TEXT NOT NULL CHECK (severity IN ('P1', 'P2', 'P3', 'P4')),
                status TEXT NOT NULL,
                affected_service TEXT NOT NULL,
                commander_id TEXT NOT NULL,
                declared_at TEXT NOT NULL,
                resolved_at TEXT,
                duration_minutes INTEGER,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_incidents_channel ON incidents (slack_channel_id)",
        ),
    ),
    (
        2,
        "create_incident_timeline",
        (
            """
            CREATE TABLE IF NOT EXISTS incident_timeline (
                id TEXT PRIMARY KEY,
                incident_id TEXT NOT NULL REFERENCES incidents (id),
                event_type TEXT NOT NULL,
                message TEXT NOT NULL,
                posted_by TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_timeline_incident ON incident_timeline (incident_id)",
        ),
    ),
    (
        3,
        "create_incident_notifications",
        (
            """
            CREATE TABLE IF NOT EXISTS incident_notifications (
                id TEXT PRIMARY KEY,
                incident_id TEXT NOT NULL REFERENCES incidents (id),
                notification_type TEXT NOT NULL,
                recipient TEXT NOT NULL,
                sent_at TEXT NOT NULL,
                status TEXT NOT NULL,
                error_message TEXT
            )
            """,
        ),
    ),
    (
        4,
        "create_audit_log",
        (
            """
            CREATE TABLE IF NOT EXISTS audit_log (
                id TEXT PRIMARY KEY,
                incident_id TEXT REFERENCES incidents (id),
                action TEXT NOT NULL,
                actor_id TEXT NOT NULL,
                old_state TEXT,
                new_state TEXT,
                details TEXT,
                created_at TEXT NOT NULL
            )
            """,
        ),
    ),
    (
        5,
        "create_statuspage_mappings",
        (
            """
            CREATE TABLE IF NOT EXISTS statuspage_mappings (
                service_name TEXT PRIMARY KEY,
                component_id TEXT NOT NULL
            )
            """,
        ),
    ),
    (
        6,
        "create_incident_templates",
        (
            """
            CREATE TABLE IF NOT EXISTS incident_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                severity TEXT NOT NULL,
                affected_service TEXT,
                description TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """,
        ),
    ),
)


def _database_path(database_url: str) -> str:
    if database_url.startswith("sqlite://"):
        path = database_url[len("sqlite://"):]
    elif database_url.startswith("sqlite:"):
        path = database_url[len("sqlite:"):]
    elif "://" in database_url:
        scheme = database_url.split("://", 1)[0]
        raise DatabaseError(f"unsupported database URL scheme: {scheme}")
    else:
        path = database_url
    if not path:
        raise DatabaseError("database URL names no database")
    return path


def connect(database_url: str) -> sqlite3.Connection:
    """Open a database connection whose rows are addressable by column name."""
    path = _database_path(database_url)
    try:
        conn = sqlite3.connect(path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc
    logger.info("Database connection opened")
    return conn


def run_migrations(conn: sqlite3.Connection) -> list[int]:
    """Apply pending schema migrations and return the versions applied."""
    logger.info("Running database migrations")
    applied_now: list[int] = []
    try:
        with conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    applied_at TEXT NOT NULL
                )
                """
            )
            done = {row[0] for row in conn.execute("SELECT version FROM schema_migrations")}
            for version, name, statements in _MIGRATIONS:
                if version in done:
                    continue
                for statement in statements:
                    conn.execute(statement)
                conn.execute(
                    "INSERT INTO schema_migrations (version, name, applied_at) VALUES (?, ?, ?)",
                    (version, name, datetime.now(timezone.utc).isoformat()),
                )
                applied_now.append(version)
    except sqlite3.Error as exc:
        raise DatabaseError(exc) from exc
    logger.info("Database migrations complete")
    return applied_now


def health_check(conn: sqlite3.Connection) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        return conn.execute("SELECT 1").fetchone() is not None
    except sqlite3.Error:
        return False