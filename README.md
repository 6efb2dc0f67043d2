# incidentbot

A library for running incidents in Slack. `incidentbot` keeps a record of every
incident in SQLite: its severity, its status and a timeline of what happened,
along with an audit log. It builds the Slack messages and the "Declare
Incident" modal, wraps the Slack Web API calls an incident bot needs, and keeps
Statuspage components in step with incidents.

## Modules

- **`incidentbot.models`**
  - `Severity` has the levels P1 to P4. `Severity.parse` reads them without
    regard to case, and each level has a `label()` and an `emoji()`.
  - `IncidentStatus` is the lifecycle: declared, investigating, identified,
    monitoring, resolved. It offers `valid_transitions()`,
    `can_transition_to()` and `is_terminal()`.
  - `TimelineEventType`, `NotificationType` and `NotificationStatus` are
    enums, each with a `parse` class method.
  - The records `Incident`, `TimelineEvent`, `NotificationRecord` and
    `IncidentTemplate` each have a `from_row` that builds them from a database
    row.
  - `format_duration` renders minutes as `1h 5min`, `42min` or `unknown`.
- **`incidentbot.errors`**
  - Every error derives from `IncidentError`. The subclasses are
    `NotFoundError`, `PermissionDeniedError`, `InvalidStateTransitionError`,
    `SlackAPIError`, `DatabaseError`, `ExternalAPIError`, `ValidationError`,
    `ConfigError`, `InvalidSignatureError`, `RequestError` and
    `InternalError`.
  - `error_response(error)` returns an HTTP status and a body of the form
    `{"error": message}`:
    - 404 for not found
    - 403 for permission denied
    - 400 for validation errors and state transition errors
    - 401 for a bad signature
    - 500 for everything else
- **`incidentbot.db`**
  - `connect(database_url)` opens a SQLite database. It takes a plain path,
    `sqlite:PATH` or `sqlite://PATH`.
  - `run_migrations(conn)` creates the schema and returns the migration
    versions it applied.
  - `health_check(conn)` reports whether the database answers a query.
- **`incidentbot.queries`** holds the queries for:
  - incidents: create, look up by id or by channel, update, resolve, delete
  - timeline events
  - notification records
  - the audit log
  - incident templates
  - Statuspage component mappings
- **`incidentbot.services`**
  - `IncidentService` creates incidents, posts status updates, changes
    severity and resolves incidents. It writes every change to the timeline
    and to the audit log.
    - Only the incident commander may change an incident. Anyone else gets
      `PermissionDeniedError`.
    - A status update on a resolved incident raises `ValidationError`.
    - Resolving an incident that is already resolved returns it unchanged.
  - `TimelineService` logs timeline events, reads them back, and formats them
    as Markdown.
  - `AuditService` writes entries to the audit log.
  - `PostmortemService.generate(incident)` drafts a Markdown postmortem for a
    resolved incident. If the incident has no `resolved_at`, it raises
    `InternalError`.
- **`incidentbot.slack`**
  - `blocks` builds Block Kit messages for:
    - declarations
    - status updates
    - severity changes
    - resolutions
    - timelines
    - errors
    - permission denials
  - `modals.declare_incident_modal(services, templates)` builds the
    declaration modal.
  - `client.SlackClient` has these methods:
    - `create_conversation`
    - `list_conversations`, which follows pagination cursors
    - `invite_users`
    - `archive_channel`
    - `post_message`
    - `pin_message`
    - `send_dm`
    - `open_modal`
    - `post_to_response_url`
- **`incidentbot.statuspage`**
  - `map_status(status, severity)` turns an incident status and severity into
    a Statuspage component status.
  - `StatuspageClient` has `update_component_status` and `test_connection`.
- **`incidentbot.jobs`**
  - `StatuspageSyncJob` describes one sync request.
  - `execute_statuspage_sync` runs a sync on a best-effort basis. It logs a
    failure and returns `False` instead of raising.
  - `JobWorker` takes jobs from a queue and runs each one in a thread pool.
    Its `start()` returns after it takes `None` from the queue.
- **`incidentbot.channel`**
  - `generate_channel_name` builds names of the form `inc-YYYYMMDD-service`.
    The service slug is cut to 40 characters. If the whole name would pass
    80 characters, it falls back to the first four characters of the incident
    id.
  - `create_incident_channel` creates the channel. If the name is taken, it
    retries once with the first eight characters of the incident id
    appended.

## Examples

Severities and statuses:

```python
from incidentbot.models import IncidentStatus, Severity

severity = Severity.parse("p1")
severity.label()   # "P1 (Critical)"
severity.emoji()   # "🔴"

declared = IncidentStatus.parse("declared")
resolved = IncidentStatus.parse("resolved")
declared.can_transition_to(resolved)   # True
resolved.can_transition_to(declared)   # False
resolved.is_terminal()                 # True
```

An incident's lifecycle, stored in an in-memory database:

```python
from incidentbot.db import connect, run_migrations
from incidentbot.models import Severity
from incidentbot.services.incident import IncidentService
from incidentbot.services.timeline import TimelineService

conn = connect("sqlite://:memory:")
run_migrations(conn)

incidents = IncidentService(conn)
incident = incidents.create_incident("Okta SSO outage", Severity.P2, "Okta SSO", "U024COMMANDER")
incidents.post_status_update(incident.id, "Investigating", "U024COMMANDER")
updated, old = incidents.change_severity(incident.id, Severity.P1, "U024COMMANDER", "Impact increased")
resolved = incidents.resolve_incident(incident.id, "U024COMMANDER")

events = TimelineService(conn).get_timeline(incident.id)   # declared, status update, severity change, resolved
```

Channel names and Statuspage statuses:

```python
import datetime
import uuid

from incidentbot.channel import generate_channel_name
from incidentbot.models import IncidentStatus, Severity
from incidentbot.statuspage import map_status

generate_channel_name("Okta SSO", datetime.date(2024, 11, 15), uuid.uuid4())
# "inc-20241115-okta-sso"

map_status(IncidentStatus.DECLARED, Severity.P1)     # "major_outage"
map_status(IncidentStatus.IDENTIFIED, Severity.P2)   # "degraded_performance"
map_status(IncidentStatus.RESOLVED, Severity.P3)     # "operational"
```

Running Statuspage syncs in the background:

```python
import queue
import uuid

from incidentbot.jobs import JobWorker, StatuspageSyncJob
from incidentbot.models import IncidentStatus, Severity
from incidentbot.statuspage import StatuspageClient

jobs = queue.Queue()
worker = JobWorker(jobs, StatuspageClient(api_key="placeholder", page_id="page"))
jobs.put(StatuspageSyncJob(uuid.uuid4(), "component", IncidentStatus.DECLARED, Severity.P1))
jobs.put(None)
worker.start()   # runs the job, then stops
```

## What it does not do

`incidentbot` is a library, not a running bot. It has:

- no web server and no command-line entry point.
- no handling of slash commands or interactive payloads. It does not verify
  Slack request signatures and does not route `/incident` subcommands.
- no loading of configuration.
- no service that decides who is notified of an incident. It only stores
  notification records, through `queries.log_notification`.

Storage is SQLite only. `connect` raises `DatabaseError` for a URL with any
other scheme.