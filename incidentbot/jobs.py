"""Background jobs and the worker that runs them."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from incidentbot.errors import IncidentError
from incidentbot.models import IncidentStatus, Severity
from incidentbot.statuspage import StatuspageClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatuspageSyncJob:
    """Push an incident's status to a Statuspage component."""

    incident_id: UUID
    component_id: str
    status: IncidentStatus
    severity: Severity


Job = StatuspageSyncJob


def execute_statuspage_sync(statuspage_client: StatuspageClient, job: StatuspageSyncJob) -> bool:
    """Run a sync on a best-effort basis; failures are logged, never raised.

    Returns whether the component was updated.
    """
    logger.info(
        "Syncing incident %s to Statuspage component %s (status: %s, severity: %s)",
        job.incident_id,
        job.component_id,
        job.status.name,
        job.severity.name,
    )
    try:
        statuspage_client.update_component_status(job.component_id, job.status, job.severity)
    except IncidentError as exc:
        logger.error("Failed to sync incident %s to Statuspage: %s", job.incident_id, exc)
        return False
    logger.info("Successfully synced incident %s to Statuspage", job.incident_id)
    return True


class JobWorker:
    """Takes jobs from a queue and runs each one in its own worker thread.

    The worker stops once it takes None from the queue, after the jobs
    already started have finished.
    """

    def __init__(self, jobs: Any, statuspage_client: Optional[StatuspageClient] = None) -> None:
        self._jobs = jobs
        self.statuspage_client = statuspage_client

    def start(self) -> None:
        logger.info("Job worker started")
        with ThreadPoolExecutor(thread_name_prefix="job") as pool:
            for job in iter(self._jobs.get, None):
                pool.submit(self._run, job)
        logger.info("Job worker stopped")

    def _run(self, job: Job) -> None:
        try:
            self.process_job(job)
        except Exception as exc:  # a failing job must not stop the worker
            logger.error("Job processing error: %s", exc)

    def process_job(self, job: Job) -> bool:
        """Run one job; return whether it did its work."""
        if not isinstance(job, StatuspageSyncJob):
            raise TypeError(f"Unknown job: {job!r}")
        if self.statuspage_client is None:
            logger.info(
                "Statuspage not configured, skipping sync for incident %s", job.incident_id
            )
            return False
        return execute_statuspage_sync(self.statuspage_client, job)