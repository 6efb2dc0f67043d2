"""Naming and creation of incident channels."""

from __future__ import annotations

import logging
from datetime import date as Date
from typing import Any
from uuid import UUID

from incidentbot.errors import SlackAPIError

logger = logging.getLogger(__name__)

_SLUG_LIMIT = 40
_CHANNEL_NAME_LIMIT = 80


def generate_channel_name(service: str, date: Date, incident_id: UUID) -> str:
    """Build a channel name of the form inc-YYYYMMDD-service."""
    lowered = service.lower().replace(" ", "-").replace("_", "-")
    slug = "".join(c for c in lowered if c.isalnum() or c == "-")[:_SLUG_LIMIT]
    day = date.strftime("%Y%m%d")

    base = f"inc-{day}-{slug}"
    if len(base) > _CHANNEL_NAME_LIMIT:
        return f"inc-{day}-{str(incident_id)[:4]}"
    return base


def create_incident_channel(
    slack_client: Any, service: str, date: Date, incident_id: UUID
) -> tuple[str, str]:
    """Create the incident channel and return (channel_id, channel_name).

    If the name is taken, retry once with part of the incident id appended.
    """
    base_name = generate_channel_name(service, date, incident_id)
    try:
        channel_id = slack_client.create_conversation(base_name)
    except SlackAPIError as exc:
        if exc.slack_error_code != "name_taken":
            raise
        unique_name = f"{base_name}-{str(incident_id)[:8]}"
        logger.debug("Channel #%s exists, trying #%s", base_name, unique_name)
        channel_id = slack_client.create_conversation(unique_name)
        logger.info("Created channel #%s (%s)", unique_name, channel_id)
        return channel_id, unique_name

    logger.info("Created channel #%s (%s)", base_name, channel_id)
    return channel_id, base_name