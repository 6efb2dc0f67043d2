"""Client for the Statuspage component API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from incidentbot.errors import ExternalAPIError, RequestError
from incidentbot.models import IncidentStatus, Severity

logger = logging.getLogger(__name__)

STATUSPAGE_API_URL = "https://api.statuspage.io/v1"
_TIMEOUT_SECONDS = 30.0
_SERVICE = "Statuspage"


def map_status(status: IncidentStatus, severity: Severity) -> str:
    """Map an incident's status and severity to a Statuspage component status."""
    if status in (IncidentStatus.DECLARED, IncidentStatus.INVESTIGATING):
        if severity is Severity.P1:
            return "major_outage"
        if severity is Severity.P2:
            return "partial_outage"
        return "degraded_performance"
    if status in (IncidentStatus.IDENTIFIED, IncidentStatus.MONITORING):
        if severity is Severity.P1:
            return "partial_outage"
        return "degraded_performance"
    return "operational"


def _status_text(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


class StatuspageClient:
    """Updates component statuses on one Statuspage page."""

    def __init__(
        self,
        api_key: str,
        page_id: str,
        *,
        http_client: Optional[httpx.Client] = None,
        api_url: str = STATUSPAGE_API_URL,
    ) -> None:
        self._api_key = api_key
        self.page_id = page_id
        self._http = http_client or httpx.Client(timeout=_TIMEOUT_SECONDS)
        self._api_url = api_url.rstrip("/")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> StatuspageClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def _auth_header(self) -> dict[str, str]:
        return {"Authorization": f"OAuth {self._api_key}"}

    def update_component_status(
        self, component_id: str, status: IncidentStatus, severity: Severity
    ) -> None:
        """Set a component's status from an incident's status and severity."""
        component_status = map_status(status, severity)
        logger.debug(
            "Updating Statuspage component %s to status: %s", component_id, component_status
        )
        url = f"{self._api_url}/pages/{self.page_id}/components/{component_id}"
        try:
            response = self._http.patch(
                url,
                headers={**self._auth_header, "Content-Type": "application/json"},
                json={"component": {"status": component_status}},
            )
        except httpx.HTTPError as exc:
            raise RequestError(exc) from exc

        if not response.is_success:
            try:
                error_text = response.text
            except (httpx.HTTPError, UnicodeDecodeError):
                error_text = "Unknown error"
            logger.error("Statuspage API error (%s): %s", _status_text(response), error_text)
            raise ExternalAPIError(_SERVICE, f"HTTP {_status_text(response)}: {error_text}")

        logger.info(
            "Successfully updated Statuspage component %s to %s",
            component_id,
            component_status,
        )

    def test_connection(self) -> None:
        """Check that the page can be fetched with the configured key."""
        try:
            response = self._http.get(
                f"{self._api_url}/pages/{self.page_id}", headers=self._auth_header
            )
        except httpx.HTTPError as exc:
            raise RequestError(exc) from exc

        if not response.is_success:
            raise ExternalAPIError(
                _SERVICE, f"Connection test failed: HTTP {_status_text(response)}"
            )