"""Error hierarchy for the incident bot and its HTTP rendering."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


def _debug_name(value: Any) -> str:
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return "".join(part.capitalize() for part in name.split("_"))
    return str(value)


class IncidentError(Exception):
    """Base class for all incident bot errors."""

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR


class NotFoundError(IncidentError):
    status_code = HTTPStatus.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Incident not found")


class PermissionDeniedError(IncidentError):
    status_code = HTTPStatus.FORBIDDEN

    def __init__(self, user_id: str, action: str) -> None:
        self.user_id = user_id
        self.action = action
        super().__init__(f"Permission denied: {user_id} cannot {action}")


class InvalidStateTransitionError(IncidentError):
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, from_status: Any, to_status: Any) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid state transition from {_debug_name(from_status)} "
            f"to {_debug_name(to_status)}"
        )


class SlackAPIError(IncidentError):
    def __init__(self, message: str, slack_error_code: str) -> None:
        self.message = message
        self.slack_error_code = slack_error_code
        super().__init__(f"Slack API error: {message} (code: {slack_error_code})")


class DatabaseError(IncidentError):
    def __init__(self, cause: Any) -> None:
        self.cause = cause
        super().__init__(f"Database error: {cause}")


class ExternalAPIError(IncidentError):
    def __init__(self, service: str, message: str) -> None:
        self.service = service
        self.message = message
        super().__init__(f"External API error ({service}): {message}")


class ValidationError(IncidentError):
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Validation error on field '{field}': {reason}")


class ConfigError(IncidentError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Configuration error: {message}")


class InvalidSignatureError(IncidentError):
    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self) -> None:
        super().__init__("Invalid Slack signature")


class RequestError(IncidentError):
    def __init__(self, cause: Any) -> None:
        self.cause = cause
        super().__init__(f"Request error: {cause}")


class InternalError(IncidentError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Internal error: {message}")


def error_response(error: IncidentError) -> tuple[HTTPStatus, dict[str, str]]:
    """Map an error to an HTTP status and a JSON body."""
    return error.status_code, {"error": str(error)}