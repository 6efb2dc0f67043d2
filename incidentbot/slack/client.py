"""Client for the Slack Web API."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

import httpx

from incidentbot.errors import RequestError, SlackAPIError

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"
_TIMEOUT_SECONDS = 30.0

T = TypeVar("T")


@dataclass(frozen=True)
class Channel:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Any) -> Channel:
        return cls(id=data["id"], name=data["name"])


def _extract(data: dict[str, Any], read: Callable[[dict[str, Any]], T]) -> T:
    try:
        return read(data)
    except (KeyError, TypeError):
        raise SlackAPIError("No data in response", "no_data") from None


class SlackClient:
    """Calls Slack Web API methods with a bot token."""

    def __init__(
        self,
        bot_token: str,
        *,
        http_client: Optional[httpx.Client] = None,
        api_url: str = SLACK_API_URL,
    ) -> None:
        self._bot_token = bot_token
        self._http = http_client or httpx.Client(timeout=_TIMEOUT_SECONDS)
        self._api_url = api_url.rstrip("/")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SlackClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _call_api(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Call a Web API method; return the response fields besides ok and error."""
        logger.debug("Calling Slack API: %s", method)
        try:
            response = self._http.post(
                f"{self._api_url}/{method}",
                headers={
                    "Authorization": f"Bearer {self._bot_token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                json=payload,
            )
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RequestError(exc) from exc

        if not isinstance(body, dict):
            raise RequestError("Slack API returned a non-object response")

        if body.get("ok") is not True:
            error_code = body.get("error") or "unknown"
            logger.error("Slack API error: %s", error_code)
            raise SlackAPIError(f"API call failed: {method}", error_code)

        return {key: value for key, value in body.items() if key not in ("ok", "error")}

    def create_conversation(self, name: str) -> str:
        """Create a public channel and return its id."""
        data = self._call_api("conversations.create", {"name": name, "is_private": False})
        return _extract(data, lambda d: Channel.from_api(d["channel"])).id

    def list_conversations(self) -> list[Channel]:
        """Return all unarchived channels, following pagination cursors."""
        channels: list[Channel] = []
        cursor: Optional[str] = None
        while True:
            params: dict[str, Any] = {"exclude_archived": True, "limit": 1000}
            if cursor is not None:
                params["cursor"] = cursor
            data = self._call_api("conversations.list", params)
            channels.extend(
                _extract(data, lambda d: [Channel.from_api(c) for c in d["channels"]])
            )
            metadata = data.get("response_metadata") or {}
            cursor = metadata.get("next_cursor")
            if not cursor:
                return channels

    def invite_users(self, channel_id: str, user_ids: Sequence[str]) -> None:
        if not user_ids:
            return
        self._call_api(
            "conversations.invite", {"channel": channel_id, "users": ",".join(user_ids)}
        )

    def archive_channel(self, channel_id: str) -> None:
        self._call_api("conversations.archive", {"channel": channel_id})

    def post_message(self, channel_id: str, blocks: Sequence[dict[str, Any]]) -> str:
        """Post blocks to a channel and return the message timestamp."""
        data = self._call_api(
            "chat.postMessage", {"channel": channel_id, "blocks": list(blocks)}
        )
        return _extract(data, lambda d: d["ts"])

    def pin_message(self, channel_id: str, timestamp: str) -> None:
        self._call_api("pins.add", {"channel": channel_id, "timestamp": timestamp})

    def send_dm(self, user_id: str, blocks: Sequence[dict[str, Any]]) -> None:
        """Open a direct conversation with a user and post blocks to it."""
        data = self._call_api("conversations.open", {"users": user_id})
        channel = _extract(data, lambda d: Channel.from_api(d["channel"]))
        self.post_message(channel.id, blocks)

    def open_modal(self, trigger_id: str, view: dict[str, Any]) -> None:
        self._call_api("views.open", {"trigger_id": trigger_id, "view": view})

    def post_to_response_url(
        self, response_url: str, blocks: Sequence[dict[str, Any]]
    ) -> None:
        """Reply ephemerally through a slash command's response URL."""
        try:
            response = self._http.post(
                response_url,
                json={"blocks": list(blocks), "response_type": "ephemeral"},
            )
        except httpx.HTTPError as exc:
            raise RequestError(exc) from exc

        if not response.is_success:
            raise SlackAPIError(
                "Failed to post to response_url",
                f"{response.status_code} {response.reason_phrase}".strip(),
            )