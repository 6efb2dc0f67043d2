import json

import httpx
import pytest
import respx

from incidentbot.errors import RequestError, SlackAPIError
from incidentbot.slack.client import Channel, SlackClient

API = "https://slack.com/api"
RESPONSE_URL = "https://hooks.example.com/commands/1"


@pytest.fixture
def router():
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def client(router):
    with SlackClient("token") as slack:
        yield slack


def _ok(**fields):
    return httpx.Response(200, json={"ok": True, **fields})


def _body(call):
    return json.loads(call.request.content)


def test_create_conversation_returns_id(router, client):
    route = router.post(f"{API}/conversations.create").mock(
        return_value=_ok(channel={"id": "C123", "name": "inc-vpn"})
    )
    assert client.create_conversation("inc-vpn") == "C123"
    call = route.calls.last
    assert call.request.headers["Authorization"] == "Bearer token"
    assert _body(call) == {"name": "inc-vpn", "is_private": False}


def test_api_error_carries_slack_code(router, client):
    router.post(f"{API}/conversations.create").mock(
        return_value=httpx.Response(200, json={"ok": False, "error": "name_taken"})
    )
    with pytest.raises(SlackAPIError) as info:
        client.create_conversation("inc-vpn")
    assert info.value.slack_error_code == "name_taken"
    assert "conversations.create" in info.value.message


def test_api_error_without_code_is_unknown(router, client):
    router.post(f"{API}/conversations.archive").mock(
        return_value=httpx.Response(200, json={"ok": False})
    )
    with pytest.raises(SlackAPIError) as info:
        client.archive_channel("C1")
    assert info.value.slack_error_code == "unknown"


def test_missing_data_is_no_data(router, client):
    router.post(f"{API}/conversations.create").mock(return_value=_ok())
    with pytest.raises(SlackAPIError) as info:
        client.create_conversation("inc-vpn")
    assert info.value.slack_error_code == "no_data"


def test_transport_failure_is_request_error(router, client):
    router.post(f"{API}/chat.postMessage").mock(side_effect=httpx.ConnectError("down"))
    with pytest.raises(RequestError):
        client.post_message("C1", [])


def test_list_conversations_follows_cursor(router, client):
    route = router.post(f"{API}/conversations.list").mock(
        side_effect=[
            _ok(
                channels=[{"id": "C1", "name": "one"}],
                response_metadata={"next_cursor": "next-page"},
            ),
            _ok(
                channels=[{"id": "C2", "name": "two"}],
                response_metadata={"next_cursor": ""},
            ),
        ]
    )
    channels = client.list_conversations()
    assert channels == [Channel("C1", "one"), Channel("C2", "two")]
    assert route.call_count == 2
    first, second = (_body(call) for call in route.calls)
    assert "cursor" not in first
    assert first["limit"] == 1000
    assert first["exclude_archived"] is True
    assert second["cursor"] == "next-page"


def test_invite_users_skips_empty_list(router, client):
    route = router.post(f"{API}/conversations.invite").mock(return_value=_ok())
    result = client.invite_users("C1", [])
    assert result is None
    assert route.call_count == 0


def test_invite_users_joins_ids(router, client):
    route = router.post(f"{API}/conversations.invite").mock(return_value=_ok())
    users = ["U1", "U2", "U3"]
    client.invite_users("C1", users)
    body = _body(route.calls.last)
    assert body["channel"] == "C1"
    assert body["users"].split(",") == users


def test_post_message_returns_ts(router, client):
    route = router.post(f"{API}/chat.postMessage").mock(return_value=_ok(ts="1700000000.000100"))
    blocks = [{"type": "section", "text": {"type": "mrkdwn", "text": "hi"}}]
    assert client.post_message("C1", blocks) == "1700000000.000100"
    assert _body(route.calls.last) == {"channel": "C1", "blocks": blocks}


def test_pin_message(router, client):
    route = router.post(f"{API}/pins.add").mock(return_value=_ok())
    result = client.pin_message("C1", "1700000000.000100")
    assert result is None
    assert route.call_count == 1
    assert _body(route.calls.last) == {"channel": "C1", "timestamp": "1700000000.000100"}


def test_pin_message_error_is_raised(router, client):
    router.post(f"{API}/pins.add").mock(
        return_value=httpx.Response(200, json={"ok": False, "error": "already_pinned"})
    )
    with pytest.raises(SlackAPIError) as info:
        client.pin_message("C1", "1700000000.000100")
    assert info.value.slack_error_code == "already_pinned"


def test_send_dm_opens_then_posts(router, client):
    open_route = router.post(f"{API}/conversations.open").mock(
        return_value=_ok(channel={"id": "D42", "name": "dm"})
    )
    post_route = router.post(f"{API}/chat.postMessage").mock(return_value=_ok(ts="1.2"))
    result = client.send_dm("U7", [])
    assert result is None
    assert open_route.call_count == 1
    assert post_route.call_count == 1
    assert _body(open_route.calls.last) == {"users": "U7"}
    assert _body(post_route.calls.last)["channel"] == "D42"


def test_send_dm_open_failure_skips_post(router, client):
    router.post(f"{API}/conversations.open").mock(
        return_value=httpx.Response(200, json={"ok": False, "error": "user_not_found"})
    )
    post_route = router.post(f"{API}/chat.postMessage").mock(return_value=_ok(ts="1.2"))
    with pytest.raises(SlackAPIError) as info:
        client.send_dm("U7", [])
    assert info.value.slack_error_code == "user_not_found"
    assert post_route.call_count == 0


def test_open_modal(router, client):
    route = router.post(f"{API}/views.open").mock(return_value=_ok())
    view = {"type": "modal"}
    client.open_modal("trigger-1", view)
    assert _body(route.calls.last) == {"trigger_id": "trigger-1", "view": view}


def test_post_to_response_url_is_ephemeral(router, client):
    route = router.post(RESPONSE_URL).mock(return_value=httpx.Response(200))
    blocks = [{"type": "section"}]
    client.post_to_response_url(RESPONSE_URL, blocks)
    call = route.calls.last
    assert _body(call) == {"blocks": blocks, "response_type": "ephemeral"}
    assert "Authorization" not in call.request.headers


def test_post_to_response_url_failure(router, client):
    router.post(RESPONSE_URL).mock(return_value=httpx.Response(404))
    with pytest.raises(SlackAPIError) as info:
        client.post_to_response_url(RESPONSE_URL, [])
    assert info.value.slack_error_code.startswith("404")
    assert info.value.message == "Failed to post to response_url"