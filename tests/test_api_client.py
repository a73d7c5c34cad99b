"""
ReservationApiClient request shaping, without a network.

A requests.Session subclass records outgoing calls and replays canned
responses, so the real header, cookie and error handling code runs.
"""

import json
from datetime import datetime, timezone

import pytest
import requests

from roombook.adapters.ports import GatewayError
from roombook.adapters.reservation_api_client import ReservationApiClient
from roombook.domain.session import CookieMode, TokenMode


def _response(status: int = 200, body=None, reason: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp._content = b"" if body is None else json.dumps(body).encode()
    return resp


class RecordingSession(requests.Session):

    def __init__(self):
        super().__init__()
        self.sent: list[dict] = []
        self.replies: list = []

    def reply(self, status: int = 200, body=None) -> None:
        self.replies.append(_response(status, body))

    def fail(self, exc: Exception) -> None:
        self.replies.append(exc)

    def request(self, method, url, **kwargs):
        self.sent.append({
            "method": method,
            "url": url,
            "headers": dict(self.headers),
            "cookies": dict(self.cookies),
            **kwargs,
        })
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def http():
    return RecordingSession()


@pytest.fixture
def client(http):
    return ReservationApiClient(base_url="http://backend:8000/", session=http)


RESERVATION_JSON = {
    "id": 7,
    "room_id": 3,
    "start": "2026-03-02T09:00:00Z",
    "end": "2026-03-02T10:00:00Z",
    "coffee": {"requested": True, "quantity": 4, "description": "no sugar"},
    "created_at": "2026-02-20T12:00:00+00:00",
    "responsible": {"id": 1, "username": "alice", "email": "a@x", "full_name": None, "is_active": True},
    "room": {
        "id": 3, "name": "Sala 101", "location_id": 2, "is_active": True,
        "location": {"id": 2, "name": "Sede", "is_active": True},
    },
}


# ---------------------------------------------------------------------------
# Credential transport
# ---------------------------------------------------------------------------


def test_login_is_form_encoded_with_password_grant(client, http):
    http.reply(200, {"access_token": "abc", "token_type": "bearer"})
    result = client.login("alice", "secret")

    sent = http.sent[0]
    assert sent["method"] == "POST"
    assert sent["url"] == "http://backend:8000/auth/login"
    assert sent["data"] == {"username": "alice", "password": "secret", "grant_type": "password"}
    assert result.access_token == "abc"


def test_token_mode_sets_bearer_header(client, http):
    client.apply_mode(TokenMode("abc"))
    http.reply(200, [])
    client.list_locations()
    assert http.sent[0]["headers"]["Authorization"] == "Bearer abc"


def test_cookie_mode_sends_cookie_and_no_header(client, http):
    client.apply_mode(TokenMode("abc"))
    client.apply_mode(CookieMode())
    http.cookies.set("session", "s1")
    http.reply(200, [])
    client.list_locations()

    sent = http.sent[0]
    assert "Authorization" not in sent["headers"]
    assert sent["cookies"] == {"session": "s1"}


def test_token_mode_never_sends_cookies(client, http):
    http.cookies.set("session", "stale")
    client.apply_mode(TokenMode("abc"))
    http.reply(200, [])
    client.list_locations()
    assert http.sent[0]["cookies"] == {}


def test_disarm_removes_header(client, http):
    client.apply_mode(TokenMode("abc"))
    client.apply_mode(None)
    http.reply(200, [])
    client.list_locations()
    assert "Authorization" not in http.sent[0]["headers"]


# ---------------------------------------------------------------------------
# Paths and parsing
# ---------------------------------------------------------------------------


def test_resources_use_prefix_auth_does_not(client, http):
    http.reply(200, {"id": 1, "username": "alice", "email": "a@x", "is_active": True})
    http.reply(200, [])
    client.me()
    client.list_rooms()
    assert http.sent[0]["url"] == "http://backend:8000/auth/me"
    assert http.sent[1]["url"] == "http://backend:8000/api/rooms/"


def test_list_reservations_parses_page(client, http):
    http.reply(200, {"items": [RESERVATION_JSON], "total": 11, "page": 2, "size": 10, "pages": 2})
    page = client.list_reservations(page=2, size=10)

    assert http.sent[0]["params"] == {"page": 2, "size": 10}
    assert page.total == 11 and page.pages == 2 and page.page == 2
    r = page.items[0]
    assert r.start == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert r.coffee.quantity == 4
    assert r.room.location_id == 2
    assert r.location.name == "Sede"
    assert r.responsible.label == "alice"


def test_missing_pages_is_derived_from_total(client, http):
    http.reply(200, {"items": [], "total": 21, "page": 1, "size": 10})
    assert client.list_reservations(page=1, size=10).pages == 3


def test_room_location_id_falls_back_to_embedded_location(client, http):
    http.reply(200, [{"id": 5, "name": "Sala 10", "location": {"id": 9, "name": "Filial"}}])
    assert client.list_rooms()[0].location_id == 9


def test_create_reservation_posts_json(client, http):
    http.reply(201, RESERVATION_JSON)
    payload = {"room_id": 3, "start": "s", "end": "e", "coffee": {"requested": False}}
    created = client.create_reservation(payload)
    assert http.sent[0]["json"] == payload
    assert created.id == 7


def test_delete_with_empty_body(client, http):
    http.reply(204)
    client.delete_reservation(7)
    assert http.sent[0]["method"] == "DELETE"
    assert http.sent[0]["url"] == "http://backend:8000/api/reservations/7"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def test_http_error_carries_status_and_body(client, http):
    http.reply(409, {"detail": "Room already booked for this interval"})
    with pytest.raises(GatewayError) as info:
        client.create_reservation({})
    assert info.value.status == 409
    assert info.value.body == {"detail": "Room already booked for this interval"}


def test_transport_failure_has_no_status(client, http):
    http.fail(requests.Timeout("read timed out"))
    with pytest.raises(GatewayError) as info:
        client.list_locations()
    assert info.value.status is None


def test_timeout_is_passed_to_transport(http):
    client = ReservationApiClient(session=http, timeout=3)
    http.reply(200, [])
    client.list_locations()
    assert http.sent[0]["timeout"] == 3


def test_password_recovery_routes_are_unprefixed(client, http):
    http.reply(202, {"message": "ok"})
    http.reply(200)
    client.forgot_password("alice@example.com")
    client.reset_password("tok", "brand-new")

    assert http.sent[0]["url"] == "http://backend:8000/auth/forgot-password"
    assert http.sent[0]["json"] == {"email": "alice@example.com"}
    assert http.sent[1]["url"] == "http://backend:8000/auth/reset-password"
    assert http.sent[1]["json"] == {"token": "tok", "new_password": "brand-new"}
