import logging
from datetime import datetime

import requests

from roombook.domain.session import CookieMode, TokenMode

from .ports import (
    CoffeeOrder,
    GatewayError,
    Identity,
    Location,
    LoginResult,
    Reservation,
    ReservationGateway,
    ReservationPage,
    Room,
)

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


def _parse_dt(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _identity(data: dict) -> Identity:
    return Identity(
        id=data.get("id", 0),
        username=data.get("username", ""),
        email=data.get("email", ""),
        full_name=data.get("full_name"),
        is_active=data.get("is_active", True),
    )


def _location(data: dict) -> Location:
    return Location(
        id=data["id"],
        name=data.get("name", ""),
        description=data.get("description"),
        is_active=data.get("is_active", True),
    )


def _room(data: dict) -> Room:
    location_id = data.get("location_id")
    if location_id is None:
        location_id = (data.get("location") or {}).get("id", 0)
    return Room(
        id=data["id"],
        name=data.get("name", ""),
        location_id=location_id,
        capacity=data.get("capacity"),
        description=data.get("description"),
        is_active=data.get("is_active", True),
    )


def _reservation(data: dict) -> Reservation:
    coffee = data.get("coffee") or {}
    room_data = data.get("room")
    location_data = (room_data or {}).get("location")
    responsible = data.get("responsible")
    return Reservation(
        id=data["id"],
        room_id=data.get("room_id") or (room_data or {}).get("id", 0),
        start=_parse_dt(data["start"]),
        end=_parse_dt(data["end"]),
        responsible=_identity(responsible) if responsible else None,
        coffee=CoffeeOrder(
            requested=bool(coffee.get("requested", False)),
            quantity=coffee.get("quantity"),
            description=coffee.get("description"),
        ),
        created_at=_parse_dt(data.get("created_at")),
        updated_at=_parse_dt(data.get("updated_at")),
        room=_room(room_data) if room_data else None,
        location=_location(location_data) if location_data else None,
    )


class ReservationApiClient(ReservationGateway):
    """Adapter: real HTTP client for the reservation backend."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_prefix: str = "/api",
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        self._send_cookies = False

    # -- transport -----------------------------------------------------------

    def apply_mode(self, mode) -> None:
        """
        Token mode attaches `Authorization: Bearer`; cookie mode relies on
        the session cookie jar. Never both.
        """
        self.session.headers.pop("Authorization", None)
        self._send_cookies = False
        if isinstance(mode, TokenMode):
            if mode.token:
                self.session.headers["Authorization"] = f"Bearer {mode.token}"
        elif isinstance(mode, CookieMode):
            self._send_cookies = True
        elif mode is not None:
            raise ValueError(f"Unknown session mode: {mode!r}")

    def _url(self, path: str, resource: bool = True) -> str:
        prefix = self.api_prefix if resource else ""
        return f"{self.base_url}{prefix}{path}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        if not self._send_cookies:
            # cookies are only sent when the credentialed flag is on
            self.session.cookies.clear()
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            raise GatewayError(None, None, str(exc)) from exc

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text[:200]
            log.warning("HTTP %d for %s %s", resp.status_code, method, url)
            raise GatewayError(resp.status_code, body, resp.reason or "")
        return resp

    def _json(self, method: str, url: str, **kwargs):
        resp = self._request(method, url, **kwargs)
        if not resp.content:
            return None
        return resp.json()

    # -- credentials ---------------------------------------------------------

    def login(self, username: str, password: str) -> LoginResult:
        resp = self._request(
            "POST",
            self._url("/auth/login", resource=False),
            data={"username": username, "password": password, "grant_type": "password"},
        )
        data = resp.json() if resp.content else {}
        return LoginResult(
            access_token=data.get("access_token"),
            token_type=data.get("token_type", "bearer"),
        )

    def me(self) -> Identity:
        return _identity(self._json("GET", self._url("/auth/me", resource=False)))

    def logout(self) -> None:
        self._request("POST", self._url("/auth/logout", resource=False))

    def register(
        self, email: str, username: str, password: str, full_name: str | None = None
    ) -> Identity:
        data = self._json(
            "POST",
            self._url("/auth/register", resource=False),
            json={
                "email": email,
                "username": username,
                "password": password,
                "full_name": full_name,
            },
        )
        return _identity(data)

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request(
            "POST",
            self._url("/auth/change-password", resource=False),
            json={"current_password": current_password, "new_password": new_password},
        )

    def forgot_password(self, email: str) -> None:
        self._request(
            "POST",
            self._url("/auth/forgot-password", resource=False),
            json={"email": email},
        )

    def reset_password(self, token: str, new_password: str) -> None:
        self._request(
            "POST",
            self._url("/auth/reset-password", resource=False),
            json={"token": token, "new_password": new_password},
        )

    # -- catalog -------------------------------------------------------------

    def list_locations(self) -> list[Location]:
        return [_location(d) for d in self._json("GET", self._url("/locations/"))]

    def create_location(self, payload: dict) -> Location:
        return _location(self._json("POST", self._url("/locations/"), json=payload))

    def update_location(self, location_id: int, payload: dict) -> Location:
        return _location(
            self._json("PUT", self._url(f"/locations/{location_id}"), json=payload)
        )

    def delete_location(self, location_id: int) -> None:
        self._request("DELETE", self._url(f"/locations/{location_id}"))

    def list_rooms(self) -> list[Room]:
        return [_room(d) for d in self._json("GET", self._url("/rooms/"))]

    def create_room(self, payload: dict) -> Room:
        return _room(self._json("POST", self._url("/rooms/"), json=payload))

    def update_room(self, room_id: int, payload: dict) -> Room:
        return _room(self._json("PUT", self._url(f"/rooms/{room_id}"), json=payload))

    def delete_room(self, room_id: int) -> None:
        self._request("DELETE", self._url(f"/rooms/{room_id}"))

    # -- reservations --------------------------------------------------------

    def list_reservations(self, page: int = 1, size: int = 10) -> ReservationPage:
        data = self._json(
            "GET", self._url("/reservations/"), params={"page": page, "size": size}
        )
        total = data.get("total", 0)
        page_size = data.get("size", size) or size
        return ReservationPage(
            items=[_reservation(item) for item in data.get("items", [])],
            total=total,
            page=data.get("page", page),
            size=page_size,
            # some deployments omit `pages`
            pages=data.get("pages") or -(-total // page_size),
        )

    def create_reservation(self, payload: dict) -> Reservation:
        return _reservation(self._json("POST", self._url("/reservations/"), json=payload))

    def update_reservation(self, reservation_id: int, payload: dict) -> Reservation:
        return _reservation(
            self._json("PUT", self._url(f"/reservations/{reservation_id}"), json=payload)
        )

    def delete_reservation(self, reservation_id: int) -> None:
        self._request("DELETE", self._url(f"/reservations/{reservation_id}"))
