import copy
import uuid
from datetime import datetime, timezone

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

CONFLICT_DETAIL = "Room already booked for this interval"


def _aware(value: datetime) -> datetime:
    # naive instants are read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_instant(raw) -> datetime:
    if isinstance(raw, datetime):
        return _aware(raw)
    return _aware(datetime.fromisoformat(str(raw).replace("Z", "+00:00")))


class SimulatorReservationGateway(ReservationGateway):
    """
    In-memory fake backend for testing. No mocking framework needed.

    Behaves like the real service: requires a credential for every
    catalog/reservation call, rejects overlapping reservations for the
    same room with 409, paginates, and issues tokens or a session cookie
    depending on cookie_mode.

    Test helpers:
        inject_user()         register an account
        inject_location()     add a Location, returns it
        inject_room()         add a Room, returns it
        inject_reservation()  add a Reservation without conflict checks
        reset_token_for()     token a forgot_password() call mailed to an address
        fail_next()           make the next call to a method raise GatewayError
        calls                 names of gateway methods invoked, in order
    """

    def __init__(self, cookie_mode: bool = False):
        self.cookie_mode = cookie_mode
        self.calls: list[str] = []
        self._users: dict[str, tuple[str, Identity]] = {}
        self._tokens: dict[str, str] = {}
        self._reset_tokens: dict[str, str] = {}
        self._cookie_user: str | None = None
        self._mode = None
        self._locations: dict[int, Location] = {}
        self._rooms: dict[int, Room] = {}
        self._reservations: dict[int, Reservation] = {}
        self._failures: dict[str, GatewayError] = {}
        self._next_id = 1

    # -- test helpers --------------------------------------------------------

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def inject_user(self, username: str, password: str, full_name: str | None = None) -> Identity:
        identity = Identity(
            id=self._new_id(),
            username=username,
            email=f"{username}@example.com",
            full_name=full_name,
        )
        self._users[username] = (password, identity)
        return identity

    def inject_location(self, name: str, description: str | None = None) -> Location:
        location = Location(id=self._new_id(), name=name, description=description)
        self._locations[location.id] = location
        return location

    def inject_room(self, name: str, location_id: int, capacity: int | None = None) -> Room:
        room = Room(id=self._new_id(), name=name, location_id=location_id, capacity=capacity)
        self._rooms[room.id] = room
        return room

    def inject_reservation(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        coffee: CoffeeOrder | None = None,
        responsible: str | None = None,
    ) -> Reservation:
        identity = self._users[responsible][1] if responsible else None
        reservation = Reservation(
            id=self._new_id(),
            room_id=room_id,
            start=_aware(start),
            end=_aware(end),
            responsible=identity,
            coffee=coffee or CoffeeOrder(),
            created_at=datetime.now(timezone.utc),
        )
        self._reservations[reservation.id] = reservation
        return self._embed(reservation)

    def fail_next(self, method: str, status: int | None, body=None) -> None:
        """Make the next call to `method` raise GatewayError(status, body)."""
        self._failures[method] = GatewayError(status, body, "simulated failure")

    def rename_room(self, room_id: int, name: str) -> None:
        """Simulate another session renaming a room behind the client's back."""
        self._rooms[room_id].name = name

    def reset_token_for(self, email: str) -> str | None:
        for token, username in self._reset_tokens.items():
            if self._users[username][1].email == email:
                return token
        return None

    # -- plumbing ------------------------------------------------------------

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        failure = self._failures.pop(method, None)
        if failure is not None:
            raise failure

    def _current_user(self) -> Identity:
        username = None
        if isinstance(self._mode, TokenMode) and self._mode.token:
            username = self._tokens.get(self._mode.token)
        elif isinstance(self._mode, CookieMode):
            username = self._cookie_user
        if username is None:
            raise GatewayError(401, {"detail": "Not authenticated"}, "Unauthorized")
        return self._users[username][1]

    def _embed(self, reservation: Reservation) -> Reservation:
        result = copy.deepcopy(reservation)
        room = self._rooms.get(reservation.room_id)
        if room is not None:
            result.room = copy.deepcopy(room)
            location = self._locations.get(room.location_id)
            result.location = copy.deepcopy(location) if location else None
        return result

    def _validate_reservation(self, payload: dict, exclude_id: int | None = None):
        room_id = payload.get("room_id")
        if room_id not in self._rooms:
            raise GatewayError(
                422, {"detail": [{"loc": ["body", "room_id"], "msg": "room not found"}]}
            )
        try:
            start = _parse_instant(payload["start"])
            end = _parse_instant(payload["end"])
        except (KeyError, ValueError):
            raise GatewayError(
                422, {"detail": [{"loc": ["body", "start"], "msg": "invalid datetime"}]}
            )
        if start >= end:
            raise GatewayError(
                422, {"detail": [{"loc": ["body", "end"], "msg": "end must be after start"}]}
            )
        for other in self._reservations.values():
            if other.id == exclude_id or other.room_id != room_id:
                continue
            if start < other.end and other.start < end:
                raise GatewayError(409, {"detail": CONFLICT_DETAIL}, "Conflict")

        coffee = payload.get("coffee") or {}
        order = CoffeeOrder(
            requested=bool(coffee.get("requested", False)),
            quantity=coffee.get("quantity"),
            description=coffee.get("description"),
        )
        return room_id, start, end, order

    # -- credentials ---------------------------------------------------------

    def apply_mode(self, mode) -> None:
        self._mode = mode

    def login(self, username: str, password: str) -> LoginResult:
        self._enter("login")
        entry = self._users.get(username)
        if entry is None or entry[0] != password:
            raise GatewayError(401, {"detail": "Incorrect username or password"}, "Unauthorized")
        if self.cookie_mode:
            self._cookie_user = username
            return LoginResult(access_token=None)
        token = uuid.uuid4().hex
        self._tokens[token] = username
        return LoginResult(access_token=token)

    def me(self) -> Identity:
        self._enter("me")
        return copy.deepcopy(self._current_user())

    def logout(self) -> None:
        self._enter("logout")
        self._cookie_user = None

    def register(
        self, email: str, username: str, password: str, full_name: str | None = None
    ) -> Identity:
        self._enter("register")
        if username in self._users:
            raise GatewayError(400, {"detail": "Username already registered"})
        identity = self.inject_user(username, password, full_name)
        identity.email = email
        return copy.deepcopy(identity)

    def change_password(self, current_password: str, new_password: str) -> None:
        self._enter("change_password")
        identity = self._current_user()
        password, _ = self._users[identity.username]
        if password != current_password:
            raise GatewayError(400, {"detail": "Incorrect password"})
        self._users[identity.username] = (new_password, identity)

    def forgot_password(self, email: str) -> None:
        self._enter("forgot_password")
        for username, (_, identity) in self._users.items():
            if identity.email == email:
                self._reset_tokens[uuid.uuid4().hex] = username

    def reset_password(self, token: str, new_password: str) -> None:
        self._enter("reset_password")
        username = self._reset_tokens.pop(token, None)
        if username is None:
            raise GatewayError(400, {"detail": "Invalid or expired reset token"})
        self._users[username] = (new_password, self._users[username][1])

    # -- catalog -------------------------------------------------------------

    def list_locations(self) -> list[Location]:
        self._enter("list_locations")
        self._current_user()
        return [copy.deepcopy(loc) for loc in self._locations.values()]

    def create_location(self, payload: dict) -> Location:
        self._enter("create_location")
        self._current_user()
        location = Location(
            id=self._new_id(),
            name=payload["name"],
            description=payload.get("description"),
            is_active=payload.get("is_active", True),
        )
        self._locations[location.id] = location
        return copy.deepcopy(location)

    def update_location(self, location_id: int, payload: dict) -> Location:
        self._enter("update_location")
        self._current_user()
        location = self._locations.get(location_id)
        if location is None:
            raise GatewayError(404, {"detail": "Location not found"})
        for key in ("name", "description", "is_active"):
            if key in payload:
                setattr(location, key, payload[key])
        return copy.deepcopy(location)

    def delete_location(self, location_id: int) -> None:
        self._enter("delete_location")
        self._current_user()
        if self._locations.pop(location_id, None) is None:
            raise GatewayError(404, {"detail": "Location not found"})

    def list_rooms(self) -> list[Room]:
        self._enter("list_rooms")
        self._current_user()
        return [copy.deepcopy(room) for room in self._rooms.values()]

    def create_room(self, payload: dict) -> Room:
        self._enter("create_room")
        self._current_user()
        if payload.get("location_id") not in self._locations:
            raise GatewayError(
                422, {"detail": [{"loc": ["body", "location_id"], "msg": "location not found"}]}
            )
        room = Room(
            id=self._new_id(),
            name=payload["name"],
            location_id=payload["location_id"],
            capacity=payload.get("capacity"),
            description=payload.get("description"),
            is_active=payload.get("is_active", True),
        )
        self._rooms[room.id] = room
        return copy.deepcopy(room)

    def update_room(self, room_id: int, payload: dict) -> Room:
        self._enter("update_room")
        self._current_user()
        room = self._rooms.get(room_id)
        if room is None:
            raise GatewayError(404, {"detail": "Room not found"})
        for key in ("name", "location_id", "capacity", "description", "is_active"):
            if key in payload:
                setattr(room, key, payload[key])
        return copy.deepcopy(room)

    def delete_room(self, room_id: int) -> None:
        self._enter("delete_room")
        self._current_user()
        if self._rooms.pop(room_id, None) is None:
            raise GatewayError(404, {"detail": "Room not found"})

    # -- reservations --------------------------------------------------------

    def list_reservations(self, page: int = 1, size: int = 10) -> ReservationPage:
        self._enter("list_reservations")
        self._current_user()
        ordered = sorted(self._reservations.values(), key=lambda r: (r.start, r.id))
        total = len(ordered)
        offset = (page - 1) * size
        return ReservationPage(
            items=[self._embed(r) for r in ordered[offset:offset + size]],
            total=total,
            page=page,
            size=size,
            pages=-(-total // size),
        )

    def create_reservation(self, payload: dict) -> Reservation:
        self._enter("create_reservation")
        identity = self._current_user()
        room_id, start, end, coffee = self._validate_reservation(payload)
        reservation = Reservation(
            id=self._new_id(),
            room_id=room_id,
            start=start,
            end=end,
            responsible=copy.deepcopy(identity),
            coffee=coffee,
            created_at=datetime.now(timezone.utc),
        )
        self._reservations[reservation.id] = reservation
        return self._embed(reservation)

    def update_reservation(self, reservation_id: int, payload: dict) -> Reservation:
        self._enter("update_reservation")
        self._current_user()
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise GatewayError(404, {"detail": "Reservation not found"})
        room_id, start, end, coffee = self._validate_reservation(payload, exclude_id=reservation_id)
        reservation.room_id = room_id
        reservation.start = start
        reservation.end = end
        reservation.coffee = coffee
        reservation.updated_at = datetime.now(timezone.utc)
        return self._embed(reservation)

    def delete_reservation(self, reservation_id: int) -> None:
        self._enter("delete_reservation")
        self._current_user()
        if self._reservations.pop(reservation_id, None) is None:
            raise GatewayError(404, {"detail": "Reservation not found"})
