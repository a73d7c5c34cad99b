from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class GatewayError(Exception):
    """
    Raised by every ReservationGateway implementation when the backend
    rejects a call or cannot be reached.

    status is None for transport-level failures (timeout, refused
    connection) where no HTTP response exists.
    """

    def __init__(self, status: int | None, body: Any = None, reason: str = ""):
        self.status = status
        self.body = body
        self.reason = reason
        super().__init__(f"status={status} {reason}".strip())


@dataclass
class Identity:
    """A user as returned by GET /auth/me and embedded as `responsible`."""

    id: int
    username: str
    email: str = ""
    full_name: str | None = None
    is_active: bool = True

    @property
    def label(self) -> str:
        return self.full_name or self.username


@dataclass
class Location:
    id: int
    name: str
    description: str | None = None
    is_active: bool = True


@dataclass
class Room:
    id: int
    name: str
    location_id: int  # relation only; the Location is looked up by id
    capacity: int | None = None
    description: str | None = None
    is_active: bool = True


@dataclass
class CoffeeOrder:
    requested: bool = False
    quantity: int | None = None
    description: str | None = None


@dataclass
class Reservation:
    id: int
    room_id: int
    start: datetime
    end: datetime
    responsible: Identity | None = None
    coffee: CoffeeOrder = field(default_factory=CoffeeOrder)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    room: Room | None = None
    location: Location | None = None  # parent of `room` when the backend embeds it


@dataclass
class ReservationPage:
    """One page from GET /reservations/?page=N&size=M."""

    items: list[Reservation]
    total: int
    page: int
    size: int
    pages: int


@dataclass
class LoginResult:
    """Outcome of POST /auth/login. access_token is None in cookie mode."""

    access_token: str | None
    token_type: str = "bearer"


class ReservationGateway(ABC):
    """
    Port: how the client talks to the reservation backend.

    Controllers depend ONLY on this interface. They don't know whether
    calls go over HTTP or hit the in-memory simulator backend.
    Every method raises GatewayError on failure.
    """

    # -- credentials ---------------------------------------------------------

    @abstractmethod
    def apply_mode(self, mode) -> None:
        """Arm outgoing requests with a SessionMode (or None to disarm)."""
        ...

    @abstractmethod
    def login(self, username: str, password: str) -> LoginResult:
        ...

    @abstractmethod
    def me(self) -> Identity:
        """Return the identity behind the current credential."""
        ...

    @abstractmethod
    def logout(self) -> None:
        ...

    @abstractmethod
    def register(
        self, email: str, username: str, password: str, full_name: str | None = None
    ) -> Identity:
        ...

    @abstractmethod
    def change_password(self, current_password: str, new_password: str) -> None:
        ...

    @abstractmethod
    def forgot_password(self, email: str) -> None:
        """Request a reset link by email. No credential needed."""
        ...

    @abstractmethod
    def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password using a token from the reset link."""
        ...

    # -- catalog -------------------------------------------------------------

    @abstractmethod
    def list_locations(self) -> list[Location]:
        ...

    @abstractmethod
    def create_location(self, payload: dict) -> Location:
        ...

    @abstractmethod
    def update_location(self, location_id: int, payload: dict) -> Location:
        ...

    @abstractmethod
    def delete_location(self, location_id: int) -> None:
        ...

    @abstractmethod
    def list_rooms(self) -> list[Room]:
        ...

    @abstractmethod
    def create_room(self, payload: dict) -> Room:
        ...

    @abstractmethod
    def update_room(self, room_id: int, payload: dict) -> Room:
        ...

    @abstractmethod
    def delete_room(self, room_id: int) -> None:
        ...

    # -- reservations --------------------------------------------------------

    @abstractmethod
    def list_reservations(self, page: int = 1, size: int = 10) -> ReservationPage:
        ...

    @abstractmethod
    def create_reservation(self, payload: dict) -> Reservation:
        """payload: {room_id, start, end, coffee: {requested, quantity, description}}"""
        ...

    @abstractmethod
    def update_reservation(self, reservation_id: int, payload: dict) -> Reservation:
        ...

    @abstractmethod
    def delete_reservation(self, reservation_id: int) -> None:
        ...
