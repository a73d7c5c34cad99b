"""
Reservation form controller.

Owns exactly one Draft. The user picks a location, then a room from
that location, a period and an optional coffee order; the controller
resolves the names to a room id through the CatalogCache, validates
locally and only then calls the backend.

Flow:
  1. mount()   load the catalog (once per mount)
  2. bind()    empty draft, or one pre-filled from an existing reservation
  3. select_location() / select_room() / set_period() / set_coffee()
  4. submit()  validate → create/update → bump refresh counter
               a rejected submission keeps the draft and exposes `error`
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Literal

from roombook.adapters.ports import GatewayError, Reservation, ReservationGateway
from roombook.domain.catalog import CatalogCache
from roombook.domain.classifier import classify_error, conflict_guidance
from roombook.domain.errors import AuthenticationError, CatalogUnavailable, ValidationError
from roombook.domain.refresh import RefreshCounter
from roombook.domain.session import SessionStore

log = logging.getLogger(__name__)


@dataclass
class Draft:
    """Form-local reservation candidate. The names are display-only."""

    reservation_id: int | None = None  # None = create mode
    location_name: str = ""
    room_name: str = ""
    room_id: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    coffee_requested: bool = False
    coffee_quantity: int | None = None
    coffee_description: str | None = None


@dataclass
class SubmitResult:
    action: Literal[
        "created",   # new reservation accepted
        "updated",   # existing reservation accepted
        "invalid",   # local validation failed, nothing sent
        "rejected",  # backend refused or could not be reached
        "busy",      # a submission is already in flight
    ]
    message: str = ""
    kind: str | None = None
    reservation: Reservation | None = None


class ReservationFormController:

    def __init__(
        self,
        gateway: ReservationGateway,
        catalog: CatalogCache,
        session: SessionStore,
        refresh: RefreshCounter,
        local_tz: tzinfo = timezone.utc,
    ):
        self._gateway = gateway
        self._catalog = catalog
        self._session = session
        self._refresh = refresh
        self._tz = local_tz
        self.draft = Draft()
        self.error: str | None = None
        self.submitting = False
        self.closed = False

    @property
    def editing(self) -> bool:
        return self.draft.reservation_id is not None

    # -- lifecycle -----------------------------------------------------------

    async def mount(self) -> bool:
        """Refresh the catalog for this form. False (with `error` set) on failure."""
        self.closed = False
        try:
            self._session.require()
            await self._catalog.load()
        except (AuthenticationError, CatalogUnavailable) as exc:
            self.error = exc.message
            return False
        return True

    def close(self) -> None:
        self.closed = True

    def bind(self, existing: Reservation | None = None) -> Draft:
        """Start a new draft, or one copied from an existing reservation."""
        self.error = None
        if existing is None:
            self.draft = Draft()
            return self.draft

        names = self._catalog.describe_room(existing.room_id)
        if names is not None:
            location_name, room_name = names
        else:
            # room outside the cached snapshot: keep its id, show raw identifiers
            log.warning("res=%d room=%d not in catalog", existing.id, existing.room_id)
            location_id = existing.room.location_id if existing.room else None
            location_name = f"#{location_id}" if location_id is not None else "#?"
            room_name = f"#{existing.room_id}"

        coffee = existing.coffee
        self.draft = Draft(
            reservation_id=existing.id,
            location_name=location_name,
            room_name=room_name,
            room_id=existing.room_id,
            start=existing.start,
            end=existing.end,
            coffee_requested=coffee.requested,
            coffee_quantity=coffee.quantity,
            coffee_description=coffee.description,
        )
        return self.draft

    # -- field edits ---------------------------------------------------------

    def room_choices(self) -> list[str]:
        return [room.name for room in self._catalog.rooms_for(self.draft.location_name)]

    def select_location(self, name: str) -> None:
        # rooms are scoped to a location: any previous room choice is void
        self.draft.location_name = name
        self.draft.room_name = ""
        self.draft.room_id = None

    def select_room(self, name: str) -> None:
        self.draft.room_name = name
        self.draft.room_id = self._catalog.resolve_room_id(self.draft.location_name, name)

    def set_period(self, start: datetime | None, end: datetime | None) -> None:
        self.draft.start = start
        self.draft.end = end

    def set_coffee(
        self,
        requested: bool,
        quantity: int | None = None,
        description: str | None = None,
    ) -> None:
        self.draft.coffee_requested = requested
        self.draft.coffee_quantity = quantity
        self.draft.coffee_description = description

    # -- validation ----------------------------------------------------------

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self._tz)
        return value

    def validate(self) -> str | None:
        """Message of the first violated rule, or None when the draft is valid."""
        d = self.draft
        if not d.location_name.strip():
            return "Choose a location."
        if d.room_id is None:
            return "Choose a room from the selected location."
        if d.start is None:
            return "Enter the start date and time."
        if d.end is None:
            return "Enter the end date and time."
        if self._aware(d.start) >= self._aware(d.end):
            return "The end must be later than the start."
        if d.coffee_requested and d.coffee_quantity is not None and d.coffee_quantity < 0:
            return "Coffee quantity cannot be negative."
        return None

    def build_payload(self) -> dict:
        """Request body for create/update. Raises ValidationError on an invalid draft."""
        problem = self.validate()
        if problem:
            raise ValidationError(problem)

        d = self.draft
        requested = d.coffee_requested
        description = (d.coffee_description or "").strip() or None
        return {
            "room_id": d.room_id,
            "start": self._aware(d.start).astimezone(timezone.utc).isoformat(),
            "end": self._aware(d.end).astimezone(timezone.utc).isoformat(),
            "coffee": {
                "requested": requested,
                "quantity": d.coffee_quantity if requested else None,
                "description": description if requested else None,
            },
        }

    # -- submission ----------------------------------------------------------

    async def submit(self) -> SubmitResult:
        if self.submitting:
            return SubmitResult(action="busy", message="A submission is already in progress.")

        self.error = None
        try:
            payload = self.build_payload()
            self._session.require()
        except (ValidationError, AuthenticationError) as exc:
            self.error = exc.message
            kind = "authentication" if isinstance(exc, AuthenticationError) else "validation"
            return SubmitResult(action="invalid", message=exc.message, kind=kind)

        reservation_id = self.draft.reservation_id
        self.submitting = True
        try:
            if reservation_id is None:
                saved = await asyncio.to_thread(self._gateway.create_reservation, payload)
            else:
                saved = await asyncio.to_thread(
                    self._gateway.update_reservation, reservation_id, payload
                )
        except GatewayError as exc:
            classification = classify_error(exc)
            message = conflict_guidance(classification, exc.body)
            log.info(
                "res=%s submit rejected kind=%s status=%s",
                reservation_id, classification.kind, exc.status,
            )
            if classification.kind == "authentication":
                self._session.invalidate()
            if not self.closed:
                self.error = message
            return SubmitResult(action="rejected", message=message, kind=classification.kind)
        finally:
            self.submitting = False

        self._refresh.bump()
        action = "created" if reservation_id is None else "updated"
        log.info("res=%d %s room=%d", saved.id, action, saved.room_id)
        if not self.closed:
            self.bind(None)
        return SubmitResult(action=action, reservation=saved)
