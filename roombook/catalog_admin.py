"""
Location and room management.

Every mutation goes to the backend first; on success the CatalogCache is
reloaded as a whole; nothing is patched in place.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Literal

from roombook.adapters.ports import GatewayError, Location, ReservationGateway, Room
from roombook.communication.ports import ConfirmationRequest, Confirmer
from roombook.domain.catalog import CatalogCache
from roombook.domain.classifier import classify_error
from roombook.domain.errors import AuthenticationError, CatalogUnavailable, ValidationError
from roombook.domain.session import SessionStore

log = logging.getLogger(__name__)


@dataclass
class AdminResult:
    action: Literal["saved", "deleted", "invalid", "rejected", "cancelled"]
    message: str = ""
    item: Any = None


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def build_location_payload(
    name: str, description: str | None = None, is_active: bool = True
) -> dict:
    if not (name or "").strip():
        raise ValidationError("The location name is required.")
    return {
        "name": name.strip(),
        "description": _blank_to_none(description),
        "is_active": is_active,
    }


def build_room_payload(
    name: str,
    location_id: int | None,
    description: str | None = None,
    capacity: int | None = None,
    is_active: bool = True,
) -> dict:
    if not (name or "").strip():
        raise ValidationError("The room name is required.")
    if not location_id:
        raise ValidationError("Select a location.")
    if capacity is not None and capacity < 0:
        raise ValidationError("Capacity cannot be negative.")
    return {
        "name": name.strip(),
        "location_id": location_id,
        "description": _blank_to_none(description),
        "capacity": capacity,
        "is_active": is_active,
    }


class CatalogAdmin:

    def __init__(
        self,
        gateway: ReservationGateway,
        catalog: CatalogCache,
        session: SessionStore,
        confirmer: Confirmer,
    ):
        self._gateway = gateway
        self._catalog = catalog
        self._session = session
        self._confirmer = confirmer
        self.error: str | None = None

    async def _mutate(self, action: str, call, *args) -> AdminResult:
        self.error = None
        try:
            self._session.require()
            item = await asyncio.to_thread(call, *args)
        except AuthenticationError as exc:
            self.error = exc.message
            return AdminResult(action="rejected", message=exc.message)
        except GatewayError as exc:
            classification = classify_error(exc)
            if classification.kind == "authentication":
                self._session.invalidate()
            self.error = classification.message
            log.info("catalog %s rejected status=%s", call.__name__, exc.status)
            return AdminResult(action="rejected", message=classification.message)

        try:
            await self._catalog.load()
        except CatalogUnavailable as exc:
            # the mutation went through; the cache just stays on its old snapshot
            log.warning("catalog reload after %s failed: %s", call.__name__, exc.message)
        return AdminResult(action=action, item=item)

    # -- locations -----------------------------------------------------------

    async def save_location(
        self,
        name: str,
        description: str | None = None,
        is_active: bool = True,
        location_id: int | None = None,
    ) -> AdminResult:
        try:
            payload = build_location_payload(name, description, is_active)
        except ValidationError as exc:
            self.error = exc.message
            return AdminResult(action="invalid", message=exc.message)
        if location_id is None:
            return await self._mutate("saved", self._gateway.create_location, payload)
        return await self._mutate("saved", self._gateway.update_location, location_id, payload)

    async def delete_location(self, location: Location) -> AdminResult:
        request = ConfirmationRequest(
            title="Confirm deletion",
            description=f"Delete the location {location.name}? This cannot be undone.",
        )
        if not await self._confirmer.confirm(request):
            return AdminResult(action="cancelled")
        return await self._mutate("deleted", self._gateway.delete_location, location.id)

    # -- rooms ---------------------------------------------------------------

    async def save_room(
        self,
        name: str,
        location_id: int | None,
        description: str | None = None,
        capacity: int | None = None,
        is_active: bool = True,
        room_id: int | None = None,
    ) -> AdminResult:
        try:
            payload = build_room_payload(name, location_id, description, capacity, is_active)
        except ValidationError as exc:
            self.error = exc.message
            return AdminResult(action="invalid", message=exc.message)
        if room_id is None:
            return await self._mutate("saved", self._gateway.create_room, payload)
        return await self._mutate("saved", self._gateway.update_room, room_id, payload)

    async def delete_room(self, room: Room) -> AdminResult:
        request = ConfirmationRequest(
            title="Confirm deletion",
            description=f"Delete the room {room.name}? This cannot be undone.",
        )
        if not await self._confirmer.confirm(request):
            return AdminResult(action="cancelled")
        return await self._mutate("deleted", self._gateway.delete_room, room.id)
