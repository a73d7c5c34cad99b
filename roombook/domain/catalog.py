"""
CatalogCache: locations and rooms, indexed for cascading selection.

The backend is the source of truth. The cache never edits a Location or
Room in place; it only swaps in a complete new snapshot after load().
A room renamed by another session stays invisible until the next load,
which the reservation form triggers once per mount.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from roombook.adapters.ports import Location, ReservationGateway, Room
from roombook.domain.errors import CatalogUnavailable

log = logging.getLogger(__name__)


@dataclass
class CatalogSnapshot:
    locations: list[Location] = field(default_factory=list)
    by_id: dict[int, Location] = field(default_factory=dict)
    rooms_by_location: dict[int, list[Room]] = field(default_factory=dict)
    rooms_by_id: dict[int, Room] = field(default_factory=dict)


def build_snapshot(locations: list[Location], rooms: list[Room]) -> CatalogSnapshot:
    snapshot = CatalogSnapshot(locations=list(locations))
    snapshot.by_id = {loc.id: loc for loc in locations}
    for room in rooms:
        snapshot.rooms_by_id[room.id] = room
        snapshot.rooms_by_location.setdefault(room.location_id, []).append(room)
    return snapshot


class CatalogCache:

    def __init__(self, gateway: ReservationGateway):
        self._gateway = gateway
        self._snapshot = CatalogSnapshot()
        self.loaded = False

    async def load(self) -> None:
        """
        Fetch locations and rooms concurrently and replace the snapshot.

        If either fetch fails the previous snapshot stays in place and
        CatalogUnavailable is raised; half-built data is never served.
        """
        results = await asyncio.gather(
            asyncio.to_thread(self._gateway.list_locations),
            asyncio.to_thread(self._gateway.list_rooms),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            log.error("catalog load failed: %s", failures[0])
            raise CatalogUnavailable("Could not load locations and rooms.") from failures[0]

        locations, rooms = results
        self._snapshot = build_snapshot(locations, rooms)
        self.loaded = True
        log.info("catalog loaded: %d location(s), %d room(s)", len(locations), len(rooms))

    # -- lookups -------------------------------------------------------------

    @property
    def locations(self) -> list[Location]:
        return list(self._snapshot.locations)

    def location_names(self) -> list[str]:
        return [loc.name for loc in self._snapshot.locations]

    def location(self, location_id: int) -> Location | None:
        return self._snapshot.by_id.get(location_id)

    def room(self, room_id: int) -> Room | None:
        return self._snapshot.rooms_by_id.get(room_id)

    def rooms_for(self, location_name: str) -> list[Room]:
        """Rooms of the location whose name matches exactly; [] if unknown."""
        for loc in self._snapshot.locations:
            if loc.name == location_name:
                return list(self._snapshot.rooms_by_location.get(loc.id, []))
        return []

    def resolve_room_id(self, location_name: str, room_name: str) -> int | None:
        for room in self.rooms_for(location_name):
            if room.name == room_name:
                return room.id
        return None

    def describe_room(self, room_id: int) -> tuple[str, str] | None:
        """(location name, room name) for a room id, or None if not cached."""
        room = self.room(room_id)
        if room is None:
            return None
        location = self.location(room.location_id)
        if location is None:
            return None
        return location.name, room.name
