"""
Reservation list controller.

Shows one server-backed page at a time. The displayed PageWindow is only
ever replaced by a fresh fetch, never patched locally: deletes and
mutations made elsewhere are followed by a refetch of the current page.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal

from roombook.adapters.ports import GatewayError, Reservation, ReservationGateway
from roombook.communication.ports import ConfirmationRequest, Confirmer
from roombook.domain.classifier import classify_error
from roombook.domain.errors import AuthenticationError
from roombook.domain.refresh import RefreshCursor
from roombook.domain.session import SessionStore

log = logging.getLogger(__name__)

MAX_PAGE_BUTTONS = 5


@dataclass
class PageWindow:
    page: int = 1
    size: int = 10
    total_items: int = 0
    total_pages: int = 0
    items: list[Reservation] = field(default_factory=list)


@dataclass
class DeleteResult:
    action: Literal["deleted", "cancelled", "failed", "busy"]
    message: str = ""


def page_buttons(current: int, total: int) -> list[int]:
    """
    Page numbers to show: at most five, windowed around `current` and
    clamped to the edges.
    """
    if total <= MAX_PAGE_BUTTONS:
        return list(range(1, total + 1))
    if current <= 3:
        return list(range(1, MAX_PAGE_BUTTONS + 1))
    if current >= total - 2:
        return list(range(total - 4, total + 1))
    return list(range(current - 2, current + 3))


def location_label(reservation: Reservation) -> str:
    return reservation.location.name if reservation.location else "N/A"


def room_label(reservation: Reservation) -> str:
    return reservation.room.name if reservation.room else "N/A"


def responsible_label(reservation: Reservation) -> str:
    return reservation.responsible.label if reservation.responsible else "N/A"


class ReservationListController:

    def __init__(
        self,
        gateway: ReservationGateway,
        session: SessionStore,
        confirmer: Confirmer,
        page_size: int = 10,
        seen_refresh: int = 0,
    ):
        self._gateway = gateway
        self._session = session
        self._confirmer = confirmer
        self.page_size = page_size
        self.window = PageWindow(size=page_size)
        self.error: str | None = None
        self.loading = False
        self.syncing = False
        self.closed = False
        self._cursor = RefreshCursor(seen_refresh)

    @property
    def page(self) -> int:
        return self.window.page

    def buttons(self) -> list[int]:
        return page_buttons(self.window.page, self.window.total_pages)

    def close(self) -> None:
        """Tear down: responses that arrive later are discarded."""
        self.closed = True

    def _fail(self, exc: GatewayError, what: str) -> str:
        classification = classify_error(exc)
        if classification.kind == "authentication":
            self._session.invalidate()
        message = f"{what} {classification.message}"
        if not self.closed:
            self.error = message
        return message

    # -- fetching ------------------------------------------------------------

    async def fetch(self, page: int | None = None) -> PageWindow | None:
        """Load one page and replace the window. None (with `error` set) on failure."""
        page = max(1, page if page is not None else self.window.page)
        try:
            self._session.require()
        except AuthenticationError as exc:
            self.error = exc.message
            return None

        self.loading = True
        self.error = None
        try:
            result = await asyncio.to_thread(
                self._gateway.list_reservations, page, self.page_size
            )
        except GatewayError as exc:
            log.error("page=%d fetch failed status=%s", page, exc.status)
            self._fail(exc, "Could not load reservations.")
            return None
        finally:
            self.loading = False

        if self.closed:
            log.debug("page=%d response discarded: list closed", page)
            return None

        total_pages = result.pages or -(-result.total // self.page_size)
        if not result.items and page > 1:
            # page emptied under us; derive the last real page from the total
            target = max(1, min(page - 1, total_pages))
            log.info("page=%d empty of %d, stepping back to %d", page, total_pages, target)
            return await self.fetch(target)

        self.window = PageWindow(
            page=result.page,
            size=self.page_size,
            total_items=result.total,
            total_pages=total_pages,
            items=list(result.items),
        )
        log.debug("page=%d/%d loaded items=%d", self.window.page, total_pages, len(result.items))
        return self.window

    async def reload(self) -> PageWindow | None:
        return await self.fetch(self.window.page)

    async def go_to(self, page: int) -> PageWindow | None:
        if self.window.total_pages:
            page = min(page, self.window.total_pages)
        return await self.fetch(max(1, page))

    async def next_page(self) -> PageWindow | None:
        return await self.go_to(self.window.page + 1)

    async def previous_page(self) -> PageWindow | None:
        return await self.go_to(self.window.page - 1)

    async def observe_refresh(self, value: int) -> bool:
        """Refetch the current page if the refresh counter moved since last seen."""
        if not self._cursor.advance(value):
            return False
        await self.reload()
        return True

    # -- deletion ------------------------------------------------------------

    async def delete(self, reservation: Reservation) -> DeleteResult:
        if self.syncing:
            return DeleteResult(action="busy", message="A deletion is already in progress.")

        request = ConfirmationRequest(
            title="Confirm deletion",
            description=(
                f"Delete the reservation of room {room_label(reservation)} "
                f"at {location_label(reservation)}? This cannot be undone."
            ),
        )
        if not await self._confirmer.confirm(request):
            return DeleteResult(action="cancelled")

        try:
            self._session.require()
        except AuthenticationError as exc:
            self.error = exc.message
            return DeleteResult(action="failed", message=exc.message)

        was_last_on_page = len(self.window.items) == 1 and self.window.page > 1
        self.syncing = True
        try:
            await asyncio.to_thread(self._gateway.delete_reservation, reservation.id)
        except GatewayError as exc:
            log.error("res=%d delete failed status=%s", reservation.id, exc.status)
            message = self._fail(exc, "Could not delete the reservation.")
            return DeleteResult(action="failed", message=message)
        finally:
            self.syncing = False

        log.info("res=%d deleted", reservation.id)
        if self.closed:
            return DeleteResult(action="deleted")
        if was_last_on_page:
            await self.fetch(self.window.page - 1)
        else:
            await self.fetch(self.window.page)
        return DeleteResult(action="deleted")
