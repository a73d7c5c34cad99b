#!/usr/bin/env python3
"""
Reservation CLI: log in, browse the catalog, book and cancel rooms.

Usage (from project root):
    python scripts/reservations.py login alice             # prompts for the password
    python scripts/reservations.py logout
    python scripts/reservations.py whoami
    python scripts/reservations.py locations               # locations and their rooms
    python scripts/reservations.py list [PAGE]             # one page of reservations
    python scripts/reservations.py book LOCATION ROOM START END [COFFEE_QTY [COFFEE_DESC]]
    python scripts/reservations.py delete ID               # asks for confirmation

START and END are ISO datetimes ("2026-03-05T14:00"); naive values are
read in ROOMBOOK_TIMEZONE. Configuration comes from ROOMBOOK_* env vars,
see roombook/config.py. ROOMBOOK_LOG_LEVEL sets the log level (default WARNING).
"""

import asyncio
import getpass
import logging
import os
import sys
from datetime import datetime

# Allow running as `python scripts/reservations.py` from project root.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from roombook.communication.factory import create_confirmer
from roombook.config import ClientConfig
from roombook.context import ClientContext, build_context
from roombook.domain.errors import RoombookError
from roombook.reservation_list import location_label, responsible_label, room_label

logging.basicConfig(
    level=os.environ.get("ROOMBOOK_LOG_LEVEL", "WARNING"),
    format="%(asctime)s  %(levelname)-7s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)


def _fmt(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


async def login(ctx: ClientContext, username: str) -> None:
    password = await asyncio.to_thread(getpass.getpass, "Password: ")
    session = await ctx.session.login(username, password)
    print(f"Logged in as {session.identity_label}.")


async def logout(ctx: ClientContext) -> None:
    await ctx.session.logout()
    print("Logged out.")


async def whoami(ctx: ClientContext) -> None:
    print(ctx.session.identity_label or "Not logged in.")


async def show_locations(ctx: ClientContext) -> None:
    ctx.session.require()
    await ctx.catalog.load()
    for name in ctx.catalog.location_names():
        rooms = ", ".join(room.name for room in ctx.catalog.rooms_for(name)) or "(no rooms)"
        print(f"{name:<24}  {rooms}")


async def show_page(ctx: ClientContext, page: int) -> None:
    listing = ctx.reservation_list()
    window = await listing.fetch(page)
    if window is None:
        print(listing.error)
        return
    if not window.items:
        print("No reservations yet.")
        return

    print(f"\n{'ID':>4}  {'Location / Room':<32}  {'Period':<35}  {'Responsible':<16}  Coffee")
    print("-" * 100)
    for r in window.items:
        place = f"{location_label(r)} / {room_label(r)}"
        period = f"{_fmt(r.start)} → {_fmt(r.end)}"
        coffee = "yes" if r.coffee.requested else "no"
        print(f"{r.id:>4}  {place:<32}  {period:<35}  {responsible_label(r):<16}  {coffee}")
    print(f"\n{window.total_items} reservation(s), page {window.page} of {window.total_pages}"
          f"  [{' '.join(str(p) for p in listing.buttons())}]\n")


async def book(ctx: ClientContext, args: list[str]) -> None:
    form = ctx.reservation_form()
    if not await form.mount():
        print(form.error)
        return
    form.bind(None)
    form.select_location(args[0])
    form.select_room(args[1])
    form.set_period(datetime.fromisoformat(args[2]), datetime.fromisoformat(args[3]))
    if len(args) >= 5:
        form.set_coffee(True, int(args[4]), args[5] if len(args) >= 6 else None)

    result = await form.submit()
    if result.reservation is not None:
        print(f"Reservation #{result.reservation.id} {result.action}.")
    else:
        print(result.message)


async def delete(ctx: ClientContext, reservation_id: int) -> None:
    listing = ctx.reservation_list()
    window = await listing.fetch(1)
    while window is not None:
        for r in window.items:
            if r.id == reservation_id:
                result = await listing.delete(r)
                print(result.message or f"Reservation #{reservation_id}: {result.action}.")
                return
        if window.page >= window.total_pages:
            break
        window = await listing.next_page()
    print(listing.error or f"Reservation #{reservation_id} not found.")


async def main() -> None:
    ctx = build_context(ClientConfig.from_env(), create_confirmer())
    await ctx.start()

    if len(sys.argv) < 2:
        print(__doc__)
        return

    cmd, args = sys.argv[1], sys.argv[2:]
    try:
        if cmd == "login" and args:
            await login(ctx, args[0])
        elif cmd == "logout":
            await logout(ctx)
        elif cmd == "whoami":
            await whoami(ctx)
        elif cmd == "locations":
            await show_locations(ctx)
        elif cmd == "list":
            await show_page(ctx, int(args[0]) if args else 1)
        elif cmd == "book" and len(args) >= 4:
            await book(ctx, args)
        elif cmd == "delete" and args:
            await delete(ctx, int(args[0]))
        else:
            print(__doc__)
    except RoombookError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        ctx.teardown()


if __name__ == "__main__":
    asyncio.run(main())
