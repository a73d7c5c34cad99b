"""
ResponseClassifier: maps a backend outcome to a user-facing result.

Pure functions: no I/O, never raise. Every mutation path (reservation
form, reservation list, catalog admin, account forms) routes failures
through classify() so the same status always yields the same message.
"""

import re
from dataclasses import dataclass
from typing import Any, Literal

from roombook.adapters.ports import GatewayError
from roombook.domain.errors import (
    AuthenticationError,
    RoombookError,
    SchedulingConflict,
    ServerValidationError,
    TransientError,
)

ErrorKind = Literal["server_validation", "conflict", "authentication", "transient"]

GENERIC_TRANSIENT = "Could not reach the reservation service. Please try again."
GENERIC_CONFLICT = "Scheduling conflict: the room is already reserved for this period."
GENERIC_AUTH = "Authentication failed. Check your username and password."
GENERIC_VALIDATION = "The server rejected the submitted data."
CONFLICT_GUIDANCE = "Choose another time slot or room and try again."

# Structured conflict codes; when the backend sends `code`, it wins over keywords
CONFLICT_CODES = {"reservation_conflict", "schedule_conflict", "room_already_booked"}

# English + Portuguese vocabulary used by backends that only send prose
_CONFLICT_KEYWORDS = [
    r"conflit", r"conflict", r"overlap",
    r"reserv", r"booked", r"booking",
    r"hor[aá]rio", r"schedul", r"interval",
]

_EXCEPTIONS: dict[str, type[RoombookError]] = {
    "server_validation": ServerValidationError,
    "conflict": SchedulingConflict,
    "authentication": AuthenticationError,
    "transient": TransientError,
}


@dataclass(frozen=True)
class Classification:
    kind: ErrorKind
    message: str

    def as_exception(self) -> RoombookError:
        return _EXCEPTIONS[self.kind](self.message)


def _detail(body: Any) -> Any:
    if isinstance(body, dict):
        return body.get("detail")
    return None


def _format_validation_entries(entries: list) -> str:
    lines = []
    for entry in entries:
        if not isinstance(entry, dict):
            lines.append(str(entry))
            continue
        loc = entry.get("loc") or entry.get("location") or []
        if isinstance(loc, (list, tuple)):
            path = ".".join(str(part) for part in loc)
        else:
            path = str(loc)
        msg = str(entry.get("msg") or entry.get("message") or "")
        lines.append(f"{path}: {msg}" if path else msg)
    return "\n".join(lines)


def classify(status: int | None, body: Any = None) -> Classification:
    """Classify an HTTP status and decoded body. status=None means no response."""
    detail = _detail(body)

    if status in (400, 422):
        if isinstance(detail, list) and detail:
            return Classification("server_validation", _format_validation_entries(detail))
        if isinstance(detail, str) and detail:
            return Classification("server_validation", detail)
        return Classification("server_validation", GENERIC_VALIDATION)

    if status == 409:
        if isinstance(detail, str) and detail:
            return Classification("conflict", detail)
        return Classification("conflict", GENERIC_CONFLICT)

    if status in (401, 403):
        if isinstance(detail, str) and detail:
            return Classification("authentication", detail)
        return Classification("authentication", GENERIC_AUTH)

    return Classification("transient", GENERIC_TRANSIENT)


def classify_error(exc: BaseException) -> Classification:
    """Classify anything a gateway call may raise."""
    if isinstance(exc, GatewayError):
        return classify(exc.status, exc.body)
    return Classification("transient", GENERIC_TRANSIENT)


def _wants_guidance(message: str, body: Any) -> bool:
    if isinstance(body, dict) and body.get("code"):
        code = body["code"]
        return isinstance(code, str) and code in CONFLICT_CODES
    lower = message.lower()
    return any(re.search(p, lower) for p in _CONFLICT_KEYWORDS)


def conflict_guidance(classification: Classification, body: Any = None) -> str:
    """
    Message to show for a classified failure.

    Scheduling conflicts get CONFLICT_GUIDANCE appended when the backend
    flags them with a known conflict code, or, without a code, when the
    message uses conflict/reservation/schedule vocabulary.
    """
    if classification.kind != "conflict":
        return classification.message
    if _wants_guidance(classification.message, body):
        return f"{classification.message} {CONFLICT_GUIDANCE}"
    return classification.message
