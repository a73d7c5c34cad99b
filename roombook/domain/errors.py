"""
Error taxonomy shared by every controller.

Client-side ValidationError is raised before any network call.
The other kinds originate from the backend and are produced by the
response classifier, never constructed from raw HTTP details elsewhere.
"""


class RoombookError(Exception):
    """Base class: carries the user-facing message."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(RoombookError):
    """A draft or form failed local validation; nothing was sent."""


class ServerValidationError(RoombookError):
    """422/400 from the backend, field-level."""


class SchedulingConflict(RoombookError):
    """409: the room is already reserved for an overlapping interval."""


class AuthenticationError(RoombookError):
    """401/403, failed login, or a call attempted without a session."""


class CatalogUnavailable(RoombookError):
    """Locations or rooms could not be loaded."""


class TransientError(RoombookError):
    """Network failure, timeout or 5xx. Safe to retry."""
