"""
Refresh-trigger counter: the only signal passed between components.

Writers bump() after a confirmed mutation. Readers keep a RefreshCursor
and refetch only when the counter moved past the value they last saw,
so several quick mutations collapse into one refetch and re-reading the
same value never refetches twice.
"""


class RefreshCounter:

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> int:
        self._value += 1
        return self._value


class RefreshCursor:
    """A reader's last observed counter value."""

    def __init__(self, start: int = 0) -> None:
        self.last_seen = start

    def advance(self, value: int) -> bool:
        """True when value is newer than anything seen so far."""
        if value <= self.last_seen:
            return False
        self.last_seen = value
        return True
