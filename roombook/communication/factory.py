import os

from .ports import Confirmer


def create_confirmer(channel: str | None = None) -> Confirmer:
    """
    Factory: create the right adapter based on config.

    The channel can be passed explicitly or read from the
    ROOMBOOK_CONFIRM_CHANNEL env var. Defaults to "console".
    "yes" confirms everything without asking (scripts, CI).
    """
    channel = channel or os.environ.get("ROOMBOOK_CONFIRM_CHANNEL", "console")

    if channel == "console":
        from .console_confirmer import ConsoleConfirmer

        return ConsoleConfirmer()

    if channel == "yes":
        from .scripted_confirmer import ScriptedConfirmer

        return ScriptedConfirmer(default=True)

    raise ValueError(f"Unknown confirm channel: {channel!r}")
