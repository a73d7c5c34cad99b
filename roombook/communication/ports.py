from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ConfirmationRequest:
    """What we ask the user before an irreversible action."""

    title: str
    description: str
    confirm_label: str = "Delete"


class Confirmer(ABC):
    """
    Port: how we ask the user to confirm a destructive action.

    The list controller depends ONLY on this interface.
    It doesn't know whether the question is a terminal prompt, a modal
    dialog or a scripted answer in a test.
    """

    @abstractmethod
    async def confirm(self, request: ConfirmationRequest) -> bool:
        """Return True only if the user explicitly agreed."""
        ...
