"""
CredentialStore port: durable storage for the token-mode session.

Holds at most one record: {identity_label, token}. Cookie-mode
deployments never write to it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredCredential:
    identity_label: str
    token: str


class CredentialStore(ABC):
    """
    Port: persist the bearer token across process restarts.

    The SessionStore is the only writer; nothing else may save or clear
    it, so durable and in-memory state cannot diverge.
    """

    @abstractmethod
    def load(self) -> StoredCredential | None:
        """Return the stored credential, or None if nothing is stored."""
        ...

    @abstractmethod
    def save(self, credential: StoredCredential) -> None:
        """Replace the stored credential."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored credential. Clearing an empty store is a no-op."""
        ...
