"""
In-memory CredentialStore for testing. Nothing survives the process.
"""

from roombook.domain.credential_store import CredentialStore, StoredCredential


class InMemoryCredentialStore(CredentialStore):

    def __init__(self, initial: StoredCredential | None = None):
        self._credential = initial

    def load(self) -> StoredCredential | None:
        return self._credential

    def save(self, credential: StoredCredential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None
