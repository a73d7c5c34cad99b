"""
Contract tests for CredentialStore implementations.

Runs against both InMemoryCredentialStore and SqliteCredentialStore.
"""

from roombook.adapters.memory_credential_store import InMemoryCredentialStore
from roombook.adapters.sqlite_credential_store import SqliteCredentialStore
from roombook.domain.credential_store import StoredCredential
from tests.contracts.credential_store_contract import CredentialStoreContract


class TestInMemoryCredentialStore(CredentialStoreContract):

    def create_store(self):
        return InMemoryCredentialStore()

    def test_isolation_between_instances(self):
        """Two in-memory instances must not share state."""
        s1 = InMemoryCredentialStore()
        s2 = InMemoryCredentialStore()
        s1.save(StoredCredential("alice", "tok"))
        assert s2.load() is None


class TestSqliteCredentialStore(CredentialStoreContract):

    def create_store(self):
        return SqliteCredentialStore(":memory:")

    def test_survives_reopen(self, tmp_path):
        """The token must outlive the process that saved it."""
        path = str(tmp_path / "roombook.db")
        SqliteCredentialStore(path).save(StoredCredential("alice", "tok-1"))

        reopened = SqliteCredentialStore(path)
        result = reopened.load()
        assert result is not None
        assert result.token == "tok-1"
