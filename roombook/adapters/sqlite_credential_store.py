"""
SQLite adapter for CredentialStore.

Use ":memory:" for tests, a file path for production.
"""

import sqlite3
from datetime import datetime, timezone

from roombook.domain.credential_store import CredentialStore, StoredCredential

STORAGE_KEY = "roombook_auth"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS credentials (
    storage_key     TEXT PRIMARY KEY,
    identity_label  TEXT NOT NULL,
    token           TEXT NOT NULL,
    saved_at        TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteCredentialStore(CredentialStore):

    def __init__(self, db_path: str = "roombook.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)

    def load(self) -> StoredCredential | None:
        row = self._conn.execute(
            "SELECT identity_label, token FROM credentials WHERE storage_key = ?",
            (STORAGE_KEY,),
        ).fetchone()
        if not row:
            return None
        return StoredCredential(identity_label=row["identity_label"], token=row["token"])

    def save(self, credential: StoredCredential) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO credentials"
            " (storage_key, identity_label, token, saved_at)"
            " VALUES (?, ?, ?, ?)",
            (STORAGE_KEY, credential.identity_label, credential.token, _now()),
        )
        self._conn.commit()

    def clear(self) -> None:
        self._conn.execute("DELETE FROM credentials WHERE storage_key = ?", (STORAGE_KEY,))
        self._conn.commit()
