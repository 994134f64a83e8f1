from __future__ import annotations

import sqlite3
from typing import Protocol

from ..db import migrate
from ..utils import now_utc_iso


class Persistence(Protocol):
    def load(self, key: str) -> str | None: ...

    def save(self, key: str, blob: str) -> None: ...


class MemoryPersistence:
    def __init__(self, initial: dict[str, str] | None = None):
        self.blobs: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self.blobs.get(key)

    def save(self, key: str, blob: str) -> None:
        self.blobs[key] = blob


class SqlitePersistence:
    """Key/value blobs in the kv_store table; last write wins."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        migrate(conn)

    def load(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM kv_store WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def save(self, key: str, blob: str) -> None:
        self.conn.execute(
            """
            INSERT INTO kv_store(key, value, updated_at_utc) VALUES(?,?,?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at_utc=excluded.updated_at_utc
            """,
            (key, blob, now_utc_iso()),
        )
