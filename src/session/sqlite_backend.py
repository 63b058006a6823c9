# src/session/sqlite_backend.py — v1
"""SQLite session backend (SESSION_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency. One row per session key,
replaced atomically with INSERT OR REPLACE.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from receiptscan.session.base_session_backend import BaseSessionBackend

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sessions (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteSessionBackend(BaseSessionBackend):
    """SQLite-backed session storage."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def load(self, key: str) -> str | None:
        cursor = self._conn.execute(
            "SELECT payload FROM sessions WHERE key = ?", (key,)
        )
        row = cursor.fetchone()
        return None if row is None else row[0]

    async def save(self, key: str, payload: str) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO sessions (key, payload, updated_at)
               VALUES (?, ?, CURRENT_TIMESTAMP)""",
            (key, payload),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM sessions WHERE key = ?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
