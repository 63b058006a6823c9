# src/records/sqlite_record_store.py — v1
"""SQLite-based record store (RECORD_STORE=sqlite).

Uses stdlib sqlite3. Status and receipt key are indexed columns so the
review queue and duplicate lookups do not scan every document.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from receiptscan.core.errors import PersistenceError
from receiptscan.core.models import (
    ClassifiedRecord,
    PersistedRecord,
    ReviewStatus,
    to_document,
    to_persisted,
)
from receiptscan.records.base_record_store import BaseRecordStore, receipt_key

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    status TEXT NOT NULL,
    receipt_key TEXT NOT NULL,
    data TEXT NOT NULL,
    stored_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_owner_status ON records(owner_id, status);
CREATE INDEX IF NOT EXISTS idx_owner_key ON records(owner_id, receipt_key);
"""


class SqliteRecordStore(BaseRecordStore):
    """SQLite-backed record store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def save(self, owner_id: str, record: ClassifiedRecord) -> str:
        if not owner_id:
            raise PersistenceError("owner_id must not be empty")
        record_id = uuid.uuid4().hex
        persisted = to_persisted(record, record_id, datetime.now(timezone.utc))
        try:
            self._conn.execute(
                """INSERT INTO records
                   (id, owner_id, status, receipt_key, data, stored_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    record_id,
                    owner_id,
                    persisted.status,
                    receipt_key(persisted),
                    json.dumps(to_document(persisted)),
                    persisted.stored_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not insert record: {e}") from e
        return record_id

    async def get(self, owner_id: str, record_id: str) -> PersistedRecord | None:
        rows = self._query(
            "SELECT data FROM records WHERE owner_id = ? AND id = ?",
            (owner_id, record_id),
        )
        return rows[0] if rows else None

    async def list_records(
        self, owner_id: str, status: ReviewStatus | None = None,
    ) -> list[PersistedRecord]:
        if status is None:
            return self._query(
                "SELECT data FROM records WHERE owner_id = ? ORDER BY stored_at",
                (owner_id,),
            )
        return self._query(
            "SELECT data FROM records WHERE owner_id = ? AND status = ? ORDER BY stored_at",
            (owner_id, status),
        )

    async def find_by_key(self, owner_id: str, key: str) -> list[PersistedRecord]:
        return self._query(
            "SELECT data FROM records WHERE owner_id = ? AND receipt_key = ? ORDER BY stored_at",
            (owner_id, key),
        )

    def close(self) -> None:
        self._conn.close()

    def _query(self, sql: str, params: tuple) -> list[PersistedRecord]:
        try:
            rows = self._conn.execute(sql, params).fetchall()
            return [PersistedRecord.model_validate(json.loads(r[0])) for r in rows]
        except (sqlite3.Error, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Record query failed: {e}") from e
