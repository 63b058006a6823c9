# src/records/json_record_store.py — v1
"""JSON file-based record store (default RECORD_STORE=json).

One camelCase JSON document per record under ``<root>/<owner>/<id>.json``.
"""

from __future__ import annotations

import json
import logging
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
from receiptscan.records.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


class JsonRecordStore(BaseRecordStore):
    """File-based record store using JSON files."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    async def save(self, owner_id: str, record: ClassifiedRecord) -> str:
        record_id = uuid.uuid4().hex
        persisted = to_persisted(record, record_id, datetime.now(timezone.utc))
        path = self._record_path(owner_id, record_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(to_document(persisted), indent=2), encoding="utf-8",
            )
        except OSError as e:
            raise PersistenceError(f"Could not write record {path}: {e}") from e
        logger.debug("Saved record %s for owner %s", record_id, owner_id)
        return record_id

    async def get(self, owner_id: str, record_id: str) -> PersistedRecord | None:
        path = self._record_path(owner_id, record_id)
        if not path.exists():
            return None
        return self._read(path)

    async def list_records(
        self, owner_id: str, status: ReviewStatus | None = None,
    ) -> list[PersistedRecord]:
        owner_dir = self._owner_dir(owner_id)
        if not owner_dir.is_dir():
            return []

        records: list[PersistedRecord] = []
        for path in owner_dir.glob("*.json"):
            try:
                record = self._read(path)
            except PersistenceError as e:
                logger.warning("Skipping unreadable record: %s", e)
                continue
            if status is None or record.status == status:
                records.append(record)
        records.sort(key=lambda r: r.stored_at)
        return records

    def _read(self, path: Path) -> PersistedRecord:
        try:
            return PersistedRecord.model_validate(
                json.loads(path.read_text(encoding="utf-8"))
            )
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Could not read record {path}: {e}") from e

    def _owner_dir(self, owner_id: str) -> Path:
        if not owner_id:
            raise PersistenceError("owner_id must not be empty")
        safe_owner = owner_id.replace("/", "_").replace("\\", "_")
        return self._root / safe_owner

    def _record_path(self, owner_id: str, record_id: str) -> Path:
        safe_id = record_id.replace("/", "_").replace("\\", "_")
        return self._owner_dir(owner_id) / f"{safe_id}.json"
