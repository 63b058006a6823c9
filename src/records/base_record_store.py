# src/records/base_record_store.py — v1
"""Abstract record store interface (the persist collaborator).

A record store assigns the record id and a server-side ``storedAt``
timestamp. Every failure surfaces as PersistenceError.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from receiptscan.core.models import ClassifiedRecord, PersistedRecord, ReviewStatus


class BaseRecordStore(ABC):
    """Per-owner storage of classified receipt records."""

    @abstractmethod
    async def save(self, owner_id: str, record: ClassifiedRecord) -> str:
        """Store a record and return its new id."""

    @abstractmethod
    async def get(self, owner_id: str, record_id: str) -> PersistedRecord | None:
        """Retrieve one record, or None if unknown."""

    @abstractmethod
    async def list_records(
        self, owner_id: str, status: ReviewStatus | None = None,
    ) -> list[PersistedRecord]:
        """List an owner's records, oldest first, optionally filtered by status."""

    async def find_by_key(self, owner_id: str, key: str) -> list[PersistedRecord]:
        """Records whose receipt_key equals ``key`` (likely duplicates)."""
        return [r for r in await self.list_records(owner_id) if receipt_key(r) == key]

    def close(self) -> None:
        """Release resources. Override if needed."""


def receipt_key(record: Mapping[str, Any] | BaseModel) -> str:
    """Normalized identity of a receipt: supplier, total, date and item names.

    Two scans of the same paper receipt produce the same key even when the
    item order or letter case differs.
    """
    data = record.model_dump(by_alias=True) if isinstance(record, BaseModel) else record
    supplier = (data.get("supplier") or "N/A").strip().lower()
    total = re.sub(r"[^\d.]", "", data.get("totalAmount") or "N/A")
    date = (data.get("receiptDate") or "N/A").strip()
    names = sorted(
        (item.get("name") or "").strip().lower()
        for item in data.get("items") or []
        if isinstance(item, Mapping)
    )
    return f"{supplier}-{total}-{date}-{'|'.join(names)}"
