# src/records/record_factory.py — v1
"""Factory: instantiate the record store from configuration."""

from __future__ import annotations

from receiptscan.config.settings import Settings
from receiptscan.records.base_record_store import BaseRecordStore


def create_record_store(settings: Settings) -> BaseRecordStore:
    """Create the record store selected by RECORD_STORE.

    Raises:
        ValueError: If the store type is not supported.
    """
    if settings.record_store == "json":
        from receiptscan.records.json_record_store import JsonRecordStore
        return JsonRecordStore(root=settings.record_root)

    if settings.record_store == "sqlite":
        from receiptscan.records.sqlite_record_store import SqliteRecordStore
        return SqliteRecordStore(db_path=settings.record_root / "records.db")

    raise ValueError(f"Unsupported record store: {settings.record_store!r}")
