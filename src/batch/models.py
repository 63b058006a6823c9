# src/batch/models.py — v2
"""Batch processing models: ItemEvent, BatchResult."""

from __future__ import annotations

from pydantic import BaseModel, Field

from receiptscan.core.models import ScanItem


class ItemEvent(BaseModel):
    """Emitted to listeners after every ledger mutation."""

    index: int
    item: ScanItem
    total: int


class BatchResult(BaseModel):
    """Summary of one run() over the current ledger."""

    batch_title: str
    total: int
    done: int
    needs_review: int
    failed: int
    items: list[ScanItem] = Field(default_factory=list)
    record_ids: dict[int, str] = Field(default_factory=dict)
    duration_seconds: float

    @property
    def succeeded(self) -> bool:
        return self.failed == 0
