# src/core/models.py — v1
"""Core domain models for the scan-ingestion pipeline.

Progress types (ScanItem, BatchSession), the in-memory file handle
(ScanFile), and one explicit record type per pipeline stage:

    ExtractedFields  -> raw output of the extraction collaborator
    CandidateRecord  -> extracted fields + image URL + batch title + timestamp
    ClassifiedRecord -> candidate + resolved review status
    PersistedRecord  -> classified record as returned by a record store

Persisted and wire shapes use camelCase aliases (supplier, totalAmount,
batchTitle, lastActivity, ...). Attribute access is snake_case.
"""

from __future__ import annotations

import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ScanStatus = Literal["pending", "processing", "done", "needs_review", "failed"]
ReviewStatus = Literal["processed", "needs_review"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"done", "needs_review", "failed"})

# Extension -> MIME type accepted for scanning
SUPPORTED_IMAGE_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === PROGRESS ===


class ScanItem(BaseModel):
    """Progress record for one image of a batch. Identity is its position."""

    name: str
    status: ScanStatus = "pending"
    message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class BatchSession(_CamelModel):
    """Durable snapshot of the current batch, keyed per owner."""

    items: list[ScanItem] = Field(default_factory=list)
    batch_title: str = ""
    error: str = ""
    session_id: str = ""
    last_activity: int = 0

    @classmethod
    def empty(cls) -> BatchSession:
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when there is nothing worth persisting."""
        return not self.items and not self.error and not self.batch_title

    @property
    def has_active_session(self) -> bool:
        """True while any item still waits for or undergoes processing."""
        return any(i.status in ("pending", "processing") for i in self.items)

    @property
    def is_complete(self) -> bool:
        return bool(self.items) and all(i.is_terminal for i in self.items)


class ScanFile(BaseModel):
    """In-memory image handle: the only place image bytes live."""

    name: str
    data: bytes
    mime_type: str

    @classmethod
    def from_path(cls, path: Path | str) -> ScanFile:
        """Load an image file, inferring its MIME type from the extension.

        Raises:
            ValueError: If the extension is not a supported image type.
            OSError: If the file cannot be read.
        """
        p = Path(path)
        mime_type = SUPPORTED_IMAGE_TYPES.get(p.suffix.lower())
        if mime_type is None:
            guessed, _ = mimetypes.guess_type(p.name)
            if not guessed or not guessed.startswith("image/"):
                raise ValueError(f"Unsupported image type: {p.name}")
            mime_type = guessed
        return cls(name=p.name, data=p.read_bytes(), mime_type=mime_type)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# === RECORD STAGES ===


class LineItem(_CamelModel):
    """Single purchased line on a receipt."""

    name: str | None = None
    quantity: int | float | None = None
    price: str | None = None
    tax: str | None = None
    is_zero_rated: bool = False


class ExtractedFields(_CamelModel):
    """Structured fields returned by the extraction collaborator."""

    supplier: str | None = None
    total_amount: str | None = None
    tax_amount: str | None = None
    receipt_date: str | None = None
    category: str | None = None
    invoice_number: str | None = None
    kra_pin: str | None = None
    cu_invoice: str | None = None
    items: list[LineItem] = Field(default_factory=list)


class CandidateRecord(ExtractedFields):
    """Extracted fields merged with upload and batch context, ready to classify."""

    image_url: str
    batch_title: str
    timestamp: str


class ClassifiedRecord(CandidateRecord):
    """Candidate with its resolved review status."""

    status: ReviewStatus


class PersistedRecord(ClassifiedRecord):
    """Record as stored by a record store."""

    id: str
    stored_at: datetime


def build_candidate(
    fields: ExtractedFields,
    image_url: str,
    batch_title: str,
    timestamp: datetime | None = None,
) -> CandidateRecord:
    """Merge extracted fields with the upload URL and batch context.

    Raises:
        ValueError: If the image URL or batch title is empty.
    """
    if not image_url:
        raise ValueError("image_url must not be empty")
    if not batch_title.strip():
        raise ValueError("batch_title must not be empty")
    ts = timestamp or datetime.now(timezone.utc)
    return CandidateRecord(
        **fields.model_dump(),
        image_url=image_url,
        batch_title=batch_title.strip(),
        timestamp=ts.isoformat(),
    )


def with_status(candidate: CandidateRecord, status: ReviewStatus) -> ClassifiedRecord:
    """Attach a review status to a candidate."""
    return ClassifiedRecord(**candidate.model_dump(), status=status)


def to_persisted(
    record: ClassifiedRecord, record_id: str, stored_at: datetime,
) -> PersistedRecord:
    """Attach store-assigned identity and timestamp."""
    if not record_id:
        raise ValueError("record_id must not be empty")
    return PersistedRecord(**record.model_dump(), id=record_id, stored_at=stored_at)


def to_document(record: BaseModel) -> dict[str, Any]:
    """Serialize a record to its camelCase, JSON-compatible document form."""
    return record.model_dump(by_alias=True, mode="json")
