# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample receipt records, in-memory image files, mocked
collaborators (extractor, image store, record store), an in-memory
session backend and a controllable clock. No external services.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from receiptscan.core.models import ExtractedFields, LineItem, ScanFile
from receiptscan.llm.models import LLMResponse
from receiptscan.session.memory_backend import MemorySessionBackend
from receiptscan.session.store import SessionStore

NOW_MS = 1_700_000_000_000


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_record() -> dict[str, Any]:
    """Complete camelCase receipt document (classifies as processed)."""
    return {
        "supplier": "Acme",
        "receiptDate": "01/02/2024",
        "totalAmount": "10.00",
        "taxAmount": "1.60",
        "category": "Groceries & Provisions",
        "invoiceNumber": "INV1",
        "kraPin": "P0001",
        "cuInvoice": "CU1",
        "items": [{"name": "Milk", "quantity": 1, "price": "10.00", "tax": "1.60"}],
    }


@pytest.fixture
def sample_fields() -> ExtractedFields:
    """Extracted fields for a complete receipt."""
    return ExtractedFields(
        supplier="Acme",
        receipt_date="01/02/2024",
        total_amount="10.00",
        tax_amount="1.60",
        category="Groceries & Provisions",
        invoice_number="INV1",
        kra_pin="P0001",
        cu_invoice="CU1",
        items=[LineItem(name="Milk", quantity=1, price="10.00", tax="1.60")],
    )


@pytest.fixture
def incomplete_fields(sample_fields: ExtractedFields) -> ExtractedFields:
    """Extracted fields missing the KRA PIN (classifies as needs_review)."""
    return sample_fields.model_copy(update={"kra_pin": "N/A"})


@pytest.fixture
def scan_files() -> list[ScanFile]:
    """Three small in-memory receipt images."""
    return [
        ScanFile(name=f"r{i}.jpg", data=f"jpeg-bytes-{i}".encode(), mime_type="image/jpeg")
        for i in range(1, 4)
    ]


@pytest.fixture
def sample_extraction_json() -> str:
    """Raw model output for a complete receipt."""
    return (
        '{"supplier": "Acme", "totalAmount": "KES 1,160.00", "taxAmount": "160",'
        ' "receiptDate": "01/02/2024", "category": "groceries & provisions",'
        ' "invoiceNumber": "INV1", "kraPin": "P0001", "cuInvoice": "CU1",'
        ' "items": [{"name": "Milk", "quantity": 2, "price": "500.00", "tax": "80.00"},'
        ' {"name": "Bread", "quantity": 1, "price": "160", "isZeroRated": true}]}'
    )


# === FIXTURES: Collaborators ===


@pytest.fixture
def mock_extractor(sample_fields: ExtractedFields) -> AsyncMock:
    """Extractor whose extract() returns complete fields."""
    extractor = AsyncMock()
    extractor.extract = AsyncMock(return_value=sample_fields)
    return extractor


@pytest.fixture
def mock_image_store() -> AsyncMock:
    """Image store returning a deterministic URL per file."""
    store = AsyncMock()

    async def upload(owner_id, file):
        return f"https://images.test/receipts/{owner_id}/{file.name}"

    store.upload = AsyncMock(side_effect=upload)
    return store


@pytest.fixture
def mock_record_store() -> MagicMock:
    """Record store assigning sequential ids and remembering saved records."""
    store = MagicMock()
    store.saved = []

    async def save(owner_id, record):
        store.saved.append((owner_id, record))
        return f"rec-{len(store.saved)}"

    store.save = AsyncMock(side_effect=save)
    return store


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Vision-capable LLM client mock."""
    llm = AsyncMock()
    llm.supports_vision = True
    llm.provider_name = "mock"
    llm.complete_with_vision = AsyncMock(
        return_value=LLMResponse(content="{}", model="mock-model", provider="mock")
    )
    return llm


# === FIXTURES: Session ===


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = NOW_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend() -> MemorySessionBackend:
    return MemorySessionBackend()


@pytest.fixture
def session_store(memory_backend: MemorySessionBackend, clock: FakeClock) -> SessionStore:
    return SessionStore(memory_backend, owner_id="alice", clock=clock)
