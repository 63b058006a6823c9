# tests/unit/extraction/test_base_extractor.py — v2
"""Tests for extraction/base_extractor.py — BaseReceiptExtractor ABC."""

from __future__ import annotations

import pytest

from receiptscan.core.models import ExtractedFields
from receiptscan.extraction.base_extractor import BaseReceiptExtractor


class TestBaseReceiptExtractor:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseReceiptExtractor()  # type: ignore[abstract]

    @pytest.mark.asyncio
    async def test_subclass(self):
        class Fixed(BaseReceiptExtractor):
            async def extract(self, image_bytes, mime_type):
                return ExtractedFields(supplier="Acme")

        assert (await Fixed().extract(b"x", "image/png")).supplier == "Acme"
