# src/extraction/base_extractor.py — v2
"""Abstract receipt extractor interface (the extraction collaborator)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from receiptscan.core.models import ExtractedFields


class BaseReceiptExtractor(ABC):
    """Turns one receipt image into structured fields."""

    @abstractmethod
    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields:
        """Extract receipt fields from raw image bytes.

        Raises:
            ExtractionError: On any failure. Callers treat every failure
                the same way.
        """
