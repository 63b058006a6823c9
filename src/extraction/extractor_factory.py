# src/extraction/extractor_factory.py — v3
"""Factory: build the configured receipt extractor."""

from __future__ import annotations

from typing import TYPE_CHECKING

from receiptscan.config.settings import Settings
from receiptscan.extraction.base_extractor import BaseReceiptExtractor
from receiptscan.extraction.gemini_extractor import GeminiReceiptExtractor
from receiptscan.llm.client_factory import create_llm_client

if TYPE_CHECKING:
    from receiptscan.llm.base_client import BaseLLMClient


def create_extractor(
    settings: Settings, llm: BaseLLMClient | None = None,
) -> BaseReceiptExtractor:
    """Create the receipt extractor from settings.

    Args:
        settings: Application settings (provider, model, API key).
        llm: Pre-built client; created from settings when None.
    """
    client = llm or create_llm_client(
        settings.extraction_provider, settings.extraction_model, settings=settings,
    )
    return GeminiReceiptExtractor(
        llm=client,
        temperature=settings.extraction_temperature,
        max_tokens=settings.extraction_max_tokens,
        retry=settings.extraction_retry_enabled,
    )
