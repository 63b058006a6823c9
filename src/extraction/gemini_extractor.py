# src/extraction/gemini_extractor.py — v1
"""Receipt extraction via a vision LLM (Gemini by default).

Sends the image with a JSON response schema and an instruction prompt,
then hands the text to parse_extraction_response(). Transient provider
errors are retried with backoff; everything else surfaces as
ExtractionError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from receiptscan.core.errors import ExtractionError
from receiptscan.core.models import ExtractedFields
from receiptscan.extraction.base_extractor import BaseReceiptExtractor
from receiptscan.extraction.categories import RECEIPT_CATEGORIES
from receiptscan.extraction.parsing import parse_extraction_response
from receiptscan.llm.models import ImageInput, Message
from receiptscan.llm.retry import RetryConfig, with_retry

if TYPE_CHECKING:
    from receiptscan.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "supplier": {"type": "STRING", "description": "Name of the supplier/store"},
        "totalAmount": {
            "type": "STRING",
            "description": "Total amount including currency symbol if present",
        },
        "taxAmount": {"type": "STRING", "description": "Tax amount if available"},
        "receiptDate": {
            "type": "STRING",
            "description": "Date in MM/DD/YYYY or DD/MM/YYYY format",
        },
        "cuInvoice": {"type": "STRING", "description": "CU invoice number if available"},
        "kraPin": {"type": "STRING", "description": "KRA PIN if available"},
        "invoiceNumber": {
            "type": "STRING",
            "description": "Generic invoice number if available",
        },
        "category": {
            "type": "STRING",
            "description": "Exactly one of the predefined categories",
        },
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING", "description": "Name of the item"},
                    "quantity": {"type": "NUMBER", "description": "Quantity purchased"},
                    "price": {
                        "type": "STRING",
                        "description": "Price per unit including currency if present",
                    },
                    "tax": {"type": "STRING", "description": "Tax charged on this line"},
                    "isZeroRated": {
                        "type": "BOOLEAN",
                        "description": "True if the line is zero-rated (tax exempt)",
                    },
                },
            },
        },
    },
    "propertyOrdering": [
        "supplier", "totalAmount", "taxAmount", "receiptDate", "category", "items",
    ],
}

_SYSTEM_PROMPT = "You extract structured data from receipt photos. Return only valid JSON."


def build_extraction_prompt() -> str:
    """Instruction prompt sent alongside the receipt image."""
    categories = ", ".join(f'"{c}"' for c in RECEIPT_CATEGORIES)
    return (
        "Extract receipt details from this image and categorize it. "
        "Return only JSON matching the provided schema.\n\n"
        "INSTRUCTIONS:\n"
        "- For amounts, include currency symbols if present\n"
        "- For missing fields, use 'N/A'\n"
        "- Ensure dates are in MM/DD/YYYY format if possible\n"
        "- For each line item give the tax charged; set isZeroRated to true "
        "when the line is zero-rated\n"
        "- For the category field, analyze the supplier name and items, then "
        f"choose EXACTLY ONE category from this list: {categories}. "
        "Return the EXACT category name."
    )


class GeminiReceiptExtractor(BaseReceiptExtractor):
    """Extract receipt fields with a vision-capable LLM client.

    Args:
        llm: Vision-capable client (GoogleAdapter in production).
        temperature: Sampling temperature; low for consistent fields.
        max_tokens: Output token cap.
        retry: Retry transient provider errors with backoff.
        retry_configs: Override the default per-error-type retry policy.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        temperature: float = 0.1,
        max_tokens: int = 4096,
        retry: bool = True,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._retry = retry
        self._retry_configs = retry_configs

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields:
        if not image_bytes:
            raise ExtractionError("Empty image")
        if not self._llm.supports_vision:
            raise ExtractionError(
                f"LLM provider {self._llm.provider_name!r} does not support vision"
            )

        call_kwargs: dict[str, Any] = {
            "messages": [Message(role="user", content=build_extraction_prompt())],
            "images": [ImageInput(data=image_bytes, media_type=mime_type)],
            "system": _SYSTEM_PROMPT,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "response_schema": RESPONSE_SCHEMA,
        }

        try:
            if self._retry:
                response = await with_retry(
                    self._llm.complete_with_vision,
                    operation="receipt_extraction",
                    retry_configs=self._retry_configs,
                    **call_kwargs,
                )
            else:
                response = await self._llm.complete_with_vision(**call_kwargs)
        except Exception as e:
            raise ExtractionError(f"Receipt extraction failed: {e}") from e

        if not response.content:
            raise ExtractionError("No text content in model response")

        logger.debug(
            "Extraction response: %d chars, %d/%d tokens, %dms",
            len(response.content), response.input_tokens,
            response.output_tokens, response.latency_ms,
        )
        return parse_extraction_response(response.content)
