# src/extraction/parsing.py — v1
"""Parse and sanitize the extraction model's JSON response.

The model is asked for JSON but may still wrap it in a markdown code
fence, format prices with currency symbols and thousands separators, or
leave fields empty. Missing scalars become "N/A" so the classifier can
flag them; the response is rejected outright only when it lacks a
supplier or total.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from pydantic import ValidationError

from receiptscan.core.errors import ExtractionError
from receiptscan.core.models import ExtractedFields
from receiptscan.core.validation import MISSING_MARKER
from receiptscan.extraction.categories import normalize_category

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")
_THOUSANDS_RE = re.compile(r"\d{1,3}(?:,\d{3})+")


def sanitize_price(value: Any) -> str:
    """Normalize a price to a 2-decimal string ('' when unparseable).

    Numbers are formatted directly. Strings lose currency symbols and
    letters, and ':' is read as a decimal point. Commas are thousands
    separators when a '.' is present or they group digits by three
    ("1,500"); otherwise a comma is a decimal comma ("12,50").
    """
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return ""
        return f"{value:.2f}"
    if not isinstance(value, str):
        return ""

    cleaned = re.sub(r"[^\d.,]", "", value.replace(":", "."))
    if "," in cleaned and "." in cleaned:
        cleaned = cleaned.replace(",", "")
    elif _THOUSANDS_RE.fullmatch(cleaned):
        cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")

    match = _NUMBER_RE.match(cleaned)
    if not match:
        return ""
    return f"{float(match.group(0)):.2f}"


def parse_quantity(value: Any) -> int | float:
    """Coerce a quantity; zero, negative or unparseable values become 1."""
    if isinstance(value, bool):
        return 1
    try:
        qty = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(qty) or qty <= 0:
        return 1
    return int(qty) if qty.is_integer() else qty


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_extraction_response(text: str) -> ExtractedFields:
    """Turn raw model output into validated ExtractedFields.

    Raises:
        ExtractionError: If the text is not a JSON object, lacks supplier
            or totalAmount, or fails model validation.
    """
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid response from model: {e}") from e

    if not isinstance(parsed, dict):
        raise ExtractionError("Invalid response from model: expected a JSON object")

    if not parsed.get("supplier") or not parsed.get("totalAmount"):
        raise ExtractionError("Missing required fields in response")

    raw_items = parsed.get("items")
    items = [_parse_item(i) for i in raw_items if isinstance(i, dict)] if isinstance(raw_items, list) else []

    data = {
        "supplier": str(parsed["supplier"]),
        "totalAmount": sanitize_price(parsed.get("totalAmount")),
        "taxAmount": sanitize_price(parsed.get("taxAmount")),
        "receiptDate": _text_or_marker(parsed.get("receiptDate")),
        "cuInvoice": _text_or_marker(parsed.get("cuInvoice")),
        "kraPin": _text_or_marker(parsed.get("kraPin")),
        "invoiceNumber": _text_or_marker(parsed.get("invoiceNumber")),
        "category": normalize_category(parsed.get("category")),
        "items": items,
    }

    try:
        return ExtractedFields.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"Extracted fields failed validation: {e}") from e


def _parse_item(raw: dict[str, Any]) -> dict[str, Any]:
    tax = raw.get("tax")
    return {
        "name": _text_or_marker(raw.get("name")),
        "quantity": parse_quantity(raw.get("quantity")),
        "price": sanitize_price(raw.get("price")),
        "tax": None if tax is None else sanitize_price(tax),
        "isZeroRated": raw.get("isZeroRated") is True,
    }


def _text_or_marker(value: Any) -> str:
    if value is None:
        return MISSING_MARKER
    text = str(value).strip()
    return text or MISSING_MARKER
