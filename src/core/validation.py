# src/core/validation.py — v1
"""Completeness classifier for extracted receipt records.

A record is "processed" when every required scalar is present and every
line item carries name, quantity, price and tax. Zero-rated line items
are exempt from the tax rule. Anything else is "needs_review".

All functions here are pure: no I/O, no clock, no mutation of input.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from receiptscan.core.models import CandidateRecord, ClassifiedRecord, ReviewStatus, with_status

REQUIRED_FIELDS: tuple[str, ...] = (
    "supplier",
    "receiptDate",
    "totalAmount",
    "taxAmount",
    "category",
    "invoiceNumber",
    "kraPin",
    "cuInvoice",
)

REQUIRED_ITEM_FIELDS: tuple[str, ...] = ("name", "quantity", "price")

MISSING_MARKER = "N/A"


def is_missing(value: Any) -> bool:
    """True for None, empty or whitespace-only strings, and the "N/A" marker."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == "" or value == MISSING_MARKER
    return False


def missing_fields(record: Mapping[str, Any] | BaseModel) -> list[str]:
    """Return the paths of every required field that is missing.

    Args:
        record: camelCase mapping or a record model (dumped by alias).

    Returns:
        Field paths such as "kraPin", "items" or "items[1].tax", in
        check order. Empty when the record is complete.
    """
    data = _as_mapping(record)
    missing = [key for key in REQUIRED_FIELDS if is_missing(data.get(key))]

    items = data.get("items")
    if not isinstance(items, list) or not items:
        missing.append("items")
        return missing

    for idx, item in enumerate(items):
        if not isinstance(item, Mapping):
            missing.append(f"items[{idx}]")
            continue
        for key in REQUIRED_ITEM_FIELDS:
            if is_missing(item.get(key)):
                missing.append(f"items[{idx}].{key}")
        if not item.get("isZeroRated") and is_missing(item.get("tax")):
            missing.append(f"items[{idx}].tax")

    return missing


def classify(record: Mapping[str, Any] | BaseModel) -> ReviewStatus:
    """Decide whether a record can skip manual review."""
    return "needs_review" if missing_fields(record) else "processed"


def classify_candidate(candidate: CandidateRecord) -> ClassifiedRecord:
    """Classify a candidate and return it tagged with its status."""
    return with_status(candidate, classify(candidate))


def _as_mapping(record: Mapping[str, Any] | BaseModel) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    return record
