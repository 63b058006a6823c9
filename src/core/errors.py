# src/core/errors.py — v1
"""Domain exceptions shared across the ingestion pipeline.

Precondition failures reject a whole submission; the stage errors
(extraction, upload, persistence) are item-local and caught by the
batch run loop.
"""

from __future__ import annotations


class BatchRejectedError(Exception):
    """A submission, run, retry or clear was refused before any item was touched."""


class InvalidTransitionError(ValueError):
    """A ledger update would move an item backwards or skip a state."""

    def __init__(self, index: int, current: str, requested: str) -> None:
        self.index = index
        self.current = current
        self.requested = requested
        super().__init__(
            f"Item {index}: illegal status transition {current!r} -> {requested!r}"
        )


class ExtractionError(Exception):
    """The extraction collaborator failed or returned an unusable payload."""


class UploadError(Exception):
    """The image store could not persist an image."""


class PersistenceError(Exception):
    """The record store could not write or read a receipt record."""
