# src/logging/context.py — v2
"""Contextual logging support — attach owner, session, item and stage to log records.

The batch controller sets the owner/session context once per batch and
the item context once per processed image.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_owner_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "owner_id", default=None
)
_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_item_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "item_index", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    owner_id: str | None = None
    session_id: str | None = None
    item_index: int | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        owner_id=_owner_id.get(),
        session_id=_session_id.get(),
        item_index=_item_index.get(),
        stage=_stage.get(),
    )


def set_session_context(owner_id: str, session_id: str) -> None:
    """Set batch-level context (called once per run)."""
    _owner_id.set(owner_id)
    _session_id.set(session_id)


def set_item_context(item_index: int | None, stage: str | None = None) -> None:
    """Set item-level context (called per item and per pipeline stage)."""
    _item_index.set(item_index)
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _owner_id.set(None)
    _session_id.set(None)
    _item_index.set(None)
    _stage.set(None)
