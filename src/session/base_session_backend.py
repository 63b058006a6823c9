# src/session/base_session_backend.py — v1
"""Abstract key/value backend for persisted batch sessions.

Backends store opaque JSON payloads. Expiry, repair and fail-open
semantics live in SessionStore, not here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseSessionBackend(ABC):
    """Unified interface for session storage backends."""

    @abstractmethod
    async def load(self, key: str) -> str | None:
        """Return the stored payload, or None if absent."""

    @abstractmethod
    async def save(self, key: str, payload: str) -> None:
        """Store the payload, replacing any previous value in one write."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the payload (no-op if absent)."""

    def close(self) -> None:
        """Release connections or handles held by the backend."""
