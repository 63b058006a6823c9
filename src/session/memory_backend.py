# src/session/memory_backend.py — v1
"""In-process session backend (SESSION_BACKEND=memory).

State does not survive the process; useful for tests and one-shot CLI runs.
"""

from __future__ import annotations

from receiptscan.session.base_session_backend import BaseSessionBackend


class MemorySessionBackend(BaseSessionBackend):
    """Dict-backed session backend."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def load(self, key: str) -> str | None:
        return self._data.get(key)

    async def save(self, key: str, payload: str) -> None:
        self._data[key] = payload

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
