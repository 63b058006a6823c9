# src/session/json_backend.py — v1
"""JSON file session backend (default SESSION_BACKEND=json).

One file per session key under SESSION_ROOT. Writes go to a temporary
sibling first and are moved into place with os.replace, so a reader
never observes a half-written snapshot.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from receiptscan.session.base_session_backend import BaseSessionBackend

logger = logging.getLogger(__name__)


class JsonSessionBackend(BaseSessionBackend):
    """File-based session backend."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def load(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    async def save(self, key: str, payload: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("Session written: %s (%d bytes)", path, len(payload))

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def _path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_").replace(":", "_")
        return self._root / f"{safe_key}.json"
