# src/storage/local_image_store.py — v1
"""Local filesystem image store (default IMAGE_STORE=local).

Images land in ``<root>/receipts/<owner>/<filename>``; the returned URL
is a file:// URI.
"""

from __future__ import annotations

import logging
from pathlib import Path

from receiptscan.core.errors import UploadError
from receiptscan.core.models import ScanFile
from receiptscan.storage.base_image_store import BaseImageStore

logger = logging.getLogger(__name__)


class LocalImageStore(BaseImageStore):
    """Write receipt images to the local filesystem."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser().resolve()

    async def upload(self, owner_id: str, file: ScanFile) -> str:
        path = self._root / "receipts" / self.object_key(owner_id, file.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(file.data)
        except OSError as e:
            raise UploadError(f"Could not write {path}: {e}") from e
        logger.debug("Stored image %s (%d bytes)", path, file.size_bytes)
        return path.as_uri()
