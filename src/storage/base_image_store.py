# src/storage/base_image_store.py — v1
"""Abstract image store interface (the upload collaborator)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from receiptscan.core.models import ScanFile


class BaseImageStore(ABC):
    """Durable storage for receipt images."""

    @abstractmethod
    async def upload(self, owner_id: str, file: ScanFile) -> str:
        """Store the image and return a durable URL.

        Raises:
            UploadError: On any storage failure.
        """

    @staticmethod
    def object_key(owner_id: str, filename: str) -> str:
        """Relative key ``<owner>/<filename>``; path components are stripped."""
        if not owner_id:
            raise ValueError("owner_id must not be empty")
        safe_name = PurePosixPath(filename.replace("\\", "/")).name
        if not safe_name:
            raise ValueError(f"Invalid filename: {filename!r}")
        return f"{owner_id}/{safe_name}"
