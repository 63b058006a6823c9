# tests/unit/storage/test_unit_local_image_store.py — v1
"""Tests for storage/local_image_store.py and base object keys."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch
from urllib.parse import urlparse
from urllib.request import url2pathname

import pytest

from receiptscan.core.errors import UploadError
from receiptscan.core.models import ScanFile
from receiptscan.storage.base_image_store import BaseImageStore
from receiptscan.storage.local_image_store import LocalImageStore


class TestObjectKey:
    def test_owner_and_name(self):
        assert BaseImageStore.object_key("alice", "r1.jpg") == "alice/r1.jpg"

    def test_path_components_stripped(self):
        assert BaseImageStore.object_key("alice", "../../etc/r1.jpg") == "alice/r1.jpg"
        assert BaseImageStore.object_key("alice", "C:\\scans\\r1.jpg") == "alice/r1.jpg"

    def test_empty_owner(self):
        with pytest.raises(ValueError):
            BaseImageStore.object_key("", "r1.jpg")


class TestLocalImageStore:
    @pytest.mark.asyncio
    async def test_upload_writes_file(self, tmp_path):
        store = LocalImageStore(tmp_path)
        file = ScanFile(name="r1.jpg", data=b"jpeg", mime_type="image/jpeg")
        url = await store.upload("alice", file)

        assert url.startswith("file://")
        path = Path(url2pathname(urlparse(url).path))
        assert path == tmp_path.resolve() / "receipts" / "alice" / "r1.jpg"
        assert path.read_bytes() == b"jpeg"

    @pytest.mark.asyncio
    async def test_same_name_overwrites(self, tmp_path):
        store = LocalImageStore(tmp_path)
        await store.upload("alice", ScanFile(name="r.jpg", data=b"1", mime_type="image/jpeg"))
        await store.upload("alice", ScanFile(name="r.jpg", data=b"2", mime_type="image/jpeg"))
        assert (tmp_path / "receipts" / "alice" / "r.jpg").read_bytes() == b"2"

    @pytest.mark.asyncio
    async def test_write_error_wrapped(self, tmp_path):
        store = LocalImageStore(tmp_path)
        file = ScanFile(name="r.jpg", data=b"1", mime_type="image/jpeg")
        with patch.object(Path, "write_bytes", side_effect=PermissionError("denied")):
            with pytest.raises(UploadError, match="denied"):
                await store.upload("alice", file)
