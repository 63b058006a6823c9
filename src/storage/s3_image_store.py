# src/storage/s3_image_store.py — v1
"""S3-compatible image store (IMAGE_STORE=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from receiptscan.core.errors import UploadError
from receiptscan.core.models import ScanFile
from receiptscan.storage.base_image_store import BaseImageStore

logger = logging.getLogger(__name__)


class S3ImageStore(BaseImageStore):
    """Upload receipt images to S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "receipts/",
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        """Initialize S3 image store.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "receipts/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 image store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        self._region = region
        self._endpoint_url = endpoint_url

    def _full_key(self, owner_id: str, filename: str) -> str:
        return f"{self._prefix}{self.object_key(owner_id, filename)}"

    def object_url(self, key: str) -> str:
        """Public URL of an object key."""
        quoted = quote(key)
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{quoted}"
        if self._region:
            return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{quoted}"
        return f"https://{self._bucket}.s3.amazonaws.com/{quoted}"

    async def upload(self, owner_id: str, file: ScanFile) -> str:
        key = self._full_key(owner_id, file.name)
        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=file.data,
                ContentType=file.mime_type,
            )
        except Exception as e:
            raise UploadError(f"S3 upload failed for s3://{self._bucket}/{key}: {e}") from e
        logger.debug("S3 write: s3://%s/%s (%d bytes)", self._bucket, key, file.size_bytes)
        return self.object_url(key)
