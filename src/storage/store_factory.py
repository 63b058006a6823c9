# src/storage/store_factory.py — v1
"""Factory: instantiate the image store from configuration."""

from __future__ import annotations

from receiptscan.config.settings import Settings
from receiptscan.storage.base_image_store import BaseImageStore
from receiptscan.storage.local_image_store import LocalImageStore


def create_image_store(settings: Settings) -> BaseImageStore:
    """Create the image store selected by IMAGE_STORE.

    Raises:
        ValueError: If the store type is not supported or misconfigured.
    """
    if settings.image_store == "local":
        return LocalImageStore(root=settings.image_root)

    if settings.image_store == "s3":
        from receiptscan.storage.s3_image_store import S3ImageStore
        if not settings.image_s3_bucket:
            raise ValueError("IMAGE_S3_BUCKET must be set when IMAGE_STORE=s3")
        return S3ImageStore(
            bucket=settings.image_s3_bucket,
            prefix=settings.image_s3_prefix,
            region=settings.image_s3_region or None,
            endpoint_url=settings.image_s3_endpoint_url or None,
        )

    raise ValueError(f"Unsupported image store: {settings.image_store!r}")
