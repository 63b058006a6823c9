# src/api/facade.py — v2
"""Public API facade — wire collaborators and run batches for one owner.

Usage:
    from receiptscan.api.facade import owner_session, scan_receipts

    async with owner_session("alice") as controller:
        await controller.submit_batch(files, "March expenses")
        result = await controller.run()

    results = await scan_receipts(paths, "March expenses", "alice", retry=True)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from receiptscan.batch.controller import BatchController
from receiptscan.config.settings import Settings
from receiptscan.core.models import ScanFile
from receiptscan.session.backend_factory import create_session_backend
from receiptscan.session.store import SessionStore

if TYPE_CHECKING:
    from receiptscan.batch.models import BatchResult
    from receiptscan.extraction.base_extractor import BaseReceiptExtractor
    from receiptscan.records.base_record_store import BaseRecordStore
    from receiptscan.session.base_session_backend import BaseSessionBackend
    from receiptscan.storage.base_image_store import BaseImageStore

logger = logging.getLogger(__name__)


def build_controller(
    owner_id: str,
    settings: Settings | None = None,
    extractor: BaseReceiptExtractor | None = None,
    image_store: BaseImageStore | None = None,
    record_store: BaseRecordStore | None = None,
    session_backend: BaseSessionBackend | None = None,
) -> BatchController:
    """Create a controller for one owner.

    Collaborators not passed explicitly are built from settings.

    Raises:
        ValueError: If owner_id is empty or a configured backend is unsupported.
    """
    settings = settings or Settings()

    if session_backend is None:
        session_backend = create_session_backend(settings)
    if extractor is None:
        from receiptscan.extraction.extractor_factory import create_extractor
        extractor = create_extractor(settings)
    if image_store is None:
        from receiptscan.storage.store_factory import create_image_store
        image_store = create_image_store(settings)
    if record_store is None:
        from receiptscan.records.record_factory import create_record_store
        record_store = create_record_store(settings)

    session_store = SessionStore(
        backend=session_backend,
        owner_id=owner_id,
        ttl_ms=settings.session_ttl_ms,
    )
    return BatchController(
        session_store=session_store,
        extractor=extractor,
        image_store=image_store,
        record_store=record_store,
        auto_clear_ms=settings.session_auto_clear_ms,
    )


@asynccontextmanager
async def owner_session(
    owner_id: str,
    settings: Settings | None = None,
    **collaborators: object,
) -> AsyncIterator[BatchController]:
    """Sign-in / sign-out lifecycle for one owner.

    On entry the controller is built and the persisted session restored.
    On exit the auto-clear timer is cancelled and backends are closed.
    """
    controller = build_controller(owner_id, settings, **collaborators)  # type: ignore[arg-type]
    await controller.restore()
    logger.debug("Owner session opened for %s", owner_id)
    try:
        yield controller
    finally:
        controller.close()
        logger.debug("Owner session closed for %s", owner_id)


async def scan_receipts(
    paths: Sequence[Path | str],
    title: str,
    owner_id: str,
    settings: Settings | None = None,
    retry: bool = False,
    **collaborators: object,
) -> list[BatchResult]:
    """Submit and process image files in one call.

    Args:
        paths: Receipt image files, processed in the given order.
        title: Batch title stamped on every record.
        owner_id: Owner of the batch and of the stored records.
        settings: Global settings. Loaded from .env if None.
        retry: Run one extra pass over the files that failed.

    Returns:
        One BatchResult per pass (two when a retry pass ran).

    Raises:
        ValueError: If a path is not a supported image type.
        BatchRejectedError: If the batch is refused (e.g. blank title).
    """
    files = [ScanFile.from_path(p) for p in paths]

    results: list[BatchResult] = []
    async with owner_session(owner_id, settings, **collaborators) as controller:
        await controller.submit_batch(files, title)
        results.append(await controller.run())

        if retry and controller.failed_files:
            logger.info("Retrying %d failed receipt(s)", len(controller.failed_files))
            await controller.retry_failed()
            results.append(await controller.run())

    return results
