# src/batch/retry.py — v1
"""Retry coordinator: turn the failed-file set into a fresh sub-batch.

The retried files replace the visible ledger; entries that already
finished (done / needs_review) are no longer shown. The batch title is
kept and the caller runs the controller again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from receiptscan.core.errors import BatchRejectedError

if TYPE_CHECKING:
    from receiptscan.batch.controller import BatchController

logger = logging.getLogger(__name__)


class RetryCoordinator:
    """Re-seed a controller with exactly the files whose processing failed."""

    def __init__(self, controller: BatchController) -> None:
        self._controller = controller

    async def retry_failed(self) -> int:
        """Replace the ledger with pending entries for the failed files.

        Returns:
            Number of files queued for retry.

        Raises:
            BatchRejectedError: If a run is active or nothing failed.
        """
        if self._controller.is_running:
            raise BatchRejectedError("Cannot retry while a batch is being processed.")

        # Snapshot before the controller resets its failed set.
        files = list(self._controller.failed_files)
        if not files:
            raise BatchRejectedError("There are no failed receipts to retry.")

        await self._controller._seed_batch(
            files, self._controller.batch_title, new_session=False,
        )
        logger.info("Queued %d failed receipt(s) for retry", len(files))
        return len(files)
