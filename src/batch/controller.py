# src/batch/controller.py — v1
"""Batch controller: drive a set of receipt images through the pipeline.

Per item, strictly in submission order:

    pending -> processing -> extract -> upload -> classify -> save
            -> done | needs_review | failed

A failing stage marks only that item as failed and the loop moves on.
Every ledger mutation is announced to listeners and persisted to the
session store, so a restart can recover the batch. Once every entry is
terminal the auto-clear timer is armed; any new activity cancels it.
"""

from __future__ import annotations

import inspect
import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from receiptscan.batch.ledger import ItemLedger
from receiptscan.batch.models import BatchResult, ItemEvent
from receiptscan.batch.retry import RetryCoordinator
from receiptscan.core.errors import BatchRejectedError
from receiptscan.core.models import BatchSession, ScanFile, ScanItem, ScanStatus, build_candidate
from receiptscan.core.validation import classify_candidate
from receiptscan.logging.context import set_item_context, set_session_context
from receiptscan.session.cleanup import DEFAULT_AUTO_CLEAR_MS, AutoClearTimer

if TYPE_CHECKING:
    from receiptscan.extraction.base_extractor import BaseReceiptExtractor
    from receiptscan.records.base_record_store import BaseRecordStore
    from receiptscan.session.store import SessionStore
    from receiptscan.storage.base_image_store import BaseImageStore

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "Saved successfully"
REVIEW_MESSAGE = "Missing fields - saved for review"
EXTRACTION_FAILED = "Extraction failed"
UPLOAD_FAILED = "Upload failed"
SAVE_FAILED = "Save failed"

MISSING_TITLE = "Please enter a batch title before processing."
NO_FILES = "Please select at least one receipt image."
ALREADY_RUNNING = "A batch is already being processed."

Listener = Callable[[ItemEvent], "Awaitable[None] | None"]


class BatchController:
    """Owner-scoped orchestrator of one batch at a time.

    Args:
        session_store: Durable snapshot of the batch for this owner.
        extractor: Turns image bytes into structured receipt fields.
        image_store: Uploads the image and returns its URL.
        record_store: Persists the classified record.
        auto_clear_ms: Quiet period before a finished batch is cleared
            (0 disables auto-clear).
    """

    def __init__(
        self,
        session_store: SessionStore,
        extractor: BaseReceiptExtractor,
        image_store: BaseImageStore,
        record_store: BaseRecordStore,
        auto_clear_ms: int = DEFAULT_AUTO_CLEAR_MS,
    ) -> None:
        self._store = session_store
        self._extractor = extractor
        self._image_store = image_store
        self._record_store = record_store
        self._ledger = ItemLedger()
        self._files: list[ScanFile] = []
        self._failed: list[ScanFile] = []
        self._title = ""
        self._error = ""
        self._session_id = ""
        self._last_activity = 0
        self._running = False
        self._listeners: list[Listener] = []
        self._timer = AutoClearTimer(self._auto_clear, delay_ms=auto_clear_ms)
        self._retry = RetryCoordinator(self)

    # --- Read-only state ---

    @property
    def owner_id(self) -> str:
        return self._store.owner_id

    @property
    def items(self) -> list[ScanItem]:
        return self._ledger.items

    @property
    def batch_title(self) -> str:
        return self._title

    @property
    def error(self) -> str:
        return self._error

    @property
    def failed_files(self) -> list[ScanFile]:
        """Files whose last processing attempt ended in failure."""
        return list(self._failed)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def auto_clear_armed(self) -> bool:
        return self._timer.armed

    @property
    def session(self) -> BatchSession:
        """Current state as a persistable snapshot."""
        return BatchSession(
            items=self._ledger.items,
            batch_title=self._title,
            error=self._error,
            session_id=self._session_id,
            last_activity=self._last_activity,
        )

    def add_listener(self, callback: Listener) -> None:
        """Register a callback invoked with an ItemEvent after every item change."""
        self._listeners.append(callback)

    # --- Operations ---

    async def submit_batch(self, files: Sequence[ScanFile], title: str) -> None:
        """Accept a new batch and seed one pending entry per file.

        Raises:
            BatchRejectedError: If the title is blank, no files were given,
                or a run is in flight. The ledger is left untouched.
        """
        reason = ""
        if self._running:
            reason = ALREADY_RUNNING
        elif not title or not title.strip():
            reason = MISSING_TITLE
        elif not files:
            reason = NO_FILES

        if reason:
            self._error = reason
            await self._persist()
            logger.warning("Batch rejected: %s", reason)
            raise BatchRejectedError(reason)

        await self._seed_batch(list(files), title.strip(), new_session=True)
        logger.info("Batch %r accepted with %d receipt(s)", self._title, len(files))

    async def run(self) -> BatchResult:
        """Process every pending entry in order.

        Returns:
            BatchResult with per-status counts and the ids of saved records.

        Raises:
            BatchRejectedError: If a run is active, the ledger is empty, no
                entry is pending, or the image files are not in memory
                (e.g. after restoring a session).
        """
        if self._running:
            raise BatchRejectedError(ALREADY_RUNNING)
        if not len(self._ledger):
            raise BatchRejectedError("There is no batch to process.")
        if len(self._files) != len(self._ledger):
            raise BatchRejectedError(
                "Receipt images for this batch are no longer available; "
                "submit the files again."
            )
        pending = [i for i, item in enumerate(self._ledger) if item.status == "pending"]
        if not pending:
            raise BatchRejectedError("Every receipt in this batch was already processed.")

        self._timer.cancel()
        self._running = True
        self._failed = []
        title = self._title
        record_ids: dict[int, str] = {}
        t0 = time.perf_counter()
        set_session_context(self.owner_id, self._session_id)
        logger.info("Processing batch %r (%d receipt(s))", title, len(pending))

        try:
            for index in pending:
                record_id = await self._process_item(index, title)
                if record_id is not None:
                    record_ids[index] = record_id
        finally:
            self._running = False
            set_item_context(None)

        self._rearm_if_idle()

        counts = self._ledger.counts()
        result = BatchResult(
            batch_title=title,
            total=len(self._ledger),
            done=counts["done"],
            needs_review=counts["needs_review"],
            failed=counts["failed"],
            items=self._ledger.items,
            record_ids=record_ids,
            duration_seconds=round(time.perf_counter() - t0, 2),
        )
        logger.info(
            "Batch %r finished: %d done, %d for review, %d failed",
            title, result.done, result.needs_review, result.failed,
        )
        return result

    async def retry_failed(self) -> int:
        """Queue the failed files as a new sub-batch; call run() afterwards.

        A refused retry leaves the auto-clear timer as it was.
        """
        return await self._retry.retry_failed()

    async def restore(self) -> BatchSession:
        """Load the persisted session for this owner.

        Image files are not part of the snapshot, so a restored batch can
        be inspected or cleared but not run.
        """
        if self._running:
            raise BatchRejectedError(ALREADY_RUNNING)
        session = await self._store.restore()
        self._ledger.replace(session.items)
        self._title = session.batch_title
        self._error = session.error
        self._session_id = session.session_id or uuid.uuid4().hex
        self._last_activity = session.last_activity
        self._files = []
        self._failed = []

        self._timer.cancel()
        self._rearm_if_idle()
        if session.items:
            logger.info(
                "Restored batch %r with %d receipt(s) for %s",
                self._title, len(session.items), self.owner_id,
            )
        return session

    async def set_batch_title(self, title: str) -> None:
        """Record the title as typed; it is trimmed when a batch is submitted.

        On a finished batch the auto-clear quiet period restarts.
        """
        self._timer.cancel()
        self._title = title
        await self._persist()
        self._rearm_if_idle()

    async def clear(self) -> None:
        """Forget the batch in memory and in the session store.

        Raises:
            BatchRejectedError: If a run is in flight.
        """
        if self._running:
            raise BatchRejectedError("Cannot clear while a batch is being processed.")
        self._timer.cancel()
        self._reset()
        await self._store.clear()
        logger.info("Batch cleared for %s", self.owner_id)

    def close(self) -> None:
        """Sign-out: stop the auto-clear timer and release store handles."""
        self._timer.cancel()
        self._store.close()
        self._record_store.close()

    # --- Internals ---

    async def _seed_batch(
        self, files: list[ScanFile], title: str, new_session: bool,
    ) -> None:
        self._timer.cancel()
        self._files = files
        self._failed = []
        self._error = ""
        self._title = title
        if new_session or not self._session_id:
            self._session_id = uuid.uuid4().hex
        self._ledger.seed(f.name for f in files)
        for index in range(len(self._ledger)):
            await self._emit(index)
        await self._persist()

    async def _process_item(self, index: int, title: str) -> str | None:
        """Run one entry through every stage. Returns the record id when saved."""
        file = self._files[index]
        await self._update_item(index, "processing", None)

        set_item_context(index, "extract")
        try:
            fields = await self._extractor.extract(file.data, file.mime_type)
        except Exception:
            logger.warning("Extraction failed for %s", file.name, exc_info=True)
            await self._fail(index, EXTRACTION_FAILED)
            return None

        set_item_context(index, "upload")
        try:
            image_url = await self._image_store.upload(self.owner_id, file)
        except Exception:
            logger.warning("Upload failed for %s", file.name, exc_info=True)
            await self._fail(index, UPLOAD_FAILED)
            return None

        set_item_context(index, "save")
        try:
            classified = classify_candidate(build_candidate(fields, image_url, title))
            record_id = await self._record_store.save(self.owner_id, classified)
        except Exception:
            logger.warning("Save failed for %s", file.name, exc_info=True)
            await self._fail(index, SAVE_FAILED)
            return None

        if classified.status == "processed":
            await self._update_item(index, "done", SAVED_MESSAGE)
        else:
            await self._update_item(index, "needs_review", REVIEW_MESSAGE)
        logger.info("Saved %s as %s (record %s)", file.name, classified.status, record_id)
        return record_id

    async def _fail(self, index: int, message: str) -> None:
        self._failed.append(self._files[index])
        await self._update_item(index, "failed", message)

    async def _update_item(
        self, index: int, status: ScanStatus, message: str | None,
    ) -> None:
        self._ledger.update(index, status=status, message=message)
        await self._emit(index)
        await self._persist()

    async def _emit(self, index: int) -> None:
        event = ItemEvent(index=index, item=self._ledger[index], total=len(self._ledger))
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Item listener failed for item %d", index)

    async def _persist(self) -> None:
        try:
            stamped = await self._store.persist(self.session)
        except Exception:
            logger.warning("Could not persist session for %s", self.owner_id, exc_info=True)
            return
        self._last_activity = stamped.last_activity

    def _reset(self) -> None:
        self._ledger.clear()
        self._files = []
        self._failed = []
        self._title = ""
        self._error = ""
        self._session_id = ""
        self._last_activity = 0

    def _rearm_if_idle(self) -> None:
        if not self._running and self._ledger.all_terminal():
            self._timer.arm()

    async def _auto_clear(self) -> None:
        if self._running or self._ledger.has_pending_or_processing():
            return
        await self.clear()
