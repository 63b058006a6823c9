# tests/unit/batch/test_unit_controller.py — v1
"""Tests for batch/controller.py — mocked extractor, image and record stores."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from receiptscan.batch.controller import (
    EXTRACTION_FAILED,
    MISSING_TITLE,
    NO_FILES,
    REVIEW_MESSAGE,
    SAVE_FAILED,
    SAVED_MESSAGE,
    UPLOAD_FAILED,
    BatchController,
)
from receiptscan.core.errors import (
    BatchRejectedError,
    ExtractionError,
    PersistenceError,
    UploadError,
)
from receiptscan.core.models import BatchSession, ScanItem
from receiptscan.session.store import INTERRUPTED_MESSAGE

SESSION_KEY = "receiptscan:session:alice"


@pytest.fixture
def controller(session_store, mock_extractor, mock_image_store, mock_record_store):
    return BatchController(
        session_store=session_store,
        extractor=mock_extractor,
        image_store=mock_image_store,
        record_store=mock_record_store,
        auto_clear_ms=0,
    )


def _persisted(backend) -> dict:
    return json.loads(backend._data[SESSION_KEY])


# === SUBMIT ===


class TestSubmitBatch:
    @pytest.mark.asyncio
    async def test_accepts_and_seeds(self, controller, scan_files, memory_backend):
        await controller.submit_batch(scan_files, "  March expenses ")
        assert [i.name for i in controller.items] == ["r1.jpg", "r2.jpg", "r3.jpg"]
        assert all(i.status == "pending" for i in controller.items)
        assert controller.batch_title == "March expenses"
        assert controller.error == ""

        stored = _persisted(memory_backend)
        assert stored["batchTitle"] == "March expenses"
        assert len(stored["items"]) == 3
        assert stored["sessionId"]
        assert stored["lastActivity"] > 0

    @pytest.mark.asyncio
    async def test_rejects_empty_file_list(self, controller, memory_backend):
        with pytest.raises(BatchRejectedError, match="at least one"):
            await controller.submit_batch([], "Title")
        assert controller.items == []
        assert controller.error == NO_FILES
        assert _persisted(memory_backend)["error"] == NO_FILES

    @pytest.mark.asyncio
    async def test_rejects_blank_title_without_touching_ledger(self, controller, scan_files):
        await controller.submit_batch(scan_files[:1], "First")
        before = controller.items
        with pytest.raises(BatchRejectedError):
            await controller.submit_batch(scan_files, "   ")
        assert controller.items == before
        assert controller.error == MISSING_TITLE
        assert controller.batch_title == "First"

    @pytest.mark.asyncio
    async def test_accepting_clears_previous_error(self, controller, scan_files):
        with pytest.raises(BatchRejectedError):
            await controller.submit_batch(scan_files, "")
        await controller.submit_batch(scan_files, "Title")
        assert controller.error == ""

    @pytest.mark.asyncio
    async def test_new_batch_gets_new_session_id(self, controller, scan_files):
        await controller.submit_batch(scan_files, "One")
        first = controller.session.session_id
        await controller.submit_batch(scan_files, "Two")
        assert controller.session.session_id != first


# === RUN ===


class TestRun:
    @pytest.mark.asyncio
    async def test_all_items_saved(self, controller, scan_files, mock_record_store):
        await controller.submit_batch(scan_files, "March")
        result = await controller.run()

        assert [i.status for i in controller.items] == ["done"] * 3
        assert all(i.message == SAVED_MESSAGE for i in controller.items)
        assert result.total == 3
        assert result.done == 3
        assert result.succeeded
        assert result.record_ids == {0: "rec-1", 1: "rec-2", 2: "rec-3"}
        assert controller.failed_files == []
        assert not controller.is_running

        owner, record = mock_record_store.saved[0]
        assert owner == "alice"
        assert record.status == "processed"
        assert record.batch_title == "March"
        assert record.image_url == "https://images.test/receipts/alice/r1.jpg"
        assert record.timestamp

    @pytest.mark.asyncio
    async def test_middle_extraction_failure_is_isolated(
        self, controller, scan_files, mock_extractor, sample_fields, incomplete_fields,
    ):
        mock_extractor.extract.side_effect = [
            sample_fields, RuntimeError("model unavailable"), incomplete_fields,
        ]
        await controller.submit_batch(scan_files, "March")
        result = await controller.run()

        items = controller.items
        assert (items[0].status, items[0].message) == ("done", SAVED_MESSAGE)
        assert (items[1].status, items[1].message) == ("failed", EXTRACTION_FAILED)
        assert (items[2].status, items[2].message) == ("needs_review", REVIEW_MESSAGE)
        assert [f.name for f in controller.failed_files] == ["r2.jpg"]
        assert (result.done, result.needs_review, result.failed) == (1, 1, 1)
        assert result.record_ids == {0: "rec-1", 2: "rec-2"}
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_upload_failure(self, controller, scan_files, mock_image_store, mock_record_store):
        mock_image_store.upload.side_effect = UploadError("bucket gone")
        await controller.submit_batch(scan_files[:1], "March")
        await controller.run()
        assert controller.items[0].status == "failed"
        assert controller.items[0].message == UPLOAD_FAILED
        mock_record_store.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_failure(self, controller, scan_files, mock_record_store):
        mock_record_store.save.side_effect = PersistenceError("disk full")
        await controller.submit_batch(scan_files[:2], "March")
        result = await controller.run()
        assert [i.message for i in controller.items] == [SAVE_FAILED, SAVE_FAILED]
        assert len(controller.failed_files) == 2
        assert result.record_ids == {}

    @pytest.mark.asyncio
    async def test_items_processed_in_order(self, controller, scan_files, mock_extractor):
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        called = [c.args[0] for c in mock_extractor.extract.await_args_list]
        assert called == [f.data for f in scan_files]
        assert mock_extractor.extract.await_args_list[0].args[1] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_persists_after_every_mutation(self, controller, scan_files, session_store):
        with patch.object(session_store, "persist", wraps=session_store.persist) as spy:
            await controller.submit_batch(scan_files, "March")
            await controller.run()
        # one seed write, then processing + terminal per item
        assert spy.await_count == 1 + 2 * len(scan_files)

    @pytest.mark.asyncio
    async def test_persisted_snapshot_matches_ledger(self, controller, scan_files, memory_backend):
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        stored = _persisted(memory_backend)
        assert [i["status"] for i in stored["items"]] == ["done", "done", "done"]

    @pytest.mark.asyncio
    async def test_persist_failure_does_not_abort(self, controller, scan_files, session_store):
        with patch.object(session_store, "persist", AsyncMock(side_effect=OSError("ro"))):
            await controller.submit_batch(scan_files, "March")
            result = await controller.run()
        assert result.done == 3

    @pytest.mark.asyncio
    async def test_rejects_without_batch(self, controller):
        with pytest.raises(BatchRejectedError):
            await controller.run()

    @pytest.mark.asyncio
    async def test_rejects_second_run(self, controller, scan_files):
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        with pytest.raises(BatchRejectedError, match="already processed"):
            await controller.run()

    @pytest.mark.asyncio
    async def test_reentrancy_guard(self, controller, scan_files, mock_extractor, sample_fields):
        rejected: list[str] = []

        async def extract(data, mime_type):
            for op in (
                lambda: controller.submit_batch(scan_files, "Other"),
                controller.run,
                controller.retry_failed,
                controller.clear,
            ):
                try:
                    await op()
                except BatchRejectedError as e:
                    rejected.append(str(e))
            return sample_fields

        mock_extractor.extract.side_effect = extract
        await controller.submit_batch(scan_files[:1], "March")
        await controller.run()

        assert len(rejected) == 4
        assert controller.items[0].status == "done"
        assert controller.batch_title == "March"


# === STATUS STREAM ===


class TestListeners:
    @pytest.mark.asyncio
    async def test_events_follow_transitions(self, controller, scan_files, mock_extractor, sample_fields):
        mock_extractor.extract.side_effect = [sample_fields, ValueError("bad"), sample_fields]
        events = []
        controller.add_listener(events.append)
        await controller.submit_batch(scan_files, "March")
        await controller.run()

        for index in range(3):
            statuses = [e.item.status for e in events if e.index == index]
            assert statuses[:2] == ["pending", "processing"]
            assert len(statuses) == 3
        assert [e.item.status for e in events if e.index == 1][-1] == "failed"
        assert all(e.total == 3 for e in events)

    @pytest.mark.asyncio
    async def test_async_listener_awaited(self, controller, scan_files):
        seen = []

        async def listener(event):
            seen.append(event.index)

        controller.add_listener(listener)
        await controller.submit_batch(scan_files[:1], "March")
        await controller.run()
        assert seen == [0, 0, 0]

    @pytest.mark.asyncio
    async def test_listener_errors_do_not_propagate(self, controller, scan_files):
        def broken(event):
            raise RuntimeError("ui gone")

        controller.add_listener(broken)
        await controller.submit_batch(scan_files, "March")
        result = await controller.run()
        assert result.done == 3


# === RETRY ===


class TestRetry:
    @pytest.mark.asyncio
    async def test_retry_processes_only_failed_files(
        self, controller, scan_files, mock_extractor, sample_fields,
    ):
        mock_extractor.extract.side_effect = [sample_fields, RuntimeError("x"), sample_fields]
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        session_id = controller.session.session_id

        assert await controller.retry_failed() == 1
        assert [(i.name, i.status) for i in controller.items] == [("r2.jpg", "pending")]
        assert controller.failed_files == []
        assert controller.batch_title == "March"
        assert controller.session.session_id == session_id

        mock_extractor.extract.reset_mock()
        mock_extractor.extract.side_effect = None
        mock_extractor.extract.return_value = sample_fields
        result = await controller.run()

        assert [c.args[0] for c in mock_extractor.extract.await_args_list] == [scan_files[1].data]
        assert result.total == 1
        assert result.done == 1

    @pytest.mark.asyncio
    async def test_rejects_without_failures(self, controller, scan_files):
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        with pytest.raises(BatchRejectedError, match="no failed"):
            await controller.retry_failed()


# === RESTORE / TITLE / CLEAR ===


class TestRestore:
    @pytest.mark.asyncio
    async def test_restore_repairs_interrupted_item(self, controller, session_store, clock):
        await session_store.persist(BatchSession(
            items=[ScanItem(name="a.jpg", status="done"), ScanItem(name="b.jpg", status="processing")],
            batch_title="March",
            session_id="s-1",
        ))
        session = await controller.restore()

        assert session.session_id == "s-1"
        assert controller.batch_title == "March"
        assert controller.items[1].status == "failed"
        assert controller.items[1].message == INTERRUPTED_MESSAGE

    @pytest.mark.asyncio
    async def test_restored_batch_cannot_run(self, controller, session_store):
        await session_store.persist(BatchSession(
            items=[ScanItem(name="a.jpg")], batch_title="March",
        ))
        await controller.restore()
        assert controller.items[0].status == "pending"
        with pytest.raises(BatchRejectedError, match="no longer available"):
            await controller.run()

    @pytest.mark.asyncio
    async def test_restore_empty(self, controller):
        session = await controller.restore()
        assert session.is_empty
        assert controller.items == []


class TestTitleAndClear:
    @pytest.mark.asyncio
    async def test_set_batch_title_persists(self, controller, memory_backend):
        await controller.set_batch_title("Draft")
        assert controller.batch_title == "Draft"
        assert _persisted(memory_backend)["batchTitle"] == "Draft"

    @pytest.mark.asyncio
    async def test_clear(self, controller, scan_files, memory_backend, mock_extractor):
        mock_extractor.extract.side_effect = RuntimeError("x")
        await controller.submit_batch(scan_files, "March")
        await controller.run()
        await controller.clear()

        assert controller.items == []
        assert controller.batch_title == ""
        assert controller.failed_files == []
        assert SESSION_KEY not in memory_backend._data


# === AUTO-CLEAR ===


class TestAutoClear:
    @pytest.fixture
    def fast_controller(self, session_store, mock_extractor, mock_image_store, mock_record_store):
        return BatchController(
            session_store=session_store,
            extractor=mock_extractor,
            image_store=mock_image_store,
            record_store=mock_record_store,
            auto_clear_ms=20,
        )

    @pytest.mark.asyncio
    async def test_clears_after_completion(self, fast_controller, scan_files, memory_backend):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.run()
        assert fast_controller.auto_clear_armed

        await asyncio.sleep(0.1)
        assert fast_controller.items == []
        assert SESSION_KEY not in memory_backend._data

    @pytest.mark.asyncio
    async def test_new_batch_cancels(self, fast_controller, scan_files):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.run()
        await fast_controller.submit_batch(scan_files[:1], "April")
        assert not fast_controller.auto_clear_armed

        await asyncio.sleep(0.1)
        assert len(fast_controller.items) == 1

    @pytest.mark.asyncio
    async def test_title_edit_on_finished_batch_still_clears(
        self, fast_controller, scan_files, memory_backend,
    ):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.run()
        await fast_controller.set_batch_title("April")
        assert fast_controller.auto_clear_armed

        await asyncio.sleep(0.1)
        assert fast_controller.items == []
        assert SESSION_KEY not in memory_backend._data

    @pytest.mark.asyncio
    @pytest.mark.asyncio
    async def test_timer_skips_batch_with_pending_items(self, fast_controller, scan_files):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller._auto_clear()
        assert len(fast_controller.items) == 3

    @pytest.mark.asyncio
    async def test_title_edit_before_run_does_not_arm(self, fast_controller, scan_files):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.set_batch_title("April")
        assert not fast_controller.auto_clear_armed

    @pytest.mark.asyncio
    async def test_refused_retry_keeps_timer(self, fast_controller, scan_files, memory_backend):
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.run()
        with pytest.raises(BatchRejectedError):
            await fast_controller.retry_failed()
        assert fast_controller.auto_clear_armed

        await asyncio.sleep(0.1)
        assert fast_controller.items == []
        assert SESSION_KEY not in memory_backend._data

    @pytest.mark.asyncio
    async def test_accepted_retry_cancels(
        self, fast_controller, scan_files, mock_extractor, sample_fields,
    ):
        mock_extractor.extract.side_effect = [
            sample_fields, ExtractionError("blurry"), sample_fields,
        ]
        await fast_controller.submit_batch(scan_files, "March")
        await fast_controller.run()
        assert fast_controller.auto_clear_armed

        assert await fast_controller.retry_failed() == 1
        assert not fast_controller.auto_clear_armed
        await asyncio.sleep(0.1)
        assert [i.status for i in fast_controller.items] == ["pending"]

    @pytest.mark.asyncio
    async def test_restore_of_complete_session_arms(self, fast_controller, session_store):
        await session_store.persist(BatchSession(
            items=[ScanItem(name="a.jpg", status="done")], batch_title="March",
        ))
        await fast_controller.restore()
        assert fast_controller.auto_clear_armed
        fast_controller.close()
        assert not fast_controller.auto_clear_armed

    @pytest.mark.asyncio
    async def test_not_armed_while_items_pending(self, fast_controller, scan_files):
        await fast_controller.submit_batch(scan_files, "March")
        assert not fast_controller.auto_clear_armed
