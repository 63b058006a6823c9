# src/session/store.py — v1
"""Owner-scoped durable batch session: restore / persist / clear.

restore() is fail-open: a missing, unreadable, corrupt or expired
snapshot yields an empty session instead of an exception. Items that
were "processing" when the snapshot was written are demoted to "failed"
with the message "Session interrupted", since no run loop survives a
restart.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from receiptscan.core.models import BatchSession
from receiptscan.session.base_session_backend import BaseSessionBackend

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_MS = 30 * 60 * 1000
INTERRUPTED_MESSAGE = "Session interrupted"

_KEY_PREFIX = "receiptscan:session:"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class SessionStore:
    """Persist and recover the batch session of a single owner.

    Args:
        backend: Storage backend for the serialized snapshot.
        owner_id: Owner the session belongs to (one key per owner).
        ttl_ms: Inactivity window after which a snapshot is discarded.
        clock: Callable returning epoch milliseconds (injectable for tests).
    """

    def __init__(
        self,
        backend: BaseSessionBackend,
        owner_id: str,
        ttl_ms: int = DEFAULT_SESSION_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if not owner_id:
            raise ValueError("owner_id must not be empty")
        self._backend = backend
        self._owner_id = owner_id
        self._ttl_ms = ttl_ms
        self._clock = clock

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def key(self) -> str:
        return f"{_KEY_PREFIX}{self._owner_id}"

    async def restore(self) -> BatchSession:
        """Load the persisted session, repairing interrupted items."""
        try:
            payload = await self._backend.load(self.key)
        except Exception:
            logger.warning(
                "Session load failed for owner %s, starting empty",
                self._owner_id, exc_info=True,
            )
            return BatchSession.empty()

        if payload is None:
            return BatchSession.empty()

        try:
            session = BatchSession.model_validate_json(payload)
        except ValueError as e:
            logger.warning("Discarding unreadable session for %s: %s", self._owner_id, e)
            await self._discard()
            return BatchSession.empty()

        age_ms = self._clock() - session.last_activity
        if age_ms > self._ttl_ms:
            logger.info(
                "Session for %s expired (idle %.0fs), discarding",
                self._owner_id, age_ms / 1000,
            )
            await self._discard()
            return BatchSession.empty()

        repaired = 0
        items = []
        for item in session.items:
            if item.status == "processing":
                item = item.model_copy(
                    update={"status": "failed", "message": INTERRUPTED_MESSAGE}
                )
                repaired += 1
            items.append(item)
        if repaired:
            logger.info(
                "Marked %d interrupted item(s) as failed for %s",
                repaired, self._owner_id,
            )

        return session.model_copy(update={"items": items})

    async def persist(self, session: BatchSession) -> BatchSession:
        """Write the full snapshot with a refreshed lastActivity.

        Empty sessions are not written.

        Returns:
            The session as written (or the input, unchanged, if skipped).
        """
        if session.is_empty:
            return session
        stamped = session.model_copy(update={"last_activity": self._clock()})
        await self._backend.save(self.key, stamped.model_dump_json(by_alias=True))
        return stamped

    async def clear(self) -> None:
        """Wipe the persisted session."""
        await self._backend.delete(self.key)
        logger.debug("Session cleared for %s", self._owner_id)

    def close(self) -> None:
        self._backend.close()

    async def _discard(self) -> None:
        try:
            await self._backend.delete(self.key)
        except Exception:
            logger.warning(
                "Could not delete stale session for %s", self._owner_id,
                exc_info=True,
            )
