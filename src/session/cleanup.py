# src/session/cleanup.py — v1
"""One-shot timer that clears a finished session after a quiet period."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_AUTO_CLEAR_MS = 5 * 60 * 1000


class AutoClearTimer:
    """Arm/cancel a delayed async callback on the running event loop.

    Re-arming replaces any pending timer. A delay <= 0 disables the timer.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        delay_ms: int = DEFAULT_AUTO_CLEAR_MS,
    ) -> None:
        self._callback = callback
        self._delay_ms = delay_ms
        self._task: asyncio.Task[None] | None = None

    @property
    def armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def arm(self) -> bool:
        """Start (or restart) the countdown. Returns False when disabled."""
        self.cancel()
        if self._delay_ms <= 0:
            return False
        self._task = asyncio.get_running_loop().create_task(self._fire())
        logger.debug("Auto-clear armed (%d ms)", self._delay_ms)
        return True

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("Auto-clear cancelled")
        self._task = None

    async def _fire(self) -> None:
        await asyncio.sleep(self._delay_ms / 1000)
        self._task = None
        logger.info("Auto-clearing completed session")
        try:
            await self._callback()
        except Exception:
            logger.warning("Auto-clear callback failed", exc_info=True)
