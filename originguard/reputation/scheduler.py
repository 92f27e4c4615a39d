"""Recurring refresh cycle with cancel-and-restart semantics."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from ..constants import DEFAULT_REFRESH_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Owns the single pending refresh timer.

    Two states: idle (no timer) and scheduled (exactly one timer task). Every
    poll() cancels the pending timer, runs one cycle, then arms a new timer,
    whatever the cycle's outcome. Cycles are serialized and never overlap.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[None]],
        interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._cycle = cycle
        self._interval = float(interval)
        self._handle: Optional[asyncio.Task] = None
        self._cycle_lock = asyncio.Lock()
        self._stopped = False
        self.cycles_run = 0
        self.cycles_failed = 0
        self.last_cycle_at: Optional[datetime] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None and not self._handle.done()

    async def poll(self, interval: Optional[float] = None) -> None:
        """Run a refresh cycle now and restart the schedule.

        Args:
            interval: New interval in seconds for this and all future cycles.
                ``None`` or ``0`` keeps the current interval.

        Raises:
            ValueError: If ``interval`` is negative.
        """
        if interval:
            if interval < 0:
                raise ValueError("interval must be positive")
            self._interval = float(interval)
        self._stopped = False
        await self._refresh()

    async def _refresh(self) -> None:
        self.cancel()
        async with self._cycle_lock:
            await self._run_cycle()
            # A concurrent poll() may have armed a timer while we held the lock.
            self.cancel()
            if not self._stopped:
                self._arm()

    async def _run_cycle(self) -> None:
        try:
            await self._cycle()
        except Exception:
            self.cycles_failed += 1
            logger.exception("Refresh cycle failed; next attempt in %ss", self._interval)
        finally:
            self.cycles_run += 1
            self.last_cycle_at = datetime.now(timezone.utc)

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.create_task(self._tick(self._interval))

    async def _tick(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # This task is about to run the cycle itself; poll() must not cancel it.
        self._handle = None
        if not self._stopped:
            await self._refresh()

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        handle, self._handle = self._handle, None
        if handle is not None and not handle.done() and handle is not asyncio.current_task():
            handle.cancel()

    async def stop(self) -> None:
        """Cancel the pending timer and stop re-arming until the next poll()."""
        self._stopped = True
        handle, self._handle = self._handle, None
        if handle is None or handle.done() or handle is asyncio.current_task():
            return
        handle.cancel()
        await asyncio.gather(handle, return_exceptions=True)
