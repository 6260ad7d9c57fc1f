"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Windows start at the first request for a key, not on clock boundaries.
- Rejected requests still increment the counter.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitEntry,
    RateLimitOptions,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window request counter keyed by a caller-supplied identifier.

    Each identifier gets a window of ``options.window_ms`` starting at its
    first request. A burst of up to ``2 * max`` requests can pass across a
    window boundary; this is accepted behaviour of the algorithm.

    Expired entries are replaced lazily on the next check and removed in
    bulk by :meth:`sweep`, which :meth:`start` runs periodically on the
    event loop until :meth:`stop` is awaited.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] = _epoch_ms,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning UNIX time in milliseconds.
            sweep_interval_seconds: Delay between background sweeps.
        """
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def now_ms(self) -> int:
        return self._clock()

    def get_entry(self, key: str) -> RateLimitEntry | None:
        """Return a copy of the stored entry for ``key``, if any."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(key=entry.key, count=entry.count, reset_time=entry.reset_time)

    def check(self, identifier: str, options: RateLimitOptions) -> RateLimitResult:
        """Count one request for ``identifier`` in its current window.

        Args:
            identifier: Rate limit key.
            options: Window length and request budget.

        Returns:
            RateLimitResult with the decision and the window reset time.
        """
        now = self._clock()

        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None or entry.is_expired(now):
                entry = RateLimitEntry(key=identifier, count=0, reset_time=now + options.window_ms)
                self._entries[identifier] = entry

            entry.count += 1

            return RateLimitResult(
                allowed=entry.count <= options.max,
                remaining=max(0, options.max - entry.count),
                reset_time=entry.reset_time,
                limit=options.max,
            )

    def sweep(self) -> int:
        """Remove every entry whose window has already ended.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            remaining = len(self._entries)

        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": len(expired), "entries": remaining},
            )
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Schedule the periodic sweep on the running event loop.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if self.running:
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.info(
            "rate_limit.sweeper_started",
            extra={"interval_s": self._sweep_interval},
        )

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("rate_limit.sweeper_stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()
