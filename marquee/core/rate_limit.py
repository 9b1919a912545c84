"""Sliding-window admission control for outbound TMDB calls."""

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Admit at most ``max_calls`` acquisitions within any trailing ``period``.

    ``acquire()`` suspends the calling task (without blocking the event loop)
    until the oldest recorded call ages out of the window, then re-checks.
    Check-and-record happens without an intervening await, so concurrent
    tasks on one loop never over-admit.
    """

    def __init__(
        self,
        max_calls: int = 40,
        period: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if period <= 0:
            raise ValueError("period must be positive")
        self.max_calls = max_calls
        self.period = period
        self._clock = clock
        self._calls: Deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.period:
            self._calls.popleft()

    def has_capacity(self) -> bool:
        """Return whether an acquisition would be admitted right now."""
        self._prune(self._clock())
        return len(self._calls) < self.max_calls

    @property
    def in_flight(self) -> int:
        self._prune(self._clock())
        return len(self._calls)

    async def acquire(self) -> None:
        while True:
            now = self._clock()
            self._prune(now)
            if len(self._calls) < self.max_calls:
                self._calls.append(now)
                return

            wait = self.period - (now - self._calls[0])
            logger.debug("TMDB rate window full, waiting %.2fs", wait)
            await asyncio.sleep(max(wait, 0))

    async def __aenter__(self) -> "SlidingWindowLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None
