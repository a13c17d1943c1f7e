"""
ingestion/rpc/rate_limiter.py

RateLimiter - sliding-window limiter for outbound RPC / HTTP requests.

At most ``max_requests`` grants are issued in any trailing window of
``window_sec`` seconds. Waiters are served strictly in arrival order: the
limiter lock is held while the head of the queue sleeps, and asyncio.Lock
wakes its waiters FIFO.
"""
import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SEC = 1.0


class RateLimiter:
    """
    Async sliding-window rate limiter.

    ``acquire()`` never raises and has no timeout; a caller that needs a
    deadline wraps it in ``asyncio.wait_for`` and accepts that an abandoned
    acquire may still have consumed a slot.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_sec: float = DEFAULT_WINDOW_SEC,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            max_requests: Grants allowed per window (N)
            window_sec: Window length in seconds (W)
            clock: Monotonic time source in seconds
            sleep: Coroutine used to suspend (defaults to asyncio.sleep)
        """
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_sec <= 0:
            raise ValueError(f"window_sec must be > 0, got {window_sec}")
        self.max_requests = max_requests
        self.window_sec = window_sec
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._grants: Deque[float] = deque()
        self._lock: Optional[asyncio.Lock] = None

        # Metrics
        self._granted = 0
        self._throttled = 0

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _prune(self, now: float) -> None:
        """Drop grant timestamps that have left the trailing window."""
        while self._grants and now - self._grants[0] >= self.window_sec:
            self._grants.popleft()

    async def acquire(self) -> None:
        """Suspend until a slot is free, then consume it."""
        async with self._get_lock():
            while True:
                now = self._clock()
                self._prune(now)
                if len(self._grants) < self.max_requests:
                    self._grants.append(now)
                    self._granted += 1
                    return

                wait = self._grants[0] + self.window_sec - now
                self._throttled += 1
                logger.debug(f"[ratelimit] window full, waiting {wait * 1000:.1f}ms")
                await self._sleep(max(wait, 0.0))

    def in_flight(self) -> int:
        """Number of grants inside the current window."""
        self._prune(self._clock())
        return len(self._grants)

    def get_metrics(self):
        return {
            "granted": self._granted,
            "throttled": self._throttled,
            "max_requests": self.max_requests,
            "window_sec": self.window_sec,
        }
