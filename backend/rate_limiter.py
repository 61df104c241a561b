"""
Rate limiting for outbound and inbound traffic.

``TokenBucket`` caps calls to an upstream API: the bucket refills to its
full capacity at every whole-second tick and callers that find it empty
wait in FIFO order until the next tick releases them.

``check_rate_limit`` is a fixed-window counter in the shared cache, used
to throttle clients per identity.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Callable, Deque, Optional

from backend.cache_backend import get_cache_backend

logger = logging.getLogger(__name__)


class TokenBucket:
    """Per-process token bucket refilled once per one-second tick.

    Parameters
    ----------
    rate_per_second:
        Bucket capacity; never more than this many ``acquire()`` calls
        complete within a single tick.
    clock:
        Monotonic time source in seconds.  Injected by tests.
    """

    def __init__(
        self,
        rate_per_second: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self.capacity = int(rate_per_second)
        self._clock = clock
        self._tokens = self.capacity
        self._tick = int(clock())
        self._waiters: Deque[asyncio.Future] = deque()
        self._drain_handle: Optional[asyncio.TimerHandle] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def tokens(self) -> int:
        self._refill()
        return self._tokens

    @property
    def queued(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    def try_acquire(self) -> bool:
        """Take a token without waiting.  Never jumps ahead of queued callers."""
        self._refill()
        if self.queued:
            return False
        if self._tokens > 0:
            self._tokens -= 1
            return True
        return False

    async def acquire(self) -> None:
        """Wait for a token.  Cancelling the caller gives up its queue slot."""
        if self.try_acquire():
            return
        loop = asyncio.get_running_loop()
        fut = loop.create_future()
        self._waiters.append(fut)
        self._schedule_drain(loop)
        await fut

    def close(self) -> None:
        if self._drain_handle is not None:
            self._drain_handle.cancel()
            self._drain_handle = None
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.cancel()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _refill(self) -> None:
        tick = int(self._clock())
        if tick > self._tick:
            self._tick = tick
            self._tokens = self.capacity

    def _drain(self) -> None:
        """Release as many queued callers as the current tick allows."""
        self._drain_handle = None
        self._refill()
        while self._waiters and self._tokens > 0:
            fut = self._waiters.popleft()
            if fut.done():
                continue
            self._tokens -= 1
            fut.set_result(None)
        if self.queued:
            self._schedule_drain(asyncio.get_running_loop())

    def _schedule_drain(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._drain_handle is not None:
            return
        delay = max(0.0, (self._tick + 1) - self._clock())
        self._drain_handle = loop.call_later(delay, self._drain)


def check_rate_limit(
    bucket: str,
    identity: str,
    limit_per_minute: int,
) -> tuple[bool, int]:
    if limit_per_minute <= 0:
        return True, 0

    minute_bucket = int(time.time() // 60)
    key = f"rl:{bucket}:{identity}:{minute_bucket}"
    cache = get_cache_backend()
    try:
        count = cache.incr(key, ttl_seconds=70)
        return count <= int(limit_per_minute), count
    except Exception as exc:
        # Fail-open if cache backend is unavailable.
        logger.warning("Rate-limit check skipped for %s: %s", bucket, exc)
        return True, 0
