from __future__ import annotations

import asyncio

import pytest

from backend.cache_backend import MemoryCacheBackend
from backend import rate_limiter
from backend.rate_limiter import TokenBucket


# ---------------------------------------------------------------------------
# Token bucket
# ---------------------------------------------------------------------------

def test_token_bucket_caps_calls_per_tick(fake_clock):
    bucket = TokenBucket(2, clock=fake_clock)
    assert bucket.try_acquire() is True
    assert bucket.try_acquire() is True
    assert bucket.try_acquire() is False
    assert bucket.tokens == 0

    fake_clock.advance(0.5)  # same tick
    assert bucket.try_acquire() is False

    fake_clock.advance(0.6)  # next tick refills to capacity
    assert bucket.tokens == 2
    assert bucket.try_acquire() is True


def test_token_bucket_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        TokenBucket(0)


@pytest.mark.asyncio
async def test_token_bucket_defers_excess_to_next_tick(fake_clock):
    # Just before a tick boundary so the drain timer fires quickly.
    fake_clock.now = 100.99
    bucket = TokenBucket(3, clock=fake_clock)
    released = []

    async def call(i: int) -> None:
        await bucket.acquire()
        released.append((i, int(fake_clock())))

    tasks = [asyncio.create_task(call(i)) for i in range(5)]
    await asyncio.sleep(0)

    assert [i for i, _ in released] == [0, 1, 2]
    assert bucket.queued == 2

    # Still tick 100: nobody else gets through.
    await asyncio.sleep(0.05)
    assert len(released) == 3

    fake_clock.now = 101.2
    await asyncio.wait_for(asyncio.gather(*tasks), timeout=2)

    assert [i for i, _ in released] == [0, 1, 2, 3, 4]
    assert all(tick == 101 for _, tick in released[3:])
    assert bucket.tokens == 1
    bucket.close()


@pytest.mark.asyncio
async def test_token_bucket_skips_cancelled_waiters(fake_clock):
    fake_clock.now = 10.99
    bucket = TokenBucket(1, clock=fake_clock)
    await bucket.acquire()

    abandoned = asyncio.create_task(bucket.acquire())
    waiting = asyncio.create_task(bucket.acquire())
    await asyncio.sleep(0)
    abandoned.cancel()
    await asyncio.sleep(0)

    fake_clock.now = 11.5
    await asyncio.wait_for(waiting, timeout=2)
    assert bucket.queued == 0
    assert bucket.tokens == 0
    bucket.close()


def test_try_acquire_does_not_jump_the_queue(fake_clock):
    loop = asyncio.new_event_loop()
    try:
        bucket = TokenBucket(1, clock=fake_clock)
        bucket.try_acquire()
        bucket._waiters.append(loop.create_future())
        fake_clock.advance(1.0)
        assert bucket.tokens == 1
        assert bucket.try_acquire() is False
    finally:
        bucket.close()
        loop.close()


# ---------------------------------------------------------------------------
# Per-client fixed window
# ---------------------------------------------------------------------------

def test_check_rate_limit_blocks_after_threshold(monkeypatch):
    cache = MemoryCacheBackend()
    monkeypatch.setattr(rate_limiter, "get_cache_backend", lambda: cache)

    ok1, c1 = rate_limiter.check_rate_limit("leaderboard", "10.0.0.1", 2)
    ok2, c2 = rate_limiter.check_rate_limit("leaderboard", "10.0.0.1", 2)
    ok3, c3 = rate_limiter.check_rate_limit("leaderboard", "10.0.0.1", 2)
    other, _ = rate_limiter.check_rate_limit("leaderboard", "10.0.0.2", 2)

    assert ok1 is True and c1 == 1
    assert ok2 is True and c2 == 2
    assert ok3 is False and c3 == 3
    assert other is True


def test_check_rate_limit_disabled_with_zero_limit():
    assert rate_limiter.check_rate_limit("leaderboard", "10.0.0.1", 0) == (True, 0)


def test_check_rate_limit_fails_open_when_cache_errors(monkeypatch):
    class BrokenCache:
        def incr(self, *_args, **_kwargs):
            raise RuntimeError("cache down")

    monkeypatch.setattr(rate_limiter, "get_cache_backend", lambda: BrokenCache())
    ok, count = rate_limiter.check_rate_limit("leaderboard", "10.0.0.1", 2)
    assert ok is True
    assert count == 0
