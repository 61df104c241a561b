"""
Lightweight runtime metrics for health/observability.

Uses in-process counters so it works without extra dependencies.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from typing import Deque, Dict


class _RuntimeMetrics:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache_hits = 0
        self._cache_misses = 0
        self._upstream_failures = 0
        self._rounds_scored = 0
        self._rounds_not_found = 0
        self._candidates_by_source: Counter = Counter()
        self._error_timestamps: Deque[float] = deque()

    def record_cache_access(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._cache_hits += 1
            else:
                self._cache_misses += 1

    def record_upstream_failure(self) -> None:
        with self._lock:
            self._upstream_failures += 1

    def record_candidate_served(self, source: str) -> None:
        with self._lock:
            self._candidates_by_source[source] += 1

    def record_round(self, found: bool) -> None:
        with self._lock:
            if found:
                self._rounds_scored += 1
            else:
                self._rounds_not_found += 1

    def record_error(self, ts: float | None = None) -> None:
        now = ts if ts is not None else time.time()
        with self._lock:
            self._error_timestamps.append(now)
            self._prune_locked(now)

    def snapshot(self) -> Dict[str, object]:
        now = time.time()
        with self._lock:
            self._prune_locked(now)
            total = self._cache_hits + self._cache_misses
            cache_hit_rate = (self._cache_hits / total) if total > 0 else 0.0
            return {
                "cache_hit_rate": round(cache_hit_rate, 4),
                "upstream_failures": self._upstream_failures,
                "rounds_scored": self._rounds_scored,
                "rounds_not_found": self._rounds_not_found,
                "candidates_by_source": dict(self._candidates_by_source),
                "errors_last_hour": len(self._error_timestamps),
            }

    def reset_for_tests(self) -> None:
        with self._lock:
            self._cache_hits = 0
            self._cache_misses = 0
            self._upstream_failures = 0
            self._rounds_scored = 0
            self._rounds_not_found = 0
            self._candidates_by_source.clear()
            self._error_timestamps.clear()

    def _prune_locked(self, now: float) -> None:
        cutoff = now - 3600.0
        while self._error_timestamps and self._error_timestamps[0] < cutoff:
            self._error_timestamps.popleft()


_METRICS = _RuntimeMetrics()


def record_cache_access(hit: bool) -> None:
    _METRICS.record_cache_access(hit)


def record_upstream_failure() -> None:
    _METRICS.record_upstream_failure()


def record_candidate_served(source: str) -> None:
    _METRICS.record_candidate_served(source)


def record_round(found: bool) -> None:
    _METRICS.record_round(found)


def record_error(ts: float | None = None) -> None:
    _METRICS.record_error(ts)


def metrics_snapshot() -> Dict[str, object]:
    return _METRICS.snapshot()


def reset_metrics_for_tests() -> None:
    _METRICS.reset_for_tests()
