from __future__ import annotations

import time

from backend.metrics import (
    metrics_snapshot,
    record_cache_access,
    record_candidate_served,
    record_error,
    record_round,
    record_upstream_failure,
    reset_metrics_for_tests,
)


def test_metrics_snapshot_counts_and_rates():
    reset_metrics_for_tests()
    record_cache_access(True)
    record_cache_access(True)
    record_cache_access(False)
    record_upstream_failure()
    record_candidate_served("live")
    record_candidate_served("live")
    record_candidate_served("emergency")
    record_round(True)
    record_round(False)
    record_error(time.time() - 4000)  # pruned from 1h window
    record_error(time.time())

    snap = metrics_snapshot()
    assert snap["cache_hit_rate"] == 0.6667
    assert snap["upstream_failures"] == 1
    assert snap["candidates_by_source"] == {"live": 2, "emergency": 1}
    assert snap["rounds_scored"] == 1
    assert snap["rounds_not_found"] == 1
    assert snap["errors_last_hour"] == 1


def test_empty_snapshot():
    reset_metrics_for_tests()
    snap = metrics_snapshot()
    assert snap["cache_hit_rate"] == 0.0
    assert snap["candidates_by_source"] == {}
