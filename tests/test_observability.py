from __future__ import annotations

import json

import pytest
from fastapi.responses import Response
from starlette.requests import Request

from backend.api import routes
from backend.app import app, request_logging_middleware
from backend.cache_backend import MemoryCacheBackend
from backend.circuit_breaker import CircuitBreaker
from backend.data_pipeline.fetcher import MetFetcher
from backend.domain.models import Coordinate
from backend.game.rounds import RoundStore
from backend.metrics import metrics_snapshot, record_candidate_served, reset_metrics_for_tests
from backend.rate_limiter import TokenBucket


def _scope(path: str) -> dict:
    return {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "query_string": b"",
        "client": ("127.0.0.1", 50000),
        "scheme": "http",
        "server": ("testserver", 80),
    }


@pytest.mark.asyncio
async def test_health_check_returns_observability_fields(monkeypatch):
    cache = MemoryCacheBackend()
    fetcher = MetFetcher(
        base_url="https://met.test/v1",
        rate_limiter=TokenBucket(80),
        breaker=CircuitBreaker(failure_threshold=1, open_seconds=60, name="met-test"),
    )
    store = RoundStore()
    store.start_round(1, Coordinate(lat=0.0, lng=0.0), {})

    monkeypatch.setattr(routes, "get_cache_backend", lambda: cache)
    monkeypatch.setattr(routes, "get_fetcher", lambda: fetcher)
    monkeypatch.setattr(routes, "get_round_store", lambda: store)
    record_candidate_served("static")

    health = await routes.health_check()
    assert health.status == "ok"
    assert health.circuit_state == "closed"
    assert health.cache_backend == "memory"
    assert health.rate_limit_tokens == 80
    assert health.rounds_in_flight == 1
    assert health.candidates_by_source == {"static": 1}
    assert health.candidates["emergency_size"] == 5

    fetcher.breaker.record_failure()
    degraded = await routes.health_check()
    assert degraded.status == "degraded"
    assert degraded.circuit_state == "open"
    await fetcher.close()


@pytest.mark.asyncio
async def test_request_logging_middleware_logs_structured_payload(caplog):
    reset_metrics_for_tests()
    request = Request(_scope("/api/leaderboard"))

    async def _ok(_request: Request) -> Response:
        return Response(status_code=200)

    with caplog.at_level("INFO"):
        response = await request_logging_middleware(request, _ok)

    assert response.headers.get("X-Request-ID")
    line = next(msg for msg in caplog.messages if msg.startswith("request_log "))
    payload = json.loads(line.split(" ", 1)[1])
    assert payload["path"] == "/api/leaderboard"
    assert payload["method"] == "GET"
    assert payload["status"] == 200
    assert payload["duration_ms"] >= 0
    assert metrics_snapshot()["errors_last_hour"] == 0


@pytest.mark.asyncio
async def test_request_logging_middleware_counts_server_errors():
    reset_metrics_for_tests()
    request = Request(_scope("/boom"))

    async def _fail(_request: Request) -> Response:
        return Response(status_code=500)

    await request_logging_middleware(request, _fail)
    assert metrics_snapshot()["errors_last_hour"] == 1


def test_all_endpoints_registered():
    paths = {route.path for route in app.routes}
    assert {
        "/api/random-object",
        "/api/round/score",
        "/api/leaderboard",
        "/api/geo/snap",
        "/api/game/config",
        "/api/health",
    } <= paths
