"""
ArtGuessr — Centralised router registration.

This module is the single place where every APIRouter is mounted onto the
FastAPI application.  Import and call ``register_routes(app)`` once in
``backend.app``.

  GET  /api/random-object   — start a round with a random playable artwork
  POST /api/round/score     — score a guess and close the round
  GET  /api/leaderboard     — top scores, best first
  POST /api/leaderboard     — submit a finished game
  POST /api/geo/snap        — snap a map click to its country's centroid
  GET  /api/game/config     — rounds per game and scoring bounds
  GET  /api/health          — health check
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Body, FastAPI, HTTPException, Request

from backend import config
from backend.api.schemas import (
    ArtworkResponse,
    CoordinateModel,
    GameConfigResponse,
    HealthResponse,
    LeaderboardEntryModel,
    LeaderboardResponse,
    LeaderboardSubmitResponse,
    ScoreResponse,
    SnapResponse,
)
from backend.cache_backend import get_cache_backend
from backend.core.constants import MAX_SCORE, MAX_SCORING_DISTANCE_KM
from backend.core.utils import valid_coordinate
from backend.domain.errors import (
    CandidateUnavailableError,
    InvalidLeaderboardEntryError,
    RoundNotFoundError,
)
from backend.domain.models import Coordinate
from backend.metrics import metrics_snapshot
from backend.rate_limiter import check_rate_limit
from backend.services import (
    get_candidate_provider,
    get_fetcher,
    get_geocoder,
    get_leaderboard,
    get_round_store,
)

logger = logging.getLogger(__name__)

# Module-level start time for uptime reporting
_START_TIME: float = time.time()


def _parse_coordinate(raw: Any, field: str) -> Coordinate:
    if not isinstance(raw, dict):
        raise HTTPException(status_code=400, detail=f"{field} must be an object with lat and lng")
    lat, lng = raw.get("lat"), raw.get("lng")
    if not valid_coordinate(lat, lng):
        raise HTTPException(
            status_code=400,
            detail=f"{field} needs numeric lat in [-90, 90] and lng in [-180, 180]",
        )
    return Coordinate(lat=float(lat), lng=float(lng))


def _parse_object_id(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise HTTPException(status_code=400, detail="objectId must be a positive integer")
    return raw


# ---------------------------------------------------------------------------
# Rounds
# ---------------------------------------------------------------------------

game_router = APIRouter(prefix="/api", tags=["game"])


@game_router.get(
    "/random-object",
    response_model=ArtworkResponse,
    summary="Start a round",
    description=(
        "Returns one random public-domain artwork whose country maps to a "
        "known centroid, and starts a round for it."
    ),
)
async def get_random_object():
    try:
        candidate = await get_candidate_provider().get_random_candidate()
    except CandidateUnavailableError as exc:
        logger.error("No artwork candidate available: %s", exc)
        raise HTTPException(status_code=503, detail="No artwork available, please try again later")

    get_round_store().start_candidate(candidate)
    return ArtworkResponse(**candidate.to_dict())


@game_router.post(
    "/round/score",
    response_model=ScoreResponse,
    summary="Score a guess",
)
async def score_round(body: Dict[str, Any] = Body(...)):
    object_id = _parse_object_id(body.get("objectId"))
    guess = _parse_coordinate(body.get("guess"), "guess")

    try:
        result = await get_round_store().score_round(object_id, guess)
    except RoundNotFoundError as exc:
        logger.info("Score request for unknown round %d (%s)", object_id, exc.reason)
        raise HTTPException(status_code=404, detail="Round not found or expired")

    return ScoreResponse(
        score=result.score,
        distanceKm=result.distance_km,
        target=CoordinateModel(**result.target.to_dict()),
        object=result.metadata,
    )


@game_router.get(
    "/game/config",
    response_model=GameConfigResponse,
    summary="Game constants for clients",
)
async def get_game_config():
    return GameConfigResponse(
        totalRounds=config.TOTAL_ROUNDS,
        maxScore=MAX_SCORE,
        maxDistanceKm=MAX_SCORING_DISTANCE_KM,
    )


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

leaderboard_router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@leaderboard_router.get("", response_model=LeaderboardResponse, summary="Top scores")
async def get_leaderboard_scores():
    entries = get_leaderboard().top()
    return LeaderboardResponse(
        scores=[LeaderboardEntryModel(name=e.name, score=e.score) for e in entries],
    )


@leaderboard_router.post("", response_model=LeaderboardSubmitResponse, summary="Submit a finished game")
async def submit_leaderboard_score(request: Request, body: Dict[str, Any] = Body(...)):
    client_host = request.client.host if request.client else "unknown"
    allowed, _count = check_rate_limit(
        "leaderboard",
        client_host,
        config.LEADERBOARD_SUBMIT_LIMIT_PER_MINUTE,
    )
    if not allowed:
        raise HTTPException(status_code=429, detail="Too many submissions; retry in under a minute")

    try:
        entry = get_leaderboard().submit(body.get("name"), body.get("score"))
    except InvalidLeaderboardEntryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return LeaderboardSubmitResponse(ok=True, name=entry.name)


# ---------------------------------------------------------------------------
# Geo
# ---------------------------------------------------------------------------

geo_router = APIRouter(prefix="/api/geo", tags=["geo"])


@geo_router.post(
    "/snap",
    response_model=SnapResponse,
    summary="Snap a map click to a country centroid",
    description="Falls back to the raw click when the country cannot be resolved.",
)
async def snap_click(body: Dict[str, Any] = Body(...)):
    click = _parse_coordinate(body, "click")
    snapped = await get_geocoder().snap(click.lat, click.lng)
    return SnapResponse(
        lat=snapped.point.lat,
        lng=snapped.point.lng,
        country=snapped.country,
        snapped=snapped.snapped,
    )


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

system_router = APIRouter(prefix="/api", tags=["system"])


@system_router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check():
    fetcher = get_fetcher()
    circuit_state = fetcher.breaker.state.value
    metrics = metrics_snapshot()
    return HealthResponse(
        status="ok" if circuit_state == "closed" else "degraded",
        version=config.VERSION,
        cache_backend=get_cache_backend().backend,
        circuit_state=circuit_state,
        rate_limit_tokens=fetcher.rate_limiter.tokens,
        rounds_in_flight=len(get_round_store()),
        uptime_seconds=round(time.time() - _START_TIME, 1),
        cache_hit_rate=float(metrics.get("cache_hit_rate", 0.0) or 0.0),
        upstream_failures=int(metrics.get("upstream_failures", 0) or 0),
        rounds_scored=int(metrics.get("rounds_scored", 0) or 0),
        rounds_not_found=int(metrics.get("rounds_not_found", 0) or 0),
        candidates_by_source=dict(metrics.get("candidates_by_source", {}) or {}),
        errors_last_hour=int(metrics.get("errors_last_hour", 0) or 0),
        candidates=get_candidate_provider().describe(),
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_routes(app: FastAPI) -> None:
    """Mount all routers onto ``app``.

    Call this once from ``backend.app`` after creating the FastAPI instance.
    """
    app.include_router(game_router)
    app.include_router(leaderboard_router)
    app.include_router(geo_router)
    app.include_router(system_router)

    logger.info("Routes registered: %d total endpoints", len(app.routes))
