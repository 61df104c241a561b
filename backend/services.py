"""
Process-wide components, built lazily on first use.

Each getter returns the same instance for the life of the process, so the
token bucket, circuit breaker, object cache and round map are shared by
every request.  Tests swap or reset them with ``reset_services_for_tests``.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.data_pipeline.fetcher import MetFetcher
from backend.game.candidates import CandidateProvider
from backend.game.leaderboard import LeaderboardStore
from backend.game.rounds import RoundStore
from backend.geo.reverse_geocoder import ReverseGeocoder

logger = logging.getLogger(__name__)

_fetcher: Optional[MetFetcher] = None
_provider: Optional[CandidateProvider] = None
_round_store: Optional[RoundStore] = None
_leaderboard: Optional[LeaderboardStore] = None
_geocoder: Optional[ReverseGeocoder] = None


def get_fetcher() -> MetFetcher:
    global _fetcher
    if _fetcher is None:
        _fetcher = MetFetcher()
    return _fetcher


def get_candidate_provider() -> CandidateProvider:
    global _provider
    if _provider is None:
        _provider = CandidateProvider(get_fetcher())
    return _provider


def get_round_store() -> RoundStore:
    global _round_store
    if _round_store is None:
        _round_store = RoundStore(fetcher=get_fetcher())
    return _round_store


def get_leaderboard() -> LeaderboardStore:
    global _leaderboard
    if _leaderboard is None:
        _leaderboard = LeaderboardStore()
    return _leaderboard


def get_geocoder() -> ReverseGeocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = ReverseGeocoder()
    return _geocoder


async def close_services() -> None:
    """Close outbound HTTP clients.  Called from the app lifespan on shutdown."""
    if _fetcher is not None:
        await _fetcher.close()
    if _geocoder is not None:
        await _geocoder.close()
    logger.info("Outbound clients closed")


def reset_services_for_tests() -> None:
    global _fetcher, _provider, _round_store, _leaderboard, _geocoder
    _fetcher = None
    _provider = None
    _round_store = None
    _leaderboard = None
    _geocoder = None
