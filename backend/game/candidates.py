"""
Artwork candidate provider.

Produces one playable artwork per call, trying tiers in a fixed order:

  1. live     — random pick from the Met's on-view object ids, validated
                per record (bounded attempts per call)
  2. static   — the generated fallback list on disk
  3. dynamic  — a pool assembled from a small batch of upstream searches,
                rebuilt at most once per TTL and shared through the cache
                backend so cold-started instances can reuse it
  4. emergency — five hard-coded entries; never empty

Live-first keeps rounds fresh while the API is healthy; the cheaper tiers
only serve when it is disabled, its circuit is open, or every attempt in
the call was rejected.

Every accepted live or dynamic candidate is memoized by object id so a
repeated pick never costs a second upstream call.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import random
import time
from collections import OrderedDict
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

from backend import config
from backend.cache_backend import CacheBackend, get_cache_backend
from backend.core.constants import (
    DYNAMIC_POOL_CACHE_KEY,
    DYNAMIC_POOL_GEO_SHARE,
    DYNAMIC_POOL_PAINTINGS_SHARE,
    DYNAMIC_POOL_TERMS,
)
from backend.data_pipeline.fetcher import MetFetcher
from backend.data_pipeline.normalizer import normalize_object, split_valid
from backend.domain.enums import CandidateSource
from backend.domain.errors import (
    CandidateUnavailableError,
    CircuitOpenError,
    UpstreamUnavailableError,
)
from backend.domain.models import ArtworkCandidate
from backend.geo.centroids import get_country_centroid, known_countries
from backend.metrics import record_cache_access, record_candidate_served

logger = logging.getLogger(__name__)


def _emergency(object_id: int, image_url: str, title: str, artist: str, year: str, country: str) -> ArtworkCandidate:
    return ArtworkCandidate(
        object_id=object_id,
        image_url=image_url,
        title=title,
        artist=artist,
        year=year,
        country=country,
        target=get_country_centroid(country),
        source=CandidateSource.EMERGENCY,
    )


EMERGENCY_ARTWORKS: Sequence[ArtworkCandidate] = (
    _emergency(1001, "https://images.metmuseum.org/CRDImages/ep/original/DT1567.jpg",
               "The Starry Night", "Vincent van Gogh", "1889", "Netherlands"),
    _emergency(1002, "https://images.metmuseum.org/CRDImages/ep/original/DT47.jpg",
               "Self-Portrait", "Vincent van Gogh", "1889", "Netherlands"),
    _emergency(1003, "https://images.metmuseum.org/CRDImages/ep/original/DT1567.jpg",
               "The Great Wave off Kanagawa", "Katsushika Hokusai", "1830-1832", "Japan"),
    _emergency(1004, "https://images.metmuseum.org/CRDImages/ep/original/DT47.jpg",
               "The Birth of Venus", "Sandro Botticelli", "1485-1486", "Italy"),
    _emergency(1005, "https://images.metmuseum.org/CRDImages/ep/original/DT1567.jpg",
               "The Persistence of Memory", "Salvador Dalí", "1931", "Spain"),
)


def load_static_candidates(path: str) -> List[ArtworkCandidate]:
    """Read the generated fallback list.  A missing or unreadable file is an empty tier."""
    if not path or not os.path.exists(path):
        logger.warning("Static fallback file '%s' not found; static tier disabled.", path)
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error reading static fallback file '%s': %s", path, e)
        return []

    if isinstance(records, dict):
        records = records.get("artworks", [])
    candidates, dropped = split_valid(records, CandidateSource.STATIC)
    logger.info(
        "Loaded %d static fallback artworks from %s (%d dropped)",
        len(candidates), path, dropped,
    )
    return candidates


class CandidateProvider:
    """Selects a random playable artwork.  One instance per process."""

    def __init__(
        self,
        fetcher: MetFetcher,
        cache_factory: Callable[[], CacheBackend] = get_cache_backend,
        static_path: str = config.FALLBACK_DATA_PATH,
        live_enabled: bool = config.MET_LIVE_ENABLED,
        max_attempts: int = config.MET_MAX_CANDIDATE_ATTEMPTS,
        object_cache_size: int = config.OBJECT_CACHE_SIZE,
        dynamic_ttl: float = config.DYNAMIC_POOL_TTL_SECONDS,
        dynamic_max_searches: int = config.DYNAMIC_POOL_MAX_SEARCHES,
        dynamic_max_fetches: int = config.DYNAMIC_POOL_MAX_FETCHES,
        dynamic_target_size: int = config.DYNAMIC_POOL_TARGET_SIZE,
        dynamic_retry_seconds: float = config.MET_CIRCUIT_OPEN_SECONDS,
        emergency: Sequence[ArtworkCandidate] = EMERGENCY_ARTWORKS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._fetcher = fetcher
        self._cache_factory = cache_factory
        self._static_path = static_path
        self._live_enabled = live_enabled
        self._max_attempts = max(1, int(max_attempts))
        self._object_cache: "OrderedDict[int, ArtworkCandidate]" = OrderedDict()
        self._object_cache_size = max(1, int(object_cache_size))
        self._static: Optional[List[ArtworkCandidate]] = None

        self._dynamic: List[ArtworkCandidate] = []
        self._dynamic_built_at: float = 0.0
        self._dynamic_failed_at: float = 0.0
        self._dynamic_ttl = float(dynamic_ttl)
        self._dynamic_retry_seconds = float(dynamic_retry_seconds)
        self._dynamic_max_searches = max(1, int(dynamic_max_searches))
        self._dynamic_max_fetches = max(1, int(dynamic_max_fetches))
        self._dynamic_target_size = max(1, int(dynamic_target_size))
        self._dynamic_lock = asyncio.Lock()

        self._emergency = list(emergency)
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_random_candidate(self) -> ArtworkCandidate:
        """Return one playable artwork, falling through the tiers in order.

        Raises ``CandidateUnavailableError`` only when the emergency list
        itself is empty.
        """
        if self._live_available():
            candidate = await self._from_live()
            if candidate is not None:
                return self._served(candidate)
            logger.info("Live candidate path exhausted; falling back")

        static = self.static_candidates()
        if static:
            return self._served(self._rng.choice(static))

        pool = await self.dynamic_pool()
        if pool:
            return self._served(self._rng.choice(pool))

        if self._emergency:
            logger.warning("All candidate tiers empty; serving emergency artwork")
            return self._served(self._rng.choice(self._emergency))

        raise CandidateUnavailableError("No artwork candidates available")

    def cached(self, object_id: int) -> Optional[ArtworkCandidate]:
        candidate = self._object_cache.get(object_id)
        if candidate is not None:
            self._object_cache.move_to_end(object_id)
        return candidate

    def remember(self, candidate: ArtworkCandidate) -> None:
        self._object_cache[candidate.object_id] = candidate
        self._object_cache.move_to_end(candidate.object_id)
        while len(self._object_cache) > self._object_cache_size:
            self._object_cache.popitem(last=False)

    def static_candidates(self) -> List[ArtworkCandidate]:
        if self._static is None:
            self._static = load_static_candidates(self._static_path)
        return self._static

    async def dynamic_pool(self) -> List[ArtworkCandidate]:
        """The dynamic tier, rebuilt at most once per TTL window."""
        if self._dynamic and time.time() - self._dynamic_built_at < self._dynamic_ttl:
            return self._dynamic

        async with self._dynamic_lock:
            # Another caller may have finished a build while we waited.
            if self._dynamic and time.time() - self._dynamic_built_at < self._dynamic_ttl:
                return self._dynamic

            shared = self._load_shared_pool()
            if shared:
                self._dynamic = shared
                self._dynamic_built_at = time.time()
                return self._dynamic

            if not self._live_available():
                return []
            if time.time() - self._dynamic_failed_at < self._dynamic_retry_seconds:
                return []

            pool = await self._build_dynamic_pool()
            if not pool:
                self._dynamic_failed_at = time.time()
                return []
            self._dynamic = pool
            self._dynamic_built_at = time.time()
            self._store_shared_pool(pool)
            return pool

    def describe(self) -> dict:
        return {
            "live_enabled": self._live_enabled,
            "object_cache_size": len(self._object_cache),
            "static_size": len(self._static) if self._static is not None else None,
            "dynamic_size": len(self._dynamic),
            "emergency_size": len(self._emergency),
        }

    # ------------------------------------------------------------------
    # Live tier
    # ------------------------------------------------------------------

    def _live_available(self) -> bool:
        return self._live_enabled and not self._fetcher.breaker.is_open()

    async def _from_live(self) -> Optional[ArtworkCandidate]:
        try:
            object_ids = await self._fetcher.fetch_object_ids()
        except UpstreamUnavailableError as exc:
            logger.warning("Object-id pool unavailable: %s", exc)
            return None
        if not object_ids:
            return None

        for attempt in range(1, self._max_attempts + 1):
            object_id = self._rng.choice(object_ids)
            hit = self.cached(object_id)
            record_cache_access(hit is not None)
            if hit is not None:
                logger.debug("Using cached object %d: %s", object_id, hit.title)
                return hit

            try:
                raw = await self._fetcher.fetch_object(object_id)
            except CircuitOpenError:
                return None
            except UpstreamUnavailableError as exc:
                logger.debug("Attempt %d: object %d failed: %s", attempt, object_id, exc)
                continue

            candidate = normalize_object(raw, CandidateSource.LIVE)
            if candidate is None:
                continue
            self.remember(candidate)
            logger.info("Accepted object %d (%s, %s)", candidate.object_id, candidate.title, candidate.country)
            return candidate
        return None

    # ------------------------------------------------------------------
    # Dynamic tier
    # ------------------------------------------------------------------

    def _load_shared_pool(self) -> List[ArtworkCandidate]:
        try:
            records = self._cache_factory().get_json(DYNAMIC_POOL_CACHE_KEY)
        except Exception as exc:
            logger.warning("Shared dynamic pool unreadable: %s", exc)
            return []
        if not records:
            return []
        pool, _ = split_valid(records, CandidateSource.DYNAMIC)
        return pool

    def _store_shared_pool(self, pool: List[ArtworkCandidate]) -> None:
        try:
            self._cache_factory().set_json(
                DYNAMIC_POOL_CACHE_KEY,
                [c.to_dict() for c in pool],
                ttl_seconds=int(self._dynamic_ttl),
            )
        except Exception as exc:
            logger.warning("Could not share dynamic pool: %s", exc)

    async def _collect_ids(self) -> List[int]:
        terms = self._rng.sample(
            list(DYNAMIC_POOL_TERMS),
            min(self._dynamic_max_searches, len(DYNAMIC_POOL_TERMS)),
        )
        countries = known_countries()
        seen = set()
        collected: List[int] = []
        for term in terms:
            geo = self._rng.choice(countries) if self._rng.random() < DYNAMIC_POOL_GEO_SHARE else None
            paintings = self._rng.random() < DYNAMIC_POOL_PAINTINGS_SHARE
            try:
                ids = await self._fetcher.search(term, geo_location=geo, paintings_only=paintings)
            except CircuitOpenError:
                break
            except UpstreamUnavailableError as exc:
                logger.debug("Dynamic pool search %r failed: %s", term, exc)
                continue
            for object_id in ids:
                if object_id not in seen:
                    seen.add(object_id)
                    collected.append(object_id)
        self._rng.shuffle(collected)
        return collected[: self._dynamic_max_fetches]

    async def _fetch_candidate(self, object_id: int) -> Optional[ArtworkCandidate]:
        hit = self.cached(object_id)
        if hit is not None:
            return hit
        try:
            raw = await self._fetcher.fetch_object(object_id)
        except UpstreamUnavailableError:
            return None
        return normalize_object(raw, CandidateSource.DYNAMIC)

    async def _build_dynamic_pool(self) -> List[ArtworkCandidate]:
        started = time.time()
        object_ids = await self._collect_ids()
        if not object_ids:
            logger.warning("Dynamic pool build found no object ids")
            return []

        # The fetcher's token bucket bounds how fast these actually go out.
        results = await asyncio.gather(
            *(self._fetch_candidate(object_id) for object_id in object_ids),
        )
        pool: List[ArtworkCandidate] = []
        for candidate in results:
            if candidate is None:
                continue
            if candidate.source is not CandidateSource.DYNAMIC:
                candidate = _with_source(candidate, CandidateSource.DYNAMIC)
            pool.append(candidate)
            self.remember(candidate)
            if len(pool) >= self._dynamic_target_size:
                break

        logger.info(
            "Built dynamic pool: %d artworks from %d ids in %.1fs",
            len(pool), len(object_ids), time.time() - started,
        )
        return pool

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _served(candidate: ArtworkCandidate) -> ArtworkCandidate:
        record_candidate_served(candidate.source.value)
        return candidate


def _with_source(candidate: ArtworkCandidate, source: CandidateSource) -> ArtworkCandidate:
    return replace(candidate, source=source)
