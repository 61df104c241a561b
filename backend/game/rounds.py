"""
Round session store.

Process-local map from object id to the round's scoring target and the
metadata shown with the result.  An entry is written when a round starts
and removed once every start for that id has been scored, so each
started round scores at most once.

Entries do not survive restarts and are not shared between instances.
Scoring a round with no entry therefore tries to rebuild it from the
museum API, applying the same playability rules as candidate selection.
A closed id leaves a tombstone so a replayed score request is refused
rather than rebuilt.  Emergency artworks are never rebuilt.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Collection, Dict, Optional

from backend import config
from backend.core.utils import haversine_km, round_half_up, score_from_distance
from backend.data_pipeline.fetcher import MetFetcher
from backend.data_pipeline.normalizer import normalize_object, rejection_reason
from backend.domain.errors import RoundNotFoundError, UpstreamUnavailableError
from backend.domain.models import ArtworkCandidate, Coordinate, RoundResult, RoundSessionEntry
from backend.game.candidates import EMERGENCY_ARTWORKS
from backend.metrics import record_round

logger = logging.getLogger(__name__)


class RoundStore:

    def __init__(
        self,
        fetcher: Optional[MetFetcher] = None,
        tombstone_seconds: float = config.ROUND_TOMBSTONE_SECONDS,
        entry_ttl_seconds: float = config.ROUND_ENTRY_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        local_only_ids: Optional[Collection[int]] = None,
    ) -> None:
        self._fetcher = fetcher
        self._entries: Dict[int, RoundSessionEntry] = {}
        self._outstanding: Dict[int, int] = {}
        self._scored_at: Dict[int, float] = {}
        self._tombstone_seconds = float(tombstone_seconds)
        self._entry_ttl_seconds = float(entry_ttl_seconds)
        self._clock = clock
        # Emergency ids are not real museum objects; rebuilding them upstream would score the wrong artwork.
        self._local_only_ids = frozenset(
            local_only_ids if local_only_ids is not None else (c.object_id for c in EMERGENCY_ARTWORKS)
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, object_id: int) -> bool:
        return object_id in self._entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start_round(self, object_id: int, target: Coordinate, metadata: Dict[str, Any]) -> None:
        """Insert or overwrite the entry for ``object_id``.

        Several players can be served the same artwork; each start adds one
        outstanding score to the entry.
        """
        now = self._clock()
        self._prune(now)
        self._entries[object_id] = RoundSessionEntry(target=target, metadata=dict(metadata), started_at=now)
        self._outstanding[object_id] = self._outstanding.get(object_id, 0) + 1
        self._scored_at.pop(object_id, None)

    def start_candidate(self, candidate: ArtworkCandidate) -> None:
        self.start_round(candidate.object_id, candidate.target, candidate.display_metadata())

    def outstanding(self, object_id: int) -> int:
        return self._outstanding.get(object_id, 0)

    async def score_round(self, object_id: int, guess: Coordinate) -> RoundResult:
        """Score ``guess`` against the round's target and close the round.

        The entry is closed, and a tombstone written, once every start for
        the id has been scored.  Raises ``RoundNotFoundError`` when there is
        no entry and the round cannot be rebuilt, or when it was already
        scored.
        """
        entry = self._take(object_id)
        reconstructed = False
        if entry is None:
            if self._recently_scored(object_id):
                record_round(False)
                raise RoundNotFoundError(object_id, "already scored")
            entry = await self._reconstruct(object_id)
            # A concurrent request may have scored it while we were fetching.
            if self._recently_scored(object_id):
                record_round(False)
                raise RoundNotFoundError(object_id, "already scored")
            self._scored_at[object_id] = self._clock()
            reconstructed = True

        distance = haversine_km(guess.lat, guess.lng, entry.target.lat, entry.target.lng)
        score = score_from_distance(distance)
        record_round(True)
        logger.info(
            "Scored round %d: %.0f km → %d pts%s",
            object_id, distance, score, " (reconstructed)" if reconstructed else "",
        )
        return RoundResult(
            score=score,
            distance_km=round_half_up(distance),
            target=entry.target,
            metadata=entry.metadata,
            reconstructed=reconstructed,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _take(self, object_id: int) -> Optional[RoundSessionEntry]:
        entry = self._entries.get(object_id)
        if entry is None:
            return None
        remaining = self._outstanding.get(object_id, 1) - 1
        if remaining > 0:
            self._outstanding[object_id] = remaining
        else:
            del self._entries[object_id]
            self._outstanding.pop(object_id, None)
            self._scored_at[object_id] = self._clock()
        return entry

    async def _reconstruct(self, object_id: int) -> RoundSessionEntry:
        if self._fetcher is None:
            record_round(False)
            raise RoundNotFoundError(object_id, "no session entry")
        if object_id in self._local_only_ids:
            record_round(False)
            raise RoundNotFoundError(object_id, "emergency artwork has no upstream record")
        try:
            raw = await self._fetcher.fetch_object(object_id)
        except UpstreamUnavailableError as exc:
            logger.warning("Failed to reconstruct round %d: %s", object_id, exc)
            record_round(False)
            raise RoundNotFoundError(object_id, str(exc)) from exc

        candidate = normalize_object(raw)
        if candidate is None:
            reason = rejection_reason(raw) or "invalid record"
            logger.warning("Failed to reconstruct round %d: %s", object_id, reason)
            record_round(False)
            raise RoundNotFoundError(object_id, reason)
        return RoundSessionEntry(target=candidate.target, metadata=candidate.display_metadata())

    def _recently_scored(self, object_id: int) -> bool:
        scored_at = self._scored_at.get(object_id)
        return scored_at is not None and self._clock() - scored_at < self._tombstone_seconds

    def _prune(self, now: float) -> None:
        for object_id in [k for k, t in self._scored_at.items() if now - t >= self._tombstone_seconds]:
            del self._scored_at[object_id]
        for object_id in [k for k, e in self._entries.items() if now - e.started_at >= self._entry_ttl_seconds]:
            del self._entries[object_id]
            self._outstanding.pop(object_id, None)
