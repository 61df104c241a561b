"""
Leaderboard store — top-N player scores in a shared sorted set.

Backed by whatever ``get_cache_backend()`` returns: a Redis sorted set in
production, the in-memory mirror locally and in tests.  A name keeps its
best score; after every write the set is trimmed to the top ``size``.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from backend import config
from backend.cache_backend import CacheBackend, get_cache_backend
from backend.core.utils import is_number, sanitize_player_name
from backend.domain.errors import InvalidLeaderboardEntryError
from backend.domain.models import LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardStore:

    def __init__(
        self,
        cache_factory: Callable[[], CacheBackend] = get_cache_backend,
        key: str = config.LEADERBOARD_KEY,
        size: int = config.LEADERBOARD_SIZE,
    ) -> None:
        self._cache_factory = cache_factory
        self._key = key
        self._size = max(1, int(size))

    @property
    def size(self) -> int:
        return self._size

    def submit(self, name, score) -> LeaderboardEntry:
        """Validate, sanitise and record a finished game.

        Returns the entry as stored.  Raises ``InvalidLeaderboardEntryError``
        for a name that is blank after sanitising or a score that is not a
        non-negative number.
        """
        clean = sanitize_player_name(name)
        if not clean:
            raise InvalidLeaderboardEntryError("Invalid name")
        if not is_number(score) or score < 0:
            raise InvalidLeaderboardEntryError("Score must be a non-negative number")

        cache = self._cache_factory()
        cache.zadd_max(self._key, clean, float(score))
        cache.ztrim_top(self._key, self._size)
        logger.info("Leaderboard submission: %s → %s", clean, score)
        return LeaderboardEntry(name=clean, score=float(score))

    def top(self, limit: int | None = None) -> List[LeaderboardEntry]:
        """Up to ``limit`` (default: the board size) entries, highest score first."""
        count = self._size if limit is None else max(0, min(int(limit), self._size))
        rows = self._cache_factory().ztop(self._key, count)
        return [LeaderboardEntry(name=name, score=score) for name, score in rows]
