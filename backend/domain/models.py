"""
backend.domain.models — Canonical dataclass models.

These are the single source of truth for data structures flowing through
the game backend.  Layers that produce or consume these models must not
invent their own parallel types.

Import pattern::

    from backend.domain.models import ArtworkCandidate, Coordinate
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from backend.domain.enums import CandidateSource


# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coordinate:
    """A point on the globe.  lat in [-90, 90], lng in [-180, 180]."""
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class SnappedGuess:
    """A map click after country snapping.  ``snapped`` is False when the raw click was kept."""
    point:   Coordinate
    country: Optional[str]
    snapped: bool


# ---------------------------------------------------------------------------
# Artwork candidate (one round's subject)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArtworkCandidate:
    """
    A displayable artwork with a resolved scoring target.
    Produced by ``backend.game.candidates``; immutable once built.

    ``year`` is the museum's free-text date label ("ca. 1650", "1889").
    """
    object_id: int
    image_url: str
    title:     str
    artist:    str
    year:      str
    country:   str
    target:    Coordinate
    medium:    Optional[str] = None
    source:    CandidateSource = CandidateSource.LIVE

    def display_metadata(self) -> Dict[str, Any]:
        """Snapshot shown alongside the round result (no target)."""
        meta: Dict[str, Any] = {
            "objectId": self.object_id,
            "imageUrl": self.image_url,
            "title": self.title,
            "artist": self.artist,
            "year": self.year,
            "country": self.country,
            "locationDescription": self.country,
        }
        if self.medium:
            meta["medium"] = self.medium
        return meta

    def to_dict(self) -> Dict[str, Any]:
        out = self.display_metadata()
        out["target"] = self.target.to_dict()
        out["source"] = self.source.value
        return out


# ---------------------------------------------------------------------------
# Round session
# ---------------------------------------------------------------------------

@dataclass
class RoundSessionEntry:
    target:     Coordinate
    metadata:   Dict[str, Any]
    started_at: float = field(default_factory=time.time)


@dataclass
class RoundResult:
    """Outcome of scoring one guess.  ``distance_km`` is rounded to whole km."""
    score:       int
    distance_km: int
    target:      Coordinate
    metadata:    Dict[str, Any]
    reconstructed: bool = False


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LeaderboardEntry:
    name:  str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score}
