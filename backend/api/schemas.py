"""
ArtGuessr — API request/response schemas (Pydantic).

Field names follow the JSON the browser client reads (camelCase), so the
models serialise without aliases.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Shared primitives
# ---------------------------------------------------------------------------

class CoordinateModel(BaseModel):
    lat: float
    lng: float


# ---------------------------------------------------------------------------
# Rounds (GET /api/random-object, POST /api/round/score)
# ---------------------------------------------------------------------------

class ArtworkResponse(BaseModel):
    """One playable artwork.  ``target`` is what the round is scored against."""

    objectId: int
    imageUrl: str
    title: str
    artist: str
    year: str
    country: str
    locationDescription: str
    target: CoordinateModel
    medium: Optional[str] = None
    source: str = "live"

    class Config:
        json_schema_extra = {
            "example": {
                "objectId": 436535,
                "imageUrl": "https://images.metmuseum.org/CRDImages/ep/web-large/DT1567.jpg",
                "title": "Wheat Field with Cypresses",
                "artist": "Vincent van Gogh",
                "year": "1889",
                "country": "France",
                "locationDescription": "France",
                "target": {"lat": 46.2276, "lng": 2.2137},
                "source": "live",
            }
        }


class ScoreResponse(BaseModel):
    score: int
    distanceKm: int
    target: CoordinateModel
    object: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

class LeaderboardEntryModel(BaseModel):
    name: str
    score: Union[int, float]

    @field_validator("score", mode="before")
    @classmethod
    def _whole_scores_as_int(cls, v: Any) -> Any:
        # Sorted-set scores come back as floats; game totals are whole numbers.
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class LeaderboardResponse(BaseModel):
    scores: List[LeaderboardEntryModel] = Field(default_factory=list)


class LeaderboardSubmitResponse(BaseModel):
    ok: bool = True
    name: str


# ---------------------------------------------------------------------------
# Geo / game
# ---------------------------------------------------------------------------

class SnapResponse(BaseModel):
    """A map click after snapping; ``snapped`` is False when the raw click was kept."""
    lat: float
    lng: float
    country: Optional[str] = None
    snapped: bool = False


class GameConfigResponse(BaseModel):
    totalRounds: int
    maxScore: int
    maxDistanceKm: float


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str
    version: str = "1.0.0"
    cache_backend: str = "memory"
    circuit_state: str = "closed"
    rate_limit_tokens: int = 0
    rounds_in_flight: int = 0
    uptime_seconds: float = 0.0
    cache_hit_rate: float = 0.0
    upstream_failures: int = 0
    rounds_scored: int = 0
    rounds_not_found: int = 0
    candidates_by_source: Dict[str, int] = Field(default_factory=dict)
    errors_last_hour: int = 0
    candidates: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
