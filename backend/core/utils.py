"""
ArtGuessr — Shared pure utilities.

Distance, scoring and input-sanitising helpers used across the backend.
No imports from other backend modules; only the standard library and
backend.core.constants are allowed.
"""

from __future__ import annotations

import math
import re
from typing import Optional

from backend.core.constants import (
    EARTH_RADIUS_KM,
    LAT_MAX,
    LAT_MIN,
    LNG_MAX,
    LNG_MIN,
    MAX_SCORE,
    MAX_SCORING_DISTANCE_KM,
    PLAYER_NAME_MAX_LEN,
)

_NAME_DISALLOWED = re.compile(r"[^A-Za-z0-9 ]")


# ---------------------------------------------------------------------------
# Distance
# ---------------------------------------------------------------------------

def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two lat/lng points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    la1 = math.radians(lat1)
    la2 = math.radians(lat2)
    h = math.sin(d_lat / 2) ** 2 + math.cos(la1) * math.cos(la2) * math.sin(d_lng / 2) ** 2
    # Float error can push h a hair past 1.0 for antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def score_from_distance(distance_km: float) -> int:
    """Map a guess distance to points in ``[0, MAX_SCORE]``.

    Linear decay: ``MAX_SCORE`` at 0 km, falling to 0 at
    ``MAX_SCORING_DISTANCE_KM`` and staying there.
    """
    if math.isnan(distance_km) or distance_km >= MAX_SCORING_DISTANCE_KM:
        return 0
    d = max(0.0, distance_km)
    return round_half_up(MAX_SCORE * (1.0 - d / MAX_SCORING_DISTANCE_KM))


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def is_number(value) -> bool:
    """True for finite ints/floats.  ``bool`` is rejected even though it is an int."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def valid_coordinate(lat, lng) -> bool:
    return (
        is_number(lat)
        and is_number(lng)
        and LAT_MIN <= lat <= LAT_MAX
        and LNG_MIN <= lng <= LNG_MAX
    )


def sanitize_player_name(raw: Optional[str]) -> str:
    """Trim, cap at 24 chars and drop anything but ASCII letters, digits and spaces.

    Returns an empty string when nothing usable is left.
    """
    if not isinstance(raw, str):
        return ""
    name = raw.strip()[:PLAYER_NAME_MAX_LEN]
    return _NAME_DISALLOWED.sub("", name).strip()
