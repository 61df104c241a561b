"""
ArtGuessr — System-wide constants.

Every magic number lives here. If you find a literal in the codebase that is
not a local variable, it belongs here instead.
"""

# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

EARTH_RADIUS_KM: float = 6371.0

LAT_MIN: float = -90.0
LAT_MAX: float = 90.0
LNG_MIN: float = -180.0
LNG_MAX: float = 180.0

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

MAX_SCORE: int = 5000
# Guesses this far away (or further) earn nothing.
MAX_SCORING_DISTANCE_KM: float = 10_000.0

# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

PLAYER_NAME_MAX_LEN: int = 24

# ---------------------------------------------------------------------------
# Upstream HTTP
# ---------------------------------------------------------------------------

USER_AGENT: str = "ArtGuessr/1.0 (Educational Game)"

# Status codes worth retrying; everything else >= 400 fails immediately.
RETRYABLE_STATUS_MIN: int = 500

# ---------------------------------------------------------------------------
# Candidate defaults
# ---------------------------------------------------------------------------

DEFAULT_TITLE: str = "Untitled"
DEFAULT_ARTIST: str = "Unknown Artist"
DEFAULT_DATE: str = "Unknown Date"

# Search terms for the dynamic candidate pool.
DYNAMIC_POOL_TERMS = (
    "art", "sculpture", "ceramic", "textile", "print", "metal",
    "wood", "glass", "bronze", "silver", "gold", "ivory",
)
# Share of dynamic-pool searches restricted to paintings.
DYNAMIC_POOL_PAINTINGS_SHARE: float = 0.20
# Share of dynamic-pool searches pinned to a random centroid country.
DYNAMIC_POOL_GEO_SHARE: float = 0.50

# Cache keys (shared cache backend)
DYNAMIC_POOL_CACHE_KEY: str = "artworks:dynamic_pool"

# Reverse-geocode cache key precision (decimal places)
GEOCODE_CACHE_PRECISION: int = 4
