"""
Centralized configuration for ArtGuessr.
All settings come from environment variables for 12-factor deployment.
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


_BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8001"))
VERSION = "1.0.0"

# Starlette mirrors the request Origin when credentials=True + "*".
CORS_ORIGINS = [
    s.strip()
    for s in os.environ.get("CORS_ORIGINS", "*").split(",")
    if s.strip()
] or ["*"]

# ---------------------------------------------------------------------------
# Shared store (leaderboard sorted set, dynamic candidate pool)
# ---------------------------------------------------------------------------
REDIS_URL = os.environ.get("REDIS_URL", "").strip()
LEADERBOARD_KEY = os.environ.get("LEADERBOARD_KEY", "leaderboard")
LEADERBOARD_SIZE = int(os.environ.get("LEADERBOARD_SIZE", "10"))

# ---------------------------------------------------------------------------
# Met Museum collection API
# ---------------------------------------------------------------------------
MET_API_BASE = os.environ.get(
    "MET_API_BASE",
    "https://collectionapi.metmuseum.org/public/collection/v1",
).rstrip("/")
MET_LIVE_ENABLED = _env_bool("MET_LIVE_ENABLED", True)
# The Met asks clients to stay below 80 requests per second.
MET_RATE_LIMIT_RPS = int(os.environ.get("MET_RATE_LIMIT_RPS", "80"))
MET_TIMEOUT_SECONDS = float(os.environ.get("MET_TIMEOUT_SECONDS", "15"))
MET_MAX_RETRIES = int(os.environ.get("MET_MAX_RETRIES", "3"))
MET_RETRY_BACKOFF_BASE = float(os.environ.get("MET_RETRY_BACKOFF_BASE", "1.0"))
MET_CIRCUIT_FAILURE_THRESHOLD = int(os.environ.get("MET_CIRCUIT_FAILURE_THRESHOLD", "5"))
MET_CIRCUIT_OPEN_SECONDS = int(os.environ.get("MET_CIRCUIT_OPEN_SECONDS", "60"))
MET_OBJECT_IDS_TTL_SECONDS = int(os.environ.get("MET_OBJECT_IDS_TTL_SECONDS", str(24 * 3600)))
MET_MAX_CANDIDATE_ATTEMPTS = int(os.environ.get("MET_MAX_CANDIDATE_ATTEMPTS", "10"))

# ---------------------------------------------------------------------------
# Candidate fallbacks
# ---------------------------------------------------------------------------
OBJECT_CACHE_SIZE = int(os.environ.get("OBJECT_CACHE_SIZE", "500"))
FALLBACK_DATA_PATH = os.environ.get(
    "FALLBACK_DATA_PATH",
    os.path.join(_BACKEND_DIR, "data", "met_fallback.json"),
)
DYNAMIC_POOL_TTL_SECONDS = int(os.environ.get("DYNAMIC_POOL_TTL_SECONDS", str(6 * 3600)))
DYNAMIC_POOL_MAX_SEARCHES = int(os.environ.get("DYNAMIC_POOL_MAX_SEARCHES", "6"))
DYNAMIC_POOL_MAX_FETCHES = int(os.environ.get("DYNAMIC_POOL_MAX_FETCHES", "40"))
DYNAMIC_POOL_TARGET_SIZE = int(os.environ.get("DYNAMIC_POOL_TARGET_SIZE", "20"))

# ---------------------------------------------------------------------------
# Rounds
# ---------------------------------------------------------------------------
TOTAL_ROUNDS = int(os.environ.get("TOTAL_ROUNDS", "5"))
ROUND_TOMBSTONE_SECONDS = int(os.environ.get("ROUND_TOMBSTONE_SECONDS", "3600"))
# Abandoned rounds are dropped after this long; scoring them then rebuilds.
ROUND_ENTRY_TTL_SECONDS = int(os.environ.get("ROUND_ENTRY_TTL_SECONDS", str(24 * 3600)))
LEADERBOARD_SUBMIT_LIMIT_PER_MINUTE = int(os.environ.get("LEADERBOARD_SUBMIT_LIMIT_PER_MINUTE", "10"))

# ---------------------------------------------------------------------------
# Reverse geocoding (click snapping)
# ---------------------------------------------------------------------------
GEOCODER_URL = os.environ.get(
    "GEOCODER_URL",
    "https://nominatim.openstreetmap.org/reverse",
)
# Nominatim usage policy: at most one request per second.
GEOCODER_RATE_LIMIT_RPS = int(os.environ.get("GEOCODER_RATE_LIMIT_RPS", "1"))
GEOCODER_TIMEOUT_SECONDS = float(os.environ.get("GEOCODER_TIMEOUT_SECONDS", "10"))
