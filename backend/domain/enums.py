"""
backend.domain.enums — Enumerations used across the backend.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


class CandidateSource(str, Enum):
    """Which tier of the candidate provider produced an artwork."""
    LIVE      = "live"
    STATIC    = "static"
    DYNAMIC   = "dynamic"
    EMERGENCY = "emergency"


class CircuitState(str, Enum):
    CLOSED    = "closed"
    OPEN      = "open"
    HALF_OPEN = "half_open"
