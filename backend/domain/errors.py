"""
backend.domain.errors — Exceptions raised across layer boundaries.

Route handlers translate these into HTTP status codes; nothing below the
API layer imports FastAPI.
"""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for museum API / geocoder failures."""


class UpstreamUnavailableError(UpstreamError):
    """Retries exhausted or a non-retryable response from upstream."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CircuitOpenError(UpstreamUnavailableError):
    """The circuit breaker is refusing calls until its cooldown elapses."""


class RoundNotFoundError(LookupError):
    """No session entry for the object id and reconstruction failed."""

    def __init__(self, object_id: int, reason: str = "") -> None:
        super().__init__(f"Round for object {object_id} not found or expired")
        self.object_id = object_id
        self.reason = reason


class CandidateUnavailableError(RuntimeError):
    """Every candidate tier, including the emergency list, came up empty."""


class InvalidLeaderboardEntryError(ValueError):
    """Rejected leaderboard submission (blank name, bad score)."""
