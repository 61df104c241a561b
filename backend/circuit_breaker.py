"""
In-process circuit breaker for the museum API.

After ``failure_threshold`` consecutive failures the circuit opens and
callers fail fast for ``open_seconds``.  The first call after the cooldown
is let through as a trial (half-open): success closes the circuit, failure
opens it again for another full cooldown.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from backend.domain.enums import CircuitState

logger = logging.getLogger(__name__)


class CircuitBreaker:

    def __init__(
        self,
        failure_threshold: int = 5,
        open_seconds: float = 60.0,
        name: str = "upstream",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._failure_threshold = max(1, int(failure_threshold))
        self._open_seconds = float(open_seconds)
        self._clock = clock
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._trial_in_flight = False

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def state(self) -> CircuitState:
        if self._opened_at is None:
            return CircuitState.CLOSED
        if self._clock() - self._opened_at >= self._open_seconds:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN

    def allow_request(self) -> bool:
        state = self.state
        if state is CircuitState.CLOSED:
            return True
        if state is CircuitState.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True
            return True
        return False

    def record_success(self) -> None:
        if self._opened_at is not None:
            logger.info("Circuit %s closed after successful trial call", self.name)
        self._consecutive_failures = 0
        self._opened_at = None
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        reopen = self._trial_in_flight
        self._trial_in_flight = False
        if reopen or self._consecutive_failures >= self._failure_threshold:
            if self._opened_at is None or reopen:
                logger.warning(
                    "Circuit %s opened after %d consecutive failures; cooling down %.0fs",
                    self.name, self._consecutive_failures, self._open_seconds,
                )
            self._opened_at = self._clock()

    def release_trial(self) -> None:
        """Give back a half-open trial slot whose call never completed."""
        self._trial_in_flight = False

    def is_open(self) -> bool:
        return self.state is CircuitState.OPEN

    def reset(self) -> None:
        self._consecutive_failures = 0
        self._opened_at = None
        self._trial_in_flight = False
