"""
ArtGuessr — Met Museum collection API fetcher.

Wraps all HTTP calls to the collection API into a single, reusable class.
Every call goes through the same guardrails:

* a shared token bucket (never more than ``MET_RATE_LIMIT_RPS`` per second),
* a wall-clock timeout per attempt,
* retries with exponential backoff on 5xx / timeouts / transport errors,
* a circuit breaker that fails fast after repeated exhausted calls.

Usage::

    fetcher = MetFetcher()
    ids     = await fetcher.fetch_object_ids()
    record  = await fetcher.fetch_object(ids[0])
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from backend import config
from backend.circuit_breaker import CircuitBreaker
from backend.core.constants import RETRYABLE_STATUS_MIN, USER_AGENT
from backend.domain.errors import CircuitOpenError, UpstreamUnavailableError
from backend.metrics import record_upstream_failure
from backend.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": USER_AGENT, "Accept": "application/json"}

SleepFn = Callable[[float], Awaitable[None]]


class MetFetcher:
    """Async HTTP client for the Met collection API.

    Instantiate once per process; the internal httpx.AsyncClient is
    lazily created and reused across calls.
    """

    def __init__(
        self,
        base_url: str = config.MET_API_BASE,
        rate_limiter: Optional[TokenBucket] = None,
        breaker: Optional[CircuitBreaker] = None,
        max_retries: int = config.MET_MAX_RETRIES,
        backoff_base: float = config.MET_RETRY_BACKOFF_BASE,
        timeout_seconds: float = config.MET_TIMEOUT_SECONDS,
        object_ids_ttl: float = config.MET_OBJECT_IDS_TTL_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._limiter = rate_limiter or TokenBucket(config.MET_RATE_LIMIT_RPS)
        self._breaker = breaker or CircuitBreaker(
            failure_threshold=config.MET_CIRCUIT_FAILURE_THRESHOLD,
            open_seconds=config.MET_CIRCUIT_OPEN_SECONDS,
            name="met-api",
        )
        self._max_retries = max(1, int(max_retries))
        self._backoff_base = float(backoff_base)
        self._timeout = float(timeout_seconds)
        self._client = client
        self._sleep = sleep

        self._object_ids: List[int] = []
        self._object_ids_fetched_at: float = 0.0
        self._object_ids_ttl = float(object_ids_ttl)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=_HEADERS,
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._client

    def _backoff(self, attempt: int) -> float:
        # 2 s, 4 s, 8 s … with the default 1 s base.
        return self._backoff_base * (2 ** attempt)

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET ``path`` with rate limiting, retries and the circuit breaker.

        Returns the parsed JSON body.  Raises ``CircuitOpenError`` without
        touching the network while the circuit is open, and
        ``UpstreamUnavailableError`` once retries are exhausted or on a
        non-retryable 4xx.
        """
        url = f"{self._base_url}{path}"
        if not self._breaker.allow_request():
            raise CircuitOpenError(f"Circuit open; skipping {url}")
        try:
            return await self._get_with_retries(url, params)
        except BaseException:
            # No-op unless the call escaped before recording an outcome.
            self._breaker.release_trial()
            raise

    async def _get_with_retries(self, url: str, params: Optional[Dict[str, str]]) -> Any:
        client = await self._client_get()
        last_error = "no attempts made"
        for attempt in range(1, self._max_retries + 1):
            await self._limiter.acquire()
            try:
                resp = await asyncio.wait_for(client.get(url, params=params), timeout=self._timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException):
                last_error = f"timed out after {self._timeout:.0f}s"
            except httpx.TransportError as exc:
                last_error = f"transport error: {exc}"
            except httpx.HTTPError as exc:
                # Undecodable body, redirect loop and the like.
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if resp.status_code < 400:
                    try:
                        data = resp.json()
                    except ValueError:
                        last_error = "invalid JSON body"
                    else:
                        self._breaker.record_success()
                        return data
                elif resp.status_code < RETRYABLE_STATUS_MIN:
                    # The service answered; the request itself was bad (e.g. unknown object).
                    self._breaker.record_success()
                    raise UpstreamUnavailableError(
                        f"Met API returned {resp.status_code} for {url}",
                        status_code=resp.status_code,
                    )
                else:
                    last_error = f"HTTP {resp.status_code}"

            if attempt < self._max_retries:
                delay = self._backoff(attempt)
                logger.warning(
                    "Met API request failed (%s); retry %d/%d in %.0fs",
                    last_error, attempt, self._max_retries, delay,
                )
                await self._sleep(delay)

        logger.error("Met API request failed after %d attempts: %s (%s)", self._max_retries, url, last_error)
        self._breaker.record_failure()
        record_upstream_failure()
        raise UpstreamUnavailableError(f"Met API unavailable: {last_error}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def rate_limiter(self) -> TokenBucket:
        return self._limiter

    async def fetch_object_ids(self, force: bool = False) -> List[int]:
        """Object ids with images on view, cached for ``object_ids_ttl`` seconds.

        A failed refresh falls back to the stale pool when one exists.
        """
        age = time.time() - self._object_ids_fetched_at
        if not force and self._object_ids and age < self._object_ids_ttl:
            return self._object_ids

        try:
            data = await self._get(
                "/search",
                params={"hasImages": "true", "isOnView": "true", "q": "*"},
            )
            ids = _object_ids_from(data)
        except UpstreamUnavailableError:
            if self._object_ids:
                logger.warning("Using stale object-id pool (%d ids)", len(self._object_ids))
                return self._object_ids
            raise

        self._object_ids = ids
        self._object_ids_fetched_at = time.time()
        logger.info("Refreshed object-id pool: %d ids", len(ids))
        return ids

    async def fetch_object(self, object_id: int) -> Dict[str, Any]:
        """Full object record (``objectID``, ``isPublicDomain``, ``primaryImage``, …)."""
        data = await self._get(f"/objects/{int(object_id)}")
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Unexpected payload for object {object_id}")
        return data

    async def search(
        self,
        query: str,
        geo_location: Optional[str] = None,
        paintings_only: bool = False,
    ) -> List[int]:
        """Object ids matching ``query`` (images only)."""
        params = {"hasImages": "true", "q": query}
        if geo_location:
            params["geoLocation"] = geo_location
        if paintings_only:
            params["medium"] = "Paintings"
        data = await self._get("/search", params=params)
        return _object_ids_from(data)

    async def close(self) -> None:
        """Cleanly close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._limiter.close()


def _object_ids_from(data: Any) -> List[int]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise UpstreamUnavailableError(f"Unexpected search payload: {type(data).__name__}")
    return [int(i) for i in data.get("objectIDs") or [] if isinstance(i, int) and not isinstance(i, bool)]
