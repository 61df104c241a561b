"""
backend.geo.reverse_geocoder — Snap a map click to its country's centroid.

A click is reverse-geocoded (Nominatim by default) to a country name, and
that country's centroid replaces the raw click so a guess is always scored
country-to-country.  Any failure along the way (geocoder down, click in the
ocean, country without a centroid) keeps the raw click.

Lookups are cached by the coordinate rounded to 4 decimals and throttled by
their own token bucket (Nominatim allows one request per second).
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Optional

import httpx

from backend import config
from backend.core.constants import GEOCODE_CACHE_PRECISION, USER_AGENT
from backend.domain.models import Coordinate, SnappedGuess
from backend.geo.centroids import get_country_centroid, resolve_country_name
from backend.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": USER_AGENT, "Accept-Language": "en"}
_CACHE_LIMIT = 4096


class ReverseGeocoder:

    def __init__(
        self,
        url: str = config.GEOCODER_URL,
        rate_limiter: Optional[TokenBucket] = None,
        timeout_seconds: float = config.GEOCODER_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._limiter = rate_limiter or TokenBucket(config.GEOCODER_RATE_LIMIT_RPS)
        self._timeout = float(timeout_seconds)
        self._client = client
        self._cache: "OrderedDict[str, Optional[str]]" = OrderedDict()

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(headers=_HEADERS, timeout=self._timeout)
        return self._client

    @staticmethod
    def cache_key(lat: float, lng: float) -> str:
        return f"{lat:.{GEOCODE_CACHE_PRECISION}f},{lng:.{GEOCODE_CACHE_PRECISION}f}"

    async def country_at(self, lat: float, lng: float) -> Optional[str]:
        """Country name at ``(lat, lng)``, or ``None`` (ocean, or lookup failed)."""
        key = self.cache_key(lat, lng)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        client = await self._client_get()
        await self._limiter.acquire()
        params = {
            "format": "json",
            "lat": f"{lat}",
            "lon": f"{lng}",
            "zoom": "3",
            "addressdetails": "1",
        }
        try:
            resp = await asyncio.wait_for(client.get(self._url, params=params), timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (asyncio.TimeoutError, httpx.HTTPError, ValueError) as exc:
            # Failures are not cached; the next click retries.
            logger.warning("Reverse geocoding failed for %s: %s", key, exc)
            return None

        address = data.get("address") if isinstance(data, dict) else None
        country = (address or {}).get("country") or None
        self._cache[key] = country
        if len(self._cache) > _CACHE_LIMIT:
            self._cache.popitem(last=False)
        return country

    async def snap(self, lat: float, lng: float) -> SnappedGuess:
        """Replace a click with its country's centroid when one is known."""
        country = await self.country_at(lat, lng)
        centroid = get_country_centroid(country) if country else None
        if centroid is None:
            return SnappedGuess(point=Coordinate(lat=lat, lng=lng), country=country, snapped=False)
        return SnappedGuess(point=centroid, country=resolve_country_name(country), snapped=True)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._limiter.close()
