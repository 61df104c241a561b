"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • met_record(...)      — a raw museum ``/objects/{id}`` record (playable by default)
  • make_candidate(...)  — an ``ArtworkCandidate``
  • make_fetcher(...)    — an in-memory stand-in for ``MetFetcher``
  • fake_clock           — a settable clock for breakers, buckets and stores

Process-wide singletons (cache backend, services, metrics) are reset
around every test.
"""

from __future__ import annotations

import os
import sys
from typing import Dict, List, Optional

import pytest

# Ensure the project root is on the path so all backend imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from backend import config  # noqa: E402
from backend.cache_backend import reset_cache_backend_for_tests  # noqa: E402
from backend.circuit_breaker import CircuitBreaker  # noqa: E402
from backend.domain.enums import CandidateSource  # noqa: E402
from backend.domain.errors import UpstreamUnavailableError  # noqa: E402
from backend.domain.models import ArtworkCandidate, Coordinate  # noqa: E402
from backend.geo.centroids import get_country_centroid  # noqa: E402
from backend.metrics import reset_metrics_for_tests  # noqa: E402
from backend.services import reset_services_for_tests  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch):
    monkeypatch.setattr(config, "REDIS_URL", "")
    reset_cache_backend_for_tests()
    reset_services_for_tests()
    reset_metrics_for_tests()
    yield
    reset_cache_backend_for_tests()
    reset_services_for_tests()


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Museum records / candidates
# ---------------------------------------------------------------------------

def _met_record(
    object_id: int = 42,
    country: str = "France",
    public_domain: bool = True,
    image: str = "https://images.metmuseum.org/CRDImages/ep/web-large/DT42.jpg",
    **overrides,
) -> dict:
    record = {
        "objectID": object_id,
        "isPublicDomain": public_domain,
        "primaryImage": image.replace("web-large", "original"),
        "primaryImageSmall": image,
        "title": f"Artwork {object_id}",
        "artistDisplayName": "Unknown Painter",
        "objectDate": "ca. 1650",
        "country": country,
        "medium": "Oil on canvas",
    }
    record.update(overrides)
    return record


@pytest.fixture
def met_record():
    return _met_record


@pytest.fixture
def make_candidate():
    def _factory(
        object_id: int = 42,
        country: str = "France",
        source: CandidateSource = CandidateSource.LIVE,
        target: Optional[Coordinate] = None,
    ) -> ArtworkCandidate:
        return ArtworkCandidate(
            object_id=object_id,
            image_url=f"https://images.metmuseum.org/{object_id}.jpg",
            title=f"Artwork {object_id}",
            artist="Unknown Painter",
            year="1889",
            country=country,
            target=target or get_country_centroid(country),
            source=source,
        )
    return _factory


# ---------------------------------------------------------------------------
# Fetcher stand-in
# ---------------------------------------------------------------------------

class FakeFetcher:
    """Answers from dicts; records every call.  Unknown object ids raise a 404."""

    def __init__(
        self,
        records: Optional[Dict[int, dict]] = None,
        object_ids: Optional[List[int]] = None,
        search_ids: Optional[List[int]] = None,
        ids_error: bool = False,
        search_error: bool = False,
    ) -> None:
        self.records = dict(records or {})
        self.object_ids = list(object_ids if object_ids is not None else self.records)
        self.search_ids = list(search_ids or [])
        self.ids_error = ids_error
        self.search_error = search_error
        self.breaker = CircuitBreaker(name="fake")
        self.object_calls: List[int] = []
        self.search_calls: List[str] = []

    async def fetch_object_ids(self, force: bool = False) -> List[int]:
        if self.ids_error:
            raise UpstreamUnavailableError("Met API unavailable: HTTP 503")
        return list(self.object_ids)

    async def fetch_object(self, object_id: int) -> dict:
        self.object_calls.append(object_id)
        record = self.records.get(object_id)
        if record is None:
            raise UpstreamUnavailableError(f"Met API returned 404 for {object_id}", status_code=404)
        return record

    async def search(self, query: str, geo_location=None, paintings_only: bool = False) -> List[int]:
        self.search_calls.append(query)
        if self.search_error:
            raise UpstreamUnavailableError("Met API unavailable: HTTP 503")
        return list(self.search_ids)


@pytest.fixture
def make_fetcher():
    return FakeFetcher
