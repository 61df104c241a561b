"""
ArtGuessr — Museum record normalizer and validator.

Converts raw ``/objects/{id}`` records into ``ArtworkCandidate`` objects and
decides whether a record is playable at all.  The same rules apply to live
picks, dynamic-pool builds and round reconstruction, so they live in one
place.

A record is playable when it is public domain, has an image, carries a
non-empty country label, and that label resolves to a centroid.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from backend.core.constants import DEFAULT_ARTIST, DEFAULT_DATE, DEFAULT_TITLE
from backend.core.utils import valid_coordinate
from backend.domain.enums import CandidateSource
from backend.domain.models import ArtworkCandidate, Coordinate
from backend.geo.centroids import get_country_centroid

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


# ---------------------------------------------------------------------------
# Public: raw museum record → ArtworkCandidate
# ---------------------------------------------------------------------------

def rejection_reason(raw: Dict[str, Any]) -> Optional[str]:
    """Why ``raw`` cannot be played, or ``None`` when it can."""
    if not raw.get("isPublicDomain"):
        return "not public domain"
    if not (_text(raw.get("primaryImageSmall")) or _text(raw.get("primaryImage"))):
        return "no image"
    country = _text(raw.get("country"))
    if not country:
        return "no country"
    if get_country_centroid(country) is None:
        return f'no centroid for "{country}"'
    return None


def normalize_object(
    raw: Dict[str, Any],
    source: CandidateSource = CandidateSource.LIVE,
) -> Optional[ArtworkCandidate]:
    """Build a candidate from a museum record.

    Returns ``None`` (and logs the reason at DEBUG) when the record fails
    validation.
    """
    reason = rejection_reason(raw)
    if reason is not None:
        logger.debug("Skipping object %s: %s", raw.get("objectID"), reason)
        return None

    try:
        object_id = int(raw.get("objectID"))
    except (TypeError, ValueError):
        logger.debug("Skipping record without a numeric objectID: %r", raw.get("objectID"))
        return None

    country = _text(raw.get("country"))
    return ArtworkCandidate(
        object_id=object_id,
        image_url=_text(raw.get("primaryImageSmall")) or _text(raw.get("primaryImage")),
        title=_text(raw.get("title")) or DEFAULT_TITLE,
        artist=_text(raw.get("artistDisplayName")) or DEFAULT_ARTIST,
        year=_text(raw.get("objectDate")) or DEFAULT_DATE,
        country=country,
        target=get_country_centroid(country),
        medium=_text(raw.get("medium")) or None,
        source=source,
    )


# ---------------------------------------------------------------------------
# Public: stored candidate dict → ArtworkCandidate
# ---------------------------------------------------------------------------

def _stored_target(record: Dict[str, Any]) -> Optional[Coordinate]:
    target = record.get("target")
    if isinstance(target, dict) and valid_coordinate(target.get("lat"), target.get("lng")):
        return Coordinate(lat=float(target["lat"]), lng=float(target["lng"]))
    return None


def candidate_from_dict(
    record: Dict[str, Any],
    source: CandidateSource,
) -> Optional[ArtworkCandidate]:
    """Rebuild a candidate from its ``to_dict()`` / fallback-file form.

    A missing or malformed ``target`` is recomputed from ``country``;
    records whose country has no centroid are dropped.
    """
    country = _text(record.get("country"))
    image_url = _text(record.get("imageUrl"))
    try:
        object_id = int(record.get("objectId"))
    except (TypeError, ValueError):
        return None
    if not country or not image_url:
        return None

    centroid = get_country_centroid(country)
    if centroid is None:
        return None
    target = _stored_target(record) or centroid

    return ArtworkCandidate(
        object_id=object_id,
        image_url=image_url,
        title=_text(record.get("title")) or DEFAULT_TITLE,
        artist=_text(record.get("artist")) or DEFAULT_ARTIST,
        year=_text(record.get("year")) or DEFAULT_DATE,
        country=country,
        target=target,
        medium=_text(record.get("medium")) or None,
        source=source,
    )


def split_valid(records, source: CandidateSource) -> Tuple[list, int]:
    """Convert many stored records; returns ``(candidates, dropped_count)``."""
    out = []
    dropped = 0
    for record in records or []:
        candidate = candidate_from_dict(record, source) if isinstance(record, dict) else None
        if candidate is None:
            dropped += 1
        else:
            out.append(candidate)
    return out, dropped
