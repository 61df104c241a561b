from __future__ import annotations

import pytest

from backend.domain.models import Coordinate
from backend.geo.centroids import (
    COUNTRY_CENTROIDS,
    get_country_centroid,
    known_countries,
    resolve_country_name,
)


def test_usa_resolves_to_united_states():
    assert get_country_centroid("USA") == get_country_centroid("United States")
    assert get_country_centroid("USA") is not None


@pytest.mark.parametrize(
    "label, canonical",
    [
        ("  France  ", "France"),
        ("france", "France"),
        ("Byzantine Egypt", "Egypt"),
        ("Holland", "Netherlands"),
        ("Persia", "Iran"),
        ("probably Italy", "Italy"),
        ("Possibly Persia", "Iran"),
        ("Ukraine", "Ukraine"),
        ("UK", "United Kingdom"),
    ],
)
def test_aliases_and_substitutions(label, canonical):
    assert resolve_country_name(label) == canonical


@pytest.mark.parametrize("label", [None, "", "   ", "Atlantis", "Mediterranean Sea"])
def test_unknown_labels_resolve_to_none(label):
    assert resolve_country_name(label) is None
    assert get_country_centroid(label) is None


def test_centroid_is_a_coordinate_in_range():
    for name in known_countries():
        c = get_country_centroid(name)
        assert isinstance(c, Coordinate)
        assert -90 <= c.lat <= 90
        assert -180 <= c.lng <= 180


def test_known_countries_sorted_and_complete():
    names = known_countries()
    assert names == sorted(names)
    assert set(names) == set(COUNTRY_CENTROIDS)
    assert "Japan" in names
