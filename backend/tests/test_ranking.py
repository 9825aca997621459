from __future__ import annotations

import random

import pytest

from shared.errors import InvalidCoordinate
from shared.models import Coordinate
from shared.ranking import attach_distances, rank_by_distance

from conftest import TORONTO, make_listing, north_of

CENTER = Coordinate(latitude=TORONTO[0], longitude=TORONTO[1])


def test_only_candidates_inside_radius_are_returned(toronto_listings):
    ranked = rank_by_distance(CENTER, toronto_listings, 10)

    assert [r.id for r in ranked] == ["near"]
    assert ranked[0].distance_km == pytest.approx(5.0, abs=0.01)


def test_radius_is_inclusive():
    listing = make_listing("edge", *north_of(*TORONTO, 5))
    exact   = rank_by_distance(CENTER, [listing], 100)[0].distance_km

    assert [r.id for r in rank_by_distance(CENTER, [listing], exact)] == ["edge"]
    assert rank_by_distance(CENTER, [listing], exact - 1e-9) == []


def test_results_sorted_ascending():
    rng        = random.Random(7)
    candidates = [
        make_listing(f"l{i}", TORONTO[0] + rng.uniform(-0.2, 0.2), TORONTO[1] + rng.uniform(-0.2, 0.2))
        for i in range(40)
    ]
    ranked = rank_by_distance(CENTER, candidates, 15)

    distances = [r.distance_km for r in ranked]
    assert distances == sorted(distances)
    assert all(d <= 15 for d in distances)


def test_ties_keep_input_order():
    point      = north_of(*TORONTO, 2)
    candidates = [make_listing(name, *point) for name in ("b", "a", "c")]

    assert [r.id for r in rank_by_distance(CENTER, candidates, 5)] == ["b", "a", "c"]


def test_candidates_without_coordinates_are_dropped():
    candidates = [
        make_listing("no-lat", None, -79.38),
        make_listing("no-coords", None, None),
        make_listing("bad", 43.65, 999.0, geohash=None),
        make_listing("ok", *north_of(*TORONTO, 1)),
    ]

    assert [r.id for r in rank_by_distance(CENTER, candidates, 50)] == ["ok"]


def test_inputs_are_not_mutated(toronto_listings):
    before = [l.model_dump() for l in toronto_listings]
    rank_by_distance(CENTER, toronto_listings, 50)
    assert [l.model_dump() for l in toronto_listings] == before


def test_invalid_center_rejected(toronto_listings):
    with pytest.raises(InvalidCoordinate):
        rank_by_distance(Coordinate(latitude=-100, longitude=0), toronto_listings, 10)


def test_attach_distances_keeps_everything_in_order(toronto_listings):
    missing = make_listing("missing", None, None)
    ranked  = attach_distances(CENTER, toronto_listings + [missing])

    assert [r.id for r in ranked] == ["far", "near", "missing"]
    assert ranked[0].distance_km == pytest.approx(15.0, abs=0.01)
    assert ranked[2].distance_km is None


def test_attach_distances_without_center():
    ranked = attach_distances(None, [make_listing("a", 43.7, -79.4)])
    assert ranked[0].distance_km is None
