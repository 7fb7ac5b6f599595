from __future__ import annotations

import pytest

from geo.bounds import BoundingRegion


def test_contains_is_inclusive_on_every_edge():
    r = BoundingRegion(south=10.0, west=20.0, north=30.0, east=40.0)
    assert r.contains(10.0, 20.0)
    assert r.contains(30.0, 40.0)
    assert r.contains(10.0, 40.0)
    assert r.contains(20.0, 30.0)
    assert not r.contains(9.999, 30.0)
    assert not r.contains(20.0, 40.001)


def test_empty_region_contains_nothing():
    r = BoundingRegion.empty()
    assert r.is_empty
    assert not r.contains(0.0, 0.0)
    assert r.boxes() == []
    assert r.as_dict() is None
    with pytest.raises(ValueError):
        r.center()


def test_extend_from_empty_then_grow():
    r = BoundingRegion.empty().extend(10.0, 20.0)
    assert r == BoundingRegion(south=10.0, west=20.0, north=10.0, east=20.0)

    r = r.extend(-5.0, 25.0).extend(12.0, 18.0)
    assert (r.south, r.west, r.north, r.east) == (-5.0, 18.0, 12.0, 25.0)
    # Already-contained points do not change the region.
    assert r.extend(0.0, 20.0) == r


def test_extend_takes_shorter_arc_across_antimeridian():
    r = BoundingRegion.empty().extend(0.0, 170.0).extend(0.0, -170.0)

    assert r.crosses_antimeridian
    assert r.west == 170.0
    assert r.east == -170.0
    assert r.lon_span == pytest.approx(20.0)
    assert r.contains(0.0, 180.0)
    assert r.contains(0.0, -175.0)
    assert not r.contains(0.0, 0.0)


def test_crossing_region_splits_into_two_boxes():
    r = BoundingRegion(south=-10.0, west=160.0, north=10.0, east=-160.0)
    assert r.boxes() == [(160.0, -10.0, 180.0, 10.0), (-180.0, -10.0, -160.0, 10.0)]
    assert r.center() == {"lat": 0.0, "lon": 180.0}


def test_normalized_swaps_latitudes_only():
    r = BoundingRegion(south=30.0, west=170.0, north=10.0, east=-170.0).normalized()
    assert (r.south, r.north) == (10.0, 30.0)
    assert (r.west, r.east) == (170.0, -170.0)
