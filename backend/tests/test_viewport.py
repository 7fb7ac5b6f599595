from __future__ import annotations

import random

from geo.bounds import BoundingRegion
from geo.viewport import build_cluster_index, filter_visible
from observations.aggregate import aggregate_observations
from observations.types import ObservationRecord


def _clusters(seed: int = 3, n: int = 600):
    rnd = random.Random(seed)
    records = []
    for i in range(n):
        lat = round(rnd.uniform(-80, 80), 1)
        lon = round(rnd.uniform(-179.5, 179.5), 1)
        records.append(
            ObservationRecord(id=f"r{i}", ip_address=f"ip{i}", latitude=lat, longitude=lon)
        )
    return aggregate_observations(records)


def _is_subsequence(sub, seq) -> bool:
    it = iter(seq)
    return all(any(x is y for y in it) for x in sub)


REGIONS = [
    BoundingRegion(south=-10.0, west=-30.0, north=40.0, east=50.0),
    BoundingRegion(south=-80.0, west=-180.0, north=80.0, east=180.0),
    BoundingRegion(south=0.0, west=150.0, north=60.0, east=-150.0),  # crosses ±180
    BoundingRegion(south=20.0, west=20.0, north=20.0, east=20.0),
]


def test_end_to_end_region_around_single_cluster():
    records = [
        ObservationRecord(id="a", ip_address="1", latitude=10.0, longitude=20.0),
        ObservationRecord(id="b", ip_address="2", latitude=10.0, longitude=20.0),
        ObservationRecord(id="c", ip_address="3", latitude=30.0, longitude=40.0),
    ]
    clusters = aggregate_observations(records)

    visible = filter_visible(clusters, BoundingRegion(south=25.0, west=35.0, north=35.0, east=45.0))

    assert len(visible) == 1
    assert visible[0].count == 1
    assert visible[0].key == (30.0, 40.0)


def test_filter_preserves_order_and_is_idempotent():
    clusters = _clusters()
    for region in REGIONS:
        once = filter_visible(clusters, region)
        assert _is_subsequence(once, clusters)
        assert all(a.count <= b.count for a, b in zip(once, once[1:]))
        assert filter_visible(once, region) == once
        assert all(region.contains(c.latitude, c.longitude) for c in once)


def test_boundary_points_are_visible():
    records = [ObservationRecord(id="e", ip_address="1", latitude=40.0, longitude=50.0)]
    clusters = aggregate_observations(records)
    region = BoundingRegion(south=-10.0, west=-30.0, north=40.0, east=50.0)

    assert filter_visible(clusters, region) == clusters
    assert list(build_cluster_index(clusters, linear_scan_max=0).visible(region)) == clusters


def test_missing_or_empty_region_yields_nothing():
    clusters = _clusters(n=20)
    assert filter_visible(clusters, None) == []
    assert filter_visible(clusters, BoundingRegion.empty()) == []
    assert filter_visible([], REGIONS[0]) == []

    index = build_cluster_index(clusters)
    assert index.visible(None) == ()
    assert build_cluster_index([]).visible(REGIONS[1]) == ()


def test_tree_index_matches_linear_filter():
    clusters = _clusters()
    tree_index = build_cluster_index(clusters, linear_scan_max=0)
    scan_index = build_cluster_index(clusters, linear_scan_max=10_000)

    for region in REGIONS:
        expected = tuple(filter_visible(clusters, region))
        assert tree_index.visible(region) == expected
        assert scan_index.visible(region) == expected
        # Second query is served from the cache and must not change.
        assert tree_index.visible(region) == expected


def test_crossing_region_sees_both_sides_of_antimeridian():
    records = [
        ObservationRecord(id="w", ip_address="1", latitude=10.0, longitude=175.0),
        ObservationRecord(id="e", ip_address="2", latitude=10.0, longitude=-175.0),
        ObservationRecord(id="m", ip_address="3", latitude=10.0, longitude=0.5),
    ]
    clusters = aggregate_observations(records)
    region = BoundingRegion(south=0.0, west=170.0, north=20.0, east=-170.0)

    visible = build_cluster_index(clusters, linear_scan_max=0).visible(region)

    assert [c.members[0].id for c in visible] == ["w", "e"]
