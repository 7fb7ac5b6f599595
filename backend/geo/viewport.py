from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from shapely.geometry import Point
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.bounds import BoundingRegion
from observations.types import LocationCluster


def filter_visible(
    clusters: Sequence[LocationCluster],
    region: BoundingRegion | None,
) -> list[LocationCluster]:
    """
    Clusters inside `region` (boundary included), in their input order.

    A missing region (map not ready yet, or already torn down) yields nothing.
    """
    if region is None or region.is_empty:
        return []
    return [c for c in clusters if region.contains(c.latitude, c.longitude)]


@dataclass
class ClusterIndex:
    """
    STRtree over cluster coordinates for fast repeated viewport queries.

    `visible()` returns exactly what `filter_visible()` would, but only touches
    candidates from the tree.
    """

    clusters: tuple[LocationCluster, ...]
    tree: STRtree | None
    # Below this size a plain scan beats the tree.
    linear_scan_max: int = 256

    _visible_cache: dict[tuple[float, float, float, float], tuple[LocationCluster, ...]] = field(
        default_factory=dict, repr=False
    )

    def visible(self, region: BoundingRegion | None) -> tuple[LocationCluster, ...]:
        if region is None or region.is_empty or self.tree is None:
            return ()

        key = (region.south, region.west, region.north, region.east)
        cached = self._visible_cache.get(key)
        if cached is not None:
            return cached

        if len(self.clusters) <= self.linear_scan_max:
            out = tuple(filter_visible(self.clusters, region))
            _bounded_cache_put(self._visible_cache, key, out, max_items=64)
            return out

        idxs: set[int] = set()
        for min_lon, min_lat, max_lon, max_lat in region.boxes():
            idxs.update(
                _to_int_list(self.tree.query(shapely_box(min_lon, min_lat, max_lon, max_lat)))
            )

        # The tree returns candidates in arbitrary order; restore stacking order
        # and apply the exact (inclusive) containment test.
        out = tuple(
            self.clusters[i]
            for i in sorted(idxs)
            if region.contains(self.clusters[i].latitude, self.clusters[i].longitude)
        )
        _bounded_cache_put(self._visible_cache, key, out, max_items=64)
        return out


def build_cluster_index(
    clusters: Sequence[LocationCluster], *, linear_scan_max: int = 256
) -> ClusterIndex:
    points = [Point(c.longitude, c.latitude) for c in clusters]
    tree = STRtree(points) if points else None
    return ClusterIndex(clusters=tuple(clusters), tree=tree, linear_scan_max=linear_scan_max)


def _to_int_list(arr) -> list[int]:
    # Shapely STRtree returns numpy.ndarray of indices.
    try:
        return [int(x) for x in arr.tolist()]
    except AttributeError:
        return [int(x) for x in arr]


def _bounded_cache_put(cache: dict, key, value, *, max_items: int) -> None:
    cache[key] = value
    # Simple bounded cache: remove oldest inserted key when we exceed size.
    if len(cache) > max_items:
        oldest = next(iter(cache.keys()))
        if oldest != key:
            cache.pop(oldest, None)
