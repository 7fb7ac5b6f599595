from __future__ import annotations

from typing import Iterable

from geo.bounds import BoundingRegion
from observations.types import LocationCluster


def frame_clusters(clusters: Iterable[LocationCluster]) -> BoundingRegion:
    """
    Smallest region enclosing every cluster coordinate.

    No padding is baked in; padding is applied when the region is fitted to a view.
    Returns `BoundingRegion.empty()` for no clusters, and callers should then skip fitting.
    """
    region = BoundingRegion.empty()
    for c in clusters:
        region = region.extend(c.latitude, c.longitude)
    return region
