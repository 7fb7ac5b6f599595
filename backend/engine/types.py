from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

from geo.bounds import BoundingRegion
from geo.viewport import ClusterIndex
from mapsets.types import MapSetConfig
from observations.types import LocationCluster


@dataclass(frozen=True)
class MapSetSnapshot:
    """
    Everything derived from one mapset's observations. Built once, read-only after.
    """

    config: MapSetConfig
    # Raw rows in the source file, including ones without coordinates.
    records_total: int
    # Rows that made it into a cluster.
    observations: int
    index: ClusterIndex
    frame: BoundingRegion

    @property
    def clusters(self) -> tuple[LocationCluster, ...]:
        return self.index.clusters

    @cached_property
    def _by_key(self) -> dict[tuple[float, float], LocationCluster]:
        return {c.key: c for c in self.index.clusters}

    def find(self, lat: float, lon: float) -> LocationCluster | None:
        return self._by_key.get((float(lat), float(lon)))
