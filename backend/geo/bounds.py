from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingRegion:
    """
    WGS84 bounding region in lat/lon degrees.

    Convention used throughout this repo:
    - south, west, north, east
    - west > east means the region crosses the antimeridian (±180°)
    - south > north is the empty region (see `empty()`)
    """

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def empty(cls) -> "BoundingRegion":
        return cls(south=math.inf, west=math.inf, north=-math.inf, east=-math.inf)

    @classmethod
    def around(cls, lat: float, lon: float) -> "BoundingRegion":
        return cls(south=lat, west=lon, north=lat, east=lon)

    @property
    def is_empty(self) -> bool:
        return self.south > self.north

    @property
    def crosses_antimeridian(self) -> bool:
        return not self.is_empty and self.west > self.east

    @property
    def lon_span(self) -> float:
        if self.is_empty:
            return 0.0
        if self.crosses_antimeridian:
            return (self.east + 360.0) - self.west
        return self.east - self.west

    def center(self) -> dict[str, float]:
        if self.is_empty:
            raise ValueError("Empty region has no center")
        lon = self.west + self.lon_span / 2.0
        if lon > 180.0:
            lon -= 360.0
        return {"lat": (self.south + self.north) / 2.0, "lon": lon}

    def contains(self, lat: float, lon: float) -> bool:
        # Inclusive on every edge.
        if self.is_empty:
            return False
        if not self.south <= lat <= self.north:
            return False
        return self._contains_lon(lon)

    def _contains_lon(self, lon: float) -> bool:
        if self.west <= self.east:
            return self.west <= lon <= self.east
        return lon >= self.west or lon <= self.east

    def extend(self, lat: float, lon: float) -> "BoundingRegion":
        """
        Smallest region covering both `self` and the point.

        Longitude grows on whichever side needs the shorter arc, so points on both
        sides of the antimeridian produce a crossing region instead of a world-wide one.
        """
        if self.is_empty:
            return BoundingRegion.around(lat, lon)

        south = min(self.south, lat)
        north = max(self.north, lat)
        west, east = self.west, self.east
        if not self._contains_lon(lon):
            grow_west = (self.west - lon) % 360.0
            grow_east = (lon - self.east) % 360.0
            if grow_west < grow_east:
                west = lon
            else:
                east = lon
        return BoundingRegion(south=south, west=west, north=north, east=east)

    def normalized(self) -> "BoundingRegion":
        """
        Swap inverted latitudes. Longitudes are left alone: west > east is meaningful.
        """
        if self.is_empty and math.isinf(self.south):
            return self
        south = min(self.south, self.north)
        north = max(self.south, self.north)
        return BoundingRegion(south=south, west=self.west, north=north, east=self.east)

    def boxes(self) -> list[tuple[float, float, float, float]]:
        """
        (min_lon, min_lat, max_lon, max_lat) boxes covering the region.

        Antimeridian-crossing regions are split in two.
        """
        if self.is_empty:
            return []
        if self.crosses_antimeridian:
            return [
                (self.west, self.south, 180.0, self.north),
                (-180.0, self.south, self.east, self.north),
            ]
        return [(self.west, self.south, self.east, self.north)]

    def as_dict(self) -> dict[str, float] | None:
        if self.is_empty:
            return None
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }
