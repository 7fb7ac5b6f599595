from __future__ import annotations

import math

from geo.bounds import BoundingRegion

_MAX_MERCATOR_LAT = 85.05112878
_TILE_PX = 256.0


def fit_view_to_region(
    region: BoundingRegion,
    *,
    viewport: dict[str, int] | None,
    padding: float = 50.0,
) -> tuple[dict[str, float], float]:
    """
    Mapbox (center, zoom) that shows `region` inside the viewport.

    `padding` is in display pixels on every side; it shrinks the usable viewport,
    the region itself stays as computed.
    """
    if region.is_empty:
        raise ValueError("Cannot fit a view to an empty region")

    width = int((viewport or {}).get("width") or 900)
    height = int((viewport or {}).get("height") or 600)
    usable_w = max(1.0, width - 2.0 * padding)
    usable_h = max(1.0, height - 2.0 * padding)

    zoom = bbox_to_zoom(
        region.lon_span,
        region.south,
        region.north,
        width=usable_w,
        height=usable_h,
    )
    return region.center(), zoom


def bbox_to_zoom(
    lon_delta: float,
    min_lat: float,
    max_lat: float,
    *,
    width: float,
    height: float,
) -> float:
    # WebMercator bbox -> zoom heuristic.
    lat_delta = (_lat_to_rad(max_lat) - _lat_to_rad(min_lat)) * 180.0 / math.pi

    # avoid division by zero
    lon_delta = max(lon_delta, 1e-6)
    lat_delta = max(lat_delta, 1e-6)

    # 256px tiles
    zoom_x = math.log2((width * 360.0) / (_TILE_PX * lon_delta))
    zoom_y = math.log2((height * 360.0) / (_TILE_PX * lat_delta))
    # A single point would otherwise zoom in without limit.
    return float(max(0.0, min(zoom_x, zoom_y, 22.0)))


def region_for_view(
    center: dict[str, float],
    zoom: float,
    *,
    viewport: dict[str, int] | None,
) -> BoundingRegion:
    """
    Approximate visible region of a Web Mercator view (center + zoom + pixel size).

    Used when a client reports only its camera, not its bounds.
    """
    width = int((viewport or {}).get("width") or 900)
    height = int((viewport or {}).get("height") or 600)
    world = _TILE_PX * (2.0 ** float(zoom))

    lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, float(center["lat"])))
    lon = float(center["lon"])
    cx = (lon + 180.0) / 360.0 * world
    lat_rad = math.radians(lat)
    cy = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * world

    top = max(0.0, cy - height / 2.0)
    bottom = min(world, cy + height / 2.0)
    north = _lat_from_y(top, world)
    south = _lat_from_y(bottom, world)

    if width >= world:
        return BoundingRegion(south=south, west=-180.0, north=north, east=180.0)

    west = _wrap_lon((cx - width / 2.0) / world * 360.0 - 180.0)
    east = _wrap_lon((cx + width / 2.0) / world * 360.0 - 180.0)
    return BoundingRegion(south=south, west=west, north=north, east=east)


def _lat_to_rad(lat: float) -> float:
    lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, lat))
    s = math.sin(lat * math.pi / 180.0)
    return math.log((1 + s) / (1 - s)) / 2.0


def _lat_from_y(y: float, world: float) -> float:
    # https://wiki.openstreetmap.org/wiki/Slippy_map_tilenames
    t = math.pi * (1.0 - 2.0 * y / world)
    return math.degrees(math.atan(math.sinh(t)))


def _wrap_lon(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0
