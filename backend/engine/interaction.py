from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from observations.types import LocationCluster

DEFAULT_FOCUS_ZOOM = 9.0


class MarkerState(str, Enum):
    idle = "idle"
    hovered = "hovered"
    focused = "focused"


@dataclass(frozen=True)
class Tooltip:
    lat: float
    lon: float
    place: str
    city: str
    state: str
    country_or_region: str
    count: int
    ip_addresses: tuple[str, ...]
    # True when `ip_addresses` was cut at the preview limit.
    truncated: bool


@dataclass(frozen=True)
class RecenterInstruction:
    lat: float
    lon: float
    zoom: float


class MarkerInteraction:
    """
    Pointer interaction state per marker.

    idle -> hovered -> idle   (pointer enter / leave)
    idle|hovered -> focused   (click; recenters the map)

    Only one marker is focused at a time. None of this touches clusters or the
    visible set; it only produces instructions for the map view.
    """

    def __init__(self, *, focus_zoom: float = DEFAULT_FOCUS_ZOOM, preview_ips: int = 10) -> None:
        self.focus_zoom = float(focus_zoom)
        self.preview_ips = int(preview_ips)
        self._hovered: set[tuple[float, float]] = set()
        self._focused: tuple[float, float] | None = None

    def state(self, cluster: LocationCluster) -> MarkerState:
        if cluster.key == self._focused:
            return MarkerState.focused
        if cluster.key in self._hovered:
            return MarkerState.hovered
        return MarkerState.idle

    def hover(self, cluster: LocationCluster) -> Tooltip:
        if cluster.key != self._focused:
            self._hovered.add(cluster.key)
        ips = tuple(m.ip_address for m in cluster.members[: self.preview_ips])
        return Tooltip(
            lat=cluster.latitude,
            lon=cluster.longitude,
            place=cluster.place_label(),
            city=cluster.city,
            state=cluster.state,
            country_or_region=cluster.country_or_region,
            count=cluster.count,
            ip_addresses=ips,
            truncated=cluster.count > len(ips),
        )

    def leave(self, cluster: LocationCluster) -> MarkerState:
        self._hovered.discard(cluster.key)
        return self.state(cluster)

    def click(self, cluster: LocationCluster) -> RecenterInstruction:
        self._hovered.discard(cluster.key)
        self._focused = cluster.key
        return RecenterInstruction(
            lat=cluster.latitude, lon=cluster.longitude, zoom=self.focus_zoom
        )
