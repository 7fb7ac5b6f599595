from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ObservationRecord:
    """
    One raw input observation: an IP address seen at a coordinate.

    Coordinates are `None` when the source row has no usable value.
    """

    id: str
    ip_address: str
    latitude: float | None
    longitude: float | None
    city: str = ""
    state: str = ""
    country_or_region: str = ""


@dataclass(frozen=True)
class Member:
    id: str
    ip_address: str


@dataclass(frozen=True)
class LocationCluster:
    """
    All observations sharing one exact (latitude, longitude).

    Descriptive fields come from the first observation seen at the coordinate.
    """

    latitude: float
    longitude: float
    city: str
    state: str
    country_or_region: str
    members: tuple[Member, ...]

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def key(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def place_label(self) -> str:
        parts = [p for p in (self.city, self.state, self.country_or_region) if p]
        return ", ".join(parts)
