from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


CROWD_THRESHOLD = 10

# Upper bounds (inclusive) of labeled bands 1 and 2; anything above is band 3.
_BAND_LIMITS = (100, 1000)
# Band 1 must stay reachable.
MAX_CROWD_THRESHOLD = _BAND_LIMITS[0]


class DensityTier(str, Enum):
    dot = "dot"
    small = "small"
    medium = "medium"
    large = "large"


_TIER_BY_BAND = (DensityTier.dot, DensityTier.small, DensityTier.medium, DensityTier.large)


@dataclass(frozen=True)
class MarkerSizes:
    """
    Display sizes per band. Units are whatever the map renderer uses (px for Plotly).
    """

    dot: float = 4.0
    band1: float = 16.0
    band2: float = 20.0
    band3: float = 26.0

    def for_band(self, band: int) -> float:
        return (self.dot, self.band1, self.band2, self.band3)[band]


@dataclass(frozen=True)
class DensityClass:
    tier: DensityTier
    band: int
    size_hint: float
    show_label: bool


def classify_density(
    count: int,
    *,
    threshold: int = CROWD_THRESHOLD,
    sizes: MarkerSizes | None = None,
) -> DensityClass:
    """
    Map a cluster count to a discrete visual weight.

    count < threshold          -> band 0 (dot, no label)
    threshold <= count <= 100  -> band 1
    100 < count <= 1000        -> band 2
    count > 1000               -> band 3

    `threshold` must lie in 1..100.
    """
    if not 1 <= threshold <= MAX_CROWD_THRESHOLD:
        raise ValueError(f"threshold must be in 1..{MAX_CROWD_THRESHOLD}, got {threshold!r}")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValueError(f"count must be a positive integer, got {count!r}")

    if count < threshold:
        band = 0
    elif count <= _BAND_LIMITS[0]:
        band = 1
    elif count <= _BAND_LIMITS[1]:
        band = 2
    else:
        band = 3

    sizes = sizes or MarkerSizes()
    return DensityClass(
        tier=_TIER_BY_BAND[band],
        band=band,
        size_hint=sizes.for_band(band),
        show_label=band > 0,
    )
