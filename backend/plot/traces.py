from __future__ import annotations

from typing import Any, Sequence

from geo.bounds import BoundingRegion
from lod.density import DensityClass, classify_density
from mapsets.types import MarkerStyle
from observations.types import LocationCluster


def classify_clusters(
    clusters: Sequence[LocationCluster], style: MarkerStyle
) -> list[DensityClass]:
    sizes = style.sizes.to_sizes()
    return [
        classify_density(c.count, threshold=style.crowdThreshold, sizes=sizes)
        for c in clusters
    ]


def trace_viewport(region: BoundingRegion) -> dict[str, Any]:
    lons: list[float | None] = []
    lats: list[float | None] = []
    for min_lon, min_lat, max_lon, max_lat in region.boxes():
        lons.extend([min_lon, max_lon, max_lon, min_lon, min_lon, None])
        lats.extend([min_lat, min_lat, max_lat, max_lat, min_lat, None])
    return {
        "type": "scattermapbox",
        "name": "Viewport",
        "lon": lons,
        "lat": lats,
        "mode": "lines",
        "line": {"color": "rgba(55, 71, 79, 0.7)", "width": 1},
        "hoverinfo": "skip",
        "showlegend": False,
    }


def trace_clusters(
    clusters: Sequence[LocationCluster],
    *,
    style: MarkerStyle,
    name: str = "Observations",
) -> dict[str, Any]:
    """
    One trace for all clusters. Plotly draws points in array order, so the
    ascending-count order of `clusters` is also the stacking order.
    """
    classes = classify_clusters(clusters, style)
    return {
        "type": "scattermapbox",
        "name": name,
        "lon": [c.longitude for c in clusters],
        "lat": [c.latitude for c in clusters],
        "mode": "markers+text",
        "text": [str(c.count) if k.show_label else "" for c, k in zip(clusters, classes)],
        "textposition": "middle center",
        "textfont": {"size": 10, "color": style.labelColor},
        "marker": {
            "size": [k.size_hint for k in classes],
            "color": style.color,
        },
        # [lat, lon] identify the cluster for hover/click round trips.
        "customdata": [
            [c.latitude, c.longitude, c.count, c.place_label(), k.tier.value]
            for c, k in zip(clusters, classes)
        ],
        "hovertemplate": "%{customdata[3]}<br>%{customdata[2]} observations<extra></extra>",
        "showlegend": False,
    }
