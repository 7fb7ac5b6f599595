from __future__ import annotations

from typing import Any, Sequence

from geo.bounds import BoundingRegion
from mapsets.types import MarkerStyle
from observations.types import LocationCluster
from plot.traces import trace_clusters, trace_viewport
from plot.view import fit_view_to_region


def build_cluster_plot(
    visible: Sequence[LocationCluster],
    *,
    style: MarkerStyle,
    region: BoundingRegion | None = None,
    view_center: dict[str, float] | None = None,
    view_zoom: float | None = None,
    total_clusters: int | None = None,
    show_viewport: bool = False,
) -> dict[str, Any]:
    traces: list[dict[str, Any]] = []
    if show_viewport and region is not None and not region.is_empty:
        traces.append(trace_viewport(region))
    traces.append(trace_clusters(visible, style=style))

    center, zoom = _camera(region, view_center, view_zoom)

    labeled = sum(1 for t in traces[-1]["text"] if t)
    stats: dict[str, Any] = {
        "visibleClusters": len(visible),
        "visibleObservations": sum(c.count for c in visible),
        "labeledClusters": labeled,
        "region": region.as_dict() if region is not None else None,
    }
    if total_clusters is not None:
        stats["totalClusters"] = int(total_clusters)

    return {
        "data": traces,
        "layout": {
            "mapbox": {
                "center": center,
                "zoom": zoom,
                "style": "carto-positron",
            },
            "showlegend": False,
            "margin": {"l": 0, "r": 0, "t": 0, "b": 0},
            "meta": {"stats": stats},
        },
    }


def _camera(
    region: BoundingRegion | None,
    view_center: dict[str, float] | None,
    view_zoom: float | None,
) -> tuple[dict[str, float], float]:
    # Without a reported camera the layout follows the region it describes.
    if view_center is None and region is not None and not region.is_empty:
        center, fitted = fit_view_to_region(region, viewport=None, padding=0.0)
        return center, fitted if view_zoom is None else float(view_zoom)
    center = view_center or {"lat": 0.0, "lon": 0.0}
    return center, float(view_zoom) if view_zoom is not None else 2.0
