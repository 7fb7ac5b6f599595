from __future__ import annotations

import time
from typing import Any, Sequence

from engine.interaction import RecenterInstruction, Tooltip
from engine.types import MapSetSnapshot
from geo.bounds import BoundingRegion
from observations.types import LocationCluster
from plot.build_map import build_cluster_plot
from plot.view import fit_view_to_region
from telemetry.store import TelemetryStore


def initial_payload(
    snapshot: MapSetSnapshot, *, viewport: dict[str, int] | None = None
) -> dict[str, Any]:
    """
    Starting extent for a fresh map. With no clusters, `bounds` is None and the
    mapset's default view is returned unchanged (no fitting).
    """
    cfg = snapshot.config
    padding = cfg.view.framePadding
    if snapshot.frame.is_empty:
        center = cfg.view.defaultView.center.model_dump()
        zoom = cfg.view.defaultView.zoom
    else:
        center, zoom = fit_view_to_region(snapshot.frame, viewport=viewport, padding=padding)
    return {
        "mapSetId": cfg.id,
        "title": cfg.title,
        "bounds": snapshot.frame.as_dict(),
        "padding": padding,
        "center": center,
        "zoom": zoom,
        "clusters": len(snapshot.clusters),
        "observations": snapshot.observations,
        "debounceMs": cfg.view.debounceMs,
    }


def visible_plot(
    snapshot: MapSetSnapshot,
    visible: Sequence[LocationCluster],
    *,
    region: BoundingRegion | None,
    endpoint: str,
    view_center: dict[str, float] | None = None,
    view_zoom: float | None = None,
    show_viewport: bool = False,
    filter_ms: float | None = None,
    store: TelemetryStore | None = None,
) -> dict[str, Any]:
    """
    Plot payload for one visible set. `store` is resolved by the caller; here it
    only gets a queued `record()`.
    """
    t0 = time.perf_counter()
    plot = build_cluster_plot(
        visible,
        style=snapshot.config.markers,
        region=region,
        view_center=view_center,
        view_zoom=view_zoom,
        total_clusters=len(snapshot.clusters),
        show_viewport=show_viewport,
    )
    t_plot_ms = (time.perf_counter() - t0) * 1000.0

    stats = plot["layout"]["meta"]["stats"]
    stats["mapSetId"] = snapshot.config.id
    stats["timingsMs"] = {
        "filter": round(filter_ms or 0.0, 3),
        "plot": round(t_plot_ms, 3),
        "total": round((filter_ms or 0.0) + t_plot_ms, 3),
    }

    if store is not None:
        store.record(
            endpoint=endpoint,
            mapset=snapshot.config.id,
            region=stats["region"],
            visible_clusters=len(visible),
            stats=stats,
        )
    return plot


def tooltip_payload(tooltip: Tooltip) -> dict[str, Any]:
    return {
        "lat": tooltip.lat,
        "lon": tooltip.lon,
        "place": tooltip.place,
        "city": tooltip.city,
        "state": tooltip.state,
        "countryOrRegion": tooltip.country_or_region,
        "count": tooltip.count,
        "ipAddresses": list(tooltip.ip_addresses),
        "truncated": tooltip.truncated,
    }


def recenter_payload(instruction: RecenterInstruction) -> dict[str, Any]:
    return {
        "center": {"lat": instruction.lat, "lon": instruction.lon},
        "zoom": instruction.zoom,
    }
