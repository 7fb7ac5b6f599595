from __future__ import annotations

import time

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from api.models import ApiMarkerRef, ApiPlotRequest, ApiViewport
from api.payloads import initial_payload, recenter_payload, tooltip_payload, visible_plot
from api.view_stream import stream_view
from engine.interaction import MarkerInteraction
from engine.snapshot import load_snapshot
from engine.types import MapSetSnapshot
from mapsets.registry import get_mapset, list_mapsets
from telemetry.singleton import get_store, reset_store

app = FastAPI(title="ipmap")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _snapshot(mapset_id: str | None) -> MapSetSnapshot:
    return load_snapshot(get_mapset(mapset_id).config.id)


@app.get("/mapsets")
def mapsets():
    return [
        {"id": cfg.id, "title": cfg.title, "view": cfg.view.model_dump()}
        for cfg in list_mapsets()
    ]


@app.get("/mapsets/{mapset_id}/initial")
def initial_view(mapset_id: str, width: int | None = None, height: int | None = None):
    snapshot = _snapshot(mapset_id)
    viewport = None
    if width and height:
        viewport = ApiViewport(width=width, height=height).model_dump()
    return initial_payload(snapshot, viewport=viewport)


@app.post("/plot")
def plot(body: ApiPlotRequest):
    """
    Visible clusters for one settled view. Without bounds (map not ready) the plot is empty.
    """
    snapshot = _snapshot(body.mapSetId)
    region = body.region()

    t0 = time.perf_counter()
    visible = snapshot.index.visible(region)
    t_filter_ms = (time.perf_counter() - t0) * 1000.0

    view = body.view
    return visible_plot(
        snapshot,
        visible,
        region=region,
        endpoint="/plot",
        view_center={"lat": view.center.lat, "lon": view.center.lon} if view else None,
        view_zoom=view.zoom if view else None,
        show_viewport=body.showViewport,
        filter_ms=t_filter_ms,
        store=get_store(),
    )


@app.post("/markers/hover")
def marker_hover(body: ApiMarkerRef):
    snapshot = _snapshot(body.mapSetId)
    cluster = snapshot.find(body.lat, body.lon)
    if cluster is None:
        raise HTTPException(status_code=404, detail="No marker at that coordinate")
    return tooltip_payload(MarkerInteraction().hover(cluster))


@app.post("/markers/click")
def marker_click(body: ApiMarkerRef):
    snapshot = _snapshot(body.mapSetId)
    cluster = snapshot.find(body.lat, body.lon)
    if cluster is None:
        raise HTTPException(status_code=404, detail="No marker at that coordinate")
    interaction = MarkerInteraction(focus_zoom=snapshot.config.view.focusZoom)
    return recenter_payload(interaction.click(cluster))


@app.websocket("/ws/view")
async def view_socket(websocket: WebSocket, mapSetId: str | None = None):
    await stream_view(websocket, mapSetId)


@app.get("/telemetry/summary")
def telemetry_summary(
    mapset: str | None = None,
    endpoint: str | None = None,
    since_ms: int | None = None,
):
    store = get_store()
    if store is None:
        return {"enabled": False, "rows": []}
    store.flush(timeout_s=1.0)
    return {
        "enabled": True,
        "rows": store.summary(mapset=mapset, endpoint=endpoint, since_ms=since_ms),
    }


@app.post("/telemetry/reset")
def telemetry_reset():
    reset_store()
    return {"ok": True}
