from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.models import ApiStreamMessage, ApiViewChange
from api.payloads import initial_payload, recenter_payload, tooltip_payload, visible_plot
from engine.interaction import MarkerInteraction
from engine.scheduler import AsyncioClock
from engine.session import ViewportSession, VisibleSet
from engine.snapshot import load_snapshot
from engine.types import MapSetSnapshot
from geo.bounds import BoundingRegion
from mapsets.registry import get_mapset
from telemetry.singleton import get_store

logger = logging.getLogger(__name__)


class ViewState:
    """
    Latest view reported by one connected map. Read by the session at recompute time.
    """

    def __init__(self) -> None:
        self.region: BoundingRegion | None = None
        self.center: dict[str, float] | None = None
        self.zoom: float | None = None

    def current_bounds(self) -> BoundingRegion | None:
        return self.region


async def stream_view(websocket: WebSocket, mapset_id: str | None) -> None:
    """
    One map view over a WebSocket.

    Client -> server: {"type": "view_changed", "bbox": {...}} (or "view": {...}),
                      {"type": "hover" | "leave" | "click", "lat": ..., "lon": ...}
    Server -> client: "initial" once, then "visible" after every settled view change,
                      plus "tooltip" / "marker_state" / "recenter" / "error".
    """
    await websocket.accept()

    snapshot = load_snapshot(get_mapset(mapset_id).config.id)
    cfg = snapshot.config
    state = ViewState()
    interaction = MarkerInteraction(focus_zoom=cfg.view.focusZoom)
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    # Opening DuckDB is blocking; recomputes only enqueue into the store.
    store = await asyncio.to_thread(get_store)

    session: ViewportSession

    def publish(visible: VisibleSet) -> None:
        plot = visible_plot(
            snapshot,
            visible,
            region=state.region,
            endpoint="/ws/view",
            view_center=state.center,
            view_zoom=state.zoom,
            filter_ms=session.last_recompute_ms,
            store=store,
        )
        outbox.put_nowait({"type": "visible", "plot": plot})

    session = ViewportSession(
        snapshot.index,
        get_bounds=state.current_bounds,
        clock=AsyncioClock(),
        window_s=cfg.view.debounceMs / 1000.0,
        on_visible=publish,
    )

    async def sender() -> None:
        while True:
            msg = await outbox.get()
            await websocket.send_json(msg)

    await websocket.send_json({"type": "initial", **initial_payload(snapshot)})
    send_task = asyncio.create_task(sender())
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = ApiStreamMessage.model_validate_json(raw)
            except ValidationError as e:
                detail = e.errors(include_url=False, include_context=False, include_input=False)
                outbox.put_nowait({"type": "error", "detail": detail})
                continue
            outbox_msg = _handle_message(msg, snapshot, state, session, interaction)
            if outbox_msg is not None:
                outbox.put_nowait(outbox_msg)
    except WebSocketDisconnect:
        logger.debug("View stream for %s disconnected", cfg.id)
    finally:
        # No recompute may publish into a closed socket.
        session.close()
        send_task.cancel()


def _handle_message(
    msg: ApiStreamMessage,
    snapshot: MapSetSnapshot,
    state: ViewState,
    session: ViewportSession,
    interaction: MarkerInteraction,
) -> dict[str, Any] | None:
    if msg.type == "view_changed":
        state.region = ApiViewChange(bbox=msg.bbox, view=msg.view).region()
        if msg.view is not None:
            state.center = {"lat": msg.view.center.lat, "lon": msg.view.center.lon}
            state.zoom = msg.view.zoom
        else:
            # A bbox-only change drops the previous camera; the plot refits it to the region.
            state.center = None
            state.zoom = None
        session.notify_view_changed()
        return None

    if msg.lat is None or msg.lon is None:
        return {"type": "error", "detail": f"{msg.type} needs lat and lon"}
    cluster = snapshot.find(msg.lat, msg.lon)
    if cluster is None:
        return {"type": "error", "detail": "No marker at that coordinate"}

    if msg.type == "hover":
        return {"type": "tooltip", **tooltip_payload(interaction.hover(cluster))}
    if msg.type == "leave":
        marker_state = interaction.leave(cluster)
        return {
            "type": "marker_state",
            "lat": cluster.latitude,
            "lon": cluster.longitude,
            "state": marker_state.value,
        }
    return {"type": "recenter", **recenter_payload(interaction.click(cluster))}
