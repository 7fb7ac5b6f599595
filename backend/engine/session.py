from __future__ import annotations

import logging
import time
from typing import Callable

from engine.scheduler import DEFAULT_WINDOW_S, Clock, RecomputeScheduler
from geo.bounds import BoundingRegion
from geo.viewport import ClusterIndex
from observations.types import LocationCluster

logger = logging.getLogger(__name__)

VisibleSet = tuple[LocationCluster, ...]


class ViewportSession:
    """
    Culling state for one live map view.

    The hosting view hands in its capabilities explicitly:
    - `get_bounds`: current visible region, or None when the view isn't available
    - `on_visible`: receives every new visible set (optional)

    `visible` is replaced wholesale on each recompute, never mutated, so readers
    always see a complete snapshot.
    """

    def __init__(
        self,
        index: ClusterIndex,
        *,
        get_bounds: Callable[[], BoundingRegion | None],
        clock: Clock,
        window_s: float = DEFAULT_WINDOW_S,
        on_visible: Callable[[VisibleSet], None] | None = None,
    ) -> None:
        self.index = index
        self._get_bounds = get_bounds
        self._on_visible = on_visible
        self._scheduler = RecomputeScheduler(self.recompute, clock=clock, window_s=window_s)
        self._visible: VisibleSet = ()
        self._closed = False
        self.recomputes = 0
        self.last_recompute_ms: float | None = None

    @property
    def visible(self) -> VisibleSet:
        return self._visible

    @property
    def closed(self) -> bool:
        return self._closed

    def notify_view_changed(self) -> None:
        """
        Pan/zoom/resize notification. Cheap: only (re)arms the debounce timer.
        """
        self._scheduler.schedule()

    def recompute(self) -> VisibleSet:
        if self._closed:
            return self._visible
        t0 = time.perf_counter()
        region = self._get_bounds()
        visible = self.index.visible(region)
        self.last_recompute_ms = (time.perf_counter() - t0) * 1000.0
        self._visible = visible
        self.recomputes += 1
        if self._on_visible is not None:
            self._on_visible(visible)
        return visible

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._scheduler.close()
        logger.debug("Viewport session closed after %d recomputes", self.recomputes)
