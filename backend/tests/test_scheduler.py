from __future__ import annotations

import asyncio

import pytest

from engine.scheduler import AsyncioClock, RecomputeScheduler, VirtualClock
from engine.session import ViewportSession
from geo.bounds import BoundingRegion
from geo.viewport import build_cluster_index
from observations.aggregate import aggregate_observations
from observations.types import ObservationRecord


def _index():
    records = [
        ObservationRecord(id=f"r{i}", ip_address=f"ip{i}", latitude=float(lat), longitude=float(lon))
        for i, (lat, lon) in enumerate([(10, 10), (10, 10), (20, 20), (30, 30), (40, 40)])
    ]
    return build_cluster_index(aggregate_observations(records))


def test_burst_collapses_into_one_run():
    clock = VirtualClock()
    runs: list[float] = []
    scheduler = RecomputeScheduler(lambda: runs.append(clock.now()), clock=clock, window_s=0.1)

    for _ in range(10):
        scheduler.schedule()
        clock.advance(0.05)
    assert runs == []
    assert scheduler.pending

    clock.advance(0.1)
    assert len(runs) == 1
    # Fired one window after the last notification.
    assert runs[0] == pytest.approx(0.45 + 0.1)
    assert not scheduler.pending
    assert clock.pending() == 0


def test_separate_windows_run_in_order():
    clock = VirtualClock()
    runs: list[str] = []
    label = {"v": "first"}
    scheduler = RecomputeScheduler(lambda: runs.append(label["v"]), clock=clock, window_s=0.1)

    scheduler.schedule()
    clock.advance(0.2)
    label["v"] = "second"
    scheduler.schedule()
    clock.advance(0.2)

    assert runs == ["first", "second"]


def test_cancel_and_close_prevent_runs():
    clock = VirtualClock()
    runs: list[int] = []
    scheduler = RecomputeScheduler(lambda: runs.append(1), clock=clock, window_s=0.1)

    scheduler.schedule()
    assert scheduler.cancel() is True
    assert scheduler.cancel() is False
    clock.advance(1.0)
    assert runs == []

    scheduler.schedule()
    scheduler.close()
    clock.advance(1.0)
    scheduler.schedule()
    clock.advance(1.0)
    assert runs == []
    assert scheduler.closed
    assert clock.pending() == 0


def test_negative_window_is_rejected():
    with pytest.raises(ValueError):
        RecomputeScheduler(lambda: None, clock=VirtualClock(), window_s=-1.0)


def test_session_uses_view_state_at_end_of_burst():
    index = _index()
    clock = VirtualClock()
    published = []
    view = {"region": None}
    session = ViewportSession(
        index,
        get_bounds=lambda: view["region"],
        clock=clock,
        window_s=0.1,
        on_visible=published.append,
    )

    regions = [
        BoundingRegion(south=0, west=0, north=50, east=50),
        BoundingRegion(south=15, west=15, north=50, east=50),
        BoundingRegion(south=35, west=35, north=45, east=45),
    ]
    for r in regions:
        view["region"] = r
        session.notify_view_changed()
        clock.advance(0.03)

    clock.advance(0.2)

    assert session.recomputes == 1
    assert len(published) == 1
    assert [c.key for c in published[0]] == [(40.0, 40.0)]
    assert session.visible is published[0]


def test_session_reads_bounds_when_it_runs_not_when_scheduled():
    clock = VirtualClock()
    view = {"region": BoundingRegion(south=0, west=0, north=50, east=50)}
    session = ViewportSession(_index(), get_bounds=lambda: view["region"], clock=clock)

    session.notify_view_changed()
    view["region"] = BoundingRegion(south=5, west=5, north=15, east=15)
    clock.advance(0.5)

    assert [c.count for c in session.visible] == [2]


def test_session_without_bounds_yields_empty_visible_set():
    clock = VirtualClock()
    session = ViewportSession(_index(), get_bounds=lambda: None, clock=clock)

    session.notify_view_changed()
    clock.advance(0.5)

    assert session.visible == ()
    assert session.recomputes == 1


def test_closed_session_never_publishes():
    clock = VirtualClock()
    published = []
    session = ViewportSession(
        _index(),
        get_bounds=lambda: BoundingRegion(south=-90, west=-180, north=90, east=180),
        clock=clock,
        on_visible=published.append,
    )

    session.notify_view_changed()
    session.close()
    clock.advance(1.0)
    session.notify_view_changed()
    clock.advance(1.0)
    session.recompute()

    assert published == []
    assert session.visible == ()
    assert session.closed


def test_asyncio_clock_debounces_on_the_event_loop():
    async def run() -> list[float]:
        clock = AsyncioClock()
        runs: list[float] = []
        scheduler = RecomputeScheduler(lambda: runs.append(clock.now()), clock=clock, window_s=0.02)
        for _ in range(5):
            scheduler.schedule()
            await asyncio.sleep(0)
        await asyncio.sleep(0.1)
        return runs

    assert len(asyncio.run(run())) == 1
