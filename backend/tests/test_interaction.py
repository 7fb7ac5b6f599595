from __future__ import annotations

from engine.interaction import MarkerInteraction, MarkerState
from observations.types import LocationCluster, Member


def _cluster(lat: float, lon: float, n: int) -> LocationCluster:
    return LocationCluster(
        latitude=lat,
        longitude=lon,
        city="Prague",
        state="",
        country_or_region="Czechia",
        members=tuple(Member(id=f"m{i}", ip_address=f"192.0.2.{i}") for i in range(n)),
    )


def test_hover_then_leave_returns_to_idle():
    ui = MarkerInteraction()
    c = _cluster(50.08, 14.43, 3)

    assert ui.state(c) == MarkerState.idle
    tip = ui.hover(c)
    assert ui.state(c) == MarkerState.hovered
    assert tip.place == "Prague, Czechia"
    assert tip.count == 3
    assert tip.ip_addresses == ("192.0.2.0", "192.0.2.1", "192.0.2.2")
    assert tip.truncated is False

    assert ui.leave(c) == MarkerState.idle


def test_tooltip_preview_is_capped():
    ui = MarkerInteraction(preview_ips=2)
    tip = ui.hover(_cluster(1.0, 1.0, 5))
    assert len(tip.ip_addresses) == 2
    assert tip.truncated is True


def test_click_focuses_and_recenters():
    ui = MarkerInteraction(focus_zoom=10)
    a = _cluster(50.08, 14.43, 1)
    b = _cluster(48.20, 16.37, 1)

    ui.hover(a)
    instr = ui.click(a)
    assert (instr.lat, instr.lon, instr.zoom) == (50.08, 14.43, 10.0)
    assert ui.state(a) == MarkerState.focused
    # Leaving a focused marker keeps it focused.
    assert ui.leave(a) == MarkerState.focused

    ui.click(b)
    assert ui.state(b) == MarkerState.focused
    assert ui.state(a) == MarkerState.idle
