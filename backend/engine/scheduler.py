from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_S = 0.1


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """
    Time source + timer facility.

    - AsyncioClock: real time on the running event loop
    - VirtualClock: manual time, for deterministic tests
    """

    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioClock:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._loop.call_later(delay, callback)


@dataclass
class _VirtualTimer:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class VirtualClock:
    """
    A clock that only moves when told to.

    `advance()` fires due timers in (due time, creation) order, with `now()` set to
    each timer's due time while its callback runs.
    """

    _now: float = 0.0
    _timers: list[tuple[float, int, _VirtualTimer]] = field(default_factory=list, repr=False)
    _seq: itertools.count = field(default_factory=itertools.count, repr=False)

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _VirtualTimer(due=self._now + max(0.0, float(delay)), callback=callback)
        heapq.heappush(self._timers, (timer.due, next(self._seq), timer))
        return timer

    def advance(self, seconds: float) -> None:
        target = self._now + float(seconds)
        while self._timers and self._timers[0][0] <= target:
            due, _seq, timer = heapq.heappop(self._timers)
            self._now = due
            if not timer.cancelled:
                timer.callback()
        self._now = target

    def pending(self) -> int:
        return sum(1 for _due, _seq, t in self._timers if not t.cancelled)


class RecomputeScheduler:
    """
    Trailing-edge debounce around a recompute action.

    Every `schedule()` drops the pending run and starts a fresh quiescence window, so
    a burst of view changes (drag, wheel zoom, resize) produces one run after the burst
    ends. The action takes no arguments: it must read the view state when it runs.
    """

    def __init__(
        self,
        action: Callable[[], None],
        *,
        clock: Clock,
        window_s: float = DEFAULT_WINDOW_S,
    ) -> None:
        if window_s < 0:
            raise ValueError(f"window_s must be >= 0, got {window_s!r}")
        self._action = action
        self._clock = clock
        self.window_s = float(window_s)
        self._handle: TimerHandle | None = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self) -> None:
        if self._closed:
            logger.debug("schedule() after close(); ignored")
            return
        self.cancel()
        self._handle = self._clock.call_later(self.window_s, self._fire)

    def cancel(self) -> bool:
        handle, self._handle = self._handle, None
        if handle is None:
            return False
        handle.cancel()
        return True

    def close(self) -> None:
        """
        Tear down: cancel the pending run and refuse new ones.
        """
        self._closed = True
        self.cancel()

    def _fire(self) -> None:
        self._handle = None
        if self._closed:
            return
        self._action()
