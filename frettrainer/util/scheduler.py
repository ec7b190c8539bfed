from __future__ import annotations

"""Cancellable deferred tasks on a single cooperative thread.

Nothing here starts a thread. Callbacks run only when the host drives the
scheduler, either by advancing virtual time (`advance`) or by polling a real
clock (`run_pending`). A cancelled handle never fires and a live handle fires
at most once.
"""

import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Tuple


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class VirtualClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def __call__(self) -> float:
        return self._now

    def set(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError("VirtualClock cannot move backwards")
        self._now = float(now_ms)

    def advance(self, ms: float) -> None:
        self.set(self._now + ms)


@dataclass(eq=False)
class TimerHandle:
    id: int
    due: float
    callback: Callable[[], None] = field(repr=False)
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler(Protocol):
    def now(self) -> float: ...

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...

    def cancel(self, handle: Optional[TimerHandle]) -> bool: ...


class CooperativeScheduler:
    """Timer queue ordered by due time, then by scheduling order."""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock: Callable[[], float] = clock if clock is not None else VirtualClock()
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._ids = itertools.count(1)
        self._live = 0

    @classmethod
    def realtime(cls) -> "CooperativeScheduler":
        return cls(clock=monotonic_ms)

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def now(self) -> float:
        return self._clock()

    @property
    def pending_count(self) -> int:
        return self._live

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(id=next(self._ids), due=self.now() + max(0.0, float(delay_ms)), callback=callback)
        heapq.heappush(self._queue, (handle.due, handle.id, handle))
        self._live += 1
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> bool:
        """Cancel a handle. Returns False when it already fired or was cancelled."""
        if handle is None or not handle.active:
            return False
        handle.cancelled = True
        self._live -= 1
        return True

    def cancel_all(self) -> None:
        for _due, _id, handle in self._queue:
            if handle.active:
                handle.cancelled = True
        self._queue.clear()
        self._live = 0

    def time_until_next(self) -> Optional[float]:
        nxt = self._peek()
        if nxt is None:
            return None
        return max(0.0, nxt.due - self.now())

    def run_pending(self) -> int:
        """Fire every live timer whose due time has passed. Returns the count fired."""
        fired = 0
        while True:
            nxt = self._peek()
            if nxt is None or nxt.due > self.now():
                return fired
            self._fire(nxt)
            fired += 1

    def advance(self, ms: float) -> int:
        """Move a virtual clock forward, firing timers in due order on the way."""
        clock = self._clock
        if not isinstance(clock, VirtualClock):
            raise RuntimeError("advance() requires a VirtualClock; use run_pending() with a real clock")
        target = clock() + ms
        fired = 0
        while True:
            nxt = self._peek()
            if nxt is None or nxt.due > target:
                break
            clock.set(max(nxt.due, clock()))
            self._fire(nxt)
            fired += 1
        clock.set(target)
        return fired

    def _peek(self) -> Optional[TimerHandle]:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)
        return self._queue[0][2] if self._queue else None

    def _fire(self, handle: TimerHandle) -> None:
        heapq.heappop(self._queue)
        handle.fired = True
        self._live -= 1
        handle.callback()
