"""Single-shot growth timers, one per entity.

Two schedulers share the same handle bookkeeping:
  - ThreadedTimerScheduler arms a ``threading.Timer`` per handle and
    fires on wall-clock time.
  - ManualTimerScheduler keeps a virtual clock that only moves when
    ``advance`` is called (headless runs and tests).

Arming, firing and cancelling are all decided under one lock, so a
handle completes at most once and never after it was cancelled.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class TimerHandle:
    """Opaque token identifying one scheduling call.

    Compared by identity: two handles are equal only if they came from
    the same ``schedule`` call.
    """

    entity_id: str
    serial: int
    duration: float

    def __repr__(self) -> str:
        return f"TimerHandle({self.entity_id!r}#{self.serial})"


TimerCompletion = Callable[[str, TimerHandle], None]


class TimerScheduler:
    """Base scheduler: handle allocation and at-most-once completion."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._serials = itertools.count(1)
        self._active: dict[str, TimerHandle] = {}
        self._completion: TimerCompletion | None = None

    @property
    def completion(self) -> TimerCompletion | None:
        return self._completion

    def bind(self, completion: TimerCompletion) -> None:
        """Set the callback invoked with ``(entity_id, handle)`` on expiry."""
        self._completion = completion

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._active)

    def active_handle(self, entity_id: str) -> TimerHandle | None:
        with self._lock:
            return self._active.get(entity_id)

    def schedule(self, entity_id: str, duration: float) -> TimerHandle | None:
        """Arm a one-shot timer for *entity_id*.

        Returns None without arming anything if the entity already has an
        active handle; callers must cancel first.
        """
        with self._lock:
            if entity_id in self._active:
                logger.debug("Timer for %s already armed — schedule ignored", entity_id)
                return None
            handle = TimerHandle(entity_id, next(self._serials), duration)
            self._active[entity_id] = handle
            self._arm(handle)
        logger.debug("Armed %r for %.1f units", handle, duration)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        """Disarm *handle*. Unknown, fired or already cancelled handles are a no-op."""
        if handle is None:
            return
        with self._lock:
            if self._active.get(handle.entity_id) != handle:
                return
            del self._active[handle.entity_id]
            self._disarm(handle)
        logger.debug("Cancelled %r", handle)

    def cancel_all(self) -> None:
        with self._lock:
            handles = list(self._active.values())
            self._active.clear()
            for handle in handles:
                self._disarm(handle)
        if handles:
            logger.debug("Cancelled %d pending timer(s)", len(handles))

    def _fire(self, handle: TimerHandle) -> bool:
        with self._lock:
            if self._active.get(handle.entity_id) != handle:
                return False
            del self._active[handle.entity_id]
        logger.debug("Fired %r", handle)
        if self._completion is not None:
            self._completion(handle.entity_id, handle)
        return True

    # -- backend hooks (called with the lock held) --

    def _arm(self, handle: TimerHandle) -> None:
        raise NotImplementedError

    def _disarm(self, handle: TimerHandle) -> None:
        raise NotImplementedError


class ThreadedTimerScheduler(TimerScheduler):
    """Wall-clock scheduler backed by daemon ``threading.Timer`` threads."""

    def __init__(self, seconds_per_unit: float = 1.0) -> None:
        super().__init__()
        self._seconds_per_unit = seconds_per_unit
        self._timers: dict[TimerHandle, threading.Timer] = {}

    def _arm(self, handle: TimerHandle) -> None:
        timer = threading.Timer(handle.duration * self._seconds_per_unit, self._on_timer, args=(handle,))
        timer.daemon = True
        timer.name = f"growth-timer-{handle.entity_id}-{handle.serial}"
        self._timers[handle] = timer
        timer.start()

    def _disarm(self, handle: TimerHandle) -> None:
        timer = self._timers.pop(handle, None)
        if timer is not None:
            timer.cancel()

    def _on_timer(self, handle: TimerHandle) -> None:
        with self._lock:
            self._timers.pop(handle, None)
        self._fire(handle)


class ManualTimerScheduler(TimerScheduler):
    """Virtual-clock scheduler; timers fire only inside ``advance``."""

    def __init__(self) -> None:
        super().__init__()
        self._now: float = 0.0
        self._heap: list[tuple[float, int, TimerHandle]] = []

    @property
    def now(self) -> float:
        return self._now

    def _arm(self, handle: TimerHandle) -> None:
        heapq.heappush(self._heap, (self._now + handle.duration, handle.serial, handle))

    def _disarm(self, handle: TimerHandle) -> None:
        self._heap = [entry for entry in self._heap if entry[2] is not handle]
        heapq.heapify(self._heap)

    def advance(self, units: float) -> int:
        """Move the clock forward by *units*, firing due timers in deadline order.

        Returns the number of timers that completed.
        """
        target = self._now + units
        fired = 0
        while True:
            with self._lock:
                if not self._heap or self._heap[0][0] > target:
                    break
                deadline, _serial, handle = heapq.heappop(self._heap)
                self._now = max(self._now, deadline)
            if self._fire(handle):
                fired += 1
        with self._lock:
            self._now = target
        return fired
