"""Thread-safe inbound event queue feeding the dispatcher."""

from __future__ import annotations

import queue
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from garden.core.models import OpResult, Point
    from garden.engine.timer_scheduler import TimerHandle


@dataclass(frozen=True, slots=True)
class SelectionRequested:
    entity_id: str


@dataclass(frozen=True, slots=True)
class PlacementConfirmed:
    entity_id: str


@dataclass(frozen=True, slots=True)
class TapDetected:
    point: Point


@dataclass(frozen=True, slots=True)
class TimerFired:
    entity_id: str
    handle: TimerHandle


@dataclass(frozen=True, slots=True)
class RearmRequested:
    entity_id: str


InboundEvent = Union[SelectionRequested, PlacementConfirmed, TapDetected, TimerFired, RearmRequested]


@dataclass(slots=True)
class QueuedEvent:
    """An inbound event plus the future its producer may wait on."""

    event: InboundEvent
    future: Future[OpResult] = field(default_factory=Future)


class EventQueue:
    """MPSC (multiple-producer, single-consumer) queue of inbound events.

    Gesture handlers, API requests and timer threads push; the dispatcher
    thread is the only consumer.
    """

    __slots__ = ("_queue",)

    def __init__(self) -> None:
        self._queue: queue.Queue[QueuedEvent] = queue.Queue()

    def push(self, event: InboundEvent) -> Future[OpResult]:
        """Thread-safe enqueue; returns a future resolved once the event is applied."""
        item = QueuedEvent(event)
        self._queue.put_nowait(item)
        return item.future

    def get(self, timeout: float | None = None) -> QueuedEvent | None:
        """Block up to *timeout* seconds for the next event."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[QueuedEvent]:
        """Drain all pending events without blocking."""
        items: list[QueuedEvent] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return items

    @property
    def empty(self) -> bool:
        return self._queue.empty()
