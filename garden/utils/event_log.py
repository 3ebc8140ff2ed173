"""Thread-safe bounded feed of garden events exposed via the API."""

from __future__ import annotations

import itertools
import threading
from collections import deque
from dataclasses import dataclass

from garden.engine.notifications import (
    AssetLoadFailed,
    EntityStateChanged,
    Notification,
    TransitionRejected,
)


@dataclass(frozen=True, slots=True)
class GardenEvent:
    """A single entry in the API event feed."""

    seq: int
    category: str
    message: str
    entity_ids: tuple[str, ...] = ()


def describe(notification: Notification) -> tuple[str, str]:
    """Return ``(category, message)`` for a notification."""
    match notification:
        case EntityStateChanged(entity_id=eid, old_state=old, new_state=new):
            return "state", f"{eid}: {old.name.lower()} -> {new.name.lower()}"
        case AssetLoadFailed(entity_id=eid, asset_ref=ref, reason=reason):
            return "asset_error", f"{eid}: failed to load {ref} ({reason})"
        case TransitionRejected(entity_id=eid, state=state, event=event):
            return "diagnostic", f"{eid}: {event.name.lower()} rejected in {state.name.lower()}"
    return "unknown", repr(notification)


class EventLog:
    """Bounded event log. Writers append; readers copy a slice.

    Oldest entries are dropped past *limit*. Sequence numbers keep
    increasing across drops so ``since`` polling stays correct.
    """

    __slots__ = ("_buffer", "_lock", "_seq")

    def __init__(self, limit: int = 1000) -> None:
        self._buffer: deque[GardenEvent] = deque(maxlen=limit)
        self._lock = threading.Lock()
        self._seq = itertools.count(1)

    def record(self, notification: Notification) -> GardenEvent:
        """Append *notification*; usable directly as a NotificationBus subscriber."""
        category, message = describe(notification)
        with self._lock:
            event = GardenEvent(next(self._seq), category, message, (notification.entity_id,))
            self._buffer.append(event)
        return event

    def since(self, seq: int) -> list[GardenEvent]:
        """Return all events with seq > *seq*."""
        with self._lock:
            return [e for e in self._buffer if e.seq > seq]

    def latest(self, count: int = 50) -> list[GardenEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
