"""EventDispatcher — maps inbound events onto controller operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from garden.engine.event_queue import (
    PlacementConfirmed,
    RearmRequested,
    SelectionRequested,
    TapDetected,
    TimerFired,
)

if TYPE_CHECKING:
    from garden.core.models import OpResult
    from garden.engine.controller import LifecycleController
    from garden.engine.event_queue import EventQueue, InboundEvent, QueuedEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Applies queued events to one controller, one at a time."""

    __slots__ = ("_controller",)

    def __init__(self, controller: LifecycleController) -> None:
        self._controller = controller

    def dispatch(self, event: InboundEvent) -> OpResult:
        c = self._controller
        match event:
            case SelectionRequested(entity_id=eid):
                return c.select_entity(eid)
            case PlacementConfirmed(entity_id=eid):
                return c.on_placed(eid)
            case TapDetected(point=point):
                return c.handle_tap(point)
            case TimerFired(entity_id=eid, handle=handle):
                return c.on_timer_fired(eid, handle)
            case RearmRequested(entity_id=eid):
                return c.rearm_timer(eid)
        raise TypeError(f"Unsupported event: {event!r}")

    def process(self, item: QueuedEvent) -> None:
        """Dispatch *item* and resolve its future; errors go to the future, not the caller."""
        if not item.future.set_running_or_notify_cancel():
            return
        try:
            result = self.dispatch(item.event)
        except Exception as exc:
            logger.exception("Dispatch failed for %r", item.event)
            item.future.set_exception(exc)
        else:
            item.future.set_result(result)

    def drain(self, queue: EventQueue) -> int:
        """Process everything currently queued. Returns the count processed."""
        items = queue.drain()
        for item in items:
            self.process(item)
        return len(items)
