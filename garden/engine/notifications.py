"""Outbound notifications and the channel that delivers them.

The controller produces one typed value per observable change; display
layers subscribe with a callback instead of watching entity fields.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Union

from garden.core.enums import EntityState, LifecycleEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EntityStateChanged:
    entity_id: str
    old_state: EntityState
    new_state: EntityState


@dataclass(frozen=True, slots=True)
class AssetLoadFailed:
    entity_id: str
    asset_ref: str
    reason: str


@dataclass(frozen=True, slots=True)
class TransitionRejected:
    """Diagnostic only; never shown to the user."""

    entity_id: str
    state: EntityState
    event: LifecycleEvent


Notification = Union[EntityStateChanged, AssetLoadFailed, TransitionRejected]
Subscriber = Callable[[Notification], None]


class NotificationBus:
    """Synchronous fan-out of notifications to registered callbacks.

    A failing subscriber is logged and skipped; it never breaks delivery
    to the others or the operation that published.
    """

    __slots__ = ("_subscribers", "_lock")

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, notification: Notification) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(notification)
            except Exception:
                logger.exception("Subscriber %r failed on %r", callback, notification)
