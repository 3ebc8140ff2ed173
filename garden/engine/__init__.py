"""Engine layer: timers, inbound queue, notifications, controller, dispatcher."""

from garden.engine.controller import LifecycleController
from garden.engine.dispatcher import EventDispatcher
from garden.engine.event_queue import EventQueue
from garden.engine.notifications import NotificationBus
from garden.engine.timer_scheduler import (
    ManualTimerScheduler,
    ThreadedTimerScheduler,
    TimerHandle,
    TimerScheduler,
)

__all__ = [
    "EventDispatcher",
    "EventQueue",
    "LifecycleController",
    "ManualTimerScheduler",
    "NotificationBus",
    "ThreadedTimerScheduler",
    "TimerHandle",
    "TimerScheduler",
]
