"""GardenManager — owns one garden session and its dispatcher thread.

All inbound events (API requests, timer expiries) are pushed onto one
EventQueue and applied by a single dispatcher thread, so the controller
sees a serialized stream. Readers use immutable snapshots.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable

from garden.collaborators.rendering import HeadlessScene
from garden.engine.controller import LifecycleController
from garden.engine.dispatcher import EventDispatcher
from garden.engine.event_queue import EventQueue, TimerFired
from garden.engine.notifications import NotificationBus
from garden.engine.timer_scheduler import ThreadedTimerScheduler
from garden.systems.rng import DeterministicRNG
from garden.utils.event_log import EventLog

if TYPE_CHECKING:
    from garden.collaborators.rendering import RenderingSurface
    from garden.config import GardenConfig
    from garden.core.models import OpResult
    from garden.core.snapshot import GardenSnapshot
    from garden.engine.event_queue import InboundEvent
    from garden.engine.timer_scheduler import TimerScheduler

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.05


class GardenManager:
    """Manages the garden session lifecycle.

    Provides thread-safe access to:
      - latest snapshot (built under the controller lock)
      - event log (lock-guarded bounded buffer)
      - event submission (queued, applied on the dispatcher thread)
      - control commands (start / stop / reset)
    """

    def __init__(
        self,
        config: GardenConfig,
        scheduler_factory: Callable[[], TimerScheduler] | None = None,
        renderer_factory: Callable[[], RenderingSurface] | None = None,
    ) -> None:
        self._config = config
        self._scheduler_factory = scheduler_factory or (
            lambda: ThreadedTimerScheduler(config.seconds_per_unit)
        )
        self._renderer_factory = renderer_factory or self._default_renderer
        self._event_log = EventLog(config.event_log_limit)

        # Session components (built in _build)
        self._scheduler: TimerScheduler | None = None
        self._renderer: RenderingSurface | None = None
        self._controller: LifecycleController | None = None
        self._dispatcher: EventDispatcher | None = None
        self._queue = EventQueue()
        self._session_lock = threading.RLock()

        # Control
        self._thread: threading.Thread | None = None
        self._running = threading.Event()
        self._stop_requested = threading.Event()

        self._build()

    # -- public properties --

    @property
    def config(self) -> GardenConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def controller(self) -> LifecycleController:
        assert self._controller is not None
        return self._controller

    @property
    def scheduler(self) -> TimerScheduler:
        assert self._scheduler is not None
        return self._scheduler

    @property
    def renderer(self) -> RenderingSurface:
        assert self._renderer is not None
        return self._renderer

    def get_snapshot(self) -> GardenSnapshot:
        return self.controller.snapshot()

    # -- events --

    def submit(self, event: InboundEvent, timeout: float | None = None) -> OpResult:
        """Queue *event* and wait for its result.

        When the dispatcher thread is not running, the queue is drained
        inline on the caller's thread instead. Raises CancelledError if a
        stop or reset discards the event before it is applied.
        """
        with self._session_lock:
            future = self._queue.push(event)
            if not self.running:
                self.pump()
        return future.result(timeout=timeout if timeout is not None else self._config.request_timeout_seconds)

    def pump(self) -> int:
        """Apply every queued event on the caller's thread (dispatcher stopped only)."""
        with self._session_lock:
            if self.running:
                raise RuntimeError("pump() while the dispatcher thread is running")
            if self._dispatcher is None:
                raise RuntimeError("pump() before the session was built")
            return self._dispatcher.drain(self._queue)

    # -- lifecycle --

    def start(self) -> None:
        with self._session_lock:
            if self._running.is_set():
                return
            self._stop_requested.clear()
            self._running.set()
            self._thread = threading.Thread(target=self._run_loop, name="garden-dispatcher", daemon=True)
            self._thread.start()
        logger.info("GardenManager started (seconds_per_unit=%.3f)", self._config.seconds_per_unit)

    def stop(self) -> None:
        with self._session_lock:
            self._stop_requested.set()
            if self._thread and self._thread.is_alive():
                self._thread.join(timeout=5.0)
            self._running.clear()
            self._thread = None
            if self._controller:
                self._controller.shutdown()
            for item in self._queue.drain():
                item.future.cancel()
        logger.info("GardenManager stopped.")

    def reset(self) -> None:
        """Tear the session down and rebuild it with every entity Dormant."""
        with self._session_lock:
            was_running = self.running
            self.stop()
            self._event_log.clear()
            self._build()
            if was_running:
                self.start()
        logger.info("GardenManager reset.")

    # -- internals --

    def _default_renderer(self) -> RenderingSurface:
        assets: list[str] = []
        for entry in self._config.catalog:
            assets.extend((entry.initial_asset, entry.transformed_asset))
        return HeadlessScene(known_assets=assets)

    def _build(self) -> None:
        """Construct all session components from config."""
        cfg = self._config
        rng = DeterministicRNG(cfg.seed)
        queue = self._queue
        scheduler = self._scheduler_factory()
        scheduler.bind(lambda entity_id, handle: queue.push(TimerFired(entity_id, handle)))

        bus = NotificationBus()
        bus.subscribe(self._event_log.record)

        renderer = self._renderer_factory()
        controller = LifecycleController.from_config(cfg, rng, scheduler, renderer, bus)

        self._scheduler = scheduler
        self._renderer = renderer
        self._controller = controller
        self._dispatcher = EventDispatcher(controller)

        for eid in controller.entity_ids:
            entity = controller.entity(eid)
            logger.info("Catalog: %s grows for %.1f units", eid, entity.growth_duration)

    def _run_loop(self) -> None:
        """Dispatcher thread main loop."""
        logger.info("Dispatcher thread started.")
        assert self._dispatcher is not None
        dispatcher, queue = self._dispatcher, self._queue

        while not self._stop_requested.is_set():
            item = queue.get(timeout=_POLL_SECONDS)
            if item is not None:
                dispatcher.process(item)

        logger.info("Dispatcher thread exited.")
