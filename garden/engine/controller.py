"""LifecycleController — the single writer of entity state.

Every inbound stimulus (selection, placement, timer expiry, tap) goes
through one of the public operations below. Each operation:
  1. resolves the entity (UNKNOWN_ENTITY otherwise)
  2. asks the state machine whether the event is legal
  3. performs collaborator side effects (timers, asset placement)
  4. commits the new state and publishes EntityStateChanged

All operations hold one re-entrant lock, so no two events for the same
entity are ever applied concurrently, whichever thread delivers them.
Nothing is raised across the collaborator boundary; callers get an
OpResult.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Iterable

from garden.collaborators.rendering import PlacementFailure
from garden.core.catalog import build_entities, with_growth_range
from garden.core.enums import EntityState, LifecycleEvent, Outcome
from garden.core.models import Entity, OpResult
from garden.core.snapshot import GardenSnapshot
from garden.core.transitions import Rejected, transition
from garden.engine.notifications import (
    AssetLoadFailed,
    EntityStateChanged,
    NotificationBus,
    TransitionRejected,
)

if TYPE_CHECKING:
    from garden.collaborators.rendering import PlacementHandle, RenderingSurface
    from garden.config import GardenConfig
    from garden.core.models import Point
    from garden.engine.timer_scheduler import TimerHandle, TimerScheduler
    from garden.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)


class LifecycleController:
    """Owns the entity set and drives each entity through its lifecycle.

    If *scheduler* has no completion bound yet, its expiries are routed
    straight to ``on_timer_fired``. Bind the scheduler beforehand to
    route them elsewhere (e.g. onto the dispatcher queue).
    """

    def __init__(
        self,
        entities: Iterable[Entity],
        scheduler: TimerScheduler,
        renderer: RenderingSurface,
        bus: NotificationBus | None = None,
    ) -> None:
        self._entities: dict[str, Entity] = {}
        for entity in entities:
            if entity.id in self._entities:
                raise ValueError(f"Duplicate entity id: {entity.id!r}")
            self._entities[entity.id] = entity
        self._scheduler = scheduler
        self._renderer = renderer
        self._bus = bus if bus is not None else NotificationBus()
        self._selected: str | None = None
        self._lock = threading.RLock()

        if scheduler.completion is None:
            scheduler.bind(self.on_timer_fired)

    @classmethod
    def from_config(
        cls,
        config: GardenConfig,
        rng: DeterministicRNG,
        scheduler: TimerScheduler,
        renderer: RenderingSurface,
        bus: NotificationBus | None = None,
    ) -> LifecycleController:
        catalog = with_growth_range(config.catalog, config.min_growth_units, config.max_growth_units)
        entities = build_entities(catalog, rng)
        return cls(entities.values(), scheduler, renderer, bus)

    # -- read access --

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    @property
    def selected(self) -> str | None:
        with self._lock:
            return self._selected

    @property
    def entity_ids(self) -> list[str]:
        return list(self._entities)

    def entity(self, entity_id: str) -> Entity | None:
        """Return a copy of the entity record, or None if unknown."""
        with self._lock:
            entity = self._entities.get(entity_id)
            return entity.copy() if entity else None

    def snapshot(self) -> GardenSnapshot:
        with self._lock:
            return GardenSnapshot.from_entities(self._entities, self._selected, self._scheduler.pending)

    # -- operations --

    def select_entity(self, entity_id: str) -> OpResult:
        """Select *entity_id*, place its initial asset and start it growing."""
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return self._unknown(entity_id, "select")
            self._selected = entity_id

            verdict = transition(entity.state, LifecycleEvent.PLACE_REQUESTED)
            if isinstance(verdict, Rejected):
                return self._reject(entity, verdict)

            placed = self._place(entity, entity.initial_asset)
            if isinstance(placed, OpResult):
                return placed
            entity.placement = placed

            result = self._start_growth(entity)
            if not result.ok:
                self._renderer.remove_asset(placed)
                entity.placement = None
            return result

    def on_placed(self, entity_id: str, placement: PlacementHandle | None = None) -> OpResult:
        """Apply PLACE_REQUESTED once the entity's asset is in the scene.

        A surface that placed the asset itself passes its *placement*;
        without one, the initial asset is placed here so the entity stays
        reachable by ``hit_test``.
        """
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return self._unknown(entity_id, "placement")

            verdict = transition(entity.state, LifecycleEvent.PLACE_REQUESTED)
            if isinstance(verdict, Rejected):
                logger.warning("Placement of %s ignored: %s", entity_id, verdict)
                return self._reject(entity, verdict)

            placed_here = False
            if placement is None and entity.placement is None:
                placed = self._place(entity, entity.initial_asset)
                if isinstance(placed, OpResult):
                    return placed
                placement = placed
                placed_here = True
            if placement is not None:
                entity.placement = placement

            result = self._start_growth(entity)
            if not result.ok and placed_here:
                self._renderer.remove_asset(placement)
                entity.placement = None
            return result

    def on_timer_fired(self, entity_id: str, handle: TimerHandle | None) -> OpResult:
        """Expire *entity_id* if *handle* is still its active timer."""
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return self._unknown(entity_id, "timer")

            if handle is None or handle != entity.active_timer_handle:
                logger.debug("Discarding stale timer %r for %s", handle, entity_id)
                return OpResult(Outcome.STALE_TIMER, entity_id, entity.state, "stale timer handle")

            verdict = transition(entity.state, LifecycleEvent.TIMER_FIRED)
            if isinstance(verdict, Rejected):
                return self._reject(entity, verdict)

            entity.active_timer_handle = None
            return self._commit(entity, verdict)

    def on_tap(self, entity_id: str) -> OpResult:
        """Bloom *entity_id* if it is Expired; taps in any other state are ignored."""
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return self._unknown(entity_id, "tap")

            verdict = transition(entity.state, LifecycleEvent.TAP_WHILE_EXPIRED)
            if isinstance(verdict, Rejected):
                return self._reject(entity, verdict)

            # Load the bloom asset before clearing the old one so a failed
            # load leaves the scene and the entity untouched.
            placed = self._place(entity, entity.transformed_asset)
            if isinstance(placed, OpResult):
                return placed
            if entity.placement is not None:
                self._renderer.remove_asset(entity.placement)
            entity.placement = placed
            return self._commit(entity, verdict)

    def handle_tap(self, point: Point) -> OpResult:
        """Resolve a screen tap through the surface's hit test, then ``on_tap``."""
        entity_id = self._renderer.hit_test(point)
        if entity_id is None:
            logger.debug("Tap at %s hit nothing", point)
            return OpResult(Outcome.NO_TARGET, message=f"no entity at {point}")
        return self.on_tap(entity_id)

    def rearm_timer(self, entity_id: str) -> OpResult:
        """Restart a Growing entity's timer with its full duration."""
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return self._unknown(entity_id, "rearm")
            if entity.state != EntityState.GROWING:
                logger.debug("Rearm of %s ignored in %s", entity_id, entity.state.name)
                return OpResult(
                    Outcome.REJECTED_TRANSITION, entity_id, entity.state,
                    f"cannot rearm in {entity.state.name}",
                )

            self._scheduler.cancel(entity.active_timer_handle)
            entity.active_timer_handle = self._scheduler.schedule(entity_id, entity.growth_duration)
            logger.info("Rearmed %s (%r)", entity_id, entity.active_timer_handle)
            return OpResult(Outcome.OK, entity_id, entity.state, "timer rearmed")

    def shutdown(self) -> None:
        """Cancel every pending timer. Entity states are left as they are."""
        with self._lock:
            for entity in self._entities.values():
                self._scheduler.cancel(entity.active_timer_handle)
        logger.info("Controller shut down.")

    # -- internals --

    def _start_growth(self, entity: Entity) -> OpResult:
        handle = self._scheduler.schedule(entity.id, entity.growth_duration)
        if handle is None:
            logger.warning("Timer for %s already armed; placement not applied", entity.id)
            return OpResult(Outcome.TIMER_ALREADY_ARMED, entity.id, entity.state, "timer already armed")
        entity.active_timer_handle = handle
        return self._commit(entity, EntityState.GROWING)

    def _place(self, entity: Entity, asset_ref: str) -> PlacementHandle | OpResult:
        try:
            placed = self._renderer.place_asset(asset_ref, entity.id)
        except Exception as exc:
            logger.exception("Rendering surface raised while placing %s", asset_ref)
            placed = PlacementFailure(asset_ref, str(exc) or type(exc).__name__)

        if isinstance(placed, PlacementFailure):
            logger.warning("Asset %s for %s failed to load: %s", asset_ref, entity.id, placed.reason)
            self._bus.publish(AssetLoadFailed(entity.id, asset_ref, placed.reason))
            return OpResult(Outcome.ASSET_LOAD_FAILURE, entity.id, entity.state, placed.reason)
        return placed

    def _commit(self, entity: Entity, new_state: EntityState) -> OpResult:
        old_state = entity.state
        entity.state = new_state
        logger.info("%s: %s -> %s", entity.id, old_state.name, new_state.name)
        self._bus.publish(EntityStateChanged(entity.id, old_state, new_state))
        return OpResult(Outcome.OK, entity.id, new_state)

    def _reject(self, entity: Entity, verdict: Rejected) -> OpResult:
        logger.debug("%s: %s", entity.id, verdict)
        self._bus.publish(TransitionRejected(entity.id, verdict.state, verdict.event))
        return OpResult(Outcome.REJECTED_TRANSITION, entity.id, entity.state, str(verdict))

    def _unknown(self, entity_id: str, operation: str) -> OpResult:
        logger.debug("Unknown entity %r in %s", entity_id, operation)
        return OpResult(Outcome.UNKNOWN_ENTITY, entity_id, None, f"unknown entity {entity_id!r}")
