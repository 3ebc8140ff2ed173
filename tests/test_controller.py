"""Tests for the LifecycleController — orchestration of entity lifecycles.

Covers:
- Scenario walk-throughs (place, stale timer, early tap, full bloom)
- Timer handle invariant after every operation
- Unknown entities, asset load failures, tap hit-testing
- Serialized application under concurrent delivery
"""

import threading

import pytest

from garden.collaborators.rendering import HeadlessScene
from garden.config import GardenConfig
from garden.core.enums import EntityState, Outcome
from garden.core.models import Entity, Point
from garden.engine.controller import LifecycleController
from garden.engine.notifications import (
    AssetLoadFailed,
    EntityStateChanged,
    NotificationBus,
    TransitionRejected,
)
from garden.engine.timer_scheduler import ManualTimerScheduler, ThreadedTimerScheduler
from garden.systems.rng import DeterministicRNG

G, E, B, D = EntityState.GROWING, EntityState.EXPIRED, EntityState.BLOOMED, EntityState.DORMANT


def _make_entity(n: int, duration: float = 60.0) -> Entity:
    return Entity(
        id=f"Plant {n}",
        display_name=f"Plant {n}",
        initial_asset=f"Plant_0{n}_Growth",
        transformed_asset=f"Plant_0{n}_Bloom",
        growth_duration=duration,
    )


def _make_controller(durations=(60.0, 90.0, 120.0), scene=None, scheduler=None):
    scheduler = scheduler or ManualTimerScheduler()
    scene = scene or HeadlessScene()
    bus = NotificationBus()
    seen = []
    bus.subscribe(seen.append)
    entities = [_make_entity(i + 1, d) for i, d in enumerate(durations)]
    controller = LifecycleController(entities, scheduler, scene, bus)
    return controller, scheduler, scene, seen


def _changes(seen, entity_id=None):
    return [
        (n.old_state, n.new_state) for n in seen
        if isinstance(n, EntityStateChanged) and (entity_id is None or n.entity_id == entity_id)
    ]


def _assert_timer_invariant(controller):
    for eid in controller.entity_ids:
        e = controller.entity(eid)
        assert (e.active_timer_handle is not None) == (e.state == EntityState.GROWING), eid


class TestScenarios:

    def test_select_then_placed_starts_one_timer(self):
        controller, scheduler, _, _ = _make_controller()
        assert controller.select_entity("Plant 1").ok
        result = controller.on_placed("Plant 1")

        assert result.outcome == Outcome.REJECTED_TRANSITION
        e = controller.entity("Plant 1")
        assert e.state == G
        assert scheduler.pending == 1
        assert e.active_timer_handle.duration == 60
        _assert_timer_invariant(controller)

    def test_stale_handle_after_rearm_is_ignored(self):
        controller, scheduler, _, seen = _make_controller()
        controller.select_entity("Plant 1")
        stale = controller.entity("Plant 1").active_timer_handle
        assert controller.rearm_timer("Plant 1").ok
        before = list(seen)

        result = controller.on_timer_fired("Plant 1", stale)

        assert result.outcome == Outcome.STALE_TIMER
        assert controller.entity("Plant 1").state == G
        assert seen == before
        _assert_timer_invariant(controller)

    def test_tap_while_growing_is_ignored(self):
        controller, _, _, seen = _make_controller()
        controller.select_entity("Plant 1")
        result = controller.on_tap("Plant 1")
        assert result.outcome == Outcome.REJECTED_TRANSITION
        assert controller.entity("Plant 1").state == G
        assert _changes(seen) == [(D, G)]

    def test_full_path_emits_three_changes_in_order(self):
        controller, scheduler, _, seen = _make_controller()
        controller.select_entity("Plant 2")
        scheduler.advance(90)
        assert controller.on_tap("Plant 2").ok

        assert _changes(seen, "Plant 2") == [(D, G), (G, E), (E, B)]
        assert controller.entity("Plant 2").state == B
        _assert_timer_invariant(controller)

    def test_timer_expires_only_at_duration(self):
        controller, scheduler, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        scheduler.advance(59)
        assert controller.entity("Plant 1").state == G
        scheduler.advance(1)
        assert controller.entity("Plant 1").state == E

    def test_repeated_rearm_releases_cancelled_timers(self):
        controller, scheduler, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        for _ in range(1000):
            controller.rearm_timer("Plant 1")
        assert scheduler.pending == 1
        assert len(scheduler._heap) == 1

    def test_rearm_restarts_full_duration(self):
        controller, scheduler, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        scheduler.advance(50)
        controller.rearm_timer("Plant 1")
        scheduler.advance(50)
        assert controller.entity("Plant 1").state == G
        scheduler.advance(10)
        assert controller.entity("Plant 1").state == E
        assert scheduler.pending == 0


class TestInvariants:

    def test_invariant_holds_after_every_operation(self):
        controller, scheduler, scene, _ = _make_controller()
        steps = [
            lambda: controller.on_tap("Plant 1"),
            lambda: controller.select_entity("Plant 1"),
            lambda: controller.select_entity("Plant 1"),
            lambda: controller.on_placed("Plant 2"),
            lambda: controller.rearm_timer("Plant 2"),
            lambda: controller.on_tap("Plant 2"),
            lambda: scheduler.advance(60),
            lambda: controller.on_tap("Plant 1"),
            lambda: controller.on_timer_fired("Plant 1", None),
            lambda: controller.select_entity("Plant 3"),
            lambda: scheduler.advance(200),
            lambda: controller.on_tap("Plant 3"),
            lambda: controller.rearm_timer("Plant 3"),
        ]
        for step in steps:
            step()
            _assert_timer_invariant(controller)

    def test_no_backward_transitions(self):
        controller, scheduler, _, seen = _make_controller()
        for eid in controller.entity_ids:
            controller.select_entity(eid)
        scheduler.advance(200)
        for eid in controller.entity_ids:
            controller.on_tap(eid)
            controller.on_tap(eid)
            controller.select_entity(eid)
        for old, new in _changes(seen):
            assert new == old + 1

    def test_bloomed_never_skips_expired(self):
        controller, _, _, seen = _make_controller()
        controller.select_entity("Plant 1")
        for _ in range(3):
            controller.on_tap("Plant 1")
        assert (E, B) not in _changes(seen)
        assert controller.entity("Plant 1").state == G

    def test_entities_are_independent(self):
        controller, scheduler, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        controller.select_entity("Plant 3")
        scheduler.advance(60)
        states = {eid: controller.entity(eid).state for eid in controller.entity_ids}
        assert states == {"Plant 1": E, "Plant 2": D, "Plant 3": G}


class TestSelection:

    def test_selection_recorded(self):
        controller, _, _, _ = _make_controller()
        assert controller.selected is None
        controller.select_entity("Plant 2")
        assert controller.selected == "Plant 2"
        controller.select_entity("Plant 1")
        assert controller.selected == "Plant 1"

    def test_select_places_initial_asset(self):
        controller, _, scene, _ = _make_controller()
        controller.select_entity("Plant 1")
        assert [p.asset_ref for p in scene.placements] == ["Plant_01_Growth"]
        assert controller.entity("Plant 1").current_asset == "Plant_01_Growth"

    def test_reselect_does_not_place_twice(self):
        controller, scheduler, scene, _ = _make_controller()
        controller.select_entity("Plant 1")
        result = controller.select_entity("Plant 1")
        assert result.outcome == Outcome.REJECTED_TRANSITION
        assert len(scene.placements) == 1
        assert scheduler.pending == 1

    def test_on_placed_without_select(self):
        controller, scheduler, scene, _ = _make_controller()
        assert controller.on_placed("Plant 3").ok
        assert controller.entity("Plant 3").state == G
        assert scheduler.active_handle("Plant 3").duration == 120
        assert [p.asset_ref for p in scene.placements] == ["Plant_03_Growth"]

    def test_on_placed_entity_can_be_tapped_to_bloom(self):
        controller, scheduler, scene, _ = _make_controller()
        controller.on_placed("Plant 3")
        scheduler.advance(120)

        result = controller.handle_tap(scene.position_for("Plant 3"))

        assert result.ok
        assert controller.entity("Plant 3").state == B
        assert controller.entity("Plant 3").current_asset == "Plant_03_Bloom"

    def test_on_placed_keeps_surface_placement(self):
        controller, _, scene, _ = _make_controller()
        handle = scene.place_asset("Plant_02_Growth", "Plant 2")
        assert controller.on_placed("Plant 2", handle).ok
        assert controller.entity("Plant 2").placement == handle
        assert len(scene.placements) == 1

    def test_on_placed_asset_failure_stays_dormant(self):
        scene = HeadlessScene(known_assets=[])
        controller, scheduler, _, seen = _make_controller(scene=scene)
        result = controller.on_placed("Plant 1")
        assert result.outcome == Outcome.ASSET_LOAD_FAILURE
        assert controller.entity("Plant 1").state == D
        assert scheduler.pending == 0
        assert [type(n) for n in seen] == [AssetLoadFailed]


class TestUnknownEntity:

    @pytest.mark.parametrize("op", ["select_entity", "on_placed", "on_tap", "rearm_timer"])
    def test_unknown_is_noop(self, op):
        controller, scheduler, scene, seen = _make_controller()
        result = getattr(controller, op)("Plant 9")
        assert result.outcome == Outcome.UNKNOWN_ENTITY
        assert not result.ok
        assert seen == []
        assert scheduler.pending == 0
        assert scene.placements == []

    def test_unknown_selection_keeps_previous(self):
        controller, _, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        controller.select_entity("nope")
        assert controller.selected == "Plant 1"

    def test_unknown_timer(self):
        controller, _, _, _ = _make_controller()
        assert controller.on_timer_fired("nope", None).outcome == Outcome.UNKNOWN_ENTITY

    def test_duplicate_ids_fatal(self):
        with pytest.raises(ValueError):
            LifecycleController([_make_entity(1), _make_entity(1)], ManualTimerScheduler(), HeadlessScene())


class FlakyScene(HeadlessScene):
    """Raises on the first placement, then behaves."""

    def __init__(self):
        super().__init__()
        self.failures = 1

    def place_asset(self, asset_ref, entity_id):
        if self.failures:
            self.failures -= 1
            raise OSError("asset bundle unavailable")
        return super().place_asset(asset_ref, entity_id)


class TestAssetFailures:

    def test_initial_asset_failure_keeps_dormant(self):
        scene = HeadlessScene(known_assets=["Plant_02_Growth"])
        controller, scheduler, _, seen = _make_controller(scene=scene)
        result = controller.select_entity("Plant 1")

        assert result.outcome == Outcome.ASSET_LOAD_FAILURE
        assert controller.entity("Plant 1").state == D
        assert scheduler.pending == 0
        assert [type(n) for n in seen] == [AssetLoadFailed]
        assert seen[0].asset_ref == "Plant_01_Growth"

    def test_collaborator_exception_becomes_failure_then_retry(self):
        controller, _, scene, seen = _make_controller(scene=FlakyScene())
        first = controller.select_entity("Plant 1")
        assert first.outcome == Outcome.ASSET_LOAD_FAILURE
        assert "unavailable" in first.message
        assert controller.entity("Plant 1").state == D

        assert controller.select_entity("Plant 1").ok
        assert controller.entity("Plant 1").state == G

    def test_bloom_asset_failure_keeps_expired(self):
        scene = HeadlessScene(known_assets=["Plant_01_Growth"])
        controller, scheduler, _, seen = _make_controller(scene=scene)
        controller.select_entity("Plant 1")
        scheduler.advance(60)

        result = controller.on_tap("Plant 1")

        assert result.outcome == Outcome.ASSET_LOAD_FAILURE
        assert controller.entity("Plant 1").state == E
        assert [p.asset_ref for p in scene.placements] == ["Plant_01_Growth"]
        assert isinstance(seen[-1], AssetLoadFailed)
        assert _changes(seen) == [(D, G), (G, E)]


class TestTapResolution:

    def test_bloom_swaps_asset(self):
        controller, scheduler, scene, _ = _make_controller()
        controller.select_entity("Plant 1")
        scheduler.advance(60)
        controller.on_tap("Plant 1")
        assert [p.asset_ref for p in scene.placements] == ["Plant_01_Bloom"]
        assert controller.entity("Plant 1").current_asset == "Plant_01_Bloom"

    def test_handle_tap_hits_placed_entity(self):
        controller, scheduler, scene, _ = _make_controller()
        controller.select_entity("Plant 1")
        controller.select_entity("Plant 2")
        scheduler.advance(90)

        result = controller.handle_tap(scene.position_for("Plant 2"))

        assert result.ok
        assert result.entity_id == "Plant 2"
        assert controller.entity("Plant 2").state == B
        assert controller.entity("Plant 1").state == E

    def test_handle_tap_miss(self):
        controller, _, _, seen = _make_controller()
        controller.select_entity("Plant 1")
        result = controller.handle_tap(Point(50.0, 50.0))
        assert result.outcome == Outcome.NO_TARGET
        assert _changes(seen) == [(D, G)]

    def test_rejections_emit_diagnostics_only(self):
        controller, _, _, seen = _make_controller()
        controller.on_tap("Plant 1")
        assert [type(n) for n in seen] == [TransitionRejected]


class TestLifecycle:

    def test_from_config_uses_catalog(self):
        cfg = GardenConfig(seed=5)
        controller = LifecycleController.from_config(cfg, DeterministicRNG(cfg.seed), ManualTimerScheduler(), HeadlessScene())
        assert controller.entity_ids == ["Plant 1", "Plant 2", "Plant 3"]
        for eid in controller.entity_ids:
            assert 30 <= controller.entity(eid).growth_duration <= 180

    def test_shutdown_cancels_timers(self):
        controller, scheduler, _, seen = _make_controller()
        controller.select_entity("Plant 1")
        controller.select_entity("Plant 2")
        controller.shutdown()
        assert scheduler.pending == 0
        scheduler.advance(500)
        assert all(new != E for _, new in _changes(seen))

    def test_entity_returns_copy(self):
        controller, _, _, _ = _make_controller()
        e = controller.entity("Plant 1")
        e.state = B
        assert controller.entity("Plant 1").state == D

    def test_snapshot(self):
        controller, _, _, _ = _make_controller()
        controller.select_entity("Plant 1")
        snap = controller.snapshot()
        assert snap.selected == "Plant 1"
        assert snap.pending_timers == 1
        assert snap.entities["Plant 1"].state == G
        with pytest.raises(TypeError):
            snap.entities["Plant 1"] = None


class TestConcurrency:

    def test_threaded_timers_and_concurrent_taps(self):
        scheduler = ThreadedTimerScheduler(seconds_per_unit=0.001)
        controller, _, _, seen = _make_controller(durations=(10, 15, 20), scheduler=scheduler)
        expired = threading.Event()

        def on_change(n):
            if isinstance(n, EntityStateChanged) and n.new_state == E:
                if sum(1 for x in seen if isinstance(x, EntityStateChanged) and x.new_state == E) == 3:
                    expired.set()

        controller.bus.subscribe(on_change)
        for eid in controller.entity_ids:
            controller.select_entity(eid)
        assert expired.wait(timeout=5.0)

        results = []
        lock = threading.Lock()

        def tapper(eid):
            r = controller.on_tap(eid)
            with lock:
                results.append(r)

        threads = [threading.Thread(target=tapper, args=(eid,)) for eid in controller.entity_ids for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.ok) == 3
        for eid in controller.entity_ids:
            assert _changes(seen, eid) == [(D, G), (G, E), (E, B)]
        _assert_timer_invariant(controller)
