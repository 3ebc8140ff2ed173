"""Enumerations used throughout the engine."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class EntityState(IntEnum):
    """Lifecycle states, in the only order an entity may visit them."""

    DORMANT = 0
    GROWING = 1
    EXPIRED = 2
    BLOOMED = 3


@unique
class LifecycleEvent(IntEnum):
    """Stimuli the state machine understands."""

    PLACE_REQUESTED = 0
    TIMER_FIRED = 1
    TAP_WHILE_EXPIRED = 2


@unique
class Outcome(IntEnum):
    """Result of a controller operation."""

    OK = 0
    REJECTED_TRANSITION = 1
    UNKNOWN_ENTITY = 2
    STALE_TIMER = 3
    ASSET_LOAD_FAILURE = 4
    TIMER_ALREADY_ARMED = 5
    NO_TARGET = 6


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    GROWTH = 0
