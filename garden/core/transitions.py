"""Lifecycle state machine — pure transition logic.

State machine:
  DORMANT  --PLACE_REQUESTED-->   GROWING
  GROWING  --TIMER_FIRED-->       EXPIRED
  EXPIRED  --TAP_WHILE_EXPIRED--> BLOOMED (terminal)

Every other (state, event) pair is rejected without side effects.
The handle check for TIMER_FIRED lives in the controller; this module
knows nothing about timers, rendering or gestures.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from garden.core.enums import EntityState, LifecycleEvent


@dataclass(frozen=True, slots=True)
class Rejected:
    """A transition the table does not permit."""

    state: EntityState
    event: LifecycleEvent

    def __str__(self) -> str:
        return f"{self.event.name} not allowed in {self.state.name}"


TRANSITIONS: Mapping[tuple[EntityState, LifecycleEvent], EntityState] = MappingProxyType({
    (EntityState.DORMANT, LifecycleEvent.PLACE_REQUESTED): EntityState.GROWING,
    (EntityState.GROWING, LifecycleEvent.TIMER_FIRED): EntityState.EXPIRED,
    (EntityState.EXPIRED, LifecycleEvent.TAP_WHILE_EXPIRED): EntityState.BLOOMED,
})


def transition(state: EntityState, event: LifecycleEvent) -> EntityState | Rejected:
    """Return the next state, or a Rejected value if *event* is illegal in *state*."""
    next_state = TRANSITIONS.get((state, event))
    if next_state is None:
        return Rejected(state, event)
    return next_state


def is_terminal(state: EntityState) -> bool:
    return not any(s == state for s, _ in TRANSITIONS)
