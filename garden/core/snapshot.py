"""Immutable snapshot of the garden for readers on other threads."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from garden.core.models import Entity


@dataclass(frozen=True, slots=True)
class GardenSnapshot:
    """Read-only view of the garden, safe to share across threads.

    Entities are copied and exposed through a MappingProxyType, so a
    reader cannot reach the controller's live records.
    """

    entities: Mapping[str, Entity]
    selected: str | None
    pending_timers: int

    @classmethod
    def from_entities(
        cls,
        entities: Mapping[str, Entity],
        selected: str | None,
        pending_timers: int,
    ) -> GardenSnapshot:
        copied = {eid: e.copy() for eid, e in entities.items()}
        return cls(
            entities=MappingProxyType(copied),
            selected=selected,
            pending_timers=pending_timers,
        )
