"""Core data models: Point, CatalogEntry, Entity, OpResult."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from garden.core.enums import Domain, EntityState, Outcome

if TYPE_CHECKING:
    from garden.collaborators.rendering import PlacementHandle
    from garden.engine.timer_scheduler import TimerHandle
    from garden.systems.rng import DeterministicRNG


@dataclass(frozen=True, slots=True)
class Point:
    """Immutable 2D screen coordinate."""

    x: float = 0.0
    y: float = 0.0

    def distance(self, other: Point) -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def __repr__(self) -> str:
        return f"({self.x:g}, {self.y:g})"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Static description of one placeable plant."""

    name: str
    initial_asset: str
    transformed_asset: str
    growth_range: tuple[float, float] = (30.0, 180.0)
    entity_id: str | None = None

    @property
    def id(self) -> str:
        return self.entity_id if self.entity_id is not None else self.name


def random_growth_duration(
    rng: DeterministicRNG,
    key: int,
    low: float = 30.0,
    high: float = 180.0,
) -> float:
    """Draw a growth duration uniformly from [low, high] inclusive."""
    f = rng.next_float(Domain.GROWTH, key, 0)
    return min(high, max(low, low + f * (high - low)))


@dataclass(slots=True, eq=False)
class Entity:
    """One placeable plant and its lifecycle state.

    Identity, display name, asset references and growth duration are
    fixed at construction. ``state``, ``active_timer_handle`` and
    ``placement`` are mutated only by the LifecycleController.
    """

    id: str
    display_name: str
    initial_asset: str
    transformed_asset: str
    growth_duration: float
    state: EntityState = EntityState.DORMANT
    active_timer_handle: TimerHandle | None = None
    placement: PlacementHandle | None = None

    @classmethod
    def from_catalog(cls, entry: CatalogEntry, rng: DeterministicRNG, key: int) -> Entity:
        low, high = entry.growth_range
        return cls(
            id=entry.id,
            display_name=entry.name,
            initial_asset=entry.initial_asset,
            transformed_asset=entry.transformed_asset,
            growth_duration=random_growth_duration(rng, key, low, high),
        )

    @property
    def current_asset(self) -> str | None:
        """Asset ref currently rendered for this entity, if placed."""
        if self.placement is None:
            return None
        return self.placement.asset_ref

    def copy(self) -> Entity:
        return Entity(
            id=self.id,
            display_name=self.display_name,
            initial_asset=self.initial_asset,
            transformed_asset=self.transformed_asset,
            growth_duration=self.growth_duration,
            state=self.state,
            active_timer_handle=self.active_timer_handle,
            placement=self.placement,
        )


@dataclass(frozen=True, slots=True)
class OpResult:
    """Explicit success/failure value returned by every controller operation."""

    outcome: Outcome
    entity_id: str | None = None
    state: EntityState | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.OK
