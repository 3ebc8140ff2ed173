"""Plant catalog and construction of the session's entity set."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from garden.core.models import CatalogEntry, Entity

if TYPE_CHECKING:
    from garden.systems.rng import DeterministicRNG


class CatalogError(ValueError):
    """The catalog violates a startup contract (duplicate id, bad range)."""


DEFAULT_CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(name="Plant 1", initial_asset="Plant_01_Growth", transformed_asset="Plant_01_Bloom"),
    CatalogEntry(name="Plant 2", initial_asset="Plant_02_Growth", transformed_asset="Plant_02_Bloom"),
    CatalogEntry(name="Plant 3", initial_asset="Plant_03_Growth", transformed_asset="Plant_03_Bloom"),
)


def with_growth_range(
    entries: Iterable[CatalogEntry],
    low: float,
    high: float,
) -> tuple[CatalogEntry, ...]:
    """Return *entries* re-targeted to a shared growth range."""
    return tuple(
        CatalogEntry(
            name=e.name,
            initial_asset=e.initial_asset,
            transformed_asset=e.transformed_asset,
            growth_range=(low, high),
            entity_id=e.entity_id,
        )
        for e in entries
    )


def build_entities(
    entries: Iterable[CatalogEntry],
    rng: DeterministicRNG,
) -> dict[str, Entity]:
    """Construct every catalog entry as a Dormant entity, keyed by id.

    Each entity draws its growth duration independently; the draw key is
    the entry's position in the catalog so a fixed seed reproduces the
    same durations.
    """
    entities: dict[str, Entity] = {}
    for key, entry in enumerate(entries):
        low, high = entry.growth_range
        if low > high or low < 0:
            raise CatalogError(f"Invalid growth range {entry.growth_range!r} for {entry.name!r}")
        if entry.id in entities:
            raise CatalogError(f"Duplicate entity id in catalog: {entry.id!r}")
        entities[entry.id] = Entity.from_catalog(entry, rng, key)
    return entities
