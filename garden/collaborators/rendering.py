"""Rendering/placement collaborator boundary.

The controller only ever talks to a ``RenderingSurface``. Geometry and
hit-testing stay on this side of the boundary; the controller receives
entity ids, never scene objects.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Protocol, Union

from garden.core.models import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlacementHandle:
    """Token for one asset instance placed in the scene."""

    placement_id: int
    asset_ref: str
    entity_id: str


@dataclass(frozen=True, slots=True)
class PlacementFailure:
    """The surface could not resolve or place an asset."""

    asset_ref: str
    reason: str


PlacementResult = Union[PlacementHandle, PlacementFailure]


class RenderingSurface(Protocol):
    def place_asset(self, asset_ref: str, entity_id: str) -> PlacementResult: ...

    def remove_asset(self, handle: PlacementHandle) -> None: ...

    def hit_test(self, point: Point) -> str | None: ...


class HeadlessScene:
    """In-memory rendering surface with no graphics.

    Placed assets are laid out left to right along ``y = 0``, one slot
    per placement, and a tap within ``hit_radius`` of a slot hits it.
    Only asset refs in ``known_assets`` can be loaded; pass None to
    accept any ref.
    """

    def __init__(
        self,
        known_assets: Iterable[str] | None = None,
        spacing: float = 1.0,
        hit_radius: float = 0.4,
    ) -> None:
        self._known = None if known_assets is None else frozenset(known_assets)
        self._spacing = spacing
        self._hit_radius = hit_radius
        self._ids = itertools.count(1)
        self._placements: dict[int, tuple[PlacementHandle, Point]] = {}
        self._lock = threading.Lock()

    @property
    def placements(self) -> list[PlacementHandle]:
        with self._lock:
            return [h for h, _ in self._placements.values()]

    def position_for(self, entity_id: str) -> Point | None:
        """Screen point of the asset currently placed for *entity_id*."""
        with self._lock:
            for handle, pos in self._placements.values():
                if handle.entity_id == entity_id:
                    return pos
        return None

    def place_asset(self, asset_ref: str, entity_id: str) -> PlacementResult:
        if self._known is not None and asset_ref not in self._known:
            logger.warning("Failed to load asset %s", asset_ref)
            return PlacementFailure(asset_ref, "unknown asset")
        with self._lock:
            # Reuse the slot of the entity's existing asset so a swap stays in place.
            pos = next((p for h, p in self._placements.values() if h.entity_id == entity_id), None)
            placement_id = next(self._ids)
            if pos is None:
                pos = Point((placement_id - 1) * self._spacing, 0.0)
            handle = PlacementHandle(placement_id, asset_ref, entity_id)
            self._placements[placement_id] = (handle, pos)
        logger.debug("Placed %s for %s at %s", asset_ref, entity_id, pos)
        return handle

    def remove_asset(self, handle: PlacementHandle) -> None:
        with self._lock:
            self._placements.pop(handle.placement_id, None)

    def hit_test(self, point: Point) -> str | None:
        with self._lock:
            best: tuple[float, str] | None = None
            for handle, pos in self._placements.values():
                d = pos.distance(point)
                if d <= self._hit_radius and (best is None or d < best[0]):
                    best = (d, handle.entity_id)
        return best[1] if best else None
