"""Interfaces to the external rendering/tracking surface."""

from garden.collaborators.rendering import (
    HeadlessScene,
    PlacementFailure,
    PlacementHandle,
    RenderingSurface,
)

__all__ = ["HeadlessScene", "PlacementFailure", "PlacementHandle", "RenderingSurface"]
