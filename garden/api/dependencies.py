"""FastAPI dependency injection — provides the app's GardenManager."""

from __future__ import annotations

from fastapi import Request

from garden.api.garden_manager import GardenManager


def get_garden_manager(request: Request) -> GardenManager:
    manager = getattr(request.app.state, "garden_manager", None)
    if manager is None:
        raise RuntimeError("GardenManager not initialized — server not started correctly.")
    return manager
