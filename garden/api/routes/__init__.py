"""Versioned API route modules."""

from fastapi import APIRouter

from garden.api.routes.config import router as config_router
from garden.api.routes.control import router as control_router
from garden.api.routes.entities import router as entities_router
from garden.api.routes.events import router as events_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(entities_router, tags=["Entities"])
api_router.include_router(events_router, tags=["Events"])
api_router.include_router(control_router, tags=["Control"])
api_router.include_router(config_router, tags=["Config"])

__all__ = ["api_router"]
