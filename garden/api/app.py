"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from garden.api.garden_manager import GardenManager
from garden.api.routes import api_router
from garden.config import GardenConfig
from garden.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    config: GardenConfig | None = None,
    manager: GardenManager | None = None,
) -> FastAPI:
    """Build and return the fully-configured FastAPI application.

    Pass *manager* to serve an already-built session (tests use one on a
    manual timer scheduler); otherwise one is built from *config*.
    """
    if config is None:
        config = manager.config if manager is not None else GardenConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manager is None:
            setup_logging(_config.log_level)
        session = manager if manager is not None else GardenManager(_config)
        app.state.garden_manager = session
        session.start()
        logger.info("API server started — garden session running.")
        yield
        session.stop()
        app.state.garden_manager = None
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Magical Garden",
        description=(
            "Lifecycle engine for placeable growing plants.\n\n"
            "## API Groups\n\n"
            "- **Entities** — Plant state plus select / placed / rearm / tap operations\n"
            "- **Events** — State changes, asset failures and diagnostics, polled by sequence\n"
            "- **Control** — Session reset\n"
            "- **Config** — Read-only garden configuration and catalog\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Entities", "description": "Current plant states and the operations that drive them."},
            {"name": "Events", "description": "Sequenced feed of garden notifications."},
            {"name": "Control", "description": "Session lifecycle controls."},
            {"name": "Config", "description": "Read-only garden configuration parameters."},
        ],
    )

    # CORS — allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app
