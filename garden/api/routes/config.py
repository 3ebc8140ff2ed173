"""GET /api/v1/config — expose garden configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from garden.api.dependencies import get_garden_manager
from garden.api.garden_manager import GardenManager
from garden.api.schemas import CatalogEntrySchema, GardenConfigResponse

router = APIRouter()


@router.get("/config", response_model=GardenConfigResponse)
def get_config(
    manager: GardenManager = Depends(get_garden_manager),
) -> GardenConfigResponse:
    cfg = manager.config
    return GardenConfigResponse(
        seed=cfg.seed,
        min_growth_units=cfg.min_growth_units,
        max_growth_units=cfg.max_growth_units,
        seconds_per_unit=cfg.seconds_per_unit,
        request_timeout_seconds=cfg.request_timeout_seconds,
        catalog=[
            CatalogEntrySchema(
                id=entry.id,
                name=entry.name,
                initial_asset=entry.initial_asset,
                transformed_asset=entry.transformed_asset,
            )
            for entry in cfg.catalog
        ],
    )
