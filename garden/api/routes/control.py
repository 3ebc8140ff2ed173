"""POST /api/v1/control/{action} — garden session controls."""

from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, Depends

from garden.api.dependencies import get_garden_manager
from garden.api.garden_manager import GardenManager
from garden.api.schemas import ControlResponse

router = APIRouter()


class ControlAction(str, Enum):
    reset = "reset"


@router.post("/control/{action}", response_model=ControlResponse)
def control(
    action: ControlAction,
    manager: GardenManager = Depends(get_garden_manager),
) -> ControlResponse:
    match action:
        case ControlAction.reset:
            manager.reset()
            return ControlResponse(status="ok", message="Garden reset; all plants dormant.")
