"""Entity state and lifecycle operations — /api/v1/entities, /api/v1/tap."""

from __future__ import annotations

from concurrent.futures import CancelledError
from concurrent.futures import TimeoutError as FutureTimeout

from fastapi import APIRouter, Depends, HTTPException

from garden.api.dependencies import get_garden_manager
from garden.api.garden_manager import GardenManager
from garden.api.schemas import EntitySchema, GardenStateResponse, OperationResponse, TapRequest
from garden.core.enums import Outcome
from garden.core.models import Entity, OpResult, Point
from garden.engine.event_queue import (
    InboundEvent,
    PlacementConfirmed,
    RearmRequested,
    SelectionRequested,
    TapDetected,
)

router = APIRouter()

_REJECTED = (Outcome.REJECTED_TRANSITION, Outcome.STALE_TIMER, Outcome.NO_TARGET)


def _serialize_entity(e: Entity, manager: GardenManager, selected: str | None) -> EntitySchema:
    pos = None
    if e.placement is not None:
        position_for = getattr(manager.renderer, "position_for", None)
        pos = position_for(e.id) if position_for else None
    return EntitySchema(
        id=e.id,
        name=e.display_name,
        state=e.state.name.lower(),
        growth_duration=e.growth_duration,
        initial_asset=e.initial_asset,
        transformed_asset=e.transformed_asset,
        current_asset=e.current_asset,
        timer_armed=e.active_timer_handle is not None,
        selected=e.id == selected,
        x=pos.x if pos else None,
        y=pos.y if pos else None,
    )


def _serialize_result(result: OpResult) -> OperationResponse:
    if result.outcome == Outcome.UNKNOWN_ENTITY:
        raise HTTPException(status_code=404, detail=result.message)
    if result.ok:
        status = "ok"
    elif result.outcome in _REJECTED:
        status = "rejected"
    else:
        status = "error"
    return OperationResponse(
        status=status,
        outcome=result.outcome.name.lower(),
        entity_id=result.entity_id,
        state=result.state.name.lower() if result.state is not None else None,
        message=result.message,
    )


def _submit(manager: GardenManager, event: InboundEvent) -> OperationResponse:
    try:
        result = manager.submit(event)
    except FutureTimeout:
        raise HTTPException(status_code=503, detail="Garden did not respond in time.")
    except CancelledError:
        raise HTTPException(status_code=503, detail="Garden session was reset before the request was applied.")
    return _serialize_result(result)


@router.get("/entities", response_model=GardenStateResponse)
def list_entities(manager: GardenManager = Depends(get_garden_manager)) -> GardenStateResponse:
    snap = manager.get_snapshot()
    return GardenStateResponse(
        entities=[_serialize_entity(e, manager, snap.selected) for e in snap.entities.values()],
        selected=snap.selected,
        pending_timers=snap.pending_timers,
    )


@router.get("/entities/{entity_id}", response_model=EntitySchema)
def get_entity(entity_id: str, manager: GardenManager = Depends(get_garden_manager)) -> EntitySchema:
    snap = manager.get_snapshot()
    entity = snap.entities.get(entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Entity {entity_id} not found")
    return _serialize_entity(entity, manager, snap.selected)


@router.post("/entities/{entity_id}/select", response_model=OperationResponse)
def select_entity(entity_id: str, manager: GardenManager = Depends(get_garden_manager)) -> OperationResponse:
    return _submit(manager, SelectionRequested(entity_id))


@router.post("/entities/{entity_id}/placed", response_model=OperationResponse)
def confirm_placement(entity_id: str, manager: GardenManager = Depends(get_garden_manager)) -> OperationResponse:
    return _submit(manager, PlacementConfirmed(entity_id))


@router.post("/entities/{entity_id}/rearm", response_model=OperationResponse)
def rearm_timer(entity_id: str, manager: GardenManager = Depends(get_garden_manager)) -> OperationResponse:
    return _submit(manager, RearmRequested(entity_id))


@router.post("/tap", response_model=OperationResponse)
def tap(body: TapRequest, manager: GardenManager = Depends(get_garden_manager)) -> OperationResponse:
    return _submit(manager, TapDetected(Point(body.x, body.y)))
