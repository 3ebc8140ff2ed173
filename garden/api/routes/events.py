"""GET /api/v1/events — garden event feed (polled by UI)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from garden.api.dependencies import get_garden_manager
from garden.api.garden_manager import GardenManager
from garden.api.schemas import EventSchema, EventsResponse

router = APIRouter()


@router.get("/events", response_model=EventsResponse)
def get_events(
    since: int = Query(0, ge=0, description="Return events with seq greater than this"),
    limit: int = Query(100, ge=1, le=1000),
    manager: GardenManager = Depends(get_garden_manager),
) -> EventsResponse:
    events = manager.event_log.since(since)[:limit]
    return EventsResponse(
        events=[
            EventSchema(seq=e.seq, category=e.category, message=e.message, entity_ids=list(e.entity_ids))
            for e in events
        ],
        last_seq=events[-1].seq if events else since,
    )
