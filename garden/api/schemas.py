"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Entity ---

class EntitySchema(BaseModel):
    id: str
    name: str
    state: str
    growth_duration: float
    initial_asset: str
    transformed_asset: str
    current_asset: str | None = None
    timer_armed: bool = False
    selected: bool = False
    x: float | None = None
    y: float | None = None


class GardenStateResponse(BaseModel):
    entities: list[EntitySchema] = Field(default_factory=list)
    selected: str | None = None
    pending_timers: int = 0


# --- Operations ---

class TapRequest(BaseModel):
    x: float
    y: float


class OperationResponse(BaseModel):
    status: str
    outcome: str
    entity_id: str | None = None
    state: str | None = None
    message: str = ""


# --- Events ---

class EventSchema(BaseModel):
    seq: int
    category: str
    message: str
    entity_ids: list[str] = Field(default_factory=list)


class EventsResponse(BaseModel):
    events: list[EventSchema] = Field(default_factory=list)
    last_seq: int = 0


# --- Control / config ---

class ControlResponse(BaseModel):
    status: str
    message: str


class CatalogEntrySchema(BaseModel):
    id: str
    name: str
    initial_asset: str
    transformed_asset: str


class GardenConfigResponse(BaseModel):
    seed: int
    min_growth_units: float
    max_growth_units: float
    seconds_per_unit: float
    request_timeout_seconds: float
    catalog: list[CatalogEntrySchema] = Field(default_factory=list)
