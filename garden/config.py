"""Garden configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass

from garden.core.catalog import DEFAULT_CATALOG
from garden.core.models import CatalogEntry


@dataclass(frozen=True)
class GardenConfig:
    """Immutable configuration for one garden session."""

    # Randomness
    seed: int = 42

    # Growth timers (time units)
    min_growth_units: float = 30.0
    max_growth_units: float = 180.0
    seconds_per_unit: float = 1.0          # Wall-clock length of one time unit

    # Catalog
    catalog: tuple[CatalogEntry, ...] = DEFAULT_CATALOG

    # API
    host: str = "127.0.0.1"
    port: int = 8000
    request_timeout_seconds: float = 2.0
    event_log_limit: int = 1000

    # Logging
    log_level: str = "INFO"
