"""
Dependency injection for FastAPI.
"""
from functools import lru_cache
from typing import Annotated, Tuple
from fastapi import Depends

from soilmap.config import settings
from soilmap.infrastructure.backend_client import (
    HttpAreaStore,
    HttpMeasurementStore,
    get_backend_client,
)
from soilmap.infrastructure.stores import (
    AreaStore,
    InMemoryAreaStore,
    InMemoryMeasurementStore,
    MeasurementStore,
)
from soilmap.services.application.area_service import AreaService
from soilmap.services.domain.aggregation import AggregationEngine
from soilmap.services.domain.area_registry import AreaRegistry
from soilmap.services.domain.measurement_recorder import MeasurementRecorder


@lru_cache
def _build_stores() -> Tuple[AreaStore, MeasurementStore]:
    """Create the process-wide store pair for the configured backend."""
    if settings.store_backend == "http":
        client = get_backend_client()
        return HttpAreaStore(client), HttpMeasurementStore(client)
    if settings.store_backend != "memory":
        raise ValueError(f"Unknown store backend: {settings.store_backend}")
    return InMemoryAreaStore(), InMemoryMeasurementStore()


def get_area_store() -> AreaStore:
    """
    Dependency factory for the AreaStore.

    Returns:
        AreaStore instance shared by all requests
    """
    return _build_stores()[0]


def get_measurement_store() -> MeasurementStore:
    """
    Dependency factory for the MeasurementStore.

    Returns:
        MeasurementStore instance shared by all requests
    """
    return _build_stores()[1]


def get_area_service(
    area_store: Annotated[AreaStore, Depends(get_area_store)],
    measurement_store: Annotated[MeasurementStore, Depends(get_measurement_store)],
) -> AreaService:
    """
    Dependency factory for AreaService.

    Args:
        area_store: Area store (injected)
        measurement_store: Measurement store (injected)

    Returns:
        AreaService instance
    """
    aggregation = AggregationEngine(area_store, measurement_store)
    return AreaService(
        registry=AreaRegistry(area_store),
        recorder=MeasurementRecorder(measurement_store, aggregation),
        aggregation=aggregation,
        measurement_store=measurement_store,
    )


# Type aliases for cleaner route signatures
AreaServiceDep = Annotated[AreaService, Depends(get_area_service)]
