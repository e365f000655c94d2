"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample polygons and readings
- In-memory stores and domain services with a fixed clock
- FastAPI test client wired to fresh stores
"""
import os

# Must be set before soilmap.config is imported
os.environ.setdefault("RATE_LIMIT_REQUESTS", "10000")
os.environ.setdefault("RETRY_MIN_WAIT", "0")
os.environ.setdefault("RETRY_MAX_WAIT", "0")
os.environ.setdefault("STORE_BACKEND", "memory")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from soilmap.api.dependencies import get_area_store, get_measurement_store
from soilmap.domain.models import Area, ChannelReadings, Point
from soilmap.infrastructure.stores import InMemoryAreaStore, InMemoryMeasurementStore
from soilmap.main import app
from soilmap.services.domain.aggregation import AggregationEngine
from soilmap.services.domain.area_registry import AreaRegistry
from soilmap.services.domain.measurement_recorder import MeasurementRecorder


FIXED_NOW = datetime(2024, 6, 10, 6, 13, 20, tzinfo=timezone.utc)  # 1718000000000 ms


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def square_polygon() -> list[Point]:
    """10 x 10 degree square, open ring."""
    return [
        Point(lat=0, lng=0),
        Point(lat=0, lng=10),
        Point(lat=10, lng=10),
        Point(lat=10, lng=0),
    ]


@pytest.fixture
def field_polygon() -> list[Point]:
    """Small plot of roughly 50 x 50 m."""
    return [
        Point(lat=16.2460, lng=103.2500),
        Point(lat=16.2460, lng=103.2505),
        Point(lat=16.2465, lng=103.2505),
        Point(lat=16.2465, lng=103.2500),
    ]


@pytest.fixture
def neutral_readings() -> ChannelReadings:
    """Readings with every channel inside its normal band."""
    return ChannelReadings(
        temperature=25.0,
        moisture=35.0,
        nitrogen=30.0,
        phosphorus=20.0,
        potassium=150.0,
        ph=6.5,
    )


# ============================================================
# Store and Service Fixtures
# ============================================================

@pytest.fixture
def area_store() -> InMemoryAreaStore:
    return InMemoryAreaStore()


@pytest.fixture
def measurement_store() -> InMemoryMeasurementStore:
    return InMemoryMeasurementStore()


@pytest.fixture
def stored_area(area_store, square_polygon) -> Area:
    """A confirmed area already present in the area store."""
    area = Area(
        id="alice_dev-1_1718000000000",
        name="Square",
        owner_username="alice",
        device_id="dev-1",
        polygon=square_polygon,
        created_at=FIXED_NOW,
    )
    area_store._areas[area.id] = area
    return area


@pytest.fixture
def registry(area_store, fixed_clock) -> AreaRegistry:
    return AreaRegistry(area_store, clock=fixed_clock)


@pytest.fixture
def aggregation(area_store, measurement_store, fixed_clock) -> AggregationEngine:
    return AggregationEngine(area_store, measurement_store, clock=fixed_clock)


@pytest.fixture
def recorder(measurement_store, aggregation, fixed_clock) -> MeasurementRecorder:
    return MeasurementRecorder(measurement_store, aggregation, clock=fixed_clock)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client(area_store, measurement_store):
    """Synchronous test client backed by fresh in-memory stores."""
    app.dependency_overrides[get_area_store] = lambda: area_store
    app.dependency_overrides[get_measurement_store] = lambda: measurement_store
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
