"""
API response models using Pydantic.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from soilmap.domain.models import Area, AreaAggregate, BoundingBox, Measurement, Point


class AreaResponse(Area):
    """A stored area."""

    class Config:
        json_schema_extra = {
            "example": {
                "id": "somchai_npk-01_1718000000000",
                "name": "North plot",
                "owner_username": "somchai",
                "device_id": "npk-01",
                "polygon": [
                    {"lat": 16.2464, "lng": 103.2501},
                    {"lat": 16.2468, "lng": 103.2501},
                    {"lat": 16.2468, "lng": 103.2506},
                ],
                "created_at": "2024-06-10T06:13:20Z",
                "sample_count": 0,
                "averages": None,
                "updated_at": None,
            }
        }


class AreaDetailResponse(BaseModel):
    """An area with its derived geometry."""
    area: Area
    bounds: BoundingBox
    area_m2: float = Field(description="Geodesic area in square meters")


class RecordMeasurementResponse(BaseModel):
    """Result of recording a measurement."""
    measurement: Measurement
    aggregate: Optional[AreaAggregate] = Field(
        default=None,
        description="Area averages after this sample, absent if aggregation failed"
    )
    aggregation_error: Optional[str] = Field(
        default=None,
        description="Why aggregation failed; the measurement itself is stored"
    )


class ContainsResponse(BaseModel):
    """Result of a containment query."""
    inside: bool


class MeasurementPlanResponse(BaseModel):
    """Suggested sampling positions for a polygon."""
    point_count: int
    points: List[Point]
    bounds: BoundingBox
    area_m2: float = Field(description="Geodesic area in square meters")
