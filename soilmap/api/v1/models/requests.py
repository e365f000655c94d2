"""
API request models using Pydantic.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from soilmap.domain.models import ChannelReadings, Point


class CreateAreaRequest(BaseModel):
    """Request body for creating an area."""
    name: str = Field(description="Area label, must not be blank")
    owner_username: str = Field(description="Owner of the area")
    device_id: str = Field(description="Device that records into the area")
    polygon: List[Point] = Field(
        description="Boundary vertices in drawing order, first point not repeated"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "name": "North plot",
                "owner_username": "somchai",
                "device_id": "npk-01",
                "polygon": [
                    {"lat": 16.2464, "lng": 103.2501},
                    {"lat": 16.2468, "lng": 103.2501},
                    {"lat": 16.2468, "lng": 103.2506},
                    {"lat": 16.2464, "lng": 103.2506},
                ],
            }
        }


class RecordMeasurementRequest(BaseModel):
    """Request body for recording a measurement."""
    device_id: str
    position: Point
    readings: ChannelReadings
    location_label: Optional[str] = Field(
        default=None,
        description="Custom or resolved place name"
    )


class PolygonRequest(BaseModel):
    """A bare polygon."""
    polygon: List[Point]


class ContainsRequest(PolygonRequest):
    """Containment query of one point against a polygon."""
    point: Point
