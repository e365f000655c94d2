"""
Domain models for measurement areas, samples and recommendations.

These models represent the core domain entities and should be independent
of any infrastructure concerns (API clients, databases, etc.).
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


CHANNELS = ("temperature", "moisture", "nitrogen", "phosphorus", "potassium", "ph")


class Point(BaseModel):
    """A (latitude, longitude) pair in degrees."""
    lat: float = Field(description="Latitude in degrees")
    lng: float = Field(description="Longitude in degrees")

    class Config:
        frozen = True


class BoundingBox(BaseModel):
    """Axis-aligned bounds of a set of points."""
    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float


class ChannelReadings(BaseModel):
    """One sensor capture across the six tracked channels."""
    temperature: float = Field(description="Soil temperature in °C")
    moisture: float = Field(description="Soil moisture in %")
    nitrogen: float = Field(description="Nitrogen in mg/kg")
    phosphorus: float = Field(description="Phosphorus in mg/kg")
    potassium: float = Field(description="Potassium in mg/kg")
    ph: float = Field(description="Soil pH")

    def as_row(self) -> list[float]:
        return [getattr(self, channel) for channel in CHANNELS]


class AreaAverages(ChannelReadings):
    """Per-area channel means, rounded to 2 decimals."""


class Area(BaseModel):
    """A user-drawn measurement zone with its aggregate statistics."""
    id: str
    name: str
    owner_username: str
    device_id: str
    polygon: List[Point] = Field(
        description="Boundary vertices, open ring (first point not repeated)"
    )
    created_at: datetime
    sample_count: int = Field(default=0, ge=0)
    averages: Optional[AreaAverages] = None
    updated_at: Optional[datetime] = None

    @property
    def is_confirmed(self) -> bool:
        return len(self.polygon) >= 3


class Measurement(BaseModel):
    """A sensor capture bound to an area."""
    id: str
    area_id: str
    device_id: str
    position: Point
    sequence_in_area: int = Field(ge=1)
    readings: ChannelReadings
    location_label: Optional[str] = None
    captured_at: datetime


class AreaAggregate(BaseModel):
    """Result of an averages recompute."""
    area_id: str
    sample_count: int
    averages: Optional[AreaAverages] = None


class FertilizerSuggestion(BaseModel):
    """A fertilizer product with an application rate."""
    formula: str
    amount: str
    description: str


class Recommendation(BaseModel):
    """Suggestions derived from an area's averages."""
    soil_advice: List[str]
    fertilizers: List[FertilizerSuggestion]
    crops: List[str]
