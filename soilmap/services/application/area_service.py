"""
Application service: Orchestration layer for area operations.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from soilmap.config import settings
from soilmap.domain.errors import ValidationError
from soilmap.domain.models import (
    Area,
    AreaAggregate,
    BoundingBox,
    ChannelReadings,
    Measurement,
    Point,
    Recommendation,
)
from soilmap.infrastructure.stores import MeasurementStore
from soilmap.services.domain.aggregation import AggregationEngine
from soilmap.services.domain.area_registry import AreaRegistry
from soilmap.services.domain.measurement_recorder import MeasurementRecorder, RecordOutcome
from soilmap.services.domain.recommendation import recommend
from soilmap.utils.geometry import compute_bounds, plan_measurement_points, polygon_area_m2


@dataclass
class AreaDetail:
    """An area with its derived geometry."""
    area: Area
    bounds: BoundingBox
    area_m2: float


@dataclass
class MeasurementPlan:
    """Suggested sampling positions for a polygon."""
    points: List[Point]
    bounds: BoundingBox
    area_m2: float


class AreaService:
    """
    Application service for area-related operations.

    Orchestrates store lookups and domain services.
    Follows the application layer pattern - no business logic here,
    only coordination between infrastructure and domain layers.
    """

    def __init__(
        self,
        registry: AreaRegistry,
        recorder: MeasurementRecorder,
        aggregation: AggregationEngine,
        measurement_store: MeasurementStore,
    ):
        """
        Initialize the service with dependencies.

        Args:
            registry: Area registry
            recorder: Measurement recorder
            aggregation: Aggregation engine
            measurement_store: Store measurements are read from
        """
        self.registry = registry
        self.recorder = recorder
        self.aggregation = aggregation
        self.measurement_store = measurement_store

    async def create_area(
        self,
        name: str,
        owner_username: str,
        device_id: str,
        polygon: Sequence[Point],
    ) -> Area:
        return await self.registry.create_area(name, owner_username, device_id, polygon)

    async def list_areas(
        self,
        owner_username: str,
        device_id: Optional[str] = None,
    ) -> List[Area]:
        return await self.registry.list_areas(owner_username, device_id)

    async def get_area_detail(self, area_id: str) -> AreaDetail:
        """
        Get an area together with its bounds and geodesic size.

        Raises:
            NotFoundError: If the area does not exist
        """
        area = await self.registry.get_area(area_id)
        return AreaDetail(
            area=area,
            bounds=compute_bounds(area.polygon),
            area_m2=polygon_area_m2(area.polygon),
        )

    async def record_measurement(
        self,
        area_id: str,
        device_id: str,
        position: Point,
        readings: ChannelReadings,
        location_label: Optional[str] = None,
    ) -> RecordOutcome:
        """
        Record a measurement into a stored area.

        This method orchestrates:
        1. Fetching the area
        2. Validating and storing the sample
        3. Recomputing the area averages

        Raises:
            NotFoundError: If the area does not exist
            AreaNotConfirmedError, DeviceMismatchError, PositionOutsideAreaError
        """
        area = await self.registry.get_area(area_id)
        return await self.recorder.record_measurement(
            area=area,
            device_id=device_id,
            position=position,
            readings=readings,
            location_label=location_label,
        )

    async def list_measurements(self, area_id: str) -> List[Measurement]:
        await self.registry.get_area(area_id)
        return await self.measurement_store.list_by_area(area_id)

    async def recompute_averages(self, area_id: str) -> AreaAggregate:
        await self.registry.get_area(area_id)
        return await self.aggregation.recompute_area_averages(area_id)

    async def get_recommendations(self, area_id: str) -> Recommendation:
        """
        Get suggestions for an area from its stored averages.

        Raises:
            NotFoundError: If the area does not exist
            ValidationError: If the area has no measurements yet
        """
        area = await self.registry.get_area(area_id)
        if area.sample_count == 0 or area.averages is None:
            raise ValidationError(f"Area '{area_id}' has no measurements yet")
        return recommend(area.averages)

    def plan_measurements(self, polygon: Sequence[Point]) -> MeasurementPlan:
        """
        Plan sampling positions inside a drawn polygon.

        Raises:
            ValidationError: If the polygon has < 3 points
        """
        if len(polygon) < 3:
            raise ValidationError(
                f"A polygon needs at least 3 points, got {len(polygon)}"
            )
        points = plan_measurement_points(
            polygon,
            small_area_threshold_m=settings.plan_small_area_threshold_m,
            small_spacing_m=settings.plan_small_spacing_m,
            large_spacing_m=settings.plan_large_spacing_m,
            max_points=settings.plan_max_points,
        )
        return MeasurementPlan(
            points=points,
            bounds=compute_bounds(polygon),
            area_m2=polygon_area_m2(polygon),
        )
