"""
Domain service: recording sensor captures into an area.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
import logging
import uuid

from soilmap.domain.errors import (
    AggregationError,
    AreaNotConfirmedError,
    DeviceMismatchError,
    NotFoundError,
    PositionOutsideAreaError,
)
from soilmap.domain.models import Area, AreaAggregate, ChannelReadings, Measurement, Point
from soilmap.infrastructure.stores import MeasurementStore
from soilmap.services.domain.aggregation import AggregationEngine
from soilmap.utils.geometry import point_in_polygon

logger = logging.getLogger(__name__)


@dataclass
class RecordOutcome:
    """A stored measurement and the aggregation that followed it."""
    measurement: Measurement
    aggregate: Optional[AreaAggregate] = None
    aggregation_error: Optional[AggregationError] = None


class MeasurementRecorder:
    """
    Validates and stores measurements, then refreshes area averages.

    Sequence numbers come from "current max + 1" read from the store on every
    call. Two concurrent recordings into one area can therefore get the same
    number; there is no locking.
    """

    def __init__(
        self,
        measurement_store: MeasurementStore,
        aggregation: AggregationEngine,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.measurement_store = measurement_store
        self.aggregation = aggregation
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def record_measurement(
        self,
        area: Area,
        device_id: str,
        position: Point,
        readings: ChannelReadings,
        location_label: Optional[str] = None,
    ) -> RecordOutcome:
        """
        Record a measurement into an area.

        Args:
            area: Confirmed area the sample belongs to
            device_id: Device that captured the sample
            position: Where the sample was taken
            readings: Channel values
            location_label: Free-form place name, descriptive only

        Returns:
            RecordOutcome. If aggregation failed the measurement is still
            stored and aggregation_error is set.

        Raises:
            AreaNotConfirmedError: If the area polygon has < 3 points
            DeviceMismatchError: If device_id is not the area's device
            PositionOutsideAreaError: If position is outside the polygon
        """
        if not area.is_confirmed:
            raise AreaNotConfirmedError(
                f"Area '{area.id}' has {len(area.polygon)} points and is not confirmed"
            )
        if device_id != area.device_id:
            logger.warning(f"Device {device_id} tried to record into area {area.id}")
            raise DeviceMismatchError(
                f"Device '{device_id}' does not own area '{area.id}'"
            )
        if not point_in_polygon(position, area.polygon):
            logger.warning(f"Rejected sample at ({position.lat}, {position.lng}) outside area {area.id}")
            raise PositionOutsideAreaError(
                f"Position ({position.lat}, {position.lng}) is outside area '{area.name}'"
            )

        sequence = await self.measurement_store.max_sequence_for_area(area.id) + 1
        measurement = Measurement(
            id=str(uuid.uuid4()),
            area_id=area.id,
            device_id=device_id,
            position=position,
            sequence_in_area=sequence,
            readings=readings,
            location_label=location_label,
            captured_at=self.clock(),
        )
        stored = await self.measurement_store.insert(measurement)
        logger.info(f"Recorded measurement #{sequence} in area {area.id}")

        try:
            aggregate = await self.aggregation.recompute_area_averages(area.id)
        except AggregationError as e:
            logger.error(f"Measurement #{sequence} stored but aggregation failed: {e.message}")
            return RecordOutcome(measurement=stored, aggregation_error=e)
        except NotFoundError as e:
            # Area vanished between the insert and the averages update
            logger.error(f"Measurement #{sequence} stored but area {area.id} is gone: {e.message}")
            return RecordOutcome(
                measurement=stored,
                aggregation_error=AggregationError(f"Failed to update area '{area.id}': {e.message}"),
            )

        return RecordOutcome(measurement=stored, aggregate=aggregate)
