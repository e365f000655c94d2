"""
Domain service: per-area channel averages.

Averages are always recomputed from the full measurement set of an area,
so running the recompute again is safe and converges to the same values.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Callable, Optional
import logging
import math
import numpy as np

from soilmap.domain.errors import AggregationError, NotFoundError, StoreError
from soilmap.domain.models import CHANNELS, AreaAggregate, AreaAverages
from soilmap.infrastructure.stores import AreaStore, MeasurementStore

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")
# Enough digits to quantize the largest finite float to 2 decimals
_ROUNDING_PRECISION = 400


def round_half_up(value: float) -> float:
    """
    Round to 2 decimals, halves away from zero, using the float's shortest repr.

    Non-finite values are returned unchanged.
    """
    value = float(value)
    if not math.isfinite(value):
        return value
    with localcontext() as ctx:
        ctx.prec = _ROUNDING_PRECISION
        return float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


class AggregationEngine:
    """Recomputes and persists the averages of an area."""

    def __init__(
        self,
        area_store: AreaStore,
        measurement_store: MeasurementStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.area_store = area_store
        self.measurement_store = measurement_store
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def recompute_area_averages(self, area_id: str) -> AreaAggregate:
        """
        Recompute an area's averages from all of its measurements.

        Args:
            area_id: Area to recompute

        Returns:
            AreaAggregate with the new sample count and averages
            (averages is None when the area has no measurements)

        Raises:
            AggregationError: If a store fails or is unavailable
            NotFoundError: If the area does not exist
        """
        try:
            measurements = await self.measurement_store.list_by_area(area_id)
        except NotFoundError:
            raise
        except StoreError as e:
            logger.warning(f"Could not fetch measurements of area {area_id}: {e.message}")
            raise AggregationError(f"Failed to fetch measurements for area '{area_id}': {e.message}")

        sample_count = len(measurements)
        averages = None
        if sample_count:
            readings = np.array([m.readings.as_row() for m in measurements], dtype=float)
            means = readings.sum(axis=0) / sample_count
            averages = AreaAverages(
                **{channel: round_half_up(mean) for channel, mean in zip(CHANNELS, means)}
            )

        try:
            await self.area_store.update(
                area_id,
                {
                    "averages": averages,
                    "sample_count": sample_count,
                    "updated_at": self.clock(),
                },
            )
        except NotFoundError:
            raise
        except StoreError as e:
            logger.warning(f"Could not store averages of area {area_id}: {e.message}")
            raise AggregationError(f"Failed to update area '{area_id}': {e.message}")

        logger.info(f"Recomputed averages for area {area_id} over {sample_count} samples")
        return AreaAggregate(area_id=area_id, sample_count=sample_count, averages=averages)
