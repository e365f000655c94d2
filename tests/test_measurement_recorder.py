"""
Unit tests for the measurement recorder.

Tests cover:
- Sequence numbering per area
- Rejection of unconfirmed areas, foreign devices and outside positions
- Aggregation after each capture, including aggregation failures
"""
import pytest

from soilmap.domain.errors import (
    AggregationError,
    AreaNotConfirmedError,
    DeviceMismatchError,
    NotFoundError,
    PositionOutsideAreaError,
    StoreError,
    StoreUnavailableError,
)
from soilmap.domain.models import Area, ChannelReadings, Point
from soilmap.infrastructure.stores import InMemoryAreaStore
from soilmap.services.domain.aggregation import AggregationEngine
from soilmap.services.domain.measurement_recorder import MeasurementRecorder


class UnavailableUpdateStore(InMemoryAreaStore):
    """Area store whose updates always fail."""

    async def update(self, area_id, partial):
        raise StoreUnavailableError("backend down")


class RejectingUpdateStore(InMemoryAreaStore):
    """Area store whose updates the backend refuses."""

    async def update(self, area_id, partial):
        raise StoreError("Backend request failed: 400 - bad payload")


class VanishingAreaStore(InMemoryAreaStore):
    """Area store that loses the area before the averages are written."""

    async def update(self, area_id, partial):
        raise NotFoundError(f"Area '{area_id}' not found")


def _recorder_over(area_store, measurement_store, area, clock):
    area_store._areas[area.id] = area
    aggregation = AggregationEngine(area_store, measurement_store, clock=clock)
    return MeasurementRecorder(measurement_store, aggregation, clock=clock)


# ============================================================
# Recording Tests
# ============================================================

class TestRecordMeasurement:
    """Tests for accepted measurements."""

    @pytest.mark.asyncio
    async def test_sequence_numbers_increase(self, recorder, stored_area, neutral_readings):
        """Captures in one area are numbered 1, 2, 3."""
        sequences = []
        for lat in (2, 4, 6):
            outcome = await recorder.record_measurement(
                stored_area, "dev-1", Point(lat=lat, lng=5), neutral_readings
            )
            sequences.append(outcome.measurement.sequence_in_area)

        assert sequences == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sequences_are_per_area(
        self, recorder, area_store, stored_area, square_polygon, fixed_now, neutral_readings
    ):
        other = Area(
            id="alice_dev-1_other",
            name="Other",
            owner_username="alice",
            device_id="dev-1",
            polygon=square_polygon,
            created_at=fixed_now,
        )
        area_store._areas[other.id] = other

        await recorder.record_measurement(stored_area, "dev-1", Point(lat=5, lng=5), neutral_readings)
        outcome = await recorder.record_measurement(other, "dev-1", Point(lat=5, lng=5), neutral_readings)

        assert outcome.measurement.sequence_in_area == 1

    @pytest.mark.asyncio
    async def test_measurement_fields(self, recorder, measurement_store, stored_area, neutral_readings, fixed_now):
        outcome = await recorder.record_measurement(
            stored_area, "dev-1", Point(lat=1, lng=9), neutral_readings, location_label="North gate"
        )

        measurement = outcome.measurement
        assert measurement.area_id == stored_area.id
        assert measurement.device_id == "dev-1"
        assert measurement.position == Point(lat=1, lng=9)
        assert measurement.readings == neutral_readings
        assert measurement.location_label == "North gate"
        assert measurement.captured_at == fixed_now
        assert await measurement_store.list_by_area(stored_area.id) == [measurement]

    @pytest.mark.asyncio
    async def test_aggregate_refreshed(self, recorder, area_store, stored_area, neutral_readings):
        """Each capture updates the area's sample count and averages."""
        outcome = await recorder.record_measurement(
            stored_area, "dev-1", Point(lat=5, lng=5), neutral_readings
        )

        assert outcome.aggregation_error is None
        assert outcome.aggregate.sample_count == 1
        assert outcome.aggregate.averages.ph == 6.5

        area = await area_store.get(stored_area.id)
        assert area.sample_count == 1
        assert area.averages.potassium == 150.0


# ============================================================
# Rejection Tests
# ============================================================

class TestRejections:
    """Tests for measurements that must not be stored."""

    @pytest.mark.asyncio
    async def test_position_outside_area(
        self, recorder, area_store, measurement_store, stored_area, neutral_readings
    ):
        """A position outside the polygon is rejected and nothing changes."""
        with pytest.raises(PositionOutsideAreaError):
            await recorder.record_measurement(
                stored_area, "dev-1", Point(lat=15, lng=15), neutral_readings
            )

        assert await measurement_store.list_by_area(stored_area.id) == []
        area = await area_store.get(stored_area.id)
        assert area.sample_count == 0
        assert area.averages is None

    @pytest.mark.asyncio
    async def test_foreign_device(self, recorder, measurement_store, stored_area, neutral_readings):
        with pytest.raises(DeviceMismatchError):
            await recorder.record_measurement(
                stored_area, "dev-2", Point(lat=5, lng=5), neutral_readings
            )

        assert await measurement_store.max_sequence_for_area(stored_area.id) == 0

    @pytest.mark.asyncio
    async def test_unconfirmed_area(self, recorder, fixed_now, neutral_readings):
        """An area with fewer than 3 points does not accept captures."""
        draft = Area(
            id="alice_dev-1_draft",
            name="Draft",
            owner_username="alice",
            device_id="dev-1",
            polygon=[Point(lat=0, lng=0), Point(lat=1, lng=1)],
            created_at=fixed_now,
        )

        with pytest.raises(AreaNotConfirmedError):
            await recorder.record_measurement(draft, "dev-1", Point(lat=0.5, lng=0.5), neutral_readings)

    @pytest.mark.asyncio
    async def test_unconfirmed_checked_before_device(self, recorder, fixed_now, neutral_readings):
        draft = Area(
            id="alice_dev-1_draft",
            name="Draft",
            owner_username="alice",
            device_id="dev-1",
            polygon=[],
            created_at=fixed_now,
        )

        with pytest.raises(AreaNotConfirmedError):
            await recorder.record_measurement(draft, "dev-9", Point(lat=0, lng=0), neutral_readings)


# ============================================================
# Aggregation Failure Tests
# ============================================================

class TestAggregationFailure:
    """Tests for captures whose aggregation step fails."""

    @pytest.mark.asyncio
    async def test_measurement_kept_when_aggregation_fails(
        self, measurement_store, square_polygon, fixed_clock, fixed_now, neutral_readings
    ):
        area_store = UnavailableUpdateStore()
        area = Area(
            id="alice_dev-1_1718000000000",
            name="Square",
            owner_username="alice",
            device_id="dev-1",
            polygon=square_polygon,
            created_at=fixed_now,
        )
        area_store._areas[area.id] = area
        aggregation = AggregationEngine(area_store, measurement_store, clock=fixed_clock)
        recorder = MeasurementRecorder(measurement_store, aggregation, clock=fixed_clock)

        outcome = await recorder.record_measurement(
            area,
            "dev-1",
            Point(lat=5, lng=5),
            ChannelReadings(temperature=20, moisture=30, nitrogen=25, phosphorus=20, potassium=120, ph=6.0),
        )

        assert outcome.aggregate is None
        assert isinstance(outcome.aggregation_error, AggregationError)
        assert outcome.measurement.sequence_in_area == 1
        assert len(await measurement_store.list_by_area(area.id)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("area_store_class", [RejectingUpdateStore, VanishingAreaStore])
    async def test_store_failure_after_insert_is_reported(
        self, area_store_class, measurement_store, stored_area, fixed_clock, neutral_readings
    ):
        """Any store failure while updating averages leaves the capture stored."""
        recorder = _recorder_over(area_store_class(), measurement_store, stored_area, fixed_clock)

        outcome = await recorder.record_measurement(
            stored_area, "dev-1", Point(lat=5, lng=5), neutral_readings
        )

        assert outcome.aggregate is None
        assert isinstance(outcome.aggregation_error, AggregationError)
        assert await measurement_store.max_sequence_for_area(stored_area.id) == 1

    @pytest.mark.asyncio
    async def test_extreme_readings_are_aggregated(self, recorder, area_store, stored_area):
        """Readings have no enforced range."""
        readings = ChannelReadings(
            temperature=1e308, moisture=-1e308, nitrogen=1e26, phosphorus=0, potassium=0, ph=7
        )

        outcome = await recorder.record_measurement(stored_area, "dev-1", Point(lat=5, lng=5), readings)

        assert outcome.aggregation_error is None
        assert outcome.aggregate.averages.temperature == 1e308
        assert outcome.aggregate.averages.moisture == -1e308
        assert (await area_store.get(stored_area.id)).averages.nitrogen == 1e26


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
