"""
Infrastructure layer: store interfaces and in-memory bindings.

The domain services only talk to AreaStore and MeasurementStore. Concrete
backends decide how records are persisted.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from soilmap.domain.errors import AreaIdConflictError, NotFoundError
from soilmap.domain.models import Area, Measurement


class AreaStore(ABC):
    """Persistence for Area records."""

    @abstractmethod
    async def create(self, area: Area) -> Area:
        """Persist a new area. Raises AreaIdConflictError on a duplicate id."""

    @abstractmethod
    async def get(self, area_id: str) -> Area:
        """Fetch an area. Raises NotFoundError."""

    @abstractmethod
    async def update(self, area_id: str, partial: Dict[str, Any]) -> None:
        """Apply a partial update to an existing area. Raises NotFoundError."""

    @abstractmethod
    async def list_by_owner(
        self,
        owner_username: str,
        device_id: Optional[str] = None,
    ) -> List[Area]:
        """List the areas of an owner, optionally for one device."""


class MeasurementStore(ABC):
    """Persistence for Measurement records."""

    @abstractmethod
    async def insert(self, measurement: Measurement) -> Measurement:
        """Persist a measurement."""

    @abstractmethod
    async def list_by_area(self, area_id: str) -> List[Measurement]:
        """All measurements of an area, ordered by sequence_in_area."""

    @abstractmethod
    async def max_sequence_for_area(self, area_id: str) -> int:
        """Highest sequence_in_area of an area, 0 if it has none."""


class InMemoryAreaStore(AreaStore):
    """Dict-backed AreaStore."""

    def __init__(self):
        self._areas: Dict[str, Area] = {}

    async def create(self, area: Area) -> Area:
        if area.id in self._areas:
            raise AreaIdConflictError(f"Area '{area.id}' already exists")
        self._areas[area.id] = area
        return area

    async def get(self, area_id: str) -> Area:
        try:
            return self._areas[area_id]
        except KeyError:
            raise NotFoundError(f"Area '{area_id}' not found") from None

    async def update(self, area_id: str, partial: Dict[str, Any]) -> None:
        area = await self.get(area_id)
        # Round-trip through validation so nested dicts become models
        self._areas[area_id] = Area.model_validate({**area.model_dump(), **partial})

    async def list_by_owner(
        self,
        owner_username: str,
        device_id: Optional[str] = None,
    ) -> List[Area]:
        areas = [
            a for a in self._areas.values()
            if a.owner_username == owner_username
            and (device_id is None or a.device_id == device_id)
        ]
        return sorted(areas, key=lambda a: a.created_at, reverse=True)


class InMemoryMeasurementStore(MeasurementStore):
    """Dict-backed MeasurementStore keyed by area id."""

    def __init__(self):
        self._by_area: Dict[str, List[Measurement]] = {}

    async def insert(self, measurement: Measurement) -> Measurement:
        self._by_area.setdefault(measurement.area_id, []).append(measurement)
        return measurement

    async def list_by_area(self, area_id: str) -> List[Measurement]:
        return sorted(self._by_area.get(area_id, []), key=lambda m: m.sequence_in_area)

    async def max_sequence_for_area(self, area_id: str) -> int:
        return max((m.sequence_in_area for m in self._by_area.get(area_id, [])), default=0)
