"""
Domain service: creation and lookup of measurement areas.
"""
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence
import logging

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from soilmap.config import settings
from soilmap.domain.errors import AreaIdConflictError, ValidationError
from soilmap.domain.models import Area, Point
from soilmap.infrastructure.stores import AreaStore

logger = logging.getLogger(__name__)


class AreaRegistry:
    """
    Domain service for measurement areas.

    Only ">= 3 points" is enforced on polygons. Collinear or
    self-intersecting outlines are accepted as drawn.
    """

    def __init__(
        self,
        area_store: AreaStore,
        clock: Optional[Callable[[], datetime]] = None,
        max_id_attempts: Optional[int] = None,
    ):
        """
        Initialize the registry.

        Args:
            area_store: Store areas are persisted in
            clock: Source of the current UTC time
            max_id_attempts: Attempts at finding a free area id
        """
        self.area_store = area_store
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.max_id_attempts = max_id_attempts or settings.area_id_max_attempts

    @staticmethod
    def generate_area_id(
        owner_username: str,
        device_id: str,
        created_at: datetime,
        attempt: int = 1,
    ) -> str:
        """Build an id of the form {owner}_{device}_{epoch_millis}, suffixed on retries."""
        area_id = f"{owner_username}_{device_id}_{int(created_at.timestamp() * 1000)}"
        if attempt > 1:
            area_id = f"{area_id}_{attempt}"
        return area_id

    async def create_area(
        self,
        name: str,
        owner_username: str,
        device_id: str,
        polygon: Sequence[Point],
    ) -> Area:
        """
        Create and persist a confirmed area.

        Args:
            name: User supplied label, trimmed before storing
            owner_username: Owner of the area
            device_id: Device that will record into the area
            polygon: Boundary vertices, at least 3

        Returns:
            The stored Area with sample_count 0 and no averages

        Raises:
            ValidationError: If the name is blank or the polygon has < 3 points
        """
        if len(polygon) < 3:
            raise ValidationError(
                f"An area polygon needs at least 3 points, got {len(polygon)}"
            )
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("area name required")

        created_at = self.clock()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_id_attempts),
            retry=retry_if_exception_type(AreaIdConflictError),
            reraise=True,
        ):
            with attempt:
                area = Area(
                    id=self.generate_area_id(
                        owner_username,
                        device_id,
                        created_at,
                        attempt.retry_state.attempt_number,
                    ),
                    name=clean_name,
                    owner_username=owner_username,
                    device_id=device_id,
                    polygon=list(polygon),
                    created_at=created_at,
                )
                stored = await self.area_store.create(area)

        logger.info(f"Created area {stored.id} ({clean_name!r}) with {len(polygon)} vertices")
        return stored

    async def get_area(self, area_id: str) -> Area:
        """Fetch an area. Raises NotFoundError."""
        return await self.area_store.get(area_id)

    async def list_areas(
        self,
        owner_username: str,
        device_id: Optional[str] = None,
    ) -> List[Area]:
        """List an owner's areas, newest first when the store orders them."""
        return await self.area_store.list_by_owner(owner_username, device_id)
