"""
Infrastructure layer: REST backend client and http-backed stores.

The backend predates this service and is loose about field names
(deviceId / device_id / deviceid, polygonBounds as [lng, lat] pairs, ...).
All normalization happens here so the domain only ever sees canonical models.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from soilmap.config import settings
from soilmap.domain.errors import (
    AreaIdConflictError,
    NotFoundError,
    StoreError,
    StoreUnavailableError,
)
from soilmap.domain.models import (
    CHANNELS,
    Area,
    ChannelReadings,
    Measurement,
    Point,
)
from soilmap.infrastructure.api_constants import APIConstants, BackendEndpoints
from soilmap.infrastructure.stores import AreaStore, MeasurementStore

logger = logging.getLogger(__name__)


class BackendClient:
    """
    Client for the REST backend.
    Implements retry logic with exponential backoff.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """Initialize the client with configuration."""
        self.base_url = base_url or settings.backend_base_url
        self.api_key = api_key if api_key is not None else settings.backend_api_key
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.backend_timeout,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Server errors (5xx) and transport errors are retried; client errors
        are mapped straight to store errors.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body, or None for an empty body
        """
        response = await self.client.request(method, endpoint, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status >= 500:
                raise
            if status == 404:
                raise NotFoundError(f"Backend resource not found: {endpoint}")
            if status == 409:
                raise AreaIdConflictError(f"Backend reported a conflict: {e.response.text}")
            raise StoreError(f"Backend request failed: {status} - {e.response.text}")

        if not response.content:
            return None
        return response.json()

    async def request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Make a request, converting exhausted retries to StoreUnavailableError.

        Raises:
            StoreUnavailableError: If the backend stays unreachable or keeps failing
            NotFoundError: On 404
            AreaIdConflictError: On 409
        """
        try:
            return await self._make_request(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            logger.error(f"Backend {method} {endpoint} failed: {e.response.status_code}")
            raise StoreUnavailableError(
                f"Backend unavailable: {e.response.status_code} - {e.response.text}"
            )
        except httpx.RequestError as e:
            logger.error(f"Backend {method} {endpoint} unreachable: {e}")
            raise StoreUnavailableError(f"Backend request error: {str(e)}")


# ============================================================
# Payload normalization
# ============================================================

def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key present with a non-null value."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_point(raw: Any) -> Point:
    if isinstance(raw, dict):
        return Point(lat=raw["lat"], lng=raw["lng"])
    # polygonBounds pairs are [lng, lat]
    lng, lat = raw
    return Point(lat=lat, lng=lng)


def normalize_area(data: Dict[str, Any]) -> Area:
    """
    Build an Area from a backend area document.

    Args:
        data: Area document using any of the backend's field spellings

    Returns:
        Area instance
    """
    sample_count = int(_first(data, "sample_count", "totalMeasurements") or 0)
    averages = data.get("averages") if sample_count > 0 else None
    created_at = _parse_timestamp(_first(data, "created_at", "createdDate", "createdTimestamp"))

    return Area(
        id=str(_first(data, "id", "areaId")),
        name=_first(data, "name", "area_name") or "",
        owner_username=_first(data, "owner_username", "ownerUsername", "username") or "",
        device_id=str(_first(data, "device_id", "deviceId", "deviceid") or ""),
        polygon=[_parse_point(p) for p in (_first(data, "polygon", "polygonBounds") or [])],
        created_at=created_at or datetime.now(timezone.utc),
        sample_count=sample_count,
        averages=averages,
        updated_at=_parse_timestamp(_first(data, "updated_at", "lastUpdated")),
    )


def area_to_payload(area: Area) -> Dict[str, Any]:
    """Serialize an Area the way the backend stores it."""
    return {
        "id": area.id,
        "name": area.name,
        "deviceId": area.device_id,
        "username": area.owner_username,
        "polygonBounds": [[p.lng, p.lat] for p in area.polygon],
        "createdDate": area.created_at.isoformat(),
        "createdTimestamp": int(area.created_at.timestamp() * 1000),
        "totalMeasurements": area.sample_count,
        "averages": area.averages.model_dump() if area.averages else None,
    }


def partial_to_payload(partial: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a partial Area update to backend field names."""
    field_names = {
        "name": "name",
        "sample_count": "totalMeasurements",
        "averages": "averages",
        "updated_at": "lastUpdated",
    }
    payload = {}
    for key, value in partial.items():
        if hasattr(value, "model_dump"):
            value = value.model_dump()
        elif isinstance(value, datetime):
            value = int(value.timestamp() * 1000)
        payload[field_names.get(key, key)] = value
    return payload


def normalize_measurement(data: Dict[str, Any]) -> Measurement:
    """
    Build a Measurement from a backend measurement document.

    Args:
        data: Measurement document, flat or nested

    Returns:
        Measurement instance
    """
    if data.get("position") is not None:
        position = _parse_point(data["position"])
    else:
        position = Point(lat=data["lat"], lng=data["lng"])

    readings_source = data.get("readings") or data
    readings = ChannelReadings(**{c: readings_source.get(c) or 0.0 for c in CHANNELS})

    return Measurement(
        id=str(data.get("id")),
        area_id=str(_first(data, "area_id", "areaId")),
        device_id=str(_first(data, "device_id", "deviceId", "deviceid") or ""),
        position=position,
        sequence_in_area=int(_first(data, "sequence_in_area", "measurementPoint") or 1),
        readings=readings,
        location_label=_first(data, "location_label", "customLocationName", "location"),
        captured_at=_parse_timestamp(_first(data, "captured_at", "date", "timestamp"))
        or datetime.now(timezone.utc),
    )


def measurement_to_payload(measurement: Measurement) -> Dict[str, Any]:
    """Serialize a Measurement the way the backend stores it."""
    return {
        "id": measurement.id,
        "areaId": measurement.area_id,
        "deviceId": measurement.device_id,
        "lat": measurement.position.lat,
        "lng": measurement.position.lng,
        "measurementPoint": measurement.sequence_in_area,
        **measurement.readings.model_dump(),
        "location": measurement.location_label,
        "date": measurement.captured_at.isoformat(),
    }


def _items(data: Any) -> List[Dict[str, Any]]:
    """Unwrap a list response, paginated or bare."""
    if data is None:
        return []
    if isinstance(data, dict):
        return data.get("results", [])
    return data


# ============================================================
# Http-backed stores
# ============================================================

class HttpAreaStore(AreaStore):
    """AreaStore backed by the REST backend."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def create(self, area: Area) -> Area:
        data = await self.client.request("POST", BackendEndpoints.AREAS, json=area_to_payload(area))
        if isinstance(data, dict) and _first(data, "id", "areaId") and _first(data, "createdDate", "created_at"):
            return normalize_area(data)
        return area

    async def get(self, area_id: str) -> Area:
        data = await self.client.request("GET", BackendEndpoints.area(area_id))
        if not data:
            raise NotFoundError(f"Area '{area_id}' not found")
        return normalize_area(data)

    async def update(self, area_id: str, partial: Dict[str, Any]) -> None:
        await self.client.request(
            "PUT", BackendEndpoints.area(area_id), json=partial_to_payload(partial)
        )

    async def list_by_owner(
        self,
        owner_username: str,
        device_id: Optional[str] = None,
    ) -> List[Area]:
        params = {"username": owner_username}
        if device_id:
            params["deviceId"] = device_id
        data = await self.client.request("GET", BackendEndpoints.AREAS, params=params)
        return [normalize_area(item) for item in _items(data)]


class HttpMeasurementStore(MeasurementStore):
    """MeasurementStore backed by the REST backend."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def insert(self, measurement: Measurement) -> Measurement:
        await self.client.request(
            "POST", BackendEndpoints.MEASUREMENTS, json=measurement_to_payload(measurement)
        )
        return measurement

    async def list_by_area(self, area_id: str) -> List[Measurement]:
        data = await self.client.request("GET", BackendEndpoints.area_measurements(area_id))
        measurements = [normalize_measurement(item) for item in _items(data)]
        return sorted(measurements, key=lambda m: m.sequence_in_area)

    async def max_sequence_for_area(self, area_id: str) -> int:
        measurements = await self.list_by_area(area_id)
        return max((m.sequence_in_area for m in measurements), default=0)


# Singleton instance
_backend_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """
    Get or create the singleton backend client instance.

    Returns:
        BackendClient instance
    """
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client
