"""
API router for area endpoints.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, HTTPException, Path, Query, status

from soilmap.api.dependencies import AreaServiceDep
from soilmap.api.v1.models.requests import CreateAreaRequest, RecordMeasurementRequest
from soilmap.api.v1.models.responses import (
    AreaDetailResponse,
    AreaResponse,
    RecordMeasurementResponse,
)
from soilmap.domain.errors import SoilMapError
from soilmap.domain.models import Area, AreaAggregate, Measurement, Recommendation


router = APIRouter(
    prefix="/areas",
    tags=["areas"],
)

AreaId = Annotated[str, Path(description="Unique identifier for the area")]

COMMON_RESPONSES = {
    404: {"description": "Area not found"},
    429: {"description": "Rate limit exceeded"},
    503: {"description": "Store unavailable"},
}


def _to_http(error: SoilMapError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


def _area_response(area: Area) -> AreaResponse:
    return AreaResponse.model_validate(area.model_dump())


@router.post(
    "",
    response_model=AreaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a measurement area",
    description="""
    Create an area from a user-drawn polygon.

    The polygon needs at least 3 points and the name must not be blank.
    Polygons are immutable once the area is created.
    """,
    responses={
        400: {"description": "Blank name or fewer than 3 points"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Store unavailable"},
    },
)
async def create_area(
    body: CreateAreaRequest,
    area_service: AreaServiceDep,
) -> AreaResponse:
    try:
        area = await area_service.create_area(
            name=body.name,
            owner_username=body.owner_username,
            device_id=body.device_id,
            polygon=body.polygon,
        )
    except SoilMapError as e:
        raise _to_http(e)
    return _area_response(area)


@router.get(
    "",
    response_model=List[AreaResponse],
    summary="List areas of an owner",
    responses={429: {"description": "Rate limit exceeded"}},
)
async def list_areas(
    owner_username: Annotated[str, Query(description="Owner of the areas")],
    area_service: AreaServiceDep,
    device_id: Annotated[Optional[str], Query(description="Only areas of this device")] = None,
) -> List[AreaResponse]:
    try:
        areas = await area_service.list_areas(owner_username, device_id)
    except SoilMapError as e:
        raise _to_http(e)
    return [_area_response(a) for a in areas]


@router.get(
    "/{area_id}",
    response_model=AreaDetailResponse,
    summary="Get an area",
    description="Return an area with its bounding box and geodesic size.",
    responses=COMMON_RESPONSES,
)
async def get_area(
    area_id: AreaId,
    area_service: AreaServiceDep,
) -> AreaDetailResponse:
    try:
        detail = await area_service.get_area_detail(area_id)
    except SoilMapError as e:
        raise _to_http(e)
    return AreaDetailResponse(area=detail.area, bounds=detail.bounds, area_m2=detail.area_m2)


@router.post(
    "/{area_id}/measurements",
    response_model=RecordMeasurementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a measurement",
    description="""
    Record a sensor capture into an area.

    The capture is rejected when:
    - the area polygon has fewer than 3 points (409)
    - the device does not own the area (403)
    - the position lies outside the polygon (422)

    After the capture is stored the area averages are recomputed. If that
    fails the capture stays stored and `aggregation_error` is set.
    """,
    responses={
        403: {"description": "Device does not own the area"},
        409: {"description": "Area is not confirmed"},
        422: {"description": "Position outside the area"},
        **COMMON_RESPONSES,
    },
)
async def record_measurement(
    area_id: AreaId,
    body: RecordMeasurementRequest,
    area_service: AreaServiceDep,
) -> RecordMeasurementResponse:
    try:
        outcome = await area_service.record_measurement(
            area_id=area_id,
            device_id=body.device_id,
            position=body.position,
            readings=body.readings,
            location_label=body.location_label,
        )
    except SoilMapError as e:
        raise _to_http(e)

    return RecordMeasurementResponse(
        measurement=outcome.measurement,
        aggregate=outcome.aggregate,
        aggregation_error=outcome.aggregation_error.message if outcome.aggregation_error else None,
    )


@router.get(
    "/{area_id}/measurements",
    response_model=List[Measurement],
    summary="List measurements of an area",
    responses=COMMON_RESPONSES,
)
async def list_measurements(
    area_id: AreaId,
    area_service: AreaServiceDep,
) -> List[Measurement]:
    try:
        return await area_service.list_measurements(area_id)
    except SoilMapError as e:
        raise _to_http(e)


@router.post(
    "/{area_id}/aggregate",
    response_model=AreaAggregate,
    summary="Recompute area averages",
    description="Recompute the averages from all stored measurements. Safe to repeat.",
    responses=COMMON_RESPONSES,
)
async def recompute_averages(
    area_id: AreaId,
    area_service: AreaServiceDep,
) -> AreaAggregate:
    try:
        return await area_service.recompute_averages(area_id)
    except SoilMapError as e:
        raise _to_http(e)


@router.get(
    "/{area_id}/recommendations",
    response_model=Recommendation,
    summary="Get soil and crop suggestions",
    responses={
        400: {"description": "Area has no measurements yet"},
        **COMMON_RESPONSES,
    },
)
async def get_recommendations(
    area_id: AreaId,
    area_service: AreaServiceDep,
) -> Recommendation:
    try:
        return await area_service.get_recommendations(area_id)
    except SoilMapError as e:
        raise _to_http(e)
