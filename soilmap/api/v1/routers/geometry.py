"""
API router for stateless geometry helpers.
"""
from fastapi import APIRouter, HTTPException

from soilmap.api.dependencies import AreaServiceDep
from soilmap.api.v1.models.requests import ContainsRequest, PolygonRequest
from soilmap.api.v1.models.responses import ContainsResponse, MeasurementPlanResponse
from soilmap.domain.errors import SoilMapError
from soilmap.utils.geometry import point_in_polygon


router = APIRouter(
    prefix="/geometry",
    tags=["geometry"],
)


@router.post(
    "/contains",
    response_model=ContainsResponse,
    summary="Test whether a point lies inside a polygon",
    responses={429: {"description": "Rate limit exceeded"}},
)
async def contains(body: ContainsRequest) -> ContainsResponse:
    return ContainsResponse(inside=point_in_polygon(body.point, body.polygon))


@router.post(
    "/measurement-plan",
    response_model=MeasurementPlanResponse,
    summary="Plan sampling positions inside a polygon",
    description="""
    Lay a metric grid over the polygon and return the nodes inside it.

    Spacing is 7 m for areas under 30 m across and 12 m otherwise; at most
    50 points are returned.
    """,
    responses={
        400: {"description": "Fewer than 3 points"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def measurement_plan(
    body: PolygonRequest,
    area_service: AreaServiceDep,
) -> MeasurementPlanResponse:
    try:
        plan = area_service.plan_measurements(body.polygon)
    except SoilMapError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return MeasurementPlanResponse(
        point_count=len(plan.points),
        points=plan.points,
        bounds=plan.bounds,
        area_m2=plan.area_m2,
    )
