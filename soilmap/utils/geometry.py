"""
Geometry helpers for measurement areas.

Provides utilities for:
- Point-in-polygon containment (even-odd ray casting)
- Bounding boxes
- Geodesic polygon area
- Measurement grid planning inside a polygon
"""
from typing import Sequence
import logging
import numpy as np
from pyproj import Geod
from shapely.geometry import Polygon

from soilmap.domain.errors import ValidationError
from soilmap.domain.models import BoundingBox, Point
from soilmap.utils.geo_projection import project_points_to_meters, project_to_points

logger = logging.getLogger(__name__)

# WGS-84 ellipsoid, the GPS datum
_geod = Geod(ellps="WGS84")


def _ray_cast(a: float, b: float, ring: Sequence[tuple[float, float]]) -> bool:
    """Even-odd test of (a, b) against a ring of (a, b) vertices, implicitly closed."""
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        a_i, b_i = ring[i]
        a_j, b_j = ring[j]
        if (a_i > a) != (a_j > a) and b < (b_j - b_i) * (a - a_i) / (a_j - a_i) + b_i:
            inside = not inside
        j = i
    return inside


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Check if a point is inside a polygon.

    The polygon is treated as closed; the last vertex connects back to the
    first. Points lying exactly on an edge or vertex get whatever the
    crossing test yields.

    Args:
        point: Position to test
        polygon: Ordered boundary vertices

    Returns:
        True if point is inside polygon, False otherwise (always False
        for fewer than 3 vertices)
    """
    if len(polygon) < 3:
        return False
    ring = [(p.lat, p.lng) for p in polygon]
    return _ray_cast(point.lat, point.lng, ring)


def compute_bounds(points: Sequence[Point]) -> BoundingBox:
    """
    Compute the bounding box of a list of points.

    Raises:
        ValidationError: If points is empty
    """
    if not points:
        raise ValidationError("Cannot compute bounds of an empty point list")

    return BoundingBox(
        min_lat=min(p.lat for p in points),
        min_lng=min(p.lng for p in points),
        max_lat=max(p.lat for p in points),
        max_lng=max(p.lng for p in points),
    )


def polygon_area_m2(polygon: Sequence[Point]) -> float:
    """
    Geodesic area of a polygon in square meters.

    Args:
        polygon: Ordered boundary vertices in degrees

    Returns:
        Area in m², or 0.0 for fewer than 3 vertices
    """
    if len(polygon) < 3:
        return 0.0
    # Shapely and pyproj expect (lon, lat) order
    shape = Polygon([(p.lng, p.lat) for p in polygon])
    area, _ = _geod.geometry_area_perimeter(shape)
    return abs(float(area))


def plan_measurement_points(
    polygon: Sequence[Point],
    small_area_threshold_m: float = 30.0,
    small_spacing_m: float = 7.0,
    large_spacing_m: float = 12.0,
    max_points: int = 50,
) -> list[Point]:
    """
    Lay out a grid of suggested sampling positions inside a polygon.

    The polygon is projected to UTM so spacing is in meters. Areas whose
    larger bounding-box side is under the threshold use the small spacing.
    Grid nodes sit half a spacing in from the bounding box edges.

    Args:
        polygon: Ordered boundary vertices in degrees
        small_area_threshold_m: Extent below which the small spacing applies
        small_spacing_m: Grid spacing for small areas
        large_spacing_m: Grid spacing for large areas
        max_points: Upper bound on the number of returned points

    Returns:
        List of Point inside the polygon, at most max_points long
    """
    if len(polygon) < 3:
        return []

    projected, reverse_transformer = project_points_to_meters(polygon)
    ring = np.array(projected)
    min_x, min_y = ring.min(axis=0)
    max_x, max_y = ring.max(axis=0)

    extent = max(max_x - min_x, max_y - min_y)
    spacing = small_spacing_m if extent < small_area_threshold_m else large_spacing_m
    logger.debug(f"Planning grid: extent={extent:.2f}m, spacing={spacing}m")

    xs = np.arange(min_x + spacing / 2, max_x, spacing)
    ys = np.arange(min_y + spacing / 2, max_y, spacing)

    candidates = [
        (float(x), float(y))
        for x in xs
        for y in ys
        if _ray_cast(float(x), float(y), projected)
    ]

    if len(candidates) > max_points:
        step = len(candidates) // max_points
        candidates = candidates[::step][:max_points]

    logger.info(f"Planned {len(candidates)} measurement points with {spacing}m spacing")
    return project_to_points(candidates, reverse_transformer)
