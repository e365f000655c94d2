"""
Geospatial projection utilities for coordinate transformations.
"""
from typing import Sequence, Tuple, List
from pyproj import Transformer

from soilmap.domain.models import Point


def get_utm_zone(longitude: float) -> int:
    """
    Calculate the UTM zone number from longitude.

    Args:
        longitude: Longitude in degrees

    Returns:
        UTM zone number (1-60)
    """
    return min(int((longitude + 180) / 6) + 1, 60)


def get_utm_crs(longitude: float, latitude: float) -> str:
    """
    Get the appropriate UTM CRS (Coordinate Reference System) for a location.

    Args:
        longitude: Longitude in degrees
        latitude: Latitude in degrees

    Returns:
        EPSG code for the UTM zone
    """
    zone = get_utm_zone(longitude)
    # Northern hemisphere: EPSG:326XX, Southern hemisphere: EPSG:327XX
    hemisphere = "6" if latitude >= 0 else "7"
    return f"EPSG:32{hemisphere}{zone:02d}"


def project_points_to_meters(
    points: Sequence[Point]
) -> Tuple[List[Tuple[float, float]], Transformer]:
    """
    Project points to a planar coordinate system (UTM) in meters.

    The UTM zone is chosen from the first point.

    Args:
        points: Points in degrees

    Returns:
        Tuple of:
            - List of (x, y) coordinates in meters
            - Transformer object for the reverse transformation
    """
    if not points:
        raise ValueError("Points list cannot be empty")

    utm_crs = get_utm_crs(points[0].lng, points[0].lat)

    transformer = Transformer.from_crs("EPSG:4326", utm_crs, always_xy=True)
    projected = [transformer.transform(p.lng, p.lat) for p in points]

    reverse_transformer = Transformer.from_crs(utm_crs, "EPSG:4326", always_xy=True)
    return projected, reverse_transformer


def project_to_points(
    coordinates: Sequence[Tuple[float, float]],
    transformer: Transformer
) -> List[Point]:
    """
    Project planar coordinates (meters) back to points in degrees.

    Args:
        coordinates: (x, y) coordinates in meters
        transformer: Reverse transformer from project_points_to_meters

    Returns:
        List of Point
    """
    result = []
    for x, y in coordinates:
        lng, lat = transformer.transform(x, y)
        result.append(Point(lat=float(lat), lng=float(lng)))
    return result
