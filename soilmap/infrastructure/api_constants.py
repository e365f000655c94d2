"""
REST backend endpoint constants.

This module contains all backend endpoint paths used by the http stores.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""


class BackendEndpoints:
    """REST backend endpoint paths."""

    # Base paths
    API_BASE = "/api"

    # Area endpoints
    AREAS = f"{API_BASE}/areas"
    AREA_BY_ID = f"{API_BASE}/areas/{{area_id}}"
    AREA_MEASUREMENTS = f"{API_BASE}/areas/{{area_id}}/measurements"

    # Measurement endpoints
    MEASUREMENTS = f"{API_BASE}/measurements"

    @classmethod
    def area(cls, area_id: str) -> str:
        """
        Get the endpoint of a single area.

        Args:
            area_id: Area ID

        Returns:
            Formatted endpoint path
        """
        return cls.AREA_BY_ID.format(area_id=area_id)

    @classmethod
    def area_measurements(cls, area_id: str) -> str:
        """
        Get the measurements endpoint of an area.

        Args:
            area_id: Area ID

        Returns:
            Formatted endpoint path
        """
        return cls.AREA_MEASUREMENTS.format(area_id=area_id)


class APIConstants:
    """General backend configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
