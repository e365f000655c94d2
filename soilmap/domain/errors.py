"""
Domain error taxonomy.

Every failure the engine can report carries a human readable message and
the HTTP status code the API layer maps it to.
"""


class SoilMapError(Exception):
    """Base class for all engine errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SoilMapError, ValueError):
    """Caller supplied structurally invalid input."""
    status_code = 400


class PositionOutsideAreaError(SoilMapError):
    """A measurement position failed the containment test."""
    status_code = 422


class DeviceMismatchError(SoilMapError):
    """A device tried to write into an area it does not own."""
    status_code = 403


class AreaNotConfirmedError(SoilMapError):
    """The area polygon has fewer than 3 points."""
    status_code = 409


class StoreError(SoilMapError):
    """Failure reported by an area or measurement store."""
    status_code = 502


class StoreUnavailableError(StoreError):
    """The store could not be reached."""
    status_code = 503


class NotFoundError(StoreError):
    """The requested record does not exist."""
    status_code = 404


class AreaIdConflictError(StoreError):
    """An area with the same id already exists."""
    status_code = 409


class AggregationError(SoilMapError):
    """Recomputing area averages failed after the measurement was stored."""
    status_code = 503
