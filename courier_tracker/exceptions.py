"""
Error taxonomy for the courier tracker.

The API layer maps each class to an HTTP status; services raise them and never
swallow them.
"""


class CourierTrackerError(Exception):
    """Base class for every error raised by this package."""


class InvalidRouteData(CourierTrackerError, ValueError):
    """Directions data is malformed (geometry, steps or aggregates)."""


class InvalidDuration(CourierTrackerError, ValueError):
    """Simulated duration is zero, negative or not a finite number."""


class EmptyRoute(CourierTrackerError):
    """Simulator received fewer than two coordinates."""


class CourierNotFound(CourierTrackerError, KeyError):
    """No courier is registered under the requested identifier."""

    def __init__(self, courier_id: str):
        super().__init__(courier_id)
        self.courier_id = courier_id

    def __str__(self) -> str:
        return f"Courier '{self.courier_id}' not found"


class GeocodingError(CourierTrackerError):
    """An address could not be resolved to coordinates."""


class DirectionsError(CourierTrackerError):
    """The directions service failed or returned no route."""
