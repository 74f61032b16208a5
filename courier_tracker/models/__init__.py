"""
Data models for the courier tracker.
"""

from courier_tracker.models.courier import (
    CourierRecord,
    CourierState,
    Driver,
    SimulationParameters,
    validate_duration,
)
from courier_tracker.models.route import Coordinate, Route, RouteStep
from courier_tracker.models.tracking import (
    CourierPosition,
    CourierResponse,
    ErrorResponse,
    HealthResponse,
    OrderRequest,
    OrderResponse,
    RouteInfo,
    Waypoint,
)

__all__ = [
    "Coordinate",
    "CourierPosition",
    "CourierRecord",
    "CourierResponse",
    "CourierState",
    "Driver",
    "ErrorResponse",
    "HealthResponse",
    "OrderRequest",
    "OrderResponse",
    "Route",
    "RouteInfo",
    "RouteStep",
    "SimulationParameters",
    "Waypoint",
    "validate_duration",
]
