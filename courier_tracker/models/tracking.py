"""
Pydantic models for the order and courier tracking API.

Field names are snake_case in Python and camelCase on the wire, matching what
the tracking client reads.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrderRequest(BaseModel):
    """Delivery order: origin and destination as free-text addresses."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"from": "Alexanderplatz, Berlin", "to": "Tempelhof, Berlin"}},
    )

    from_address: Optional[str] = Field(None, alias="from", description="Pickup address")
    to_address: Optional[str] = Field(None, alias="to", description="Delivery address")


class Waypoint(BaseModel):
    """One turn-by-turn step with its slice of the route geometry."""
    instruction: str = ""
    name: str = ""
    distance: float = Field(0.0, ge=0, description="Step distance in meters")
    duration: float = Field(0.0, ge=0, description="Step duration in seconds")
    coordinates: List[List[float]] = Field(default_factory=list, description="[lon, lat] pairs")


class RouteInfo(_CamelModel):
    start_address: str = Field(..., alias="startAddress")
    end_address: str = Field(..., alias="endAddress")
    total_distance: str = Field(..., alias="totalDistance", description="e.g. '12 km'")
    total_duration: str = Field(..., alias="totalDuration", description="e.g. '25 minutes'")
    start_coords: List[float] = Field(..., alias="startCoords", description="[lat, lng]")
    end_coords: List[float] = Field(..., alias="endCoords", description="[lat, lng]")
    waypoints: List[Waypoint] = Field(default_factory=list)


class CourierPosition(_CamelModel):
    lat: float
    lng: float
    progress: int = Field(..., ge=0, le=100)
    current_step: int = Field(..., alias="currentStep", ge=1)
    total_steps: int = Field(..., alias="totalSteps", ge=2)
    address: Optional[str] = None
    time_left: str = Field(..., alias="timeLeft")


class OrderResponse(_CamelModel):
    id: str
    name: str
    license_plate: str = Field(..., alias="licensePlate")
    status: str = "created"
    route_info: RouteInfo = Field(..., alias="routeInfo")


class CourierResponse(_CamelModel):
    id: str
    name: str
    license_plate: str = Field(..., alias="licensePlate")
    status: str
    position: CourierPosition
    route_info: RouteInfo = Field(..., alias="routeInfo")


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    registry: dict
    directions: dict
