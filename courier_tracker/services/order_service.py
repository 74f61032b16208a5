"""
Order orchestration: turns a delivery order into a simulated courier and
answers tracking queries for it.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, List, Optional, Sequence, Tuple

from courier_tracker.config import config
from courier_tracker.exceptions import InvalidDuration
from courier_tracker.models.courier import CourierRecord, Driver, SimulationParameters
from courier_tracker.models.route import Route
from courier_tracker.models.tracking import (
    CourierPosition,
    CourierResponse,
    OrderResponse,
    RouteInfo,
    Waypoint,
)
from courier_tracker.services.courier_registry import CourierRegistry
from courier_tracker.services.directions_service import DirectionsService
from courier_tracker.services.position_simulator import PositionSnapshot, round_half_up

logger = logging.getLogger(__name__)

# Dummy drivers assigned at random to new orders
DRIVER_POOL: Tuple[Driver, ...] = (
    Driver(name="John Doe", license_plate="ABC123"),
    Driver(name="Jane Smith", license_plate="XYZ789"),
    Driver(name="Mike Johnson", license_plate="DEF456"),
)


def epoch_ms() -> int:
    return int(time.time() * 1000)


def simulated_duration_ms(route: Route, speed_multiplier: float) -> float:
    """Real route duration shrunk by the simulation speed multiplier."""
    if speed_multiplier <= 0:
        raise InvalidDuration(f"Simulation speed multiplier must be positive, got {speed_multiplier!r}")
    return route.total_duration_seconds * 1000 / speed_multiplier


class OrderService:
    """Creates couriers for orders and reports their simulated position."""

    def __init__(
        self,
        registry: CourierRegistry,
        directions: DirectionsService,
        speed_multiplier: Optional[float] = None,
        clock: Callable[[], int] = epoch_ms,
        rng: Optional[random.Random] = None,
        driver_pool: Sequence[Driver] = DRIVER_POOL,
    ):
        self.registry = registry
        self.directions = directions
        self.speed_multiplier = config.SIMULATION_SPEED if speed_multiplier is None else speed_multiplier
        self.clock = clock
        self._rng = rng or random.Random()
        self._driver_pool = list(driver_pool)

    async def create_order(self, from_address: str, to_address: str) -> CourierRecord:
        route = await self.directions.get_route(from_address, to_address)
        return self.register_route(route, from_address, to_address)

    def register_route(self, route: Route, from_address: str, to_address: str) -> CourierRecord:
        """Start a simulation for an already fetched route."""
        parameters = SimulationParameters(
            route=route,
            start_time_epoch_ms=self.clock(),
            total_duration_ms=simulated_duration_ms(route, self.speed_multiplier),
        )
        driver = self._rng.choice(self._driver_pool)
        record = self.registry.create(parameters, driver, from_address, to_address)
        logger.info(
            f"[Orders] {record.courier_id} assigned to {driver.name} ({driver.license_plate}): "
            f"'{from_address}' -> '{to_address}'"
        )
        return record

    def track(self, courier_id: str) -> Tuple[CourierRecord, PositionSnapshot]:
        return self.registry.locate(courier_id, self.clock())


def build_route_info(record: CourierRecord) -> RouteInfo:
    route = record.route
    waypoints: List[Waypoint] = [
        Waypoint(
            instruction=step.instruction,
            name=step.name,
            distance=step.distance_meters,
            duration=step.duration_seconds,
            coordinates=[c.as_lon_lat() for c in route.coordinates_for_step(step)],
        )
        for step in route.steps
    ]
    return RouteInfo(
        start_address=record.start_address,
        end_address=record.end_address,
        total_distance=f"{round_half_up(route.total_distance_meters / 1000)} km",
        total_duration=f"{round_half_up(route.total_duration_seconds / 60)} minutes",
        start_coords=route.origin.as_lat_lng(),
        end_coords=route.destination.as_lat_lng(),
        waypoints=waypoints,
    )


def build_order_response(record: CourierRecord) -> OrderResponse:
    return OrderResponse(
        id=record.courier_id,
        name=record.driver.name,
        license_plate=record.driver.license_plate,
        status="created",
        route_info=build_route_info(record),
    )


def build_courier_response(record: CourierRecord, snapshot: PositionSnapshot) -> CourierResponse:
    return CourierResponse(
        id=record.courier_id,
        name=record.driver.name,
        license_plate=record.driver.license_plate,
        status=snapshot.status,
        position=CourierPosition(
            lat=snapshot.lat,
            lng=snapshot.lng,
            progress=snapshot.progress,
            current_step=snapshot.current_step,
            total_steps=snapshot.total_steps,
            address=snapshot.address,
            time_left=snapshot.time_left,
        ),
        route_info=build_route_info(record),
    )
