"""
Pytest configuration and shared fixtures for courier tracker tests.
"""
import random
from typing import Any, Dict, List, Optional

import pytest

from courier_tracker.models.route import Coordinate, Route, RouteStep
from courier_tracker.services.courier_registry import CourierRegistry
from courier_tracker.services.order_service import OrderService


# ============================================================
# FIXTURES FOR ROUTES
# ============================================================

@pytest.fixture
def ors_feature() -> Dict[str, Any]:
    """OpenRouteService directions feature with three steps over four points."""
    return {
        "type": "Feature",
        "geometry": {
            "type": "LineString",
            "coordinates": [
                [13.400, 52.500],
                [13.410, 52.510],
                [13.420, 52.520],
                [13.430, 52.530],
            ],
        },
        "properties": {
            "segments": [
                {
                    "distance": 12345.0,
                    "duration": 600.0,
                    "steps": [
                        {
                            "distance": 8000.0,
                            "duration": 400.0,
                            "instruction": "Head north on Main Street",
                            "name": "Main Street",
                            "way_points": [0, 2],
                        },
                        {
                            "distance": 4345.0,
                            "duration": 200.0,
                            "instruction": "Turn right onto Oak Avenue",
                            "name": "Oak Avenue",
                            "way_points": [2, 3],
                        },
                        {
                            "distance": 0.0,
                            "duration": 0.0,
                            "instruction": "Arrive at Oak Avenue",
                            "name": "-",
                            "way_points": [3, 3],
                        },
                    ],
                }
            ]
        },
    }


@pytest.fixture
def sample_route(ors_feature) -> Route:
    return Route.from_feature(ors_feature)


@pytest.fixture
def two_point_route() -> Route:
    """Diagonal route from (0, 0) to (10, 10), stored as (lon, lat)."""
    return Route(
        geometry=(Coordinate(lon=0.0, lat=0.0), Coordinate(lon=10.0, lat=10.0)),
        steps=(RouteStep(start_index=0, end_index=1, name="Diagonal Road"),),
        total_distance_meters=1500000.0,
        total_duration_seconds=100.0,
    )


@pytest.fixture
def six_point_route() -> Route:
    """Six points split into two steps: [0, 2] and [3, 5]."""
    geometry = tuple(Coordinate(lon=float(i), lat=float(i)) for i in range(6))
    return Route(
        geometry=geometry,
        steps=(
            RouteStep(start_index=0, end_index=2, name="First Street"),
            RouteStep(start_index=3, end_index=5, name="Second Street"),
        ),
        total_distance_meters=5000.0,
        total_duration_seconds=500.0,
    )


# ============================================================
# FIXTURES FOR SERVICES
# ============================================================

class FakeClock:
    """Controllable epoch-milliseconds clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeDirections:
    """Stands in for DirectionsService; returns a fixed route or raises."""

    def __init__(self, route: Optional[Route] = None, error: Optional[Exception] = None):
        self.route = route
        self.error = error
        self.calls: List[tuple] = []
        self.closed = False

    async def get_route(self, from_address: str, to_address: str) -> Route:
        self.calls.append((from_address, to_address))
        if self.error is not None:
            raise self.error
        return self.route

    def get_stats(self) -> Dict[str, int]:
        return {"requests": len(self.calls), "retries": 0, "errors": 0}

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> CourierRegistry:
    return CourierRegistry()


@pytest.fixture
def fake_directions(sample_route) -> FakeDirections:
    return FakeDirections(route=sample_route)


@pytest.fixture
def order_service(registry, fake_directions, clock) -> OrderService:
    return OrderService(
        registry,
        fake_directions,
        speed_multiplier=20,
        clock=clock,
        rng=random.Random(7),
    )
