"""
Position simulator for couriers travelling along a route.

Pure functions: the courier's position is derived from the route, the start
instant, the simulated duration and the query instant. Nothing is stored.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from courier_tracker.exceptions import EmptyRoute
from courier_tracker.models.courier import validate_duration
from courier_tracker.models.route import Coordinate, Route

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
ARRIVED_TIME_LEFT = "0 minutes"


@dataclass(frozen=True)
class PositionSnapshot:
    """Point-in-time description of a simulated courier."""
    lat: float
    lng: float
    progress: int
    current_step: int
    total_steps: int
    address: Optional[str]
    time_left: str
    status: str
    timestamp: int

    @property
    def completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike round() which rounds to even."""
    return int(math.floor(value + 0.5))


def interpolate_position(start: Coordinate, end: Coordinate, fraction: float) -> Dict[str, float]:
    """Linear interpolation between two (lon, lat) coordinates, as {lat, lng}."""
    return {
        "lat": start.lat + (end.lat - start.lat) * fraction,
        "lng": start.lon + (end.lon - start.lon) * fraction,
    }


def format_time_left(seconds: float) -> str:
    if seconds < 60:
        return f"{round_half_up(seconds)} seconds"
    return f"{round_half_up(seconds / 60)} minutes"


def progress_fraction(start_time_ms: float, total_duration_ms: float, now_ms: float) -> float:
    validate_duration(total_duration_ms)
    elapsed = now_ms - start_time_ms
    return min(max(elapsed / total_duration_ms, 0.0), 1.0)


def calculate_position(
    route: Route,
    start_time_ms: float,
    total_duration_ms: float,
    now_ms: float,
) -> PositionSnapshot:
    """
    Compute the courier's snapshot at `now_ms`.

    Progress is distributed evenly over geometry points, not over distance:
    each coordinate gap takes the same share of the simulated duration.

    `current_step` and `total_steps` count geometry points rather than route
    steps. Clients already display them that way.
    """
    fraction = progress_fraction(start_time_ms, total_duration_ms, now_ms)

    coordinates: List[Coordinate] = list(route.geometry)
    total_points = len(coordinates)
    if total_points < 2:
        raise EmptyRoute(f"Cannot simulate a route with {total_points} coordinate(s)")

    path_position = fraction * (total_points - 1)
    current_index = min(max(int(math.floor(path_position)), 0), total_points - 1)
    next_index = min(current_index + 1, total_points - 1)
    segment_fraction = path_position - current_index

    if fraction >= 1:
        last = coordinates[-1]
        position = {"lat": last.lat, "lng": last.lon}
    else:
        position = interpolate_position(
            coordinates[current_index], coordinates[next_index], segment_fraction
        )

    active_step = route.step_containing(current_index)
    address = active_step.name if active_step is not None and active_step.name else None

    elapsed = now_ms - start_time_ms
    remaining_ms = max(0.0, total_duration_ms - elapsed)

    return PositionSnapshot(
        lat=position["lat"],
        lng=position["lng"],
        progress=round_half_up(fraction * 100),
        current_step=current_index + 1,
        total_steps=total_points,
        address=address,
        time_left=format_time_left(remaining_ms / 1000),
        status=STATUS_COMPLETED if fraction >= 1 else STATUS_IN_PROGRESS,
        timestamp=int(now_ms),
    )


def arrived_snapshot(
    route: Route,
    destination_label: Optional[str],
    arrived_at_ms: float,
) -> PositionSnapshot:
    """Fixed snapshot returned once a courier has arrived, whatever the clock says."""
    total_points = len(route.geometry)
    if total_points < 2:
        raise EmptyRoute(f"Cannot simulate a route with {total_points} coordinate(s)")
    last = route.geometry[-1]
    return PositionSnapshot(
        lat=last.lat,
        lng=last.lon,
        progress=100,
        current_step=total_points,
        total_steps=total_points,
        address=destination_label or None,
        time_left=ARRIVED_TIME_LEFT,
        status=STATUS_COMPLETED,
        timestamp=int(arrived_at_ms),
    )
