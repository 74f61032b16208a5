"""
Route model: immutable geometry and turn-by-turn steps of a driving route.

Coordinates keep the directions service convention, (longitude, latitude).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from courier_tracker.exceptions import InvalidRouteData


@dataclass(frozen=True)
class Coordinate:
    """A (longitude, latitude) pair of finite floats."""
    lon: float
    lat: float

    def __post_init__(self) -> None:
        for axis in ("lon", "lat"):
            value = getattr(self, axis)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidRouteData(f"Coordinate {axis} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidRouteData(f"Coordinate {axis} must be finite, got {value!r}")

    @classmethod
    def from_lon_lat(cls, pair: Sequence[Any]) -> "Coordinate":
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            raise InvalidRouteData(f"Coordinate must be a [lon, lat] pair, got {pair!r}")
        return cls(lon=pair[0], lat=pair[1])

    def as_lon_lat(self) -> List[float]:
        return [self.lon, self.lat]

    def as_lat_lng(self) -> List[float]:
        return [self.lat, self.lon]


@dataclass(frozen=True)
class RouteStep:
    """One turn-by-turn instruction covering geometry[start_index..end_index]."""
    start_index: int
    end_index: int
    distance_meters: float = 0.0
    duration_seconds: float = 0.0
    instruction: str = ""
    name: str = ""

    def contains(self, index: int) -> bool:
        return self.start_index <= index <= self.end_index


@dataclass(frozen=True)
class Route:
    """
    Already-fetched driving route.

    Construction validates the geometry and the step ranges, so a Route that
    exists is always safe to simulate.
    """
    geometry: Tuple[Coordinate, ...]
    steps: Tuple[RouteStep, ...]
    total_distance_meters: float = 0.0
    total_duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples
        object.__setattr__(self, "geometry", tuple(self.geometry))
        object.__setattr__(self, "steps", tuple(self.steps))
        self._validate()

    def _validate(self) -> None:
        if len(self.geometry) < 2:
            raise InvalidRouteData(
                f"Route geometry needs at least 2 coordinates, got {len(self.geometry)}"
            )
        if not self.steps:
            raise InvalidRouteData("Route has no steps")

        last_index = len(self.geometry) - 1
        previous: Optional[RouteStep] = None
        for position, step in enumerate(self.steps):
            if not (0 <= step.start_index <= step.end_index <= last_index):
                raise InvalidRouteData(
                    f"Step {position} range [{step.start_index}, {step.end_index}] "
                    f"is outside geometry bounds [0, {last_index}]"
                )
            if previous is not None:
                if step.start_index < previous.start_index:
                    raise InvalidRouteData(f"Step {position} starts before the previous step")
                if step.start_index > previous.end_index + 1:
                    raise InvalidRouteData(
                        f"Gap between step {position - 1} and step {position}"
                    )
            previous = step

        if self.steps[0].start_index != 0:
            raise InvalidRouteData("First step must start at coordinate 0")
        if max(step.end_index for step in self.steps) != last_index:
            raise InvalidRouteData(f"Steps must reach the last coordinate ({last_index})")

        for label, value in (
            ("total_distance_meters", self.total_distance_meters),
            ("total_duration_seconds", self.total_duration_seconds),
        ):
            if not math.isfinite(value) or value < 0:
                raise InvalidRouteData(f"Route {label} must be a non-negative number")

    @property
    def origin(self) -> Coordinate:
        return self.geometry[0]

    @property
    def destination(self) -> Coordinate:
        return self.geometry[-1]

    def step_containing(self, index: int) -> Optional[RouteStep]:
        """First step, in step order, whose inclusive range holds `index`."""
        for step in self.steps:
            if step.contains(index):
                return step
        return None

    def coordinates_for_step(self, step: RouteStep) -> Tuple[Coordinate, ...]:
        return self.geometry[step.start_index:step.end_index + 1]

    @classmethod
    def from_feature(cls, feature: Dict[str, Any]) -> "Route":
        """
        Build a Route from an OpenRouteService GeoJSON feature.

        Only the first segment is used; multi-waypoint routes are not requested.
        """
        try:
            raw_coordinates = feature["geometry"]["coordinates"]
            segment = feature["properties"]["segments"][0]
            raw_steps = segment["steps"]
        except (KeyError, IndexError, TypeError) as exc:
            raise InvalidRouteData(f"Directions feature is missing {exc}") from exc

        if not isinstance(raw_coordinates, list) or not isinstance(raw_steps, list):
            raise InvalidRouteData("Directions feature has malformed geometry or steps")

        geometry = [Coordinate.from_lon_lat(pair) for pair in raw_coordinates]
        steps = [_parse_step(raw, position) for position, raw in enumerate(raw_steps)]

        return cls(
            geometry=tuple(geometry),
            steps=tuple(steps),
            total_distance_meters=_as_float(segment.get("distance", 0.0), "distance"),
            total_duration_seconds=_as_float(segment.get("duration", 0.0), "duration"),
        )


def _as_float(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise InvalidRouteData(f"{label} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRouteData(f"{label} must be a number, got {value!r}") from exc


def _parse_step(raw: Any, position: int) -> RouteStep:
    if not isinstance(raw, dict):
        raise InvalidRouteData(f"Step {position} is not an object")
    way_points = raw.get("way_points")
    if (
        not isinstance(way_points, (list, tuple))
        or len(way_points) != 2
        or not all(isinstance(i, int) and not isinstance(i, bool) for i in way_points)
    ):
        raise InvalidRouteData(f"Step {position} has invalid way_points {way_points!r}")

    return RouteStep(
        start_index=way_points[0],
        end_index=way_points[1],
        distance_meters=_as_float(raw.get("distance", 0.0), "step distance"),
        duration_seconds=_as_float(raw.get("duration", 0.0), "step duration"),
        instruction=str(raw.get("instruction") or ""),
        name=str(raw.get("name") or ""),
    )
