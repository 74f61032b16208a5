"""
Courier records kept by the registry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from courier_tracker.exceptions import InvalidDuration
from courier_tracker.models.route import Route


def validate_duration(total_duration_ms: float) -> None:
    if isinstance(total_duration_ms, bool) or not isinstance(total_duration_ms, (int, float)):
        raise InvalidDuration(f"Simulated duration must be a number, got {total_duration_ms!r}")
    if not math.isfinite(total_duration_ms) or total_duration_ms <= 0:
        raise InvalidDuration(
            f"Simulated duration must be positive and finite, got {total_duration_ms!r} ms"
        )


class CourierState(str, Enum):
    """Delivery lifecycle. The only transition is ACTIVE -> ARRIVED."""
    ACTIVE = "active"
    ARRIVED = "arrived"


@dataclass(frozen=True)
class Driver:
    name: str
    license_plate: str


@dataclass(frozen=True)
class SimulationParameters:
    """Inputs of the position simulator for one courier."""
    route: Route
    start_time_epoch_ms: int
    total_duration_ms: float

    def __post_init__(self) -> None:
        validate_duration(self.total_duration_ms)


@dataclass
class CourierRecord:
    courier_id: str
    driver: Driver
    start_address: str
    end_address: str
    parameters: SimulationParameters
    state: CourierState = CourierState.ACTIVE
    arrived_at_ms: Optional[int] = None
    created_at_ms: int = field(default=0)

    def __post_init__(self) -> None:
        if not self.created_at_ms:
            self.created_at_ms = self.parameters.start_time_epoch_ms

    @property
    def route(self) -> Route:
        return self.parameters.route

    @property
    def completed(self) -> bool:
        return self.state is CourierState.ARRIVED

    def arrive(self, at_ms: int) -> bool:
        """Apply ACTIVE -> ARRIVED. Returns False when already arrived."""
        if self.state is CourierState.ARRIVED:
            return False
        self.state = CourierState.ARRIVED
        self.arrived_at_ms = int(at_ms)
        return True
