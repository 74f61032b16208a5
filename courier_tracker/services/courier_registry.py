"""
In-memory registry of simulated couriers.

One instance is created per server process and handed to request handlers;
tests build their own isolated instances.
"""

from __future__ import annotations

import logging
import time
from threading import RLock
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from courier_tracker.exceptions import CourierNotFound
from courier_tracker.models.courier import (
    CourierRecord,
    CourierState,
    Driver,
    SimulationParameters,
)
from courier_tracker.services.position_simulator import (
    PositionSnapshot,
    arrived_snapshot,
    calculate_position,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class CourierRegistry:
    """Thread-safe store of courier records keyed by courier id."""

    def __init__(self, arrived_ttl_seconds: float = 0) -> None:
        self._couriers: Dict[str, CourierRecord] = {}
        self._lock = RLock()
        # 0 or less keeps arrived couriers forever
        self._arrived_ttl_ms = max(0.0, float(arrived_ttl_seconds)) * 1000

    def create(
        self,
        parameters: SimulationParameters,
        driver: Driver,
        start_address: str = "",
        end_address: str = "",
    ) -> CourierRecord:
        courier_id = str(uuid4())
        record = CourierRecord(
            courier_id=courier_id,
            driver=driver,
            start_address=start_address,
            end_address=end_address,
            parameters=parameters,
        )
        with self._lock:
            self._couriers[courier_id] = record
        logger.info(
            f"[Registry] Courier {courier_id} created "
            f"({len(parameters.route.geometry)} points, {parameters.total_duration_ms:.0f} ms)"
        )
        return record

    def get(self, courier_id: str) -> Optional[CourierRecord]:
        with self._lock:
            return self._couriers.get(courier_id)

    def mark_completed(self, courier_id: str, at_ms: Optional[int] = None) -> CourierRecord:
        with self._lock:
            record = self._couriers.get(courier_id)
            if record is None:
                raise CourierNotFound(courier_id)
            if record.arrive(_now_ms() if at_ms is None else at_ms):
                logger.info(f"[Registry] Courier {courier_id} arrived")
            return record

    def locate(self, courier_id: str, now_ms: Optional[int] = None) -> Tuple[CourierRecord, PositionSnapshot]:
        """
        Current snapshot of a courier.

        Arrived couriers get the pinned arrival snapshot without running the
        simulator. The query that first observes full progress performs the
        ACTIVE -> ARRIVED transition and already answers with that snapshot.
        """
        now = _now_ms() if now_ms is None else int(now_ms)
        record = self.get(courier_id)
        if record is None:
            raise CourierNotFound(courier_id)

        if record.state is CourierState.ACTIVE:
            params = record.parameters
            snapshot = calculate_position(
                params.route,
                params.start_time_epoch_ms,
                params.total_duration_ms,
                now,
            )
            if not snapshot.completed:
                return record, snapshot
            self.mark_completed(courier_id, at_ms=now)

        return record, arrived_snapshot(record.route, record.end_address, record.arrived_at_ms)

    def cleanup(self, now_ms: Optional[int] = None) -> List[str]:
        """Evict arrived couriers older than the TTL. No-op when TTL is disabled."""
        if self._arrived_ttl_ms <= 0:
            return []
        now = _now_ms() if now_ms is None else int(now_ms)
        removed: List[str] = []
        with self._lock:
            for courier_id, record in list(self._couriers.items()):
                if record.state is not CourierState.ARRIVED or record.arrived_at_ms is None:
                    continue
                if now - record.arrived_at_ms > self._arrived_ttl_ms:
                    removed.append(courier_id)
                    self._couriers.pop(courier_id, None)
        if removed:
            logger.info(f"[Registry] Evicted {len(removed)} arrived courier(s)")
        return removed

    def stats(self) -> Dict[str, int]:
        with self._lock:
            total = len(self._couriers)
            arrived = sum(1 for r in self._couriers.values() if r.state is CourierState.ARRIVED)
            return {"couriers": total, "active": total - arrived, "arrived": arrived}

    def __len__(self) -> int:
        with self._lock:
            return len(self._couriers)

    def __contains__(self, courier_id: object) -> bool:
        with self._lock:
            return courier_id in self._couriers
