"""
In-Memory Execution Backend

Deterministic OMS and Dispatch stand-ins sharing one shipment table.
Never calls external APIs. Used when CORE_EXECUTION_MODE=test and by tests.

Implements the same interface as OMSClient / DispatchClient, plus hooks to
lock routes and inject write failures.
"""

import copy
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

from resolution.domain.clock import format_datetime, utcnow
from resolution.domain.models import Address, GeoPin, TimeSlot, TimeWindow
from resolution.errors import ShipmentNotFound, UpstreamError

logger = logging.getLogger(__name__)

SLOT_COUNT = 4
SLOT_HOURS = 2
FIRST_SLOT_HOUR = 9


class ShipmentTable:
    """Thread-safe table of raw shipment records keyed by shipment_id."""

    def __init__(self):
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def seed(self, record: Dict[str, Any]) -> None:
        with self._lock:
            self._rows[record["shipment_id"]] = copy.deepcopy(record)

    def read(self, shipment_id: str) -> Dict[str, Any]:
        with self._lock:
            row = self._rows.get(shipment_id)
            if row is None:
                raise ShipmentNotFound(shipment_id)
            return copy.deepcopy(row)

    def write(self, shipment_id: str, changes: Dict[str, Any]) -> None:
        with self._lock:
            row = self._rows.get(shipment_id)
            if row is None:
                raise ShipmentNotFound(shipment_id)
            row.update(changes)

    def exists(self, shipment_id: str) -> bool:
        with self._lock:
            return shipment_id in self._rows


class _FailureInjection:
    def __init__(self):
        self._failures: Dict[str, Exception] = {}

    def fail_on(self, operation: str, error: Optional[Exception] = None) -> None:
        """Make every call to `operation` raise until cleared."""
        self._failures[operation] = error or UpstreamError(f"Injected failure in {operation}")

    def clear_failures(self) -> None:
        self._failures.clear()

    def _check(self, operation: str) -> None:
        error = self._failures.get(operation)
        if error is not None:
            raise error


class InMemoryOMS(_FailureInjection):
    """OMS stand-in writing straight to the shared shipment table."""

    def __init__(self, table: ShipmentTable):
        super().__init__()
        self.table = table

    def get_shipment(self, shipment_id: str) -> Dict[str, Any]:
        self._check("get_shipment")
        return self.table.read(shipment_id)

    def update_window(self, shipment_id: str, window: TimeWindow) -> None:
        self._check("update_window")
        self.table.write(shipment_id, {
            "window_start": format_datetime(window.start),
            "window_end": format_datetime(window.end),
        })

    def update_instructions(self, shipment_id: str, instructions: str) -> None:
        self._check("update_instructions")
        self.table.write(shipment_id, {"instructions": instructions})

    def update_location(self, shipment_id: str, geo: GeoPin, address: Optional[Address] = None) -> None:
        self._check("update_location")
        changes: Dict[str, Any] = {"geo_lat": geo.lat, "geo_lng": geo.lng}
        if address is not None:
            changes["address_text"] = address.text
            if address.text_ar:
                changes["address_text_ar"] = address.text_ar
        self.table.write(shipment_id, changes)


class InMemoryDispatch(_FailureInjection):
    """
    Dispatch stand-in.

    Stop updates are validated against the shared table but not persisted
    separately; the OMS write carries the change. Route locks are toggled
    explicitly with lock_route / unlock_route.
    """

    def __init__(self, table: ShipmentTable, clock: Optional[Callable[[], datetime]] = None):
        super().__init__()
        self.table = table
        self._locked: Set[str] = set()
        self._clock = clock or utcnow
        self.stop_updates: List[Dict[str, Any]] = []

    def lock_route(self, shipment_id: str) -> None:
        self._locked.add(shipment_id)

    def unlock_route(self, shipment_id: str) -> None:
        self._locked.discard(shipment_id)

    def is_route_locked(self, shipment_id: str) -> bool:
        self._check("is_route_locked")
        return shipment_id in self._locked

    def update_stop(
        self,
        shipment_id: str,
        window: Optional[TimeWindow] = None,
        geo: Optional[GeoPin] = None,
        address: Optional[Address] = None,
        instructions: Optional[str] = None,
    ) -> None:
        self._check("update_stop")
        if not self.table.exists(shipment_id):
            raise UpstreamError(f"Shipment {shipment_id} not found in dispatch system")
        self.stop_updates.append({
            "shipment_id": shipment_id,
            "window": window,
            "geo": geo,
            "address": address,
            "instructions": instructions,
        })

    def get_available_slots(self, shipment_id: str) -> List[TimeSlot]:
        """Four two-hour slots tomorrow, 09:00-17:00 UTC."""
        self._check("get_available_slots")
        if not self.table.exists(shipment_id):
            raise ShipmentNotFound(shipment_id)

        tomorrow = (self._clock() + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        slots = []
        for i in range(SLOT_COUNT):
            start = tomorrow + timedelta(hours=FIRST_SLOT_HOUR + i * SLOT_HOURS)
            slots.append(TimeSlot(start=start, end=start + timedelta(hours=SLOT_HOURS), available=True))
        return slots


class InMemoryExecutionBackend:
    """Shared shipment table plus the OMS and Dispatch stand-ins built on it."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.table = ShipmentTable()
        self.oms = InMemoryOMS(self.table)
        self.dispatch = InMemoryDispatch(self.table, clock=clock)

    def seed_shipment(self, record: Dict[str, Any], route_locked: bool = False) -> None:
        self.table.seed(record)
        if route_locked:
            self.dispatch.lock_route(record["shipment_id"])
        logger.debug(f"[TEST MODE] Seeded shipment {record['shipment_id']} (route_locked={route_locked})")
