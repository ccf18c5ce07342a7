"""
Dispatch API Client

Thin HTTP client for the Dispatch/Routing service.
"""

from typing import Any, Dict, List, Optional

from resolution.clients.base_client import BaseClient
from resolution.domain.clock import parse_datetime
from resolution.domain.models import Address, GeoPin, TimeSlot, TimeWindow
from resolution.errors import UpstreamError


class DispatchClient(BaseClient):
    """HTTP client for the Dispatch stop/route API."""

    system_name = "DISPATCH"

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0, transport=None):
        """
        Initialize Dispatch client.

        Args:
            base_url: API base URL. Defaults to DISPATCH_API_BASE_URL env var.
            timeout: Per-request timeout in seconds
        """
        super().__init__(
            base_url=base_url,
            env_var="DISPATCH_API_BASE_URL",
            default_url="http://localhost:4100",
            timeout=timeout,
            transport=transport
        )

    def is_route_locked(self, shipment_id: str) -> bool:
        """
        Whether a driver is already committed to the current plan for this stop.

        Raises:
            UpstreamError: On failures or a response without route_locked
        """
        data = self._request("GET", f"/api/dispatch/stops/{shipment_id}/lock")
        if "route_locked" not in data:
            raise UpstreamError(f"DISPATCH lock response for {shipment_id} missing route_locked")
        return bool(data["route_locked"])

    def update_stop(
        self,
        shipment_id: str,
        window: Optional[TimeWindow] = None,
        geo: Optional[GeoPin] = None,
        address: Optional[Address] = None,
        instructions: Optional[str] = None,
    ) -> None:
        """Update the stop's window and/or location; only provided fields are sent."""
        payload: Dict[str, Any] = {}
        if window is not None:
            payload["window"] = window.to_dict()
        if geo is not None:
            payload["geo"] = geo.to_dict()
        if address is not None:
            payload["address"] = address.to_dict()
        if instructions is not None:
            payload["instructions"] = instructions
        if not payload:
            raise ValueError("update_stop requires at least one field")
        self._request("PATCH", f"/api/dispatch/stops/{shipment_id}", json=payload)

    def get_available_slots(self, shipment_id: str) -> List[TimeSlot]:
        """Ordered delivery slots the stop can be moved to."""
        data = self._request("GET", f"/api/dispatch/stops/{shipment_id}/slots")
        slots = [
            TimeSlot(
                start=parse_datetime(s["start"]),
                end=parse_datetime(s["end"]),
                available=bool(s.get("available", True)),
            )
            for s in data.get("slots", [])
        ]
        return sorted(slots, key=lambda s: s.start)
