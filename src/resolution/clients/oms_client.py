"""
OMS API Client

Thin HTTP client for the Order/Shipment management system of record.
"""

import logging
from typing import Any, Dict, Optional

from resolution.clients.base_client import BaseClient
from resolution.domain.models import Address, GeoPin, TimeWindow
from resolution.errors import ShipmentNotFound

logger = logging.getLogger(__name__)


class OMSClient(BaseClient):
    """HTTP client for the OMS shipment API."""

    system_name = "OMS"

    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0, transport=None):
        """
        Initialize OMS client.

        Args:
            base_url: API base URL. Defaults to OMS_API_BASE_URL env var.
            timeout: Per-request timeout in seconds
        """
        super().__init__(
            base_url=base_url,
            env_var="OMS_API_BASE_URL",
            default_url="http://localhost:4000",
            timeout=timeout,
            transport=transport
        )

    def get_shipment(self, shipment_id: str) -> Dict[str, Any]:
        """
        Get the raw shipment record.

        Returns:
            Shipment data as dict

        Raises:
            ShipmentNotFound: If the OMS has no such shipment (404)
            UpstreamError: On network failures or HTTP errors
        """
        data = self._request_allow_404("GET", f"/api/oms/shipments/{shipment_id}")
        if data is None:
            raise ShipmentNotFound(shipment_id)
        return data.get("shipment", data)

    def update_window(self, shipment_id: str, window: TimeWindow) -> None:
        """Replace the delivery window."""
        logger.debug(f"OMS update_window {shipment_id}: {window.to_dict()}")
        self._request("PATCH", f"/api/oms/shipments/{shipment_id}/window", json=window.to_dict())

    def update_instructions(self, shipment_id: str, instructions: str) -> None:
        """Replace the free-text delivery instructions."""
        self._request(
            "PATCH",
            f"/api/oms/shipments/{shipment_id}/instructions",
            json={"instructions": instructions},
        )

    def update_location(self, shipment_id: str, geo: GeoPin, address: Optional[Address] = None) -> None:
        """Move the delivery pin, optionally replacing the address text."""
        payload: Dict[str, Any] = {"geo_pin": geo.to_dict()}
        if address is not None:
            payload["address"] = address.to_dict()
        self._request("PATCH", f"/api/oms/shipments/{shipment_id}/location", json=payload)
