"""
System Adapters

HTTP clients for the two backend systems of record: OMS (shipments) and
Dispatch (routing). Only the orchestrator calls their write methods.
"""

from resolution.clients.base_client import BaseClient
from resolution.clients.dispatch_client import DispatchClient
from resolution.clients.oms_client import OMSClient

__all__ = ["BaseClient", "DispatchClient", "OMSClient"]
