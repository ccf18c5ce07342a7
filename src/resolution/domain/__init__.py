"""
Domain Model

Shared value types for the resolution core. No I/O.
"""

from resolution.domain.models import (
    Action,
    ActionResult,
    ActionType,
    Address,
    EvidenceRecord,
    GeoPin,
    Outcome,
    PolicyConfig,
    PolicyDecision,
    RescheduleAction,
    RiskTier,
    ShipmentSnapshot,
    SystemName,
    SystemWrite,
    TimeSlot,
    TimeWindow,
    UpdateInstructionsAction,
    UpdateLocationAction,
    action_from_payload,
)
from resolution.domain.normalize import geo_distance_meters, minutes_until, normalize_shipment

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "Address",
    "EvidenceRecord",
    "GeoPin",
    "Outcome",
    "PolicyConfig",
    "PolicyDecision",
    "RescheduleAction",
    "RiskTier",
    "ShipmentSnapshot",
    "SystemName",
    "SystemWrite",
    "TimeSlot",
    "TimeWindow",
    "UpdateInstructionsAction",
    "UpdateLocationAction",
    "action_from_payload",
    "geo_distance_meters",
    "minutes_until",
    "normalize_shipment",
]
