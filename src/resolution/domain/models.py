"""
Domain Types

Shared value types for the resolution core: shipment snapshots, the action
union, policy configuration and the records produced by orchestration.

No behavior beyond (de)serialization; everything else depends on these.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from resolution.domain.clock import format_datetime, parse_datetime, parse_optional_datetime
from resolution.errors import ValidationError


class ActionType(str, Enum):
    RESCHEDULE = "RESCHEDULE"
    UPDATE_INSTRUCTIONS = "UPDATE_INSTRUCTIONS"
    UPDATE_LOCATION = "UPDATE_LOCATION"


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SystemName(str, Enum):
    OMS = "OMS"
    DISPATCH = "DISPATCH"


class Outcome(str, Enum):
    """Classification of an orchestration attempt, stored with its evidence."""
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    POLICY_DENIED = "POLICY_DENIED"
    EXECUTION_ERROR = "EXECUTION_ERROR"


@dataclass(frozen=True)
class GeoPin:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"start": format_datetime(self.start), "end": format_datetime(self.end)}


@dataclass(frozen=True)
class Address:
    text: str
    text_ar: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        if self.text_ar:
            data["text_ar"] = self.text_ar
        return data


@dataclass(frozen=True)
class ShipmentSnapshot:
    """
    Immutable read of a shipment at a point in time.

    Built fresh on every orchestration from the OMS record plus the Dispatch
    route-lock flag. Never cached across calls.
    """
    shipment_id: str
    status: str
    eta: datetime
    window: TimeWindow
    geo_pin: GeoPin
    address: Address
    contact_phone_masked: str
    risk_tier: RiskTier
    route_locked: bool
    instructions: Optional[str] = None
    package_content: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "shipment_id": self.shipment_id,
            "status": self.status,
            "eta": format_datetime(self.eta),
            "window": self.window.to_dict(),
            "geo_pin": self.geo_pin.to_dict(),
            "address": self.address.to_dict(),
            "contact_phone_masked": self.contact_phone_masked,
            "risk_tier": self.risk_tier.value,
            "route_locked": self.route_locked,
        }
        if self.instructions is not None:
            data["instructions"] = self.instructions
        if self.package_content is not None:
            data["package_content"] = self.package_content
        return data


# ---------------------------------------------------------------------------
# Action union
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RescheduleAction:
    new_window: TimeWindow

    @property
    def action_type(self) -> ActionType:
        return ActionType.RESCHEDULE

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.action_type.value, "new_window": self.new_window.to_dict()}


@dataclass(frozen=True)
class UpdateInstructionsAction:
    instructions: str

    @property
    def action_type(self) -> ActionType:
        return ActionType.UPDATE_INSTRUCTIONS

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.action_type.value, "instructions": self.instructions}


@dataclass(frozen=True)
class UpdateLocationAction:
    geo_pin: GeoPin
    address: Optional[Address] = None

    @property
    def action_type(self) -> ActionType:
        return ActionType.UPDATE_LOCATION

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.action_type.value, "geo_pin": self.geo_pin.to_dict()}
        if self.address is not None:
            payload["address"] = self.address.to_dict()
        return payload


Action = Union[RescheduleAction, UpdateInstructionsAction, UpdateLocationAction]


def action_from_payload(payload: Dict[str, Any]) -> Action:
    """
    Build an action from its wire shape ({"type": ..., ...}).

    Raises:
        ValidationError: On unknown type or missing/unparseable fields
    """
    if not isinstance(payload, dict):
        raise ValidationError("Action payload must be an object")
    action_type = payload.get("type")
    try:
        if action_type == ActionType.RESCHEDULE.value:
            window = payload["new_window"]
            return RescheduleAction(
                new_window=TimeWindow(
                    start=parse_datetime(window["start"]),
                    end=parse_datetime(window["end"]),
                )
            )
        if action_type == ActionType.UPDATE_INSTRUCTIONS.value:
            return UpdateInstructionsAction(instructions=str(payload["instructions"]))
        if action_type == ActionType.UPDATE_LOCATION.value:
            pin = payload["geo_pin"]
            address = payload.get("address")
            return UpdateLocationAction(
                geo_pin=GeoPin(lat=float(pin["lat"]), lng=float(pin["lng"])),
                address=Address(text=address["text"], text_ar=address.get("text_ar")) if address else None,
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed {action_type} action: {e}") from e
    raise ValidationError(f"Unknown action type: {action_type!r}")


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

DEFAULT_RESCHEDULE_CUTOFF_MINUTES = 120
DEFAULT_MAX_GEO_MOVE_METERS = 250.0
DEFAULT_TRUST_THRESHOLD_LOCATION = 0.8
DEFAULT_MAX_CONTENT_MULTIPLIER = 0.0


@dataclass(frozen=True)
class PolicyConfig:
    """
    Versioned policy configuration, read once per orchestration attempt.

    trust_threshold_location is advisory only. max_content_multiplier of 0
    disables content-modification requests entirely.
    """
    reschedule_cutoff_minutes: int = DEFAULT_RESCHEDULE_CUTOFF_MINUTES
    max_geo_move_meters: float = DEFAULT_MAX_GEO_MOVE_METERS
    trust_threshold_location: float = DEFAULT_TRUST_THRESHOLD_LOCATION
    max_content_multiplier: float = DEFAULT_MAX_CONTENT_MULTIPLIER
    version: int = 0
    updated_at: Optional[datetime] = None

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "reschedule_cutoff_minutes": self.reschedule_cutoff_minutes,
            "max_geo_move_meters": self.max_geo_move_meters,
            "trust_threshold_location": self.trust_threshold_location,
            "max_content_multiplier": self.max_content_multiplier,
            "version": self.version,
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyConfig":
        return cls(
            reschedule_cutoff_minutes=int(data.get("reschedule_cutoff_minutes", DEFAULT_RESCHEDULE_CUTOFF_MINUTES)),
            max_geo_move_meters=float(data.get("max_geo_move_meters", DEFAULT_MAX_GEO_MOVE_METERS)),
            trust_threshold_location=float(data.get("trust_threshold_location", DEFAULT_TRUST_THRESHOLD_LOCATION)),
            max_content_multiplier=float(data.get("max_content_multiplier", DEFAULT_MAX_CONTENT_MULTIPLIER)),
            version=int(data.get("version", 0)),
            updated_at=parse_optional_datetime(data.get("updated_at")),
        )


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    allowed_actions: List[ActionType]
    policy_snapshot: Dict[str, Any]
    denial_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Orchestration records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SystemWrite:
    """Receipt for one physical write attempt, successful or not."""
    system: SystemName
    operation: str
    timestamp: datetime
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "system": self.system.value,
            "operation": self.operation,
            "timestamp": format_datetime(self.timestamp),
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemWrite":
        return cls(
            system=SystemName(data["system"]),
            operation=data["operation"],
            timestamp=parse_datetime(data["timestamp"]),
            success=bool(data["success"]),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class EvidenceRecord:
    """
    One immutable audit row per orchestration attempt.

    before_state, requested_state and after_state are opaque payloads; the
    ledger never interprets them. evidence_id and created_at are assigned by
    the ledger at append time. hash_prev/hash_self are reserved and unset.
    """
    shipment_id: str
    action_type: str
    trust_method: str
    trust_confidence: float
    policy_snapshot: Dict[str, Any]
    before_state: Dict[str, Any]
    requested_state: Dict[str, Any]
    system_writes: List[SystemWrite]
    after_state: Dict[str, Any]
    outcome: Outcome
    outcome_detail: Optional[str] = None
    evidence_id: Optional[str] = None
    created_at: Optional[datetime] = None
    hash_prev: Optional[str] = None
    hash_self: Optional[str] = None


@dataclass(frozen=True)
class ActionResult:
    success: bool
    outcome: Outcome
    evidence_id: Optional[str] = None
    error: Optional[str] = None
    denial_reason: Optional[str] = None
    allowed_actions: List[ActionType] = field(default_factory=list)


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime
    available: bool = True
