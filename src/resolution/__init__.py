"""
Delivery Control Resolution Core

Decides whether a customer-requested change to a shipment is allowed,
commits allowed changes to OMS and Dispatch, and records one evidence
packet per attempt.

Usage:
    from resolution import execute_action, RescheduleAction, TimeWindow

    result = execute_action(RescheduleAction(new_window=window), "SHP-1001")
    if not result.success:
        explain(result.denial_reason or result.error)
"""

from typing import List, Optional

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
    ShipmentSnapshot,
    TimeWindow,
    UpdateInstructionsAction,
    UpdateLocationAction,
)
from resolution.errors import (
    ExecutionError,
    ResolutionError,
    ValidationError,
)
from resolution.orchestration import ActionOrchestrator, execute_action, get_default_orchestrator
from resolution.policy.engine import evaluate, get_allowed_actions, validate_action


def list_evidence(shipment_id: str, orchestrator: Optional[ActionOrchestrator] = None) -> List[EvidenceRecord]:
    """Evidence for a shipment, oldest first."""
    orchestrator = orchestrator or get_default_orchestrator()
    return orchestrator.ledger.list_by_shipment(shipment_id)


def get_evidence(evidence_id: str, orchestrator: Optional[ActionOrchestrator] = None) -> Optional[EvidenceRecord]:
    orchestrator = orchestrator or get_default_orchestrator()
    return orchestrator.ledger.get_by_id(evidence_id)


__all__ = [
    "Action",
    "ActionOrchestrator",
    "ActionResult",
    "ActionType",
    "Address",
    "EvidenceRecord",
    "ExecutionError",
    "GeoPin",
    "Outcome",
    "PolicyConfig",
    "PolicyDecision",
    "RescheduleAction",
    "ResolutionError",
    "ShipmentSnapshot",
    "TimeWindow",
    "UpdateInstructionsAction",
    "UpdateLocationAction",
    "ValidationError",
    "evaluate",
    "execute_action",
    "get_allowed_actions",
    "get_evidence",
    "list_evidence",
    "validate_action",
]
