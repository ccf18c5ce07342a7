"""
Policy Engine

Pure rule evaluation: (shipment snapshot, requested action, policy config)
-> PolicyDecision. No I/O, no store access, no ambient clock reads beyond
the optional `now` argument.

Policy rules:
1. UPDATE_INSTRUCTIONS is always allowed (lowest-risk action class).
2. UPDATE_LOCATION is allowed while the route is not locked, and only for
   moves of at most max_geo_move_meters from the current pin.
3. RESCHEDULE is allowed while the route is not locked and the ETA is
   strictly more than reschedule_cutoff_minutes away.
"""

import logging
from datetime import datetime
from typing import List, Optional

from resolution.domain.clock import utcnow
from resolution.domain.models import (
    Action,
    ActionType,
    PolicyConfig,
    PolicyDecision,
    RescheduleAction,
    ShipmentSnapshot,
    UpdateInstructionsAction,
    UpdateLocationAction,
)
from resolution.domain.normalize import geo_distance_meters, minutes_until

logger = logging.getLogger(__name__)


def get_allowed_actions(
    shipment: ShipmentSnapshot,
    config: PolicyConfig,
    now: Optional[datetime] = None
) -> List[ActionType]:
    """
    Compute every action kind permitted for this shipment under current policy.

    Independent of any requested action, so callers can avoid proposing
    actions already known to fail.
    """
    if now is None:
        now = utcnow()

    allowed = [ActionType.UPDATE_INSTRUCTIONS]

    if not shipment.route_locked:
        allowed.append(ActionType.UPDATE_LOCATION)

    if not shipment.route_locked and minutes_until(shipment.eta, now) > config.reschedule_cutoff_minutes:
        allowed.append(ActionType.RESCHEDULE)

    return allowed


def evaluate(
    shipment: ShipmentSnapshot,
    action: Action,
    config: PolicyConfig,
    now: Optional[datetime] = None
) -> PolicyDecision:
    """
    Decide whether the requested action is allowed.

    Args:
        shipment: Current shipment snapshot
        action: Requested action
        config: Policy configuration read for this attempt
        now: Evaluation instant (defaults to current UTC time)

    Returns:
        PolicyDecision with the complete allowed_actions set, the verbatim
        policy snapshot and, when denied, a specific denial reason
    """
    if now is None:
        now = utcnow()

    allowed_actions = get_allowed_actions(shipment, config, now)
    allowed = action.action_type in allowed_actions

    if allowed and isinstance(action, UpdateLocationAction):
        allowed = geo_distance_meters(shipment.geo_pin, action.geo_pin) <= config.max_geo_move_meters

    denial_reason = None
    if not allowed:
        denial_reason = _denial_reason(shipment, action, config, now)

    return PolicyDecision(
        allowed=allowed,
        allowed_actions=allowed_actions,
        policy_snapshot=config.to_snapshot(),
        denial_reason=denial_reason,
    )


def _denial_reason(
    shipment: ShipmentSnapshot,
    action: Action,
    config: PolicyConfig,
    now: datetime
) -> str:
    """Re-check the exact failing predicate for the requested kind."""
    if isinstance(action, RescheduleAction):
        if shipment.route_locked:
            return "Route is locked - driver already in motion"
        remaining = minutes_until(shipment.eta, now)
        if remaining <= config.reschedule_cutoff_minutes:
            return (
                f"Reschedule cutoff exceeded. Need {config.reschedule_cutoff_minutes} minutes, "
                f"only {remaining} remaining"
            )
        return "Reschedule not allowed"

    if isinstance(action, UpdateLocationAction):
        if shipment.route_locked:
            return "Route is locked - cannot update location"
        distance = geo_distance_meters(shipment.geo_pin, action.geo_pin)
        if distance > config.max_geo_move_meters:
            return (
                f"Location change exceeds policy limit. Max: {round(config.max_geo_move_meters)}m, "
                f"requested: {round(distance)}m"
            )
        return "Location update not allowed"

    if isinstance(action, UpdateInstructionsAction):
        return "Instruction update not allowed"

    raise TypeError(f"Unsupported action: {type(action).__name__}")


def _is_aware(value) -> bool:
    return isinstance(value, datetime) and value.utcoffset() is not None


def validate_action(
    shipment: ShipmentSnapshot,
    action: Action,
    now: Optional[datetime] = None
) -> Optional[str]:
    """
    Structural and temporal sanity checks, independent of policy.

    Returns:
        Error message for a malformed request, or None if the action is well-formed
    """
    if now is None:
        now = utcnow()

    if isinstance(action, RescheduleAction):
        if not all(_is_aware(t) for t in (action.new_window.start, action.new_window.end)):
            return "Window start and end must be timezone-aware datetimes"
        if action.new_window.start < now:
            return "Cannot reschedule to a time in the past"
        if action.new_window.end <= action.new_window.start:
            return "Window end must be after window start"
        return None

    if isinstance(action, UpdateLocationAction):
        pin = action.geo_pin
        if not (-90 <= pin.lat <= 90) or not (-180 <= pin.lng <= 180):
            return "Invalid coordinates"
        return None

    if isinstance(action, UpdateInstructionsAction):
        if not action.instructions or not action.instructions.strip():
            return "Instructions cannot be empty"
        return None

    raise TypeError(f"Unsupported action: {type(action).__name__}")
