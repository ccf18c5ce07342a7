"""
Tests for the policy engine.

Covers the allow/deny rules, cutoff and distance boundaries, purity and
action validation.
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from resolution.domain.models import (
    ActionType,
    Address,
    GeoPin,
    PolicyConfig,
    RescheduleAction,
    TimeWindow,
    UpdateInstructionsAction,
    UpdateLocationAction,
)
from resolution.domain.normalize import geo_distance_meters
from resolution.policy.engine import evaluate, get_allowed_actions, validate_action

CONFIG = PolicyConfig(version=1)


def _reschedule(now, hours_ahead=24):
    start = now + timedelta(hours=hours_ahead)
    return RescheduleAction(new_window=TimeWindow(start=start, end=start + timedelta(hours=2)))


def test_reschedule_allowed_when_eta_beyond_cutoff(make_shipment, now):
    """Test that a reschedule 4 hours before ETA is allowed with a 120 minute cutoff."""
    shipment = make_shipment(eta_minutes=240)

    decision = evaluate(shipment, _reschedule(now), CONFIG, now=now)

    assert decision.allowed is True
    assert decision.denial_reason is None
    assert ActionType.RESCHEDULE in decision.allowed_actions
    assert decision.policy_snapshot == CONFIG.to_snapshot()


def test_route_lock_denies_reschedule_and_location(make_shipment, now):
    """Test that a locked route denies reschedule and location changes but not instructions."""
    shipment = make_shipment(route_locked=True)

    reschedule = evaluate(shipment, _reschedule(now), CONFIG, now=now)
    location = evaluate(shipment, UpdateLocationAction(geo_pin=GeoPin(25.2049, 55.2708)), CONFIG, now=now)
    instructions = evaluate(shipment, UpdateInstructionsAction("Leave with the concierge"), CONFIG, now=now)

    assert reschedule.allowed is False
    assert "Route is locked" in reschedule.denial_reason
    assert location.allowed is False
    assert "Route is locked" in location.denial_reason
    assert instructions.allowed is True
    assert instructions.allowed_actions == [ActionType.UPDATE_INSTRUCTIONS]


def test_location_move_beyond_limit_is_denied(make_shipment, now):
    """Test that a 4 km move is denied and the reason names both the limit and the distance."""
    shipment = make_shipment()
    far_pin = GeoPin(lat=shipment.geo_pin.lat + 0.036, lng=shipment.geo_pin.lng)

    decision = evaluate(shipment, UpdateLocationAction(geo_pin=far_pin), CONFIG, now=now)

    assert decision.allowed is False
    assert decision.denial_reason.startswith("Location change exceeds policy limit. Max: 250m, requested: ")
    requested = int(decision.denial_reason.rsplit(" ", 1)[1].rstrip("m"))
    assert 3900 <= requested <= 4100
    # distance does not affect the request-independent set
    assert ActionType.UPDATE_LOCATION in decision.allowed_actions


def test_location_move_at_exact_limit_is_allowed(make_shipment, now):
    """Test that a move of exactly max_geo_move_meters is allowed and anything beyond is denied."""
    shipment = make_shipment()
    target = GeoPin(lat=shipment.geo_pin.lat + 0.002, lng=shipment.geo_pin.lng)
    distance = geo_distance_meters(shipment.geo_pin, target)
    action = UpdateLocationAction(geo_pin=target, address=Address(text="Villa 14"))

    at_limit = evaluate(shipment, action, replace(CONFIG, max_geo_move_meters=distance), now=now)
    under_limit = evaluate(shipment, action, replace(CONFIG, max_geo_move_meters=distance - 0.5), now=now)

    assert at_limit.allowed is True
    assert under_limit.allowed is False


def test_large_distance_limit_is_reported_in_whole_meters(make_shipment, now):
    """Test that a large configured limit is not printed in scientific notation."""
    shipment = make_shipment()
    far_pin = GeoPin(lat=shipment.geo_pin.lat - 20, lng=shipment.geo_pin.lng)
    config = replace(CONFIG, max_geo_move_meters=1_000_000)

    decision = evaluate(shipment, UpdateLocationAction(geo_pin=far_pin), config, now=now)

    assert decision.allowed is False
    assert "Max: 1000000m, requested: " in decision.denial_reason
    assert "e+" not in decision.denial_reason


def test_reschedule_at_exact_cutoff_is_denied(make_shipment, now):
    """Test that exactly reschedule_cutoff_minutes remaining is denied (strict comparison)."""
    at_cutoff = make_shipment(eta_minutes=120)
    one_over = make_shipment(eta_minutes=121)

    denied = evaluate(at_cutoff, _reschedule(now), CONFIG, now=now)
    allowed = evaluate(one_over, _reschedule(now), CONFIG, now=now)

    assert denied.allowed is False
    assert denied.denial_reason == "Reschedule cutoff exceeded. Need 120 minutes, only 120 remaining"
    assert allowed.allowed is True


def test_partial_minutes_are_floored(make_shipment, now):
    """Test that 120 minutes and 59 seconds still counts as 120 minutes remaining."""
    shipment = make_shipment(eta_minutes=120)
    shipment = replace(shipment, eta=shipment.eta + timedelta(seconds=59))

    decision = evaluate(shipment, _reschedule(now), CONFIG, now=now)

    assert decision.allowed is False


def test_instructions_always_allowed(make_shipment, now):
    """Test that instruction updates are allowed even past the cutoff on a locked route."""
    shipment = make_shipment(route_locked=True, eta_minutes=5)

    decision = evaluate(shipment, UpdateInstructionsAction("Ring twice"), CONFIG, now=now)

    assert decision.allowed is True


def test_allowed_actions_independent_of_request(make_shipment, now):
    """Test that allowed_actions is the same whatever action is requested."""
    shipment = make_shipment()
    actions = [
        _reschedule(now),
        UpdateInstructionsAction("Call on arrival"),
        UpdateLocationAction(geo_pin=GeoPin(0.0, 0.0)),
    ]

    sets = [evaluate(shipment, a, CONFIG, now=now).allowed_actions for a in actions]

    assert sets[0] == sets[1] == sets[2] == get_allowed_actions(shipment, CONFIG, now=now)


def test_evaluate_is_idempotent(make_shipment, now):
    """Test that evaluating the same inputs twice yields identical decisions."""
    shipment = make_shipment(eta_minutes=90)
    action = _reschedule(now)

    assert evaluate(shipment, action, CONFIG, now=now) == evaluate(shipment, action, CONFIG, now=now)


def test_evaluate_rejects_unknown_action(make_shipment, now):
    """Test that an object outside the action union is a programming error."""
    class Refund:
        action_type = "REFUND"

    with pytest.raises(TypeError):
        evaluate(make_shipment(), Refund(), CONFIG, now=now)


# ---------------------------------------------------------------------------
# validate_action
# ---------------------------------------------------------------------------

def test_validate_rejects_window_end_not_after_start(make_shipment, now):
    start = now + timedelta(hours=6)
    action = RescheduleAction(new_window=TimeWindow(start=start, end=start))

    assert validate_action(make_shipment(), action, now=now) == "Window end must be after window start"


def test_validate_rejects_window_in_past(make_shipment, now):
    start = now - timedelta(minutes=1)
    action = RescheduleAction(new_window=TimeWindow(start=start, end=start + timedelta(hours=2)))

    assert validate_action(make_shipment(), action, now=now) == "Cannot reschedule to a time in the past"


@pytest.mark.parametrize("naive_end", [True, False])
def test_validate_rejects_naive_window(make_shipment, now, naive_end):
    """Test that a window with a naive start or end is a validation message, not a TypeError."""
    start = now + timedelta(hours=24)
    end = start + timedelta(hours=2)
    if naive_end:
        end = end.replace(tzinfo=None)
    else:
        start = start.replace(tzinfo=None)
    action = RescheduleAction(new_window=TimeWindow(start=start, end=end))

    assert validate_action(make_shipment(), action, now=now) == "Window start and end must be timezone-aware datetimes"


def test_validate_rejects_string_window(make_shipment, now):
    action = RescheduleAction(new_window=TimeWindow(start="2026-03-11T09:00:00Z", end="2026-03-11T11:00:00Z"))

    assert validate_action(make_shipment(), action, now=now) == "Window start and end must be timezone-aware datetimes"


@pytest.mark.parametrize("lat,lng", [(90.5, 55.0), (-91.0, 55.0), (25.0, 180.1), (25.0, -200.0)])
def test_validate_rejects_out_of_range_coordinates(make_shipment, now, lat, lng):
    action = UpdateLocationAction(geo_pin=GeoPin(lat=lat, lng=lng))

    assert validate_action(make_shipment(), action, now=now) == "Invalid coordinates"


def test_validate_accepts_boundary_coordinates(make_shipment, now):
    action = UpdateLocationAction(geo_pin=GeoPin(lat=90.0, lng=-180.0))

    assert validate_action(make_shipment(), action, now=now) is None


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_validate_rejects_blank_instructions(make_shipment, now, text):
    action = UpdateInstructionsAction(instructions=text)

    assert validate_action(make_shipment(), action, now=now) == "Instructions cannot be empty"


def test_validate_accepts_well_formed_reschedule(make_shipment, now):
    assert validate_action(make_shipment(), _reschedule(now), now=now) is None
