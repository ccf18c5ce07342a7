"""
Tests for shipment normalization and the distance / time helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from resolution.domain.clock import format_datetime, parse_datetime
from resolution.domain.models import (
    GeoPin,
    PolicyConfig,
    RescheduleAction,
    RiskTier,
    UpdateLocationAction,
    action_from_payload,
)
from resolution.domain.normalize import geo_distance_meters, minutes_until, normalize_shipment
from resolution.errors import ValidationError


def test_normalize_flat_record(make_raw_shipment, now):
    """Test that the flat OMS column shape maps onto the snapshot."""
    snapshot = normalize_shipment(make_raw_shipment(risk_tier="HIGH"), route_locked=True)

    assert snapshot.shipment_id == "SHP-1001"
    assert snapshot.eta == now + timedelta(minutes=240)
    assert snapshot.window.end - snapshot.window.start == timedelta(hours=2)
    assert snapshot.geo_pin == GeoPin(25.2048, 55.2708)
    assert snapshot.address.text_ar.startswith("فيلا")
    assert snapshot.risk_tier == RiskTier.HIGH
    assert snapshot.route_locked is True
    assert snapshot.instructions is None


def test_normalize_nested_record():
    raw = {
        "shipment_id": "SHP-2002",
        "status": "SCHEDULED",
        "eta_ts": "2026-03-10T14:00:00Z",
        "window": {"start": "2026-03-10T13:00:00Z", "end": "2026-03-10T15:00:00Z"},
        "geo_pin": {"lat": 24.4539, "lng": 54.3773},
        "address": {"text": "Corniche Rd, Abu Dhabi"},
        "package_content": "Electronics",
    }

    snapshot = normalize_shipment(raw)

    assert snapshot.eta == datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)
    assert snapshot.geo_pin.lat == 24.4539
    assert snapshot.address.text == "Corniche Rd, Abu Dhabi"
    assert snapshot.address.text_ar is None
    assert snapshot.risk_tier == RiskTier.LOW
    assert snapshot.package_content == "Electronics"
    assert snapshot.route_locked is False


def test_eta_falls_back_to_window_start(make_raw_shipment):
    raw = make_raw_shipment()
    del raw["eta"]

    snapshot = normalize_shipment(raw)

    assert snapshot.eta == snapshot.window.start


def test_normalize_missing_window_raises(make_raw_shipment):
    raw = make_raw_shipment()
    del raw["window_start"]

    with pytest.raises(KeyError):
        normalize_shipment(raw)


def test_geo_distance_meters():
    origin = GeoPin(25.2048, 55.2708)

    assert geo_distance_meters(origin, origin) == 0
    # one hundredth of a degree of latitude is ~1.11 km everywhere
    assert geo_distance_meters(origin, GeoPin(25.2148, 55.2708)) == pytest.approx(1111.95, abs=0.5)


def test_minutes_until_floors(now):
    assert minutes_until(now + timedelta(minutes=120, seconds=59), now) == 120
    assert minutes_until(now + timedelta(seconds=30), now) == 0
    assert minutes_until(now - timedelta(seconds=30), now) == -1


def test_parse_and_format_datetime():
    assert parse_datetime("2026-03-10T08:00:00Z") == datetime(2026, 3, 10, 8, tzinfo=timezone.utc)
    assert parse_datetime("2026-03-10T12:00:00+04:00") == datetime(2026, 3, 10, 8, tzinfo=timezone.utc)
    assert parse_datetime("2026-03-10T08:00:00").tzinfo == timezone.utc
    assert format_datetime(datetime(2026, 3, 10, 8, tzinfo=timezone.utc)) == "2026-03-10T08:00:00Z"
    with pytest.raises(ValueError):
        parse_datetime("")


def test_action_from_payload():
    reschedule = action_from_payload({
        "type": "RESCHEDULE",
        "new_window": {"start": "2026-03-11T09:00:00Z", "end": "2026-03-11T11:00:00Z"},
    })
    location = action_from_payload({"type": "UPDATE_LOCATION", "geo_pin": {"lat": "25.1", "lng": 55.2}})

    assert isinstance(reschedule, RescheduleAction)
    assert reschedule.to_payload()["new_window"]["start"] == "2026-03-11T09:00:00Z"
    assert isinstance(location, UpdateLocationAction)
    assert location.geo_pin == GeoPin(25.1, 55.2)
    assert location.address is None


@pytest.mark.parametrize("payload", [
    {"type": "REFUND"},
    {"type": "RESCHEDULE", "new_window": {"start": "tomorrow"}},
    {"type": "UPDATE_INSTRUCTIONS"},
    "RESCHEDULE",
])
def test_action_from_payload_rejects_malformed(payload):
    with pytest.raises(ValidationError):
        action_from_payload(payload)


def test_policy_config_from_stored_values():
    config = PolicyConfig.from_dict({
        "reschedule_cutoff_minutes": "90",
        "max_geo_move_meters": 300,
        "version": 3,
        "updated_at": "2026-03-01T00:00:00Z",
    })

    assert config.reschedule_cutoff_minutes == 90
    assert config.max_geo_move_meters == 300.0
    assert config.trust_threshold_location == 0.8
    assert config.to_snapshot()["updated_at"] == "2026-03-01T00:00:00Z"
