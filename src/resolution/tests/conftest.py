"""
Shared fixtures for resolution core tests.

All tests run against a fixed clock so cutoff arithmetic is deterministic.
"""

from datetime import datetime, timedelta, timezone

import pytest

from resolution.domain.clock import format_datetime
from resolution.domain.normalize import normalize_shipment

NOW = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def make_raw_shipment():
    """Factory for OMS records in the flat column shape; ETA 4 hours out by default."""

    def _make(shipment_id="SHP-1001", eta_minutes=240, **overrides):
        eta = NOW + timedelta(minutes=eta_minutes)
        record = {
            "shipment_id": shipment_id,
            "status": "OUT_FOR_DELIVERY",
            "eta": format_datetime(eta),
            "window_start": format_datetime(eta),
            "window_end": format_datetime(eta + timedelta(hours=2)),
            "geo_lat": 25.2048,
            "geo_lng": 55.2708,
            "address_text": "Villa 12, Street 5, Jumeirah 1, Dubai",
            "address_text_ar": "فيلا 12، شارع 5، جميرا 1، دبي",
            "contact_phone_masked": "+971 ** *** 4567",
            "risk_tier": "low",
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def make_shipment(make_raw_shipment):
    """Factory for ShipmentSnapshot values."""

    def _make(route_locked=False, **kwargs):
        return normalize_shipment(make_raw_shipment(**kwargs), route_locked=route_locked)

    return _make
