"""
Normalization

Converts raw OMS shipment records into ShipmentSnapshot and provides the
geometric and temporal helpers the policy engine relies on.
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional

from resolution.domain.clock import parse_datetime, utcnow
from resolution.domain.models import Address, GeoPin, RiskTier, ShipmentSnapshot, TimeWindow

EARTH_RADIUS_METERS = 6371e3


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def normalize_shipment(raw: Dict[str, Any], route_locked: bool = False) -> ShipmentSnapshot:
    """
    Build a ShipmentSnapshot from an OMS record.

    Accepts both the flat column shape (window_start, geo_lat, address_text, ...)
    and the nested shape (window{start,end}, geo_pin{lat,lng}, address{text,text_ar}).

    Args:
        raw: Raw shipment record from the OMS
        route_locked: Route-lock flag reported by Dispatch

    Returns:
        Normalized snapshot

    Raises:
        KeyError / ValueError: If required fields are missing or unparseable
    """
    window = raw.get("window") or {}
    geo = raw.get("geo_pin") or {}
    address = raw.get("address") if isinstance(raw.get("address"), dict) else {}

    window_start = _first(window, "start") or raw["window_start"]
    window_end = _first(window, "end") or raw["window_end"]
    lat = _first(geo, "lat")
    lng = _first(geo, "lng")
    if lat is None:
        lat = raw["geo_lat"]
    if lng is None:
        lng = raw["geo_lng"]

    eta = _first(raw, "eta", "eta_ts")
    if eta is None:
        eta = window_start

    return ShipmentSnapshot(
        shipment_id=str(raw["shipment_id"]),
        status=str(raw.get("status", "")),
        eta=parse_datetime(eta),
        window=TimeWindow(start=parse_datetime(window_start), end=parse_datetime(window_end)),
        geo_pin=GeoPin(lat=float(lat), lng=float(lng)),
        address=Address(
            text=_first(address, "text") or raw.get("address_text") or "",
            text_ar=_first(address, "text_ar") or raw.get("address_text_ar") or None,
        ),
        contact_phone_masked=str(raw.get("contact_phone_masked") or ""),
        risk_tier=RiskTier(str(raw.get("risk_tier") or RiskTier.LOW.value).lower()),
        route_locked=bool(route_locked),
        instructions=raw.get("instructions") or None,
        package_content=raw.get("package_content") or None,
    )


def geo_distance_meters(a: GeoPin, b: GeoPin) -> float:
    """Great-circle distance between two pins in meters (haversine)."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def minutes_until(eta: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes from now until eta, floored (negative once eta has passed)."""
    if now is None:
        now = utcnow()
    return math.floor((eta - now).total_seconds() / 60)
