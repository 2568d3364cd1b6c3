"""Great-circle distance and coordinate gates."""

from __future__ import annotations

import math
from typing import Any

from localedb.common.constants import EARTH_RADIUS_KM


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def valid_lat_lon(lat: float | None, lon: float | None) -> bool:
    if lat is None or lon is None:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two WGS84 points."""
    lat1, lon1, lat2, lon2 = map(math.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))
    return EARTH_RADIUS_KM * c


def within_box(lat1: float, lon1: float, lat2: float, lon2: float, half_width_degrees: float) -> bool:
    dlon = abs(lon1 - lon2) % 360
    # Points either side of the antimeridian are close in longitude.
    dlon = min(dlon, 360 - dlon)
    return abs(lat1 - lat2) <= half_width_degrees and dlon <= half_width_degrees
