from __future__ import annotations

import math
from math import asin, cos, radians, sin, sqrt

"""
Geospatial helpers.

Coordinate normalization and great-circle distance. Polygon containment lives in
`settlescout.geo.boundary`; everything here is dependency-free and pure.
"""

EARTH_RADIUS_KM = 6371.0


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into (-180, 180] (modulo 360, not a clamp)."""
    if not math.isfinite(lon):
        return lon
    wrapped = math.fmod(lon, 360.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    elif wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


def normalize_latitude(lat: float) -> float:
    """Clamp a latitude to [-90, 90]. NaN and infinities pass through unchanged."""
    if not math.isfinite(lat):
        return lat
    return max(-90.0, min(90.0, lat))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in kilometers between two points."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    h = sin(dlat / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(h)))
