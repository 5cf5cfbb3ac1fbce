"""Small-scale geographic helpers."""

from __future__ import annotations

import math

from goalroute.domain.constants import KM_PER_DEGREE
from goalroute.domain.models import Coordinates


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    radius_km = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return radius_km * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def project(origin: Coordinates, radius_km: float, bearing_deg: float) -> Coordinates:
    """Equirectangular offset of ``radius_km`` along ``bearing_deg`` (0 = north, clockwise)."""
    theta = math.radians(bearing_deg)
    lat = origin.lat + (radius_km * math.cos(theta)) / KM_PER_DEGREE
    lng = origin.lng + (radius_km * math.sin(theta)) / (
        KM_PER_DEGREE * math.cos(math.radians(origin.lat))
    )
    return Coordinates(lat=lat, lng=lng)


def bearing(start: Coordinates, end: Coordinates) -> float:
    rlat1, rlat2 = math.radians(start.lat), math.radians(end.lat)
    d_lon = math.radians(end.lng - start.lng)
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360
