"""Great-circle distance and bounding-box helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass

from parksmarter.models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0
KM_PER_DEGREE_LAT = 111.0

# cos(lat) reaches zero at the poles; stay just short of it.
_MAX_ABS_LAT_FOR_COS = 89.999999


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # Rounding can push a a hair past 1.0 for near-antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def great_circle_distance(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_m(a.lat, a.lon, b.lat, b.lon)


def bounding_box_delta(center: GeoPoint, radius_km: float) -> tuple[float, float]:
    """Convert a radius in kilometers to (lat, lon) degree deltas around ``center``.

    1 degree of latitude is taken as 111 km; the longitude delta is widened by
    1/cos(lat) for meridian convergence. The box over-includes and is only a
    pre-filter for the exact distance check.
    """

    lat_delta = radius_km / KM_PER_DEGREE_LAT
    lat = max(-_MAX_ABS_LAT_FOR_COS, min(_MAX_ABS_LAT_FOR_COS, center.lat))
    lon_delta = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(lat)))
    return lat_delta, lon_delta


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.min_lat <= point.lat <= self.max_lat
            and self.min_lon <= point.lon <= self.max_lon
        )


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    lat_delta, lon_delta = bounding_box_delta(center, radius_km)
    return BoundingBox(
        min_lat=center.lat - lat_delta,
        max_lat=center.lat + lat_delta,
        min_lon=center.lon - lon_delta,
        max_lon=center.lon + lon_delta,
    )
