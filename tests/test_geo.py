"""Tests for parksmarter.geo."""

import math

import pytest

from parksmarter.geo import (
    bounding_box,
    bounding_box_delta,
    great_circle_distance,
    haversine_m,
)
from parksmarter.models import GeoPoint

from conftest import CBD, east, north

SOUTHERN_CROSS = GeoPoint(lat=-37.8184, lon=144.9525)
RICHMOND = GeoPoint(lat=-37.8240, lon=144.9900)


def _destination(p: GeoPoint, meters: float, bearing_deg: float) -> GeoPoint:
    delta = meters / 6_371_000.0
    theta = math.radians(bearing_deg)
    phi1 = math.radians(p.lat)
    lam1 = math.radians(p.lon)
    phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
    lam2 = lam1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    return GeoPoint(lat=math.degrees(phi2), lon=math.degrees(lam2))


class TestGreatCircleDistance:
    def test_zero_for_same_point(self):
        assert great_circle_distance(CBD, CBD) == 0.0

    def test_symmetric(self):
        assert great_circle_distance(CBD, RICHMOND) == great_circle_distance(RICHMOND, CBD)
        assert great_circle_distance(SOUTHERN_CROSS, RICHMOND) == great_circle_distance(RICHMOND, SOUTHERN_CROSS)

    def test_meridian_offset_is_exact(self):
        assert great_circle_distance(CBD, north(CBD, 200)) == pytest.approx(200.0, abs=1e-6)

    def test_parallel_offset(self):
        assert great_circle_distance(CBD, east(CBD, 350)) == pytest.approx(350.0, abs=1e-6)

    def test_city_scale_distance(self):
        # CBD to Richmond is roughly 2.6 km
        d = great_circle_distance(CBD, RICHMOND)
        assert 2_500 < d < 2_800

    def test_one_degree_latitude(self):
        d = haversine_m(0.0, 0.0, 1.0, 0.0)
        assert d == pytest.approx(6_371_000.0 * math.pi / 180.0)

    def test_never_negative(self):
        assert haversine_m(-37.0, 144.0, -38.0, 145.0) > 0
        assert haversine_m(10.0, -179.9, 10.0, 179.9) > 0


class TestBoundingBoxDelta:
    def test_equator(self):
        lat_delta, lon_delta = bounding_box_delta(GeoPoint(lat=0.0, lon=0.0), 1.0)
        assert lat_delta == pytest.approx(1 / 111)
        assert lon_delta == pytest.approx(1 / 111)

    def test_longitude_widens_away_from_equator(self):
        lat_delta, lon_delta = bounding_box_delta(CBD, 2.0)
        assert lat_delta == pytest.approx(2 / 111)
        assert lon_delta == pytest.approx(2 / (111 * math.cos(math.radians(CBD.lat))))
        assert lon_delta > lat_delta

    def test_zero_radius(self):
        assert bounding_box_delta(CBD, 0.0) == (0.0, 0.0)

    def test_pole_does_not_divide_by_zero(self):
        lat_delta, lon_delta = bounding_box_delta(GeoPoint(lat=90.0, lon=0.0), 1.0)
        assert math.isfinite(lon_delta)
        assert lon_delta > 180.0


class TestBoundingBox:
    @pytest.mark.parametrize("bearing_deg", [0, 45, 90, 135, 180, 225, 270, 315])
    def test_contains_circle_edge(self, bearing_deg: int):
        edge = _destination(CBD, 999.9, bearing_deg)
        assert great_circle_distance(CBD, edge) == pytest.approx(999.9, abs=1e-3)
        assert bounding_box(CBD, 1.0).contains(edge)

    def test_corner_is_outside_circle(self):
        box = bounding_box(CBD, 1.0)
        corner = GeoPoint(lat=box.max_lat, lon=box.max_lon)
        assert box.contains(corner)
        assert great_circle_distance(CBD, corner) > 1000.0

    def test_excludes_far_point(self):
        assert not bounding_box(CBD, 1.0).contains(north(CBD, 2_000))
