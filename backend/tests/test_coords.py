from __future__ import annotations

import math

import pytest

from coords.distance import haversine_m, meters_per_pixel, pixel_distance
from coords.systems import CoordSystem, convert_coordinate, display_coordinates, parse_system
from coords.transform import (
    bd09_to_gcj02,
    bd09_to_wgs84,
    gcj02_to_bd09,
    gcj02_to_wgs84,
    is_in_region,
    is_valid_coordinate,
    wgs84_to_bd09,
    wgs84_to_gcj02,
)
from points.types import Point, PointType


def test_beijing_reference_vectors():
    lng, lat = wgs84_to_gcj02(116.404, 39.915)
    assert lng == pytest.approx(116.4103, abs=1e-3)
    assert lat == pytest.approx(39.9165, abs=1e-3)

    b_lng, b_lat = wgs84_to_bd09(116.404, 39.915)
    assert b_lng == pytest.approx(116.4166, abs=1e-3)
    assert b_lat == pytest.approx(39.9227, abs=1e-3)


def test_shanghai_offset_is_hundreds_of_meters():
    lng, lat = wgs84_to_gcj02(121.4737, 31.2304)
    assert (lng, lat) != (121.4737, 31.2304)
    d = haversine_m(31.2304, 121.4737, lat, lng)
    assert 100.0 < d < 1000.0


@pytest.mark.parametrize(
    "lng,lat",
    [(116.404, 39.915), (121.4737, 31.2304), (113.2644, 23.1291), (104.0665, 30.5723), (87.6168, 43.8256),
     # East and north edges: the GCJ-02 result lands just outside the region box.
     (137.83, 40.0), (137.83, 50.0), (130.0, 55.82)],
)
def test_gcj02_round_trip_within_bound(lng, lat):
    back_lng, back_lat = gcj02_to_wgs84(*wgs84_to_gcj02(lng, lat))
    assert abs(back_lng - lng) < 1e-4
    assert abs(back_lat - lat) < 1e-4


def test_bd09_round_trip_is_close():
    lng, lat = 116.404, 39.915
    g_lng, g_lat = bd09_to_gcj02(*gcj02_to_bd09(lng, lat))
    assert g_lng == pytest.approx(lng, abs=1e-5)
    assert g_lat == pytest.approx(lat, abs=1e-5)

    w_lng, w_lat = bd09_to_wgs84(*wgs84_to_bd09(lng, lat))
    assert w_lng == pytest.approx(lng, abs=1e-4)
    assert w_lat == pytest.approx(lat, abs=1e-4)


@pytest.mark.parametrize("lng,lat", [(2.3522, 48.8566), (-74.006, 40.7128), (151.2093, -33.8688), (0.0, 0.0)])
def test_outside_region_is_exact_identity(lng, lat):
    assert not is_in_region(lng, lat)
    assert wgs84_to_gcj02(lng, lat) == (lng, lat)
    assert gcj02_to_wgs84(lng, lat) == (lng, lat)


def test_region_box_edges():
    assert is_in_region(72.004, 0.8293)
    assert is_in_region(137.8347, 55.8271)
    assert not is_in_region(72.003, 30.0)
    assert not is_in_region(120.0, 55.83)


def test_is_valid_coordinate():
    assert is_valid_coordinate(116.4, 39.9)
    assert is_valid_coordinate(-180, 90)
    assert not is_valid_coordinate(181.0, 0.0)
    assert not is_valid_coordinate(0.0, -90.5)
    assert not is_valid_coordinate(float("nan"), 0.0)
    assert not is_valid_coordinate(True, 0.0)
    assert not is_valid_coordinate("116.4", 39.9)


def test_convert_coordinate_dispatch():
    assert convert_coordinate(116.404, 39.915, "wgs84", "wgs84") == (116.404, 39.915)
    assert convert_coordinate(116.404, 39.915, "wgs84", "gcj02") == wgs84_to_gcj02(116.404, 39.915)
    assert convert_coordinate(116.404, 39.915, CoordSystem.bd09, CoordSystem.wgs84) == bd09_to_wgs84(
        116.404, 39.915
    )


def test_unknown_system_raises():
    with pytest.raises(ValueError):
        parse_system("mercator")
    with pytest.raises(ValueError):
        convert_coordinate(1.0, 1.0, "wgs84", "utm")


def test_display_coordinates_uses_stored_wgs84():
    p = Point(id=1, type=PointType.panorama, lat=39.915, lng=116.404)
    assert display_coordinates(p, "wgs84") == (116.404, 39.915)
    assert display_coordinates(p, "gcj02") == wgs84_to_gcj02(116.404, 39.915)


def test_pixel_distance_scales_with_zoom():
    a = (31.20, 121.50)
    b = (31.2001, 121.5001)
    d15 = pixel_distance(a, b, 15)
    d16 = pixel_distance(a, b, 16)
    assert d15 > 0.0
    assert d16 == pytest.approx(2 * d15)


def test_meters_per_pixel_equator_zoom0():
    assert meters_per_pixel(0.0, 0) == pytest.approx(156_412.0)
    assert meters_per_pixel(60.0, 1) == pytest.approx(156_412.0 * 0.5 / 2)


def test_haversine_one_degree_latitude():
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(6_371_000.0 * math.pi / 180.0)
