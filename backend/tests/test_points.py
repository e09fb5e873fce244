from __future__ import annotations

import json

import pytest

from points.loaders import load_overlay_points, load_point_rows
from points.types import InvalidPoint, PointType, parse_point, parse_point_type, parse_points


def test_parse_point_accepts_long_keys_and_numeric_strings():
    p = parse_point({"id": "a", "type": "video", "latitude": "39.9", "longitude": 116.4, "title": "Gate"})
    assert p.type == PointType.video
    assert (p.lat, p.lng) == (39.9, 116.4)
    assert p.title == "Gate"
    assert p.data["title"] == "Gate"


def test_parse_point_style_override_aliases():
    p = parse_point({"id": 1, "lat": 1, "lng": 2, "styleConfig": {"point_color": "#000"}})
    q = parse_point({"id": 2, "lat": 1, "lng": 2, "style_config": {"point_size": 10}})
    assert p.style_config == {"point_color": "#000"}
    assert q.style_config == {"point_size": 10}


def test_missing_type_defaults_by_id():
    assert parse_point({"id": 1, "lat": 0, "lng": 0}).type == PointType.panorama
    assert parse_point({"id": "kml-3-7", "lat": 0, "lng": 0}).type == PointType.overlay_point
    assert parse_point({"id": "kml-3-7", "lat": 0, "lng": 0}).is_overlay


def test_type_aliases():
    assert parse_point_type("pano") == PointType.panorama
    assert parse_point_type("image_set") == PointType.image_set
    assert parse_point_type("KML") == PointType.overlay_point


@pytest.mark.parametrize(
    "raw",
    [
        {"id": "x", "lat": float("nan"), "lng": 1.0},
        {"id": "x", "lat": "north", "lng": 1.0},
        {"id": "x", "lat": 91.0, "lng": 1.0},
        {"id": "x", "lat": 1.0, "lng": -181.0},
        {"id": "x", "lng": 1.0},
        {"id": "x", "lat": True, "lng": 1.0},
        {"id": "x", "lat": 1.0, "lng": 1.0, "type": "hologram"},
        {"lat": 1.0, "lng": 1.0},
    ],
)
def test_invalid_points_raise(raw):
    with pytest.raises(InvalidPoint):
        parse_point(raw)


def test_parse_points_collects_skips_in_order():
    rows = [
        {"id": 1, "lat": 10, "lng": 10},
        {"id": 2, "lat": "?", "lng": 10},
        "not a record",
        {"id": 3, "lat": 11, "lng": 11},
    ]
    points, skipped = parse_points(rows)
    assert [p.id for p in points] == [1, 3]
    assert [s.id for s in skipped] == [2, None]


def test_points_compare_by_value_not_data():
    a = parse_point({"id": 1, "lat": 1, "lng": 1, "note": "x"})
    b = parse_point({"id": 1, "lat": 1, "lng": 1, "note": "y"})
    assert a == b


def test_load_point_rows_fills_type(tmp_path):
    path = tmp_path / "videos.json"
    path.write_text(
        json.dumps({"data": [{"id": 1, "lat": 30, "lng": 120}, {"id": 2, "lat": 30, "lng": 120, "type": "panorama"}]}),
        encoding="utf-8",
    )
    points, skipped = load_point_rows(path, point_type=PointType.video)
    assert not skipped
    assert [p.type for p in points] == [PointType.video, PointType.panorama]


def test_load_point_rows_rejects_bad_root(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"data": {"id": 1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_point_rows(path)


def test_load_overlay_points_keeps_point_geometries(tmp_path):
    path = tmp_path / "overlay.geojson"
    path.write_text(
        json.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    {"type": "Feature", "id": "f1", "properties": {"name": "Well"},
                     "geometry": {"type": "Point", "coordinates": [120.1, 30.2]}},
                    {"type": "Feature", "id": "f2", "properties": {},
                     "geometry": {"type": "LineString", "coordinates": [[120, 30], [121, 31]]}},
                ],
            }
        ),
        encoding="utf-8",
    )
    points, skipped = load_overlay_points(path, file_id=9)
    assert not skipped
    assert len(points) == 1
    p = points[0]
    assert str(p.id).startswith("kml-9-")
    assert p.type == PointType.overlay_point
    assert (p.lng, p.lat) == (120.1, 30.2)
